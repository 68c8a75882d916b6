"""Recograph: product recommendations from an in-memory category and product graph."""

__version__ = "0.1.0"

from recograph.client import Recograph
from recograph.models import Edge, GraphStats, LoadReport, Node, SkippedLine, ValidationResult

__all__ = [
    "Edge",
    "GraphStats",
    "LoadReport",
    "Node",
    "Recograph",
    "SkippedLine",
    "ValidationResult",
    "__version__",
]
