"""Pydantic models for the Recograph public API.

These are thin wrappers over the core engine types (engine.core), providing
Pydantic validation and serialization for the client-facing API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class Node(BaseModel):
    """A category or product in the graph.

    Products carry a non-negative id; categories never do.
    """

    name: str = Field(min_length=1)
    type: Literal["category", "product"]
    id: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_id_matches_type(self) -> Node:
        if self.type == "product" and self.id is None:
            raise ValueError("Product node must have an id")
        if self.type == "category" and self.id is not None:
            raise ValueError("Category node cannot have an id")
        return self

    @property
    def display(self) -> str:
        """Lowercase name, with ``:id`` appended for products."""
        if self.id is None:
            return self.name.lower()
        return f"{self.name.lower()}:{self.id}"

    def __str__(self) -> str:
        return self.display


class Edge(BaseModel):
    """A directed relationship between two nodes, as shown to users."""

    source: Node
    target: Node
    relationship: str

    @property
    def label(self) -> str:
        """Relationship keyword without hyphens, as used in DOT export."""
        return self.relationship.replace("-", "")

    def __str__(self) -> str:
        return f"{self.source.display}-[{self.relationship}]->{self.target.display}"


class GraphStats(BaseModel):
    """Summary counts for a graph.

    Edge counts include the automatically maintained inverse edges.
    """

    node_count: int
    edge_count: int
    product_count: int
    category_count: int
    edges_by_relationship: dict[str, int]


class ValidationResult(BaseModel):
    """Result of a graph consistency check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SkippedLine(BaseModel):
    """A database line that parsed but could not be applied to the graph."""

    line_number: int
    text: str
    reason: str


class LoadReport(BaseModel):
    """Outcome of loading a database text into a fresh graph."""

    line_count: int
    accepted_count: int
    skipped: list[SkippedLine] = Field(default_factory=list)
