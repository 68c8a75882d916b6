"""Recograph MCP server: exposes product graph operations as tools for AI agents."""

from __future__ import annotations

import functools
import logging
import os
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP

from recograph.client import Recograph
from recograph.models import Edge, Node

# All logging goes to stderr; stdout carries JSON-RPC
logging.basicConfig(stream=sys.stderr, level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("recograph.mcp")

DATABASE_ENVVAR = "RECOGRAPH_DATABASE"

# ---------------------------------------------------------------------------
# Client singleton, safe for single-process stdio MCP
# ---------------------------------------------------------------------------

_CLIENT: Recograph | None = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    global _CLIENT
    db_path = os.environ.get(DATABASE_ENVVAR)
    if db_path:
        logger.info("Loading Recograph database: %s", db_path)
    _CLIENT = Recograph(db_path)
    try:
        yield {}
    finally:
        _CLIENT = None


mcp = FastMCP(
    "Recograph",
    instructions=(
        "Recograph recommends products from a graph of categories and products. "
        "Relationships are written as database lines such as "
        "'Shoes contains Boot(id=1)' or 'Boot(id=1) successor-of Sneaker(id=2)'; "
        "a bare name is a category, name(id=N) a product. "
        "Every relationship is stored together with its inverse. "
        "Queries: S1 <id> (siblings in a shared category), S2 <id> (successors), "
        "S3 <id> (predecessors), combined with INTERSECTION(a, b) and UNION(a, b)."
    ),
    lifespan=app_lifespan,
)


def _get_client() -> Recograph:
    """Return the active Recograph client."""
    if _CLIENT is None:
        raise RuntimeError("Recograph client is not initialized")
    return _CLIENT


def _safe_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> dict:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.exception("Tool %s failed", fn.__name__)
            return {"error": True, "message": f"{type(exc).__name__}: {exc}"}
    return wrapper


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _node_dict(node: Node) -> dict:
    return node.model_dump()


def _edge_dict(edge: Edge) -> dict:
    return {
        "source": edge.source.display,
        "target": edge.target.display,
        "relationship": edge.relationship,
    }


# ===================================================================
# Graph tools
# ===================================================================


@mcp.tool()
@_safe_tool
def load_database(path: str) -> dict:
    """Replace the graph with the relationships in a database file.

    Args:
        path: Text file with one relationship per line.
    """
    report = _get_client().load(path)
    return report.model_dump()


@mcp.tool()
@_safe_tool
def add_relationship(line: str) -> dict:
    """Add a relationship (and its inverse), creating missing nodes.

    Args:
        line: A database line, e.g. "Shoes contains Boot(id=1)".
    """
    return _edge_dict(_get_client().add(line))


@mcp.tool()
@_safe_tool
def remove_relationship(line: str) -> dict:
    """Remove a relationship and its inverse. Nodes left unconnected are removed.

    Args:
        line: The relationship as a database line.
    """
    return _edge_dict(_get_client().remove(line))


@mcp.tool()
@_safe_tool
def list_nodes(products_only: bool = False) -> dict:
    """List nodes sorted by name.

    Args:
        products_only: If true, omit categories.
    """
    client = _get_client()
    found = client.products() if products_only else client.nodes()
    return {"nodes": [_node_dict(n) for n in found], "count": len(found)}


@mcp.tool()
@_safe_tool
def list_edges() -> dict:
    """List all relationships, inverses included."""
    found = _get_client().edges()
    return {"edges": [_edge_dict(e) for e in found], "count": len(found)}


@mcp.tool()
@_safe_tool
def recommend(query: str) -> dict:
    """Recommend products for a query such as "INTERSECTION(S1 4, S3 2)".

    Args:
        query: S1/S2/S3 followed by a product id, optionally combined with
            INTERSECTION(a, b) or UNION(a, b).
    """
    products = _get_client().recommend(query)
    return {"products": [_node_dict(p) for p in products], "count": len(products)}


@mcp.tool()
@_safe_tool
def export_dot() -> dict:
    """Export the graph in Graphviz DOT format."""
    return {"dot": _get_client().export_dot()}


@mcp.tool()
@_safe_tool
def get_stats() -> dict:
    """Get node, product, category and relationship counts."""
    return _get_client().stats().model_dump()


# ===================================================================
# Entry point
# ===================================================================


def run_server() -> None:
    """Run the Recograph MCP server over stdio."""
    mcp.run(transport="stdio")
