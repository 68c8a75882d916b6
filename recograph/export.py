"""Graphviz DOT export and the shared listing order for nodes and edges.

Edges are ordered by (source name, target name, relationship rank); the rank
is the declaration order of ``RelationshipKind``. Example output::

    digraph {
      centralunit -> graphicscard [label=contains]
      graphicscard -> centralunit [label=containedin]
      centralunit [shape=box]
      graphicscard [shape=box]
    }
"""

from __future__ import annotations

from collections.abc import Iterable

from recograph.engine.core import Edge, Node, ProductGraph


def edge_sort_key(edge: Edge) -> tuple[str, str, int]:
    return (edge.source.key, edge.target.key, edge.relationship.rank)


def sorted_edges(graph: ProductGraph) -> list[Edge]:
    """All edges of the graph, inverses included, in listing order."""
    return sorted(graph.edges(), key=edge_sort_key)


def sorted_nodes(nodes: Iterable[Node]) -> list[Node]:
    """Nodes ordered by lowercase name."""
    return sorted(nodes, key=lambda node: node.key)


def to_dot(graph: ProductGraph) -> str:
    """Render the graph as a DOT digraph.

    Categories are emitted after the edges as box-shaped nodes; products use
    the default shape and need no declaration of their own.
    """
    with graph.batch():
        edges = sorted_edges(graph)
        categories = sorted_nodes(graph.categories())

    lines = ["digraph {"]
    lines.extend(
        f"  {edge.source.key} -> {edge.target.key} [label={edge.relationship.label}]"
        for edge in edges
    )
    lines.extend(f"  {category.key} [shape=box]" for category in categories)
    lines.append("}")
    return "\n".join(lines)
