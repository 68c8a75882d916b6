"""Recograph client: the primary interface for loading, editing and querying a product graph."""

from __future__ import annotations

import logging
from pathlib import Path

from recograph import export
from recograph.engine import strategies
from recograph.engine.core import Edge as CoreEdge
from recograph.engine.core import Node as CoreNode
from recograph.engine.core import Product as CoreProduct
from recograph.engine.core import ProductGraph
from recograph.engine.query import QueryTerm, parse_query
from recograph.errors import (
    EdgeRejectedError,
    NodeNotFoundError,
    RelationshipNotFoundError,
)
from recograph.ingest import (
    apply_triple,
    find_product_id_conflict,
    load_database,
    load_database_file,
    parse_line,
)
from recograph.models import Edge, GraphStats, LoadReport, Node, ValidationResult

logger = logging.getLogger(__name__)

# --- Conversion helpers: engine core types -> pydantic models ---


def _core_node_to_model(cn: CoreNode) -> Node:
    if isinstance(cn, CoreProduct):
        return Node(name=cn.name, type="product", id=cn.id)
    return Node(name=cn.name, type="category")


def _core_edge_to_model(ce: CoreEdge) -> Edge:
    return Edge(
        source=_core_node_to_model(ce.source),
        target=_core_node_to_model(ce.target),
        relationship=ce.relationship.value,
    )


class Recograph:
    """A product recommendation graph.

    Holds one in-memory graph of categories and products. Loading a database
    replaces the whole graph; a load that fails leaves the current graph
    untouched.

    Example:
        ```python
        rg = Recograph()
        rg.loads("Shoes contains Boot(id=1)\\nShoes contains Sandal(id=2)")
        rg.recommend("S1 1")        # [Node(name='Sandal', type='product', id=2)]
        rg.add("Boot(id=1) successor-of Sneaker(id=3)")
        rg.recommend("UNION(S1 1, S2 3)")
        ```
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._graph = ProductGraph()
        self._path = str(path) if path else None
        if self._path:
            self.load(self._path)

    @property
    def graph(self) -> ProductGraph:
        """The underlying engine graph."""
        return self._graph

    @property
    def path(self) -> str | None:
        """Path of the most recently loaded database file, if any."""
        return self._path

    # --- Loading ---

    def load(self, path: str | Path) -> LoadReport:
        """Replace the graph with the contents of a database file.

        Args:
            path: UTF-8 text file with one relationship per line.

        Returns:
            A ``LoadReport`` listing lines that were skipped.

        Raises:
            OSError: If the file cannot be read.
            DatabaseFormatError: If a line is malformed.
            ProductIdConflictError: If a product id is reused with another name.
        """
        graph, report = load_database_file(path)
        self._graph = graph
        self._path = str(path)
        logger.info("Loaded database %s", path)
        return report

    def loads(self, text: str) -> LoadReport:
        """Replace the graph with the relationships in ``text``.

        Same rules as :meth:`load`. Afterwards :attr:`path` is None.
        """
        graph, report = load_database(text)
        self._graph = graph
        self._path = None
        return report

    # --- Mutations ---

    def add(self, line: str) -> Edge:
        """Add one relationship, creating its endpoints if needed.

        Args:
            line: A database line, e.g. ``"Shoes contains Boot(id=1)"``.

        Returns:
            The added edge. Its inverse is added as well.

        Raises:
            DatabaseFormatError: If the line is malformed.
            ProductIdConflictError: If a product id belongs to another name.
            EdgeRejectedError: If a name is bound to a different node or the
                relationship already exists.
        """
        triple = parse_line(line)
        graph = self._graph
        with graph.batch():
            conflict = find_product_id_conflict(graph, triple)
            if conflict is not None:
                raise conflict
            rejection = apply_triple(graph, triple)
            if rejection is not None:
                raise EdgeRejectedError(rejection, str(triple))
            source = graph.get_node(triple.subject.name)
            target = graph.get_node(triple.object.name)
            assert source is not None and target is not None
            return _core_edge_to_model(CoreEdge(source, target, triple.relationship))

    def remove(self, line: str) -> Edge:
        """Remove one relationship and its inverse.

        Endpoints left without relationships are removed from the graph.

        Raises:
            DatabaseFormatError: If the line is malformed.
            NodeNotFoundError: If an endpoint is not in the graph.
            RelationshipNotFoundError: If the relationship does not exist.
        """
        triple = parse_line(line)
        graph = self._graph
        with graph.batch():
            source = graph.get_node(triple.subject.name)
            if source is None:
                raise NodeNotFoundError(triple.subject.name)
            target = graph.get_node(triple.object.name)
            if target is None:
                raise NodeNotFoundError(triple.object.name)
            edge = CoreEdge(source, target, triple.relationship)
            if not graph.remove_edge(edge):
                raise RelationshipNotFoundError(str(triple))
            return _core_edge_to_model(edge)

    # --- Queries ---

    def nodes(self) -> list[Node]:
        """All nodes, sorted by lowercase name."""
        return [_core_node_to_model(n) for n in export.sorted_nodes(self._graph.nodes())]

    def products(self) -> list[Node]:
        """All products, sorted by lowercase name."""
        return [_core_node_to_model(n) for n in export.sorted_nodes(self._graph.products())]

    def edges(self) -> list[Edge]:
        """All edges, inverses included, sorted by source, target and relationship."""
        return [_core_edge_to_model(e) for e in export.sorted_edges(self._graph)]

    def recommend(self, query: str) -> list[Node]:
        """Evaluate a recommendation query such as ``"INTERSECTION(S1 4, S3 2)"``.

        Returns:
            Recommended products sorted by lowercase name. A query whose
            reference product does not exist yields no recommendations.

        Raises:
            QueryParseError: If the query does not match the grammar.
        """
        return self.recommend_term(parse_query(query))

    def recommend_term(self, term: QueryTerm) -> list[Node]:
        """Evaluate an already parsed query term."""
        found = strategies.recommend(term, self._graph)
        return [_core_node_to_model(p) for p in export.sorted_nodes(found)]

    def export_dot(self) -> str:
        """Render the graph in Graphviz DOT format."""
        return export.to_dot(self._graph)

    # --- Stats & validation ---

    def stats(self) -> GraphStats:
        """Get node and edge counts.

        Returns:
            A ``GraphStats``; edge counts include inverse edges.
        """
        s = self._graph.stats()
        return GraphStats(
            node_count=s["num_nodes"],
            edge_count=s["num_edges"],
            product_count=s["num_products"],
            category_count=s["num_categories"],
            edges_by_relationship=s.get("edges_by_relationship", {}),
        )

    def validate(self) -> ValidationResult:
        """Check the graph for internal consistency.

        Returns:
            A ``ValidationResult`` with ``valid``, ``errors``, and ``warnings`` fields.
        """
        result = self._graph.validate()
        return ValidationResult(
            valid=result["valid"],
            errors=result.get("errors", []),
            warnings=result.get("warnings", []),
        )
