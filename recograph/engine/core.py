"""Core product graph data structures and operations.

A typed, directed graph of categories and products. Every edge is stored
together with its inverse (see ``relationships``), and a node that loses its
last incident edge through a removal is removed as well.

Node identity is the lowercase name alone: ``Product("Boot", 1)`` and
``Product("BOOT", 7)`` are the same node as far as graph membership is
concerned. Id mismatches are the ingestion layer's concern.

Thread Safety:
    All operations on ProductGraph are protected by an internal RLock. Use
    the batch() context manager to hold the lock across several operations,
    e.g. for a whole query evaluation:

        with graph.batch():
            graph.add_node(node)
            graph.add_edge(edge)
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from recograph.errors import EdgeRejection

from .registry import NodeRegistry
from .relationships import RelationshipKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Node:
    """A vertex in the product graph, identified by its case-insensitive name.

    Node itself is abstract; instantiate Category or Product.

    Attributes:
        name: Display name, as first written

    Raises:
        TypeError: If instantiated directly or name is not a string
        ValueError: If name is empty
    """

    name: str

    def __post_init__(self) -> None:
        if type(self) is Node:
            raise TypeError("Node is abstract; use Category or Product")
        if not isinstance(self.name, str):
            raise TypeError(f"Node name must be a string, got: {type(self.name).__name__}")
        if not self.name:
            raise ValueError("Node name must not be empty")

    @property
    def key(self) -> str:
        """Lowercase name used for identity and indexing."""
        return self.name.lower()

    @property
    def is_category(self) -> bool:
        return isinstance(self, Category)

    @property
    def is_product(self) -> bool:
        return isinstance(self, Product)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True, eq=False)
class Category(Node):
    """A grouping node. Categories contain products or other categories."""


@dataclass(frozen=True, eq=False)
class Product(Node):
    """A recommendable item with a non-negative integer id.

    Raises:
        TypeError: If id is not an int
        ValueError: If id is negative
    """

    id: int

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise TypeError(f"Product id must be an int, got: {type(self.id).__name__}")
        if self.id < 0:
            raise ValueError(f"Product id must be non-negative, got: {self.id}")

    def __str__(self) -> str:
        return f"{self.key}:{self.id}"


@dataclass(frozen=True)
class Edge:
    """A directed, typed relationship between two nodes.

    Equality covers all three fields (node equality being name-based).
    """

    source: Node
    target: Node
    relationship: RelationshipKind

    def inverse(self) -> "Edge":
        """The paired edge: swapped endpoints, inverse relationship kind."""
        return Edge(self.target, self.source, self.relationship.inverse)

    @property
    def is_valid(self) -> bool:
        """True if the relationship kind accepts these endpoint types."""
        if not all(n.is_category or n.is_product for n in (self.source, self.target)):
            return False
        return self.relationship.accepts(self.source.is_category, self.target.is_category)

    def __str__(self) -> str:
        return f"{self.source}-[{self.relationship}]->{self.target}"


class ProductGraph:
    """Product/category graph with inverse-edge bookkeeping and indexed lookups.

    Design principles:
    - The registry owns the nodes; indexes refer to them by lowercase name
    - Stored edges always reference the registered node objects
    - Mutators return booleans; ordinary rejections never raise
    - Accessors return snapshots, never live internal sets
    """

    def __init__(self) -> None:
        self._registry = NodeRegistry()
        self._edges: set[Edge] = set()
        # One entry per node, possibly empty; presence marks graph membership
        self._outgoing: dict[str, set[Edge]] = {}
        self._incoming: dict[str, set[Edge]] = {}
        # Indexes for O(1) filtered lookup
        self._outgoing_by_kind: dict[tuple[str, RelationshipKind], set[Edge]] = defaultdict(set)
        self._incoming_by_kind: dict[tuple[str, RelationshipKind], set[Edge]] = defaultdict(set)
        self._products_by_id: dict[int, set[str]] = defaultdict(set)
        self._lock = threading.RLock()

    # ========== Thread Safety ==========

    @contextmanager
    def batch(self) -> Generator[None, None, None]:
        """Hold the lock for multiple operations - isolation, NOT rollback.

        Other threads see either none or all of the changes made inside the
        block. Exceptions inside the block leave earlier changes in place.
        """
        with self._lock:
            yield

    # ========== Node Operations ==========

    def add_node(self, node: Node) -> bool:
        """Add a node with empty adjacency.

        Returns:
            True if added, False if the name (case-insensitive) is taken
        """
        with self._lock:
            if not self._registry.register(node):
                return False
            self._outgoing[node.key] = set()
            self._incoming[node.key] = set()
            if isinstance(node, Product):
                self._products_by_id[node.id].add(node.key)
            return True

    def remove_node(self, node: Node | str) -> bool:
        """Remove a node, every edge touching it, and its registry entry.

        Neighbours left without any incident edge are removed too.

        Returns:
            True if removed, False if the node was not in the graph
        """
        with self._lock:
            stored = self._lookup(node)
            if stored is None:
                return False
            key = stored.key

            neighbours: set[str] = set()
            for edge in self._outgoing[key] | self._incoming[key]:
                self._discard_edge(edge)
                neighbours.add(edge.source.key)
                neighbours.add(edge.target.key)
            neighbours.discard(key)

            del self._outgoing[key]
            del self._incoming[key]
            if isinstance(stored, Product):
                self._products_by_id[stored.id].discard(key)
                if not self._products_by_id[stored.id]:
                    del self._products_by_id[stored.id]
            self._registry.remove(stored)
            logger.debug("Removed node %s", stored)

            for neighbour in sorted(neighbours):
                if self._is_isolated(neighbour):
                    self.remove_node(neighbour)
            return True

    def get_node(self, name: str) -> Node | None:
        """Get a node by name (case-insensitive), or None if not found."""
        with self._lock:
            return self._registry.lookup(name)

    def has_node(self, node: Node | str) -> bool:
        with self._lock:
            return self._lookup(node) is not None

    def find_product(self, product_id: int) -> Product | None:
        """Get the product with the given id, or None if not found.

        If several products share an id (only possible through direct graph
        use; ingestion forbids it), the one with the smallest name wins.
        """
        with self._lock:
            keys = self._products_by_id.get(product_id)
            if not keys:
                return None
            node = self._registry.lookup(min(keys))
            return node if isinstance(node, Product) else None

    def nodes(self) -> frozenset[Node]:
        """Snapshot of all nodes."""
        with self._lock:
            return frozenset(self._registry)

    def products(self) -> frozenset[Product]:
        with self._lock:
            return frozenset(n for n in self._registry if isinstance(n, Product))

    def categories(self) -> frozenset[Category]:
        with self._lock:
            return frozenset(n for n in self._registry if isinstance(n, Category))

    # ========== Edge Operations ==========

    def check_edge(self, edge: Edge) -> EdgeRejection | None:
        """Explain why add_edge would reject an edge.

        Returns:
            The rejection reason, or None if the edge can be added
        """
        with self._lock:
            rejection, _ = self._resolve(edge)
            return rejection

    def add_edge(self, edge: Edge) -> bool:
        """Add an edge and, if not already present, its inverse.

        Fails without mutation if the relationship is invalid for the endpoint
        types, an endpoint is not in the graph, or the edge already exists.

        Returns:
            True if the edge was added
        """
        with self._lock:
            rejection, stored = self._resolve(edge)
            if rejection is not None or stored is None:
                logger.debug("Rejected edge %s: %s", edge, rejection)
                return False
            self._insert_edge(stored)
            inverse = stored.inverse()
            if inverse not in self._edges:
                self._insert_edge(inverse)
            return True

    def remove_edge(self, edge: Edge) -> bool:
        """Remove an edge and its inverse, then drop endpoints left isolated.

        Returns:
            True if removed, False if the edge was not in the graph
        """
        with self._lock:
            if edge not in self._edges:
                return False
            self._discard_edge(edge)
            self._discard_edge(edge.inverse())
            for key in dict.fromkeys((edge.source.key, edge.target.key)):
                if self._is_isolated(key):
                    self.remove_node(key)
            return True

    def has_edge(self, edge: Edge) -> bool:
        with self._lock:
            return edge in self._edges

    def edges(self) -> frozenset[Edge]:
        """Snapshot of all edges, inverses included."""
        with self._lock:
            return frozenset(self._edges)

    def outgoing_edges(
        self,
        node: Node | str,
        relationship: RelationshipKind | None = None,
    ) -> frozenset[Edge]:
        """Edges leaving a node, optionally filtered by kind.

        Returns:
            Snapshot of matching edges; empty if the node is not in the graph
        """
        with self._lock:
            key = _key_of(node)
            if relationship is None:
                return frozenset(self._outgoing.get(key, ()))
            return frozenset(self._outgoing_by_kind.get((key, relationship), ()))

    def incoming_edges(
        self,
        node: Node | str,
        relationship: RelationshipKind | None = None,
    ) -> frozenset[Edge]:
        """Edges entering a node, optionally filtered by kind."""
        with self._lock:
            key = _key_of(node)
            if relationship is None:
                return frozenset(self._incoming.get(key, ()))
            return frozenset(self._incoming_by_kind.get((key, relationship), ()))

    # ========== Lifecycle ==========

    def clear(self) -> None:
        """Drop all nodes, edges, indexes and registry entries."""
        with self._lock:
            self._registry.clear()
            self._edges.clear()
            self._outgoing.clear()
            self._incoming.clear()
            self._outgoing_by_kind.clear()
            self._incoming_by_kind.clear()
            self._products_by_id.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._registry)

    # ========== Internal Helpers (caller holds the lock) ==========

    def _lookup(self, node: Node | str) -> Node | None:
        return self._registry.lookup(node if isinstance(node, str) else node.name)

    def _resolve(self, edge: Edge) -> tuple[EdgeRejection | None, Edge | None]:
        """Map an edge onto the registered endpoint nodes and validate it."""
        if not edge.is_valid:
            return EdgeRejection.INVALID_RELATIONSHIP_FOR_ENDPOINTS, None
        source = self._lookup(edge.source)
        target = self._lookup(edge.target)
        if source is None or target is None:
            return EdgeRejection.MISSING_ENDPOINT, None
        stored = Edge(source, target, edge.relationship)
        if not stored.is_valid:
            return EdgeRejection.INVALID_RELATIONSHIP_FOR_ENDPOINTS, None
        if stored in self._edges:
            return EdgeRejection.DUPLICATE_EDGE, None
        return None, stored

    def _insert_edge(self, edge: Edge) -> None:
        source, target = edge.source.key, edge.target.key
        self._edges.add(edge)
        self._outgoing[source].add(edge)
        self._incoming[target].add(edge)
        self._outgoing_by_kind[(source, edge.relationship)].add(edge)
        self._incoming_by_kind[(target, edge.relationship)].add(edge)

    def _discard_edge(self, edge: Edge) -> None:
        source, target = edge.source.key, edge.target.key
        self._edges.discard(edge)
        self._outgoing.get(source, set()).discard(edge)
        self._incoming.get(target, set()).discard(edge)
        for index, key in (
            (self._outgoing_by_kind, (source, edge.relationship)),
            (self._incoming_by_kind, (target, edge.relationship)),
        ):
            edges = index.get(key)
            if edges is not None:
                edges.discard(edge)
                # Clean up empty sets to prevent memory leaks
                if not edges:
                    del index[key]

    def _is_isolated(self, key: str) -> bool:
        return key in self._outgoing and not self._outgoing[key] and not self._incoming[key]

    # ========== Statistics & Validation ==========

    def stats(self) -> dict[str, Any]:
        """Get graph statistics.

        Returns:
            Dict with num_nodes, num_edges, num_products, num_categories and
            edges_by_relationship (keyword -> count)
        """
        with self._lock:
            by_kind = {kind.value: 0 for kind in RelationshipKind}
            for edge in self._edges:
                by_kind[edge.relationship.value] += 1
            products = sum(1 for n in self._registry if isinstance(n, Product))
            return {
                "num_nodes": len(self._registry),
                "num_edges": len(self._edges),
                "num_products": products,
                "num_categories": len(self._registry) - products,
                "edges_by_relationship": by_kind,
            }

    def validate(self) -> dict[str, Any]:
        """Check graph integrity.

        Checks for:
        - Edges whose inverse is missing
        - Edges with unregistered endpoints or invalid endpoint types
        - Adjacency and per-kind index consistency
        - Registry/adjacency membership mismatches
        - Isolated nodes (reported as warnings; legal right after add_node)

        Returns:
            Dict with 'valid' (bool), 'errors' and 'warnings' (lists of str)
        """
        with self._lock:
            errors: list[str] = []
            warnings: list[str] = []

            for edge in self._edges:
                if edge.inverse() not in self._edges:
                    errors.append(f"Edge '{edge}' has no inverse")
                if edge.source.key not in self._registry or edge.target.key not in self._registry:
                    errors.append(f"Edge '{edge}' references a node that is not registered")
                    continue
                if not edge.is_valid:
                    errors.append(f"Edge '{edge}' connects invalid endpoint types")
                if edge not in self._outgoing.get(edge.source.key, ()):
                    errors.append(f"Edge '{edge}' missing from outgoing index")
                if edge not in self._incoming.get(edge.target.key, ()):
                    errors.append(f"Edge '{edge}' missing from incoming index")
                if edge not in self._outgoing_by_kind.get((edge.source.key, edge.relationship), ()):
                    errors.append(f"Edge '{edge}' missing from outgoing kind index")
                if edge not in self._incoming_by_kind.get((edge.target.key, edge.relationship), ()):
                    errors.append(f"Edge '{edge}' missing from incoming kind index")

            for index_name, index in (("outgoing", self._outgoing), ("incoming", self._incoming)):
                for key, edges in index.items():
                    if key not in self._registry:
                        errors.append(f"{index_name} index contains unregistered node '{key}'")
                    for edge in edges - self._edges:
                        errors.append(f"{index_name} index for '{key}' holds unknown edge '{edge}'")

            for node in self._registry:
                if node.key not in self._outgoing or node.key not in self._incoming:
                    errors.append(f"Node '{node}' has no adjacency entry")
                elif self._is_isolated(node.key):
                    warnings.append(f"Node '{node}' has no incident edges")

            return {
                "valid": len(errors) == 0,
                "errors": errors,
                "warnings": warnings,
            }


def _key_of(node: Node | str) -> str:
    return node.lower() if isinstance(node, str) else node.key
