"""Recommendation strategies evaluated against a ProductGraph.

Base strategies map a reference product id to a set of products:

    S1  SIBLING      products sharing a parent category (one hop up, one down)
    S2  SUCCESSOR    all products reachable over PREDECESSOR-OF edges
    S3  PREDECESSOR  all products reachable over SUCCESSOR-OF edges

Composite strategies combine two ``StrategyWithId`` pairs with set
intersection or union. Each leaf keeps the product id written next to it in
the query, so ``UNION(S1 1, S2 2)`` evaluates S1 from product 1 and S2 from
product 2; the id passed to a composite is ignored.

A reference id that matches no product yields an empty set, not an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .core import Category, Product, ProductGraph
from .query import FinalTerm, IntersectionTerm, QueryTerm, StrategyCode, UnionTerm
from .relationships import RelationshipKind

logger = logging.getLogger(__name__)


class BaseStrategy(str, Enum):
    """The three traversal strategies, valued by their query code."""

    SIBLING = "S1"
    SUCCESSOR = "S2"
    PREDECESSOR = "S3"

    @classmethod
    def from_code(cls, code: StrategyCode | str) -> BaseStrategy:
        """Resolve a query code to a base strategy.

        Raises:
            UnknownStrategyError: If the code is not S1, S2 or S3
        """
        return cls(StrategyCode.parse(str(code)).value)


@dataclass(frozen=True)
class StrategyWithId:
    """A strategy bound to the reference product id it was written with."""

    strategy: RecommendationStrategy
    product_id: int


@dataclass(frozen=True)
class IntersectionStrategy:
    left: StrategyWithId
    right: StrategyWithId


@dataclass(frozen=True)
class UnionStrategy:
    left: StrategyWithId
    right: StrategyWithId


RecommendationStrategy = BaseStrategy | IntersectionStrategy | UnionStrategy


def evaluate(
    strategy: RecommendationStrategy,
    reference_id: int,
    graph: ProductGraph,
) -> set[Product]:
    """Evaluate a strategy against the graph.

    Args:
        strategy: A base strategy or a composite
        reference_id: Reference product id for base strategies; ignored by
            composites, which carry per-leaf ids
        graph: The graph to traverse

    Returns:
        The recommended products (unordered)
    """
    if isinstance(strategy, BaseStrategy):
        reference = graph.find_product(reference_id)
        if reference is None:
            logger.debug("Reference product %d not found; no recommendations", reference_id)
            return set()
        if strategy is BaseStrategy.SIBLING:
            return _siblings(reference, graph)
        if strategy is BaseStrategy.SUCCESSOR:
            return _reachable(reference, graph, RelationshipKind.PREDECESSOR_OF)
        return _reachable(reference, graph, RelationshipKind.SUCCESSOR_OF)

    if isinstance(strategy, IntersectionStrategy):
        return _evaluate_bound(strategy.left, graph) & _evaluate_bound(strategy.right, graph)

    if isinstance(strategy, UnionStrategy):
        return _evaluate_bound(strategy.left, graph) | _evaluate_bound(strategy.right, graph)

    raise TypeError(f"Unknown strategy type: {type(strategy).__name__}")


def _evaluate_bound(bound: StrategyWithId, graph: ProductGraph) -> set[Product]:
    return evaluate(bound.strategy, bound.product_id, graph)


def build_strategy(term: QueryTerm) -> StrategyWithId:
    """Convert a parsed query term into a strategy tree.

    Leaves keep their own product ids. A composite is bound to the id of its
    leftmost leaf, which evaluation never uses.

    Raises:
        UnknownStrategyError: If a leaf names an unknown strategy
        TypeError: If term is not a query term
    """
    if isinstance(term, FinalTerm):
        return StrategyWithId(BaseStrategy.from_code(term.strategy), term.product_id)
    if isinstance(term, IntersectionTerm):
        left, right = build_strategy(term.left), build_strategy(term.right)
        return StrategyWithId(IntersectionStrategy(left, right), left.product_id)
    if isinstance(term, UnionTerm):
        left, right = build_strategy(term.left), build_strategy(term.right)
        return StrategyWithId(UnionStrategy(left, right), left.product_id)
    raise TypeError(f"Unknown term type: {type(term).__name__}")


def recommend(term: QueryTerm, graph: ProductGraph) -> set[Product]:
    """Evaluate a parsed query against the graph.

    The graph lock is held for the whole evaluation, so concurrent writers
    cannot interleave with the traversal.
    """
    root = build_strategy(term)
    with graph.batch():
        return evaluate(root.strategy, root.product_id, graph)


# ========== Traversals ==========


def _siblings(reference: Product, graph: ProductGraph) -> set[Product]:
    """Products contained in any category that directly contains the reference."""
    parents = {
        edge.target
        for edge in graph.outgoing_edges(reference, RelationshipKind.CONTAINED_IN)
        if isinstance(edge.target, Category)
    }
    siblings = {
        edge.target
        for parent in parents
        for edge in graph.outgoing_edges(parent, RelationshipKind.CONTAINS)
        if isinstance(edge.target, Product)
    }
    siblings.discard(reference)
    return siblings


def _reachable(
    reference: Product,
    graph: ProductGraph,
    relationship: RelationshipKind,
) -> set[Product]:
    """Depth-first transitive closure over outgoing edges of one kind.

    Only edge targets are collected, so the reference itself is excluded even
    when a cycle leads back to it.
    """
    found: set[Product] = set()
    visited: set[Product] = {reference}
    stack = [reference]
    while stack:
        current = stack.pop()
        for edge in graph.outgoing_edges(current, relationship):
            target = edge.target
            if isinstance(target, Product) and target not in visited:
                visited.add(target)
                found.add(target)
                stack.append(target)
    return found
