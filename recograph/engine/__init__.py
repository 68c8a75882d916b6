from recograph.engine.core import Category, Edge, Node, Product, ProductGraph
from recograph.engine.query import (
    FinalTerm,
    IntersectionTerm,
    QueryParser,
    QueryTerm,
    StrategyCode,
    UnionTerm,
    parse_query,
    parse_recommend_command,
)
from recograph.engine.registry import NodeRegistry
from recograph.engine.relationships import RelationshipKind
from recograph.engine.strategies import (
    BaseStrategy,
    IntersectionStrategy,
    RecommendationStrategy,
    StrategyWithId,
    UnionStrategy,
    build_strategy,
    evaluate,
    recommend,
)

__all__ = [
    "Node",
    "Category",
    "Product",
    "Edge",
    "ProductGraph",
    "NodeRegistry",
    "RelationshipKind",
    "QueryParser",
    "QueryTerm",
    "FinalTerm",
    "IntersectionTerm",
    "UnionTerm",
    "StrategyCode",
    "parse_query",
    "parse_recommend_command",
    "BaseStrategy",
    "IntersectionStrategy",
    "UnionStrategy",
    "StrategyWithId",
    "RecommendationStrategy",
    "build_strategy",
    "evaluate",
    "recommend",
]
