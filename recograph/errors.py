"""Error taxonomy for Recograph.

Graph mutators never raise for ordinary rejections; they return False and
``ProductGraph.check_edge`` reports the :class:`EdgeRejection` reason. The
exceptions below are raised by the query parser, the ingestion layer and the
client facade, which turn rejections into errors for their callers.
"""

from __future__ import annotations

from enum import Enum


class RecographError(Exception):
    """Base class for all Recograph errors."""


class EdgeRejection(str, Enum):
    """Why a graph refused to add an edge."""

    IDENTITY_CONFLICT = "identity_conflict"
    INVALID_RELATIONSHIP_FOR_ENDPOINTS = "invalid_relationship_for_endpoints"
    DUPLICATE_EDGE = "duplicate_edge"
    MISSING_ENDPOINT = "missing_endpoint"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    EdgeRejection.IDENTITY_CONFLICT: "name is already bound to a different node",
    EdgeRejection.INVALID_RELATIONSHIP_FOR_ENDPOINTS: (
        "relationship is not valid for these endpoint types"
    ),
    EdgeRejection.DUPLICATE_EDGE: "relationship already exists",
    EdgeRejection.MISSING_ENDPOINT: "endpoint is not in the graph",
}


class EdgeRejectedError(RecographError):
    """A relationship could not be added to the graph."""

    def __init__(self, reason: EdgeRejection, relationship: str) -> None:
        self.reason = reason
        self.relationship = relationship
        super().__init__(f"Cannot add '{relationship}': {reason.message}")


class ParseErrorKind(str, Enum):
    """Sub-kinds of :class:`QueryParseError`."""

    MISSING_TERM = "missing_term"
    EXPECTED_OPEN_PAREN = "expected_open_paren"
    EXPECTED_COMMA = "expected_comma"
    EXPECTED_CLOSE_PAREN = "expected_close_paren"
    EXPECTED_STRATEGY = "expected_strategy"
    EXPECTED_PRODUCT_ID = "expected_product_id"
    TRAILING_INPUT = "trailing_input"


_PARSE_MESSAGES = {
    ParseErrorKind.MISSING_TERM: "missing term",
    ParseErrorKind.EXPECTED_OPEN_PAREN: "expected '(' after {context}",
    ParseErrorKind.EXPECTED_COMMA: "expected ',' after first term in {context}",
    ParseErrorKind.EXPECTED_CLOSE_PAREN: "expected ')' after second term in {context}",
    ParseErrorKind.EXPECTED_STRATEGY: "expected strategy (S1, S2 or S3)",
    ParseErrorKind.EXPECTED_PRODUCT_ID: "expected product id after strategy {context}",
    ParseErrorKind.TRAILING_INPUT: "unexpected input after term",
}


class QueryParseError(RecographError):
    """A recommendation query did not match the grammar.

    Attributes:
        kind: Which production failed
        fragment: The unconsumed input at the failure position
        position: Offset of the failure in the parsed text
    """

    def __init__(
        self,
        kind: ParseErrorKind,
        fragment: str,
        position: int = 0,
        context: str = "",
    ) -> None:
        self.kind = kind
        self.fragment = fragment
        self.position = position
        message = _PARSE_MESSAGES[kind].format(context=context)
        if fragment:
            message = f"{message}: {fragment!r}"
        super().__init__(message)


class UnknownStrategyError(RecographError):
    """A strategy code other than S1, S2 or S3 was requested."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Unknown strategy: {code!r}")


class DatabaseFormatError(RecographError):
    """A database line (or shell triple) does not match the line grammar."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ProductIdConflictError(RecographError):
    """A product id is used with two different product names."""

    def __init__(
        self,
        product_id: int,
        existing_name: str,
        conflicting_name: str,
        line_number: int | None = None,
    ) -> None:
        self.product_id = product_id
        self.existing_name = existing_name
        self.conflicting_name = conflicting_name
        self.line_number = line_number
        message = (
            f"product id {product_id} is already used by '{existing_name}', "
            f"cannot reuse it for '{conflicting_name}'"
        )
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class NodeNotFoundError(RecographError):
    """A named node does not exist in the graph."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Node not found: {name!r}")


class RelationshipNotFoundError(RecographError):
    """A relationship to remove does not exist in the graph."""

    def __init__(self, relationship: str) -> None:
        self.relationship = relationship
        super().__init__(f"Relationship not found: '{relationship}'")


class CommandError(RecographError):
    """A shell command is unknown or malformed."""
