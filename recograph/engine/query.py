"""Recommendation query language: AST and recursive-descent parser.

Grammar (keywords case-insensitive)::

    term         ::= intersection | union | final
    intersection ::= "INTERSECTION" "(" term "," term ")"
    union        ::= "UNION" "(" term "," term ")"
    final        ::= strategy WS digits
    strategy     ::= "S1" | "S2" | "S3"

Whitespace is skipped at every production boundary and is required only
between a strategy and its product id. The whole input must be consumed.

Example:
    >>> term = parse_query("union(S1 4, intersection(S2 1, S3 7))")
    >>> str(term)
    'UNION(S1 4, INTERSECTION(S2 1, S3 7))'
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from recograph.errors import ParseErrorKind, QueryParseError, UnknownStrategyError

INTERSECTION = "INTERSECTION"
UNION = "UNION"
RECOMMEND = "recommend"

_WHITESPACE = re.compile(r"\s*")
_DIGITS = re.compile(r"[0-9]+")
_STRATEGY_LENGTH = 2


class StrategyCode(str, Enum):
    """Base strategy tokens of the query language."""

    S1 = "S1"
    S2 = "S2"
    S3 = "S3"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> StrategyCode:
        """Resolve a token (case-insensitive) to a strategy code.

        Raises:
            UnknownStrategyError: If the token is not S1, S2 or S3
        """
        if token.isascii():
            for code in cls:
                if code.value == token.upper():
                    return code
        raise UnknownStrategyError(token)


@dataclass(frozen=True)
class FinalTerm:
    """A base strategy applied to a reference product id.

    Raises:
        UnknownStrategyError: If strategy is not a known code
        TypeError: If product_id is not an int
        ValueError: If product_id is negative
    """

    strategy: StrategyCode
    product_id: int

    def __post_init__(self) -> None:
        if not isinstance(self.strategy, StrategyCode):
            object.__setattr__(self, "strategy", StrategyCode.parse(str(self.strategy)))
        if isinstance(self.product_id, bool) or not isinstance(self.product_id, int):
            raise TypeError(
                f"FinalTerm product_id must be an int, got: {type(self.product_id).__name__}"
            )
        if self.product_id < 0:
            raise ValueError(f"FinalTerm product_id must be non-negative, got: {self.product_id}")

    def __str__(self) -> str:
        return f"{self.strategy} {self.product_id}"


@dataclass(frozen=True)
class IntersectionTerm:
    """Products recommended by both sub-terms."""

    left: QueryTerm
    right: QueryTerm

    def __str__(self) -> str:
        return f"{INTERSECTION}({self.left}, {self.right})"


@dataclass(frozen=True)
class UnionTerm:
    """Products recommended by either sub-term."""

    left: QueryTerm
    right: QueryTerm

    def __str__(self) -> str:
        return f"{UNION}({self.left}, {self.right})"


QueryTerm = FinalTerm | IntersectionTerm | UnionTerm


class QueryParser:
    """Single-pass recursive-descent parser over one query string.

    A parser instance is bound to its input; use ``parse_query`` for the
    common case.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def parse(self) -> QueryTerm:
        """Parse the entire input into a term.

        Raises:
            QueryParseError: If the input does not match the grammar or has
                unconsumed trailing characters
        """
        self._pos = 0
        self._skip_whitespace()
        if self._pos >= len(self._text):
            raise QueryParseError(ParseErrorKind.MISSING_TERM, "", self._pos)
        term = self._parse_term()
        self._skip_whitespace()
        if self._pos < len(self._text):
            raise QueryParseError(ParseErrorKind.TRAILING_INPUT, self._rest(), self._pos)
        return term

    def _parse_term(self) -> QueryTerm:
        self._skip_whitespace()
        if self._peek_keyword(INTERSECTION):
            return self._parse_binary(INTERSECTION, IntersectionTerm)
        if self._peek_keyword(UNION):
            return self._parse_binary(UNION, UnionTerm)
        return self._parse_final()

    def _parse_binary(
        self,
        keyword: str,
        factory: Callable[[QueryTerm, QueryTerm], QueryTerm],
    ) -> QueryTerm:
        self._pos += len(keyword)
        self._expect("(", ParseErrorKind.EXPECTED_OPEN_PAREN, keyword)
        left = self._parse_term()
        self._expect(",", ParseErrorKind.EXPECTED_COMMA, keyword)
        right = self._parse_term()
        self._expect(")", ParseErrorKind.EXPECTED_CLOSE_PAREN, keyword)
        return factory(left, right)

    def _parse_final(self) -> FinalTerm:
        self._skip_whitespace()
        token = self._text[self._pos : self._pos + _STRATEGY_LENGTH]
        try:
            strategy = StrategyCode.parse(token)
        except UnknownStrategyError:
            raise QueryParseError(
                ParseErrorKind.EXPECTED_STRATEGY, self._rest(), self._pos
            ) from None
        self._pos += _STRATEGY_LENGTH

        separator_start = self._pos
        self._skip_whitespace()
        digits = _DIGITS.match(self._text, self._pos)
        if self._pos == separator_start or digits is None:
            raise QueryParseError(
                ParseErrorKind.EXPECTED_PRODUCT_ID,
                self._rest(),
                self._pos,
                context=strategy.value,
            )
        try:
            product_id = int(digits.group())
        except ValueError:
            raise QueryParseError(
                ParseErrorKind.EXPECTED_PRODUCT_ID,
                self._rest(),
                self._pos,
                context=strategy.value,
            ) from None
        self._pos = digits.end()
        return FinalTerm(strategy, product_id)

    def _expect(self, char: str, kind: ParseErrorKind, keyword: str) -> None:
        self._skip_whitespace()
        if not self._text.startswith(char, self._pos):
            raise QueryParseError(kind, self._rest(), self._pos, context=keyword)
        self._pos += 1

    def _peek_keyword(self, keyword: str) -> bool:
        token = self._text[self._pos : self._pos + len(keyword)]
        return token.isascii() and token.upper() == keyword

    def _skip_whitespace(self) -> None:
        match = _WHITESPACE.match(self._text, self._pos)
        if match is not None:
            self._pos = match.end()

    def _rest(self) -> str:
        return self._text[self._pos :]


def parse_query(text: str) -> QueryTerm:
    """Parse a query term such as ``INTERSECTION(S1 4, S3 2)``."""
    return QueryParser(text).parse()


def parse_recommend_command(line: str) -> QueryTerm:
    """Parse a full ``recommend <term>`` command line.

    Raises:
        ValueError: If the line does not start with the recommend keyword
        QueryParseError: If the term is missing or malformed
    """
    parts = line.strip().split(maxsplit=1)
    if not parts or parts[0].lower() != RECOMMEND:
        raise ValueError(f"Command must start with '{RECOMMEND}': {line!r}")
    if len(parts) < 2:
        raise QueryParseError(ParseErrorKind.MISSING_TERM, "")
    return parse_query(parts[1])
