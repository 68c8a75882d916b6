"""Database ingestion: ``subject predicate object`` lines into a graph.

Line grammar::

    line     ::= node WS predicate WS node
    node     ::= name | name "(" "id" "=" digits ")"
    name     ::= [A-Za-z0-9]+
    predicate::= contains | contained-in | part-of | has-part
               | successor-of | predecessor-of

A bare name is a category, ``name(id=N)`` a product. Example file::

    CentralUnit contains Intel7700K(id=107)
    CentralUnit contains GraphicsCard
    GraphicsCard contains RTX3070(id=201)
    RTX3070(id=201) successor-of RTX2070(id=202)

Whole-file rules: a malformed line, or a product id used with two different
names, aborts the load before anything is committed. Lines that parse but
collide with existing graph state (a name bound to a node of another kind or
id, or a relationship that already exists) are skipped and reported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from recograph.engine.core import Category, Edge, Node, Product, ProductGraph
from recograph.engine.relationships import KEYWORD_PATTERN, RelationshipKind
from recograph.errors import DatabaseFormatError, EdgeRejection, ProductIdConflictError
from recograph.models import LoadReport, SkippedLine

logger = logging.getLogger(__name__)

NODE_NAME_PATTERN = r"[A-Za-z0-9]+"

_PRODUCT_RE = re.compile(rf"({NODE_NAME_PATTERN})\s*\(\s*id\s*=\s*([0-9]+)\s*\)")
_CATEGORY_RE = re.compile(rf"({NODE_NAME_PATTERN})")
_LINE_RE = re.compile(rf"\s*(.+?)\s+((?i:{KEYWORD_PATTERN}))\s+(.+?)\s*")


@dataclass(frozen=True)
class NodeSpec:
    """A node as written in a line: a name and, for products, an id."""

    name: str
    product_id: int | None = None

    @property
    def is_product(self) -> bool:
        return self.product_id is not None

    def to_node(self) -> Node:
        if self.product_id is None:
            return Category(self.name)
        return Product(self.name, self.product_id)

    def matches(self, node: Node) -> bool:
        """True if node has the same kind (and id, for products) as this spec."""
        if self.product_id is None:
            return isinstance(node, Category)
        return isinstance(node, Product) and node.id == self.product_id

    def __str__(self) -> str:
        if self.product_id is None:
            return self.name
        return f"{self.name}(id={self.product_id})"


@dataclass(frozen=True)
class Triple:
    """One parsed line: subject, relationship and object."""

    subject: NodeSpec
    relationship: RelationshipKind
    object: NodeSpec

    def __str__(self) -> str:
        return f"{self.subject} {self.relationship} {self.object}"


@dataclass(frozen=True)
class ParsedLine:
    number: int
    text: str
    triple: Triple


def parse_node_spec(text: str) -> NodeSpec:
    """Parse ``name`` or ``name(id=N)``.

    Raises:
        DatabaseFormatError: If text is neither form, or the id is too long to convert
    """
    text = text.strip()
    product = _PRODUCT_RE.fullmatch(text)
    if product:
        try:
            product_id = int(product.group(2))
        except ValueError:
            digits = len(product.group(2))
            raise DatabaseFormatError(f"product id too long: {digits} digits") from None
        return NodeSpec(product.group(1), product_id)
    category = _CATEGORY_RE.fullmatch(text)
    if category:
        return NodeSpec(category.group(1))
    raise DatabaseFormatError(f"invalid node format: {text!r}")


def parse_line(line: str, line_number: int | None = None) -> Triple:
    """Parse one ``subject predicate object`` line.

    A relationship whose kind does not accept the written endpoint kinds
    (e.g. a product that ``contains`` something) is a malformed line.

    Raises:
        DatabaseFormatError: If the line does not match the grammar
    """
    match = _LINE_RE.fullmatch(line)
    if not match:
        raise DatabaseFormatError(f"invalid line format: {line.strip()!r}", line_number)
    relationship = RelationshipKind.from_keyword(match.group(2))
    if relationship is None:
        raise DatabaseFormatError(f"invalid relationship type: {match.group(2)!r}", line_number)
    try:
        subject = parse_node_spec(match.group(1))
        obj = parse_node_spec(match.group(3))
    except DatabaseFormatError as exc:
        raise DatabaseFormatError(str(exc), line_number) from None
    if not relationship.accepts(not subject.is_product, not obj.is_product):
        raise DatabaseFormatError(
            f"'{relationship}' cannot connect {subject} and {obj}", line_number
        )
    return Triple(subject, relationship, obj)


def parse_database(text: str) -> list[ParsedLine]:
    """Parse and validate a whole database text without touching any graph.

    Blank lines are skipped; line numbers are 1-based.

    Raises:
        DatabaseFormatError: On the first malformed line
        ProductIdConflictError: If a product id is used with two names
    """
    parsed: list[ParsedLine] = []
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parsed.append(ParsedLine(number, line, parse_line(line, number)))
    _check_product_ids(parsed)
    return parsed


def _check_product_ids(lines: list[ParsedLine]) -> None:
    names_by_id: dict[int, str] = {}
    for parsed in lines:
        for spec in (parsed.triple.subject, parsed.triple.object):
            if spec.product_id is None:
                continue
            existing = names_by_id.setdefault(spec.product_id, spec.name)
            if existing.lower() != spec.name.lower():
                raise ProductIdConflictError(spec.product_id, existing, spec.name, parsed.number)


def find_product_id_conflict(graph: ProductGraph, triple: Triple) -> ProductIdConflictError | None:
    """Check a triple's product ids against products already in the graph.

    Returns:
        The conflict (not raised), or None if every id is free or already
        used by a product of the same name
    """
    for spec in (triple.subject, triple.object):
        if spec.product_id is None:
            continue
        existing = graph.find_product(spec.product_id)
        if existing is not None and existing.key != spec.name.lower():
            return ProductIdConflictError(spec.product_id, existing.name, spec.name)
    return None


def apply_triple(graph: ProductGraph, triple: Triple) -> EdgeRejection | None:
    """Add a triple's nodes (if new) and its relationship to the graph.

    Either the relationship is added or the graph is left exactly as it was:
    nodes created for a rejected triple are removed again.

    Returns:
        None on success, otherwise the rejection reason
    """
    with graph.batch():
        created: list[Node] = []
        endpoints: list[Node] = []
        for spec in (triple.subject, triple.object):
            existing = graph.get_node(spec.name)
            if existing is None:
                node = spec.to_node()
                graph.add_node(node)
                created.append(node)
                endpoints.append(node)
            elif spec.matches(existing):
                endpoints.append(existing)
            else:
                _rollback(graph, created)
                return EdgeRejection.IDENTITY_CONFLICT

        edge = Edge(endpoints[0], endpoints[1], triple.relationship)
        rejection = graph.check_edge(edge)
        if rejection is None and graph.add_edge(edge):
            return None
        _rollback(graph, created)
        return rejection or EdgeRejection.DUPLICATE_EDGE


def _rollback(graph: ProductGraph, created: list[Node]) -> None:
    for node in created:
        graph.remove_node(node)


def load_database(text: str) -> tuple[ProductGraph, LoadReport]:
    """Build a fresh graph from database text.

    Raises:
        DatabaseFormatError: If any line is malformed (nothing is built)
        ProductIdConflictError: If a product id is reused with another name
    """
    lines = parse_database(text)
    graph = ProductGraph()
    skipped: list[SkippedLine] = []
    for parsed in lines:
        rejection = apply_triple(graph, parsed.triple)
        if rejection is None:
            continue
        logger.warning(
            "Skipping line %d (%s): %s", parsed.number, parsed.text.strip(), rejection.message
        )
        skipped.append(
            SkippedLine(line_number=parsed.number, text=parsed.text, reason=rejection.value)
        )
    report = LoadReport(
        line_count=len(lines),
        accepted_count=len(lines) - len(skipped),
        skipped=skipped,
    )
    logger.info(
        "Loaded %d of %d lines (%d nodes, %d edges)",
        report.accepted_count,
        report.line_count,
        len(graph),
        len(graph.edges()),
    )
    return graph, report


def load_database_file(path: str | Path) -> tuple[ProductGraph, LoadReport]:
    """Read a UTF-8 database file and build a fresh graph from it."""
    return load_database(Path(path).read_text(encoding="utf-8"))
