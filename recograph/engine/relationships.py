"""Relationship kinds between graph nodes.

Six fixed kinds grouped into three inverse pairs:

    CONTAINS        <-> CONTAINED-IN     (category hierarchy)
    PART-OF         <-> HAS-PART         (product composition)
    SUCCESSOR-OF    <-> PREDECESSOR-OF   (product generations)

An edge ``X -[PREDECESSOR-OF]-> Y`` reads "X precedes Y", so Y is a
successor of X. Every edge stored in a graph is paired with its inverse.

Endpoint compatibility:
    - CONTAINS requires the source to be a category
    - CONTAINED-IN requires the target to be a category
    - the remaining four require both endpoints to be products
"""

from __future__ import annotations

from enum import Enum


class RelationshipKind(str, Enum):
    """A directed, typed relationship between two nodes.

    The value is the keyword used in database files and shell commands.
    Declaration order is the export rank (CONTAINS=0 ... PREDECESSOR-OF=5).
    """

    CONTAINS = "contains"
    CONTAINED_IN = "contained-in"
    PART_OF = "part-of"
    HAS_PART = "has-part"
    SUCCESSOR_OF = "successor-of"
    PREDECESSOR_OF = "predecessor-of"

    def __str__(self) -> str:
        return self.value

    @property
    def inverse(self) -> RelationshipKind:
        """The kind of the automatically maintained inverse edge."""
        return _INVERSES[self]

    @property
    def rank(self) -> int:
        """Sort rank used when listing and exporting edges."""
        return _RANKS[self]

    @property
    def label(self) -> str:
        """DOT edge label: the keyword without hyphens."""
        return self.value.replace("-", "")

    def accepts(self, source_is_category: bool, target_is_category: bool) -> bool:
        """Check whether this kind may connect the given endpoint kinds."""
        if self is RelationshipKind.CONTAINS:
            return source_is_category
        if self is RelationshipKind.CONTAINED_IN:
            return target_is_category
        return not source_is_category and not target_is_category

    @classmethod
    def from_keyword(cls, keyword: str) -> RelationshipKind | None:
        """Look up a kind by keyword, case-insensitively.

        Returns:
            The matching kind, or None if the keyword is unknown
        """
        return _BY_KEYWORD.get(keyword.strip().lower())


_INVERSES: dict[RelationshipKind, RelationshipKind] = {
    RelationshipKind.CONTAINS: RelationshipKind.CONTAINED_IN,
    RelationshipKind.CONTAINED_IN: RelationshipKind.CONTAINS,
    RelationshipKind.PART_OF: RelationshipKind.HAS_PART,
    RelationshipKind.HAS_PART: RelationshipKind.PART_OF,
    RelationshipKind.SUCCESSOR_OF: RelationshipKind.PREDECESSOR_OF,
    RelationshipKind.PREDECESSOR_OF: RelationshipKind.SUCCESSOR_OF,
}

_RANKS: dict[RelationshipKind, int] = {kind: i for i, kind in enumerate(RelationshipKind)}

_BY_KEYWORD: dict[str, RelationshipKind] = {kind.value: kind for kind in RelationshipKind}

# Alternation used by the ingestion line grammar, longest keywords first so
# "contained-in" is never cut short by "contains".
KEYWORD_PATTERN = "|".join(
    sorted((kind.value for kind in RelationshipKind), key=len, reverse=True)
)
