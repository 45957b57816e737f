"""Data models for the quick switcher using msgspec for performance."""

from __future__ import annotations

from enum import Enum

import msgspec


class MatchField(str, Enum):
    """Item fields a query token can match, in tie-break priority order."""

    NAME = "name"
    ALIAS = "alias"
    TAG = "tag"
    HEADER = "header"
    LINK = "link"
    NONE = "none"


class MatchType(str, Enum):
    """Match strength, strongest first."""

    EXACT = "exact"
    PREFIX = "prefix"
    WORD_PREFIX = "word-prefix"
    FUZZY = "fuzzy"
    NOT_FOUND = "not-found"

    @property
    def strength(self) -> int:
        """Rank of this match type, 0 being the strongest."""
        return _TYPE_STRENGTH[self]

    def stronger_than(self, other: MatchType) -> bool:
        return self.strength < other.strength


_TYPE_STRENGTH = {t: i for i, t in enumerate(MatchType)}


class Item(msgspec.Struct, frozen=True, kw_only=True):
    """One searchable note-like entity.

    Fields the active search mode does not search are left empty so the
    classifier can never match on them.
    """

    id: str
    display_name: str
    aliases: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    headers: tuple[str, ...] = ()
    links: tuple[str, ...] = ()
    is_phantom: bool = False
    is_starred: bool = False
    mtime: float = 0.0


class MatchResult(msgspec.Struct, frozen=True, kw_only=True):
    """How a single query token matched an item."""

    token: str
    field: MatchField
    type: MatchType
    span: tuple[int, int] = (0, 0)  # (start, length) within matched_text
    matched_text: str = ""

    @property
    def found(self) -> bool:
        return self.type is not MatchType.NOT_FOUND

    @classmethod
    def not_found(cls, token: str) -> MatchResult:
        return cls(token=token, field=MatchField.NONE, type=MatchType.NOT_FOUND)


class SearchBy(msgspec.Struct, frozen=True, kw_only=True):
    """Which optional fields a search mode matches against."""

    tag: bool = False
    header: bool = False
    link: bool = False


class SearchMode(msgspec.Struct, frozen=True, kw_only=True):
    """A named search configuration.

    Immutable for the duration of one indexing pass.
    """

    name: str
    search_by: SearchBy = msgspec.field(default_factory=SearchBy)
    command_prefix: str = ""
    default_input: str = ""
    sort_priorities: tuple[str, ...] = ()
    include_prefix_path_patterns: tuple[str, ...] = ()
    exclude_prefix_path_patterns: tuple[str, ...] = ()
    is_backlink_search: bool = False


class RankedItem(msgspec.Struct, frozen=True, kw_only=True):
    """An item with its per-token match results and its position in a result list."""

    item: Item
    match_results: tuple[MatchResult, ...] = ()
    order: int = -1
    offset: int | None = None  # first link back to the active file

    @property
    def id(self) -> str:
        return self.item.id

    @property
    def excluded(self) -> bool:
        """True when some token matched no enabled field."""
        return any(not r.found for r in self.match_results)

    @property
    def best_match_type(self) -> MatchType:
        """Strongest match type across all tokens."""
        if not self.match_results:
            return MatchType.NOT_FOUND
        return min((r.type for r in self.match_results), key=lambda t: t.strength)

    @property
    def coverage(self) -> tuple[int, int]:
        """Number of matched tokens, then total length of their matched spans."""
        found = [r for r in self.match_results if r.found]
        return len(found), sum(r.span[1] for r in found)

    def matched_in(self, field: MatchField) -> bool:
        return any(r.field is field for r in self.match_results)
