"""Multi-criteria ranking of matched items.

A search mode names its sort priorities in order. Each name resolves to a
comparator variant holding a sort key and a direction. The chain is applied
lexicographically as one stable sort pass per criterion, least significant
first, so items that tie on every criterion keep their corpus order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import UnknownSortCriterionError
from .models import MatchField, RankedItem


class SortCriterion(str, Enum):
    """Recognized sort priority names."""

    MATCH_STRENGTH = "match-strength"
    COVERAGE = "coverage"
    NAME_MATCH = "name-match"
    TAG_MATCH = "tag-match"
    HEADER_MATCH = "header-match"
    LINK_MATCH = "link-match"
    STARRED = "starred"
    LAST_OPENED = "last-opened"
    LAST_MODIFIED = "last-modified"
    NAME_LENGTH = "name-length"
    ALPHABETICAL = "alphabetical"
    ALPHABETICAL_REVERSE = "alphabetical-reverse"


@dataclass(frozen=True)
class Comparator:
    """One link of the comparator chain.

    ``key`` maps an item (plus the last-opened index) to a sortable value;
    ``descending`` flips the order. ``needs_match`` marks criteria that are
    meaningless without match results.
    """

    criterion: SortCriterion
    key: Callable[[RankedItem, Mapping[str, int]], Any]
    descending: bool = False
    needs_match: bool = False


def _recency(item: RankedItem, last_opened: Mapping[str, int]) -> tuple[int, int]:
    index = last_opened.get(item.id)
    return (1, 0) if index is None else (0, index)


def _field_match(field: MatchField) -> Callable[[RankedItem, Mapping[str, int]], bool]:
    return lambda x, _: x.matched_in(field)


COMPARATORS: dict[SortCriterion, Comparator] = {
    c.criterion: c
    for c in [
        Comparator(
            SortCriterion.MATCH_STRENGTH,
            lambda x, _: x.best_match_type.strength,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.COVERAGE,
            lambda x, _: x.coverage,
            descending=True,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.NAME_MATCH,
            _field_match(MatchField.NAME),
            descending=True,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.TAG_MATCH,
            _field_match(MatchField.TAG),
            descending=True,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.HEADER_MATCH,
            _field_match(MatchField.HEADER),
            descending=True,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.LINK_MATCH,
            _field_match(MatchField.LINK),
            descending=True,
            needs_match=True,
        ),
        Comparator(
            SortCriterion.STARRED,
            lambda x, _: x.item.is_starred,
            descending=True,
        ),
        Comparator(SortCriterion.LAST_OPENED, _recency),
        Comparator(
            SortCriterion.LAST_MODIFIED,
            lambda x, _: x.item.mtime,
            descending=True,
        ),
        Comparator(
            SortCriterion.NAME_LENGTH,
            lambda x, _: len(x.item.display_name),
            needs_match=True,
        ),
        Comparator(
            SortCriterion.ALPHABETICAL,
            lambda x, _: x.item.display_name.casefold(),
        ),
        Comparator(
            SortCriterion.ALPHABETICAL_REVERSE,
            lambda x, _: x.item.display_name.casefold(),
            descending=True,
        ),
    ]
}


def resolve_criterion(name: str | SortCriterion) -> SortCriterion:
    """Look up a sort criterion by name.

    Raises:
        UnknownSortCriterionError: If the name is not recognized
    """
    try:
        return SortCriterion(name)
    except ValueError:
        raise UnknownSortCriterionError(str(name)) from None


def build_comparator_chain(priorities: Iterable[str | SortCriterion]) -> tuple[Comparator, ...]:
    """Resolve sort priority names into comparators, failing on unknown names."""
    return tuple(COMPARATORS[resolve_criterion(name)] for name in priorities)


def filter_no_query_priorities(
    priorities: Iterable[str | SortCriterion],
) -> list[SortCriterion]:
    """Keep only the criteria that make sense without match results."""
    criteria = [resolve_criterion(name) for name in priorities]
    return [c for c in criteria if not COMPARATORS[c].needs_match]


def sort_ranked(
    items: Iterable[RankedItem],
    chain: Sequence[Comparator],
    last_opened: Mapping[str, int] | None = None,
) -> list[RankedItem]:
    """Sort items with an already built comparator chain.

    Each key is computed once per item and pass. Python's sort is stable,
    also with ``reverse=True``, so sorting by the least significant
    criterion first yields the lexicographic order of the whole chain.
    """
    index = last_opened or {}
    ordered = list(items)
    for comparator in reversed(chain):
        key = comparator.key
        ordered.sort(key=lambda x: key(x, index), reverse=comparator.descending)
    return ordered


def rank(
    items: Iterable[RankedItem],
    sort_priorities: Iterable[str | SortCriterion],
    last_opened_index: Mapping[str, int] | None = None,
) -> list[RankedItem]:
    """Order matched items by the given sort priorities.

    Items equal under every criterion keep their relative input order.

    Args:
        items: Classified, non-excluded items in corpus order
        sort_priorities: Criterion names, most significant first
        last_opened_index: Path to recency index (0 = most recently opened)

    Returns:
        Items in ranked order

    Raises:
        UnknownSortCriterionError: If a priority name is not recognized
    """
    return sort_ranked(items, build_comparator_chain(sort_priorities), last_opened_index)


def last_opened_index(paths: Iterable[str]) -> dict[str, int]:
    """Map recency-ordered paths to their index, keeping the most recent."""
    index: dict[str, int] = {}
    for i, path in enumerate(paths):
        index.setdefault(path, i)
    return index
