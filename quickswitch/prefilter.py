"""Path-prefix include/exclude filtering of the corpus.

Runs once per (re)index to narrow the working set before any query is
matched.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from .exceptions import InvalidPatternError
from .models import Item

T = TypeVar("T")

CURRENT_DIR_PLACEHOLDER = "<current_dir>"


def include_items(
    items: Sequence[T], patterns: Sequence[str], to_path: Callable[[T], str]
) -> list[T]:
    """Keep items whose path starts with at least one pattern."""
    if not patterns:
        return list(items)
    prefixes = tuple(patterns)
    return [x for x in items if to_path(x).startswith(prefixes)]


def exclude_items(
    items: Sequence[T], patterns: Sequence[str], to_path: Callable[[T], str]
) -> list[T]:
    """Drop items whose path starts with any pattern."""
    if not patterns:
        return list(items)
    prefixes = tuple(patterns)
    return [x for x in items if not to_path(x).startswith(prefixes)]


def validate_patterns(patterns: Iterable[object]) -> tuple[str, ...]:
    """Check that every pattern is a resolved path prefix.

    Raises:
        InvalidPatternError: If a pattern is not a string or still holds
            the ``<current_dir>`` placeholder
    """
    checked = []
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise InvalidPatternError(pattern, "pattern must be a string")
        if CURRENT_DIR_PLACEHOLDER in pattern:
            raise InvalidPatternError(
                pattern, f"unresolved {CURRENT_DIR_PLACEHOLDER} placeholder"
            )
        checked.append(pattern)
    return tuple(checked)


def resolve_patterns(patterns: Iterable[str], current_dir: str) -> tuple[str, ...]:
    """Substitute the active file's directory for ``<current_dir>``."""
    resolved = []
    for pattern in patterns:
        if not isinstance(pattern, str):
            raise InvalidPatternError(pattern, "pattern must be a string")
        resolved.append(pattern.replace(CURRENT_DIR_PLACEHOLDER, current_dir))
    return tuple(resolved)


def prefilter(
    items: Sequence[Item],
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
) -> list[Item]:
    """Narrow a corpus by item id prefixes.

    An item passes when include_patterns is empty or its id starts with one
    of them, and its id starts with none of exclude_patterns.

    Args:
        items: Corpus snapshot
        include_patterns: Resolved path prefixes to keep
        exclude_patterns: Resolved path prefixes to drop

    Returns:
        Items passing both filters, in corpus order
    """
    include = validate_patterns(include_patterns)
    exclude = validate_patterns(exclude_patterns)
    kept = include_items(items, include, lambda x: x.id)
    return exclude_items(kept, exclude, lambda x: x.id)
