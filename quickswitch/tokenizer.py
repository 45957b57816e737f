"""Query tokenization and text normalization.

Queries are split on whitespace into tokens. Tokens and field text are
compared in a normalized form: case-folded, and with diacritics removed
when accent normalization is enabled. Field text normalization keeps an
offset table so match spans can be reported against the original text.
"""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

_WHITESPACE = re.compile(r"\s+")

# Markdown inline formatting that should not take part in heading matching
_FORMAT_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\[\[[^\]|]+\|([^\]]*)\]\]"), r"\1"),  # [[target|label]]
    (re.compile(r"\[\[([^\]]+)\]\]"), r"\1"),  # [[target]]
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),  # [label](url)
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"~~([^~]+)~~"), r"\1"),
    (re.compile(r"==([^=]+)=="), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"(?<!\w)_([^_]+)_(?!\w)"), r"\1"),
    (re.compile(r"<[^>]+>"), ""),
]


def tokenize(query: str, normalize_accents: bool = False) -> tuple[str, ...]:
    """Split a query into normalized, non-empty tokens.

    Args:
        query: Raw query string
        normalize_accents: Whether to strip diacritics from tokens

    Returns:
        Tokens in left-to-right order
    """
    return tuple(
        normalize_token(part, normalize_accents)
        for part in _WHITESPACE.split(query)
        if part
    )


def normalize_token(token: str, normalize_accents: bool = False) -> str:
    """Normalize a single token to its comparison form."""
    return normalize(token, normalize_accents)[0]


def strip_accents(text: str) -> str:
    """Remove diacritical marks from text."""
    nfd = unicodedata.normalize("NFD", text)
    return "".join(char for char in nfd if unicodedata.category(char) != "Mn")


@lru_cache(maxsize=65536)
def normalize(text: str, normalize_accents: bool = False) -> tuple[str, tuple[int, ...]]:
    """Normalize text for comparison, keeping a map back to the original.

    Each original character is folded independently, so one character may
    expand to several (``"ß"`` folds to ``"ss"``) or vanish entirely (a
    combining accent when accents are stripped).

    Args:
        text: Original field text
        normalize_accents: Whether to strip diacritics

    Returns:
        Tuple of (normalized text, original index of each normalized char)
    """
    chars: list[str] = []
    offsets: list[int] = []
    for index, char in enumerate(text):
        folded = strip_accents(char) if normalize_accents else char
        for out in folded.casefold():
            chars.append(out)
            offsets.append(index)
    return "".join(chars), tuple(offsets)


def original_span(
    offsets: tuple[int, ...], start: int, length: int
) -> tuple[int, int]:
    """Translate a span in normalized text into a span in the original text."""
    if length <= 0 or not offsets:
        return (0, 0)
    first = offsets[start]
    last = offsets[start + length - 1]
    return (first, last - first + 1)


def exclude_format(text: str) -> str:
    """Strip Markdown inline formatting from a heading."""
    for pattern, replacement in _FORMAT_PATTERNS:
        text = pattern.sub(replacement, text)
    return text.strip()
