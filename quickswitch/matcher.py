"""Field matching and per-item match classification.

Each query token is tried against an item's fields and classified by the
strongest way it matches:

- exact: the whole field equals the token
- prefix: the field starts with the token
- word-prefix: some whitespace-delimited word starts with the token
- fuzzy: the token's characters occur in order within a bounded window

An item is kept only when every token matches some enabled field.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .models import Item, MatchField, MatchResult, MatchType, RankedItem
from .tokenizer import normalize, original_span

DEFAULT_FUZZY_SPAN_RATIO = 3.0

_WORD = re.compile(r"\S+")


def fuzzy_window(token: str, text: str) -> tuple[int, int] | None:
    """Find the tightest window of text containing token as a subsequence.

    Args:
        token: Normalized token
        text: Normalized field text

    Returns:
        (start, length) of the shortest window, or None if token is not a
        subsequence of text
    """
    if not token or len(token) > len(text):
        return None

    best: tuple[int, int] | None = None
    first = token[0]
    start = text.find(first)
    while start != -1:
        pos = start + 1
        for char in token[1:]:
            pos = text.find(char, pos)
            if pos == -1:
                return best
            pos += 1
        length = pos - start
        if best is None or length < best[1]:
            best = (start, length)
            if length == len(token):
                break
        start = text.find(first, start + 1)
    return best


def match_field(
    token: str,
    text: str,
    normalize_accents: bool = False,
    fuzzy_span_ratio: float = DEFAULT_FUZZY_SPAN_RATIO,
) -> tuple[MatchType, tuple[int, int]]:
    """Classify how a normalized token matches one field value.

    Args:
        token: Normalized query token
        text: Original field text
        normalize_accents: Whether to strip diacritics from the field text
        fuzzy_span_ratio: Largest fuzzy window allowed, as a multiple of
            the token length

    Returns:
        Tuple of (match type, span in the original text)
    """
    if not token or not text:
        return MatchType.NOT_FOUND, (0, 0)

    normalized, offsets = normalize(text, normalize_accents)
    size = len(token)

    if normalized == token:
        return MatchType.EXACT, original_span(offsets, 0, size)
    if normalized.startswith(token):
        return MatchType.PREFIX, original_span(offsets, 0, size)

    for word in _WORD.finditer(normalized):
        if word.group().startswith(token):
            return MatchType.WORD_PREFIX, original_span(offsets, word.start(), size)

    window = fuzzy_window(token, normalized)
    if window is not None and window[1] <= fuzzy_span_ratio * size:
        return MatchType.FUZZY, original_span(offsets, *window)

    return MatchType.NOT_FOUND, (0, 0)


def match_values(
    token: str,
    field: MatchField,
    values: Iterable[str],
    normalize_accents: bool = False,
    fuzzy_span_ratio: float = DEFAULT_FUZZY_SPAN_RATIO,
) -> MatchResult:
    """Match a token against every value of a field, keeping the strongest.

    The first value wins when several match equally well.
    """
    best = MatchResult.not_found(token)
    for value in values:
        match_type, span = match_field(token, value, normalize_accents, fuzzy_span_ratio)
        if match_type.stronger_than(best.type):
            best = MatchResult(
                token=token,
                field=field,
                type=match_type,
                span=span,
                matched_text=value,
            )
            if match_type is MatchType.EXACT:
                break
    return best


def match_token(
    item: Item,
    token: str,
    search_tag: bool = False,
    search_header: bool = False,
    search_link: bool = False,
    normalize_accents: bool = False,
    fuzzy_span_ratio: float = DEFAULT_FUZZY_SPAN_RATIO,
) -> MatchResult:
    """Find the strongest field match for one token.

    Fields are tried in priority order (name, alias, tag, header, link) and
    a later field only replaces an earlier one with a strictly stronger
    match.
    """
    candidates: list[tuple[MatchField, Sequence[str]]] = [
        (MatchField.NAME, (item.display_name,)),
        (MatchField.ALIAS, item.aliases),
    ]
    if search_tag:
        candidates.append((MatchField.TAG, item.tags))
    if search_header:
        candidates.append((MatchField.HEADER, item.headers))
    if search_link:
        candidates.append((MatchField.LINK, item.links))

    best = MatchResult.not_found(token)
    for field, values in candidates:
        result = match_values(token, field, values, normalize_accents, fuzzy_span_ratio)
        if result.type.stronger_than(best.type):
            best = result
            if best.type is MatchType.EXACT:
                break
    return best


def classify(
    item: Item,
    tokens: Sequence[str],
    search_tag: bool = False,
    search_header: bool = False,
    search_link: bool = False,
    normalize_accents: bool = False,
    fuzzy_span_ratio: float = DEFAULT_FUZZY_SPAN_RATIO,
) -> RankedItem:
    """Classify an item against all query tokens.

    Args:
        item: Item to classify
        tokens: Normalized query tokens (see tokenizer.tokenize)
        search_tag: Whether tags are searched
        search_header: Whether headers are searched
        search_link: Whether links are searched
        normalize_accents: Whether diacritics are stripped from field text
        fuzzy_span_ratio: Fuzzy window limit as a multiple of token length

    Returns:
        RankedItem carrying one MatchResult per token, stopping at the
        first token that matched nothing; check ``excluded``
    """
    results: list[MatchResult] = []
    for token in tokens:
        result = match_token(
            item,
            token,
            search_tag,
            search_header,
            search_link,
            normalize_accents,
            fuzzy_span_ratio,
        )
        results.append(result)
        if not result.found:
            break
    return RankedItem(item=item, match_results=tuple(results))


def classify_all(
    items: Iterable[Item],
    tokens: Sequence[str],
    search_tag: bool = False,
    search_header: bool = False,
    search_link: bool = False,
    normalize_accents: bool = False,
    fuzzy_span_ratio: float = DEFAULT_FUZZY_SPAN_RATIO,
) -> list[RankedItem]:
    """Classify many items and drop the excluded ones."""
    matched = []
    for item in items:
        ranked = classify(
            item,
            tokens,
            search_tag,
            search_header,
            search_link,
            normalize_accents,
            fuzzy_span_ratio,
        )
        if not ranked.excluded:
            matched.append(ranked)
    return matched
