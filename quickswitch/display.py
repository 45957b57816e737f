"""Display metadata and Rich rendering for suggestions.

Nothing here affects matching; these are pure functions of a mode, a query
and ranked results.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from rich.table import Table
from rich.text import Text

from .models import MatchField, RankedItem, SearchMode

HIGHLIGHT_STYLE = "bold yellow"

_FIELD_STYLES = {
    MatchField.ALIAS: "cyan",
    MatchField.TAG: "magenta",
    MatchField.HEADER: "green",
    MatchField.LINK: "blue",
}


@dataclass(frozen=True)
class InputStatus:
    """What the input area shows for the active mode and query."""

    mode_label: str
    badges: tuple[str, ...] = ()
    default_input: str | None = None
    count_label: str | None = None


def compose_search_query(mode: SearchMode, query: str) -> str:
    """Strip the mode's command prefix and prepend its default input."""
    search_query = query
    if mode.command_prefix and query.startswith(mode.command_prefix):
        search_query = query[len(mode.command_prefix) :]
    if mode.default_input:
        search_query = f"{mode.default_input}{search_query}"
    return search_query


def render_input(
    mode: SearchMode,
    query: str,
    shown: int | None = None,
    total: int | None = None,
) -> InputStatus:
    """Describe the input area for a mode and the raw query typed so far.

    Args:
        mode: Active search mode
        query: Raw input, including any command prefix
        shown: Number of suggestions displayed
        total: Number of matching items before truncation

    Returns:
        InputStatus with the mode label, field badges, default input and counts
    """
    label = "Backlink search" if mode.is_backlink_search else f"{mode.name} ..."
    badges = tuple(
        name
        for name, enabled in (
            ("tag", mode.search_by.tag),
            ("header", mode.search_by.header),
            ("link", mode.search_by.link),
        )
        if enabled
    )
    default_input = compose_search_query(mode, query) if mode.default_input else None
    count_label = f"{shown} / {total}" if shown is not None and total is not None else None
    return InputStatus(
        mode_label=label,
        badges=badges,
        default_input=default_input,
        count_label=count_label,
    )


def highlight(text: str, spans: Sequence[tuple[int, int]], style: str = HIGHLIGHT_STYLE) -> Text:
    """Build a Rich text with the given (start, length) spans styled."""
    rendered = Text(text)
    for start, length in spans:
        if length > 0:
            rendered.stylize(style, start, start + length)
    return rendered


def render_suggestion(ranked: RankedItem) -> Text:
    """Render one suggestion with matched spans highlighted.

    The display name comes first; values of other fields that matched a
    token follow on the same line.
    """
    name_spans = [
        r.span for r in ranked.match_results if r.field is MatchField.NAME
    ]
    line = highlight(ranked.item.display_name, name_spans)
    if ranked.item.is_phantom:
        line.append(" (new)", style="dim")
    if ranked.item.is_starred:
        line.append(" *", style="yellow")

    extras: dict[tuple[MatchField, str], list[tuple[int, int]]] = {}
    for result in ranked.match_results:
        if result.field in _FIELD_STYLES:
            extras.setdefault((result.field, result.matched_text), []).append(result.span)
    for (field, value), spans in extras.items():
        line.append("  ")
        line.append(f"{field.value}:", style=_FIELD_STYLES[field])
        line.append_text(highlight(value, spans))
    return line


def suggestions_table(results: Sequence[RankedItem], status: InputStatus) -> Table:
    """Build a Rich table of suggestions headed by the input status."""
    title = status.mode_label
    if status.badges:
        title += " [" + ", ".join(status.badges) + "]"
    table = Table(title=title, caption=status.count_label, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Suggestion")
    table.add_column("Path", style="dim")
    table.add_column("Match", style="dim")

    for ranked in results:
        match = ranked.best_match_type.value if ranked.match_results else ""
        if ranked.offset is not None:
            match = f"@{ranked.offset}"
        table.add_row(str(ranked.order + 1), render_suggestion(ranked), ranked.id, match)
    return table
