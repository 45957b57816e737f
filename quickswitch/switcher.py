"""Quick switcher: the entry point the UI layer calls on every keystroke.

Coordinates mode switching, corpus indexing, classification, ranking and
debounced scheduling.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time

from .config import Settings
from .corpus import CorpusIndexer, CorpusSnapshot, Host
from .display import InputStatus, compose_search_query, render_input
from .matcher import classify_all
from .models import RankedItem, SearchMode
from .ranking import (
    Comparator,
    build_comparator_chain,
    filter_no_query_priorities,
    last_opened_index,
    sort_ranked,
)
from .scheduler import QueryScheduler
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=64)
def _comparator_chains(
    priorities: tuple[str, ...],
) -> tuple[tuple[Comparator, ...], tuple[Comparator, ...]]:
    """Comparator chains for a query and for the empty query."""
    return (
        build_comparator_chain(priorities),
        build_comparator_chain(filter_no_query_priorities(priorities)),
    )


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


class QuickSwitcher:
    """Search-and-rank session over a host's notes.

    One instance corresponds to one open switcher: it starts in an initial
    mode, follows command prefixes typed into the query, and hands out
    suggestions either immediately or through the debounce scheduler.
    """

    def __init__(
        self,
        host: Host,
        settings: Settings | None = None,
        mode: SearchMode | str | None = None,
    ):
        """Initialize switcher and index the corpus for the initial mode.

        Args:
            host: Source of notes and workspace state
            settings: Switcher settings (default: built-in settings)
            mode: Initial mode or its name (default: first configured mode)

        Raises:
            ConfigurationError: If settings or the initial mode are unusable
        """
        self.settings = (settings or Settings()).validate()
        self.host = host
        self.indexer = CorpusIndexer(
            host,
            show_existing_files_only=self.settings.show_existing_files_only,
            backlink_exclude_prefix_path_patterns=self.settings.backlink_exclude_prefix_path_patterns,
            new_file_location=self.settings.new_file_location,
            new_file_folder_path=self.settings.new_file_folder_path,
        )

        if mode is None:
            mode = self.settings.search_commands[0]
        elif isinstance(mode, str):
            mode = self.settings.mode(mode)
        _comparator_chains(tuple(mode.sort_priorities))

        self.initial_mode: SearchMode = mode
        self.mode: SearchMode = mode
        self.snapshot: CorpusSnapshot = self.indexer.index(mode)

        self.search_query = ""
        self.last_shown = 0
        self.last_total = 0

        self.scheduler: QueryScheduler[list[RankedItem]] = QueryScheduler(
            self.evaluate,
            self.settings.search_delay_milliseconds,
            leading=self.settings.search_leading_edge,
        )

    @property
    def limit(self) -> int:
        return self.settings.max_number_of_suggestions

    def mode_for_query(self, query: str) -> SearchMode:
        """Mode selected by the query's command prefix, else the initial mode."""
        for mode in self.settings.search_commands:
            if mode.command_prefix and query.startswith(mode.command_prefix):
                return mode
        return self.initial_mode

    def switch_mode(self, mode: SearchMode) -> None:
        """Activate a mode and re-index the corpus for it."""
        _comparator_chains(tuple(mode.sort_priorities))
        logger.debug("Switching mode: %s -> %s", self.mode.name, mode.name)
        self.mode = mode
        self.reindex()

    def reindex(self) -> None:
        """Rebuild the corpus snapshot for the active mode."""
        self.snapshot = self.indexer.index(self.mode)

    def get_suggestions(
        self, query: str
    ) -> list[RankedItem] | asyncio.Future[list[RankedItem]]:
        """Suggestions for the current input.

        A mode switch implied by the query is applied first. The empty query
        and the mode's default input are evaluated immediately; anything
        else is debounced and returns a future, which is cancelled if a
        later query supersedes it.
        """
        target = self.mode_for_query(query)
        if target != self.mode:
            self.switch_mode(target)

        if not query or query == self.mode.default_input:
            return self.scheduler.run_now(query)
        return self.scheduler.submit(query)

    def evaluate(self, query: str) -> list[RankedItem]:
        """Classify and rank the current snapshot for a query, synchronously."""
        start = time.perf_counter()
        snapshot = self.snapshot
        mode = snapshot.mode

        self.search_query = compose_search_query(mode, query)
        tokens = tokenize(self.search_query, self.settings.normalize_accents_and_diacritics)

        if mode.is_backlink_search:
            results = self._backlink_suggestions(snapshot)
        else:
            chain, no_query_chain = _comparator_chains(tuple(mode.sort_priorities))
            last_opened = last_opened_index(self.host.last_opened_files())
            if not tokens:
                candidates = [RankedItem(item=x) for x in snapshot.items]
                ranked = sort_ranked(candidates, no_query_chain, last_opened)
            else:
                matched = classify_all(
                    snapshot.items,
                    tokens,
                    mode.search_by.tag,
                    mode.search_by.header,
                    mode.search_by.link,
                    self.settings.normalize_accents_and_diacritics,
                    self.settings.fuzzy_span_ratio,
                )
                ranked = sort_ranked(matched, chain, last_opened)
            self.last_total = len(ranked)
            results = [
                RankedItem(item=x.item, match_results=x.match_results, order=order)
                for order, x in enumerate(ranked[: self.limit])
            ]

        self.last_shown = len(results)
        logger.debug(
            "Get suggestions: %s (%s): %d[ms]",
            self.search_query,
            mode.name,
            _elapsed_ms(start),
        )
        return results

    def render_input(self, query: str) -> InputStatus:
        """Input-area metadata for the active mode and the latest counts."""
        return render_input(self.mode, query, self.last_shown, self.last_total)

    def _backlink_suggestions(self, snapshot: CorpusSnapshot) -> list[RankedItem]:
        active_file = snapshot.active_file
        if not active_file:
            self.last_total = 0
            return []

        sources = self.host.backlinks().get(active_file, set())
        linked = [x for x in snapshot.items if x.id in sources]
        self.last_total = len(linked)
        return [
            RankedItem(
                item=x,
                order=order,
                offset=self.host.first_link_offset(x.id, active_file),
            )
            for order, x in enumerate(linked[: self.limit])
        ]
