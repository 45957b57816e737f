"""Tests for the quick switcher session."""

import asyncio

import pytest

from quickswitch.config import Settings
from quickswitch.corpus import NoteRecord, VaultSnapshot
from quickswitch.exceptions import ConfigurationError, UnknownSearchModeError
from quickswitch.models import MatchField, MatchType, SearchMode
from quickswitch.switcher import QuickSwitcher


def ids(results):
    return [x.id for x in results]


@pytest.fixture
def switcher(sample_vault):
    return QuickSwitcher(sample_vault)


class TestConstruction:
    """Test switcher setup."""

    def test_starts_in_first_mode(self, switcher):
        assert switcher.mode.name == "Recent search"
        assert switcher.initial_mode is switcher.mode
        assert len(switcher.snapshot) == 4

    def test_mode_by_name(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, mode="Star search")
        assert switcher.mode.command_prefix == ":s "

    def test_unknown_mode_name(self, sample_vault):
        with pytest.raises(UnknownSearchModeError):
            QuickSwitcher(sample_vault, mode="Nope")

    def test_unknown_sort_criterion_fails_at_construction(self, sample_vault):
        mode = SearchMode(name="Broken", sort_priorities=("popularity",))
        with pytest.raises(ConfigurationError):
            QuickSwitcher(sample_vault, mode=mode)

    def test_invalid_settings_rejected(self, sample_vault):
        with pytest.raises(ConfigurationError):
            QuickSwitcher(sample_vault, Settings(max_number_of_suggestions=-1))


class TestEmptyQuery:
    """Test the no-query path."""

    def test_returns_synchronously_in_recency_order(self, switcher):
        results = switcher.get_suggestions("")
        assert isinstance(results, list)
        assert ids(results) == [
            "daily/2026-10-19.md",
            "archive/Gamma.md",
            "projects/Project Alpha Notes.md",
            "Ideas.md",
        ]
        assert [x.order for x in results] == [0, 1, 2, 3]
        assert all(x.match_results == () for x in results)

    def test_matcher_not_invoked(self, switcher, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("matcher called for empty query")

        monkeypatch.setattr("quickswitch.switcher.classify_all", fail)
        assert len(switcher.get_suggestions("")) == 4
        assert len(switcher.evaluate("   ")) == 4

    def test_limit_truncates(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, Settings(max_number_of_suggestions=2))
        results = switcher.get_suggestions("")
        assert ids(results) == ["daily/2026-10-19.md", "archive/Gamma.md"]
        assert switcher.render_input("").count_label == "2 / 4"


class TestQueries:
    """Test classified queries."""

    def test_evaluate_matches_and_ranks(self, switcher):
        results = switcher.evaluate("alpha")
        assert ids(results) == ["projects/Project Alpha Notes.md"]
        result = results[0].match_results[0]
        assert result.field is MatchField.NAME
        assert result.type is MatchType.WORD_PREFIX
        assert results[0].order == 0

    def test_alias_match(self, switcher):
        results = switcher.evaluate("pan")
        assert results[0].match_results[0].field is MatchField.ALIAS

    def test_no_match(self, switcher):
        assert switcher.evaluate("zzz") == []
        assert switcher.last_shown == 0

    def test_phantom_items_searchable(self, switcher):
        results = switcher.evaluate("ideas")
        assert ids(results) == ["Ideas.md"]
        assert results[0].item.is_phantom

    def test_accent_normalization(self):
        vault = VaultSnapshot(notes_=[NoteRecord(path="Café menu.md")])
        plain = QuickSwitcher(vault, Settings(show_existing_files_only=True))
        folded = QuickSwitcher(
            vault,
            Settings(show_existing_files_only=True, normalize_accents_and_diacritics=True),
        )
        assert folded.evaluate("cafe")[0].match_results[0].type is MatchType.PREFIX
        # Without folding, "é" only fuzzily lines up with the "e" of "menu"
        assert plain.evaluate("cafe")[0].match_results[0].type is MatchType.FUZZY

    @pytest.mark.asyncio
    async def test_debounced_query_returns_future(self, switcher):
        future = switcher.get_suggestions("gam")
        assert isinstance(future, asyncio.Future)
        results = await future
        assert ids(results) == ["archive/Gamma.md"]

    @pytest.mark.asyncio
    async def test_superseded_query_never_delivered(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, Settings(search_delay_milliseconds=20))
        first = switcher.get_suggestions("a")
        second = switcher.get_suggestions("alpha")
        results = await second
        assert first.cancelled()
        assert ids(results) == ["projects/Project Alpha Notes.md"]
        assert switcher.search_query == "alpha"


class TestModeSwitching:
    """Test command prefixes and default input."""

    def test_mode_for_query(self, switcher):
        assert switcher.mode_for_query(":l alpha").name == "Landmark search"
        assert switcher.mode_for_query(":lalpha").name == "Recent search"
        assert switcher.mode_for_query("alpha").name == "Recent search"

    @pytest.mark.asyncio
    async def test_prefix_switches_mode_and_is_stripped(self, switcher):
        results = await switcher.get_suggestions(":l roadmap")
        assert switcher.mode.name == "Landmark search"
        assert switcher.search_query == "roadmap"
        assert ids(results) == ["projects/Project Alpha Notes.md"]
        result = results[0].match_results[0]
        assert result.field is MatchField.HEADER
        assert result.matched_text == "Roadmap for 2026"

    @pytest.mark.asyncio
    async def test_returning_to_initial_mode(self, switcher):
        await switcher.get_suggestions(":s ")
        assert switcher.mode.name == "Star search"
        switcher.get_suggestions("")
        assert switcher.mode.name == "Recent search"

    def test_landmark_fields_only_in_landmark_mode(self, switcher):
        # Tags are not indexed for the initial mode
        assert switcher.evaluate("alpha")[0].match_results[0].field is MatchField.NAME
        assert switcher.evaluate("work") == []

    def test_default_input_runs_immediately(self, sample_vault):
        mode = SearchMode(
            name="Daily",
            default_input="2026 ",
            sort_priorities=("match-strength", "alphabetical"),
        )
        switcher = QuickSwitcher(sample_vault, Settings(search_commands=(mode,)))
        results = switcher.get_suggestions("")
        assert isinstance(results, list)
        assert switcher.search_query == "2026 "
        assert ids(results) == ["daily/2026-10-19.md"]
        assert switcher.render_input("").default_input == "2026 "

    def test_render_input(self, switcher):
        switcher.switch_mode(switcher.settings.mode("Landmark search"))
        status = switcher.render_input(":l ")
        assert status.mode_label == "Landmark search ..."
        assert status.badges == ("tag", "header", "link")
        assert status.default_input is None


class TestBacklinkSearch:
    """Test backlink mode."""

    def test_backlinks_in_corpus_order_with_offsets(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, mode="Backlink search")
        results = switcher.get_suggestions("")
        assert ids(results) == ["projects/Project Alpha Notes.md", "archive/Gamma.md"]
        assert [x.offset for x in results] == [42, 3]
        assert [x.order for x in results] == [0, 1]
        assert switcher.render_input("").mode_label == "Backlink search"

    def test_query_tokens_ignored(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, mode="Backlink search")
        assert ids(switcher.evaluate("zzz")) == [
            "projects/Project Alpha Notes.md",
            "archive/Gamma.md",
        ]

    def test_backlink_exclusions(self, sample_vault):
        settings = Settings(backlink_exclude_prefix_path_patterns=("archive/",))
        switcher = QuickSwitcher(sample_vault, settings, mode="Backlink search")
        assert ids(switcher.evaluate("")) == ["projects/Project Alpha Notes.md"]

    def test_no_active_file(self, sample_vault):
        sample_vault.active = None
        switcher = QuickSwitcher(sample_vault, mode="Backlink search")
        assert switcher.evaluate("") == []
        assert switcher.last_total == 0

    def test_active_file_taken_from_snapshot(self, sample_vault):
        switcher = QuickSwitcher(sample_vault, mode="Backlink search")
        sample_vault.active = "archive/Gamma.md"
        assert ids(switcher.evaluate("")) == [
            "projects/Project Alpha Notes.md",
            "archive/Gamma.md",
        ]

        switcher.reindex()
        results = switcher.evaluate("")
        assert ids(results) == ["projects/Beta.md"]
        assert results[0].offset == 7
