"""Tests for path-prefix prefiltering."""

import pytest

from quickswitch.exceptions import InvalidPatternError
from quickswitch.prefilter import (
    exclude_items,
    include_items,
    prefilter,
    resolve_patterns,
    validate_patterns,
)


@pytest.fixture
def corpus(make_item):
    return [
        make_item("Alpha", id="projects/Alpha.md"),
        make_item("Beta", id="projects/archive/Beta.md"),
        make_item("Gamma", id="archive/Gamma.md"),
        make_item("Delta", id="Delta.md"),
    ]


def ids(items):
    return [x.id for x in items]


class TestIncludeExclude:
    """Test the generic include/exclude helpers."""

    def test_include_any_prefix(self):
        paths = ["a/x", "b/y", "c/z"]
        assert include_items(paths, ["a/", "c/"], str) == ["a/x", "c/z"]

    def test_exclude_any_prefix(self):
        paths = ["a/x", "b/y", "c/z"]
        assert exclude_items(paths, ["a/", "c/"], str) == ["b/y"]

    def test_empty_patterns_keep_everything(self):
        paths = ["a/x", "b/y"]
        assert include_items(paths, [], str) == paths
        assert exclude_items(paths, [], str) == paths


class TestPrefilter:
    """Test corpus prefiltering by item id."""

    def test_no_patterns(self, corpus):
        assert ids(prefilter(corpus)) == ids(corpus)

    def test_include_only(self, corpus):
        assert ids(prefilter(corpus, ["projects/"])) == [
            "projects/Alpha.md",
            "projects/archive/Beta.md",
        ]

    def test_exclude_applies_after_include(self, corpus):
        result = prefilter(corpus, ["projects/"], ["projects/archive/"])
        assert ids(result) == ["projects/Alpha.md"]

    def test_exclude_is_prefix_not_substring(self, corpus):
        result = prefilter(corpus, exclude_patterns=["archive/"])
        assert "projects/archive/Beta.md" in ids(result)
        assert "archive/Gamma.md" not in ids(result)

    def test_idempotent(self, corpus):
        once = prefilter(corpus, ["projects/", "Delta"], ["projects/archive/"])
        twice = prefilter(once, ["projects/", "Delta"], ["projects/archive/"])
        assert ids(once) == ids(twice)

    def test_order_preserved(self, corpus):
        result = prefilter(list(reversed(corpus)), exclude_patterns=["Delta"])
        assert ids(result) == [
            "archive/Gamma.md",
            "projects/archive/Beta.md",
            "projects/Alpha.md",
        ]

    def test_non_string_pattern_rejected(self, corpus):
        with pytest.raises(InvalidPatternError) as exc_info:
            prefilter(corpus, [42])
        assert exc_info.value.pattern == 42

    def test_unresolved_placeholder_rejected(self, corpus):
        with pytest.raises(InvalidPatternError, match="current_dir"):
            prefilter(corpus, exclude_patterns=["<current_dir>/drafts"])


class TestPatternResolution:
    """Test <current_dir> substitution."""

    def test_resolve_placeholder(self):
        assert resolve_patterns(["<current_dir>/", "daily/"], "projects") == (
            "projects/",
            "daily/",
        )

    def test_resolved_patterns_validate(self):
        resolved = resolve_patterns(["<current_dir>/"], "projects")
        assert validate_patterns(resolved) == ("projects/",)

    def test_resolve_rejects_non_strings(self):
        with pytest.raises(InvalidPatternError):
            resolve_patterns([None], "projects")
