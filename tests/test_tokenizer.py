"""Tests for query tokenization and text normalization."""

from quickswitch.tokenizer import (
    exclude_format,
    normalize,
    original_span,
    strip_accents,
    tokenize,
)


class TestTokenize:
    """Test splitting queries into tokens."""

    def test_splits_on_whitespace_and_keeps_order(self):
        assert tokenize("alpha  beta\tgamma") == ("alpha", "beta", "gamma")

    def test_discards_empty_tokens(self):
        assert tokenize("   ") == ()
        assert tokenize("") == ()
        assert tokenize(" a ") == ("a",)

    def test_tokens_are_case_folded(self):
        assert tokenize("Alpha BETA") == ("alpha", "beta")

    def test_accents_kept_unless_normalizing(self):
        assert tokenize("Café") == ("café",)
        assert tokenize("Café", normalize_accents=True) == ("cafe",)


class TestNormalize:
    """Test comparison-form normalization with offset tracking."""

    def test_strip_accents(self):
        assert strip_accents("Crème brûlée") == "Creme brulee"

    def test_offsets_identity_for_plain_text(self):
        text, offsets = normalize("Alpha")
        assert text == "alpha"
        assert offsets == (0, 1, 2, 3, 4)

    def test_decomposed_accents_vanish(self):
        # "e" followed by a combining acute accent
        text, offsets = normalize("Cafe\u0301s", normalize_accents=True)
        assert text == "cafes"
        assert offsets == (0, 1, 2, 3, 5)

    def test_expanding_case_fold_maps_back(self):
        text, offsets = normalize("Straße")
        assert text == "strasse"
        assert offsets == (0, 1, 2, 3, 4, 4, 5)
        assert original_span(offsets, 4, 2) == (4, 1)

    def test_original_span_empty(self):
        assert original_span((), 0, 0) == (0, 0)


class TestExcludeFormat:
    """Test stripping Markdown formatting from headings."""

    def test_plain_heading_unchanged(self):
        assert exclude_format("Overview") == "Overview"

    def test_emphasis_and_code(self):
        assert exclude_format("**Bold** and *it* and `code`") == "Bold and it and code"

    def test_links(self):
        assert exclude_format("See [[Target|label]] and [[Other]]") == "See label and Other"
        assert exclude_format("[docs](https://example.com)") == "docs"

    def test_strike_highlight_and_html(self):
        assert exclude_format("~~old~~ ==new== <b>x</b>") == "old new x"

    def test_underscores_inside_words_kept(self):
        assert exclude_format("snake_case_name") == "snake_case_name"
