"""
Unit tests for the local keyword filter.

Tests first-match semantics, case-insensitivity, fixed severity and
determinism of the last-resort fallback stage.
"""

import pytest

from content_moderation.moderation.local_filter import (
    DEFAULT_KEYWORD_TABLE,
    LOCAL_FILTER_SEVERITY,
    LocalFilter,
    local_filter,
)
from content_moderation.moderation.schemas import Category, ModerationSource


class TestLocalFilterMatching:
    """Test keyword matching."""

    def test_hate_speech_keyword(self):
        """Scenario: hate-speech keyword flags with fixed severity."""
        result = local_filter("I hate you, you racist")

        assert result.flagged is True
        assert result.category == Category.HATE_SPEECH
        assert result.severity == 0.8
        assert result.source == ModerationSource.LOCAL
        assert result.raw == {"fallback": True, "matched": "hate"}

    def test_spam_keyword(self):
        """Scenario: invite link is spam."""
        result = local_filter("check this out discord.gg/abc123")

        assert result.flagged is True
        assert result.category == Category.SPAM
        assert result.severity == LOCAL_FILTER_SEVERITY
        assert result.raw["matched"] == "discord.gg/"

    def test_multi_word_keyword(self):
        """Test phrase keyword matches as a substring."""
        result = local_filter("just go kill yourself already")

        assert result.category == Category.HARASSMENT
        assert result.raw["matched"] == "kill yourself"

    def test_case_insensitive(self):
        """Test uppercase content matches lowercase keywords."""
        result = local_filter("BIT.LY/FREE-NITRO")

        assert result.flagged is True
        assert result.category == Category.SPAM

    def test_substring_match_inside_word(self):
        """Test matching is substring-based, not word-based."""
        result = local_filter("my new diet plan")

        assert result.flagged is True
        assert result.category == Category.HARASSMENT
        assert result.raw["matched"] == "die"

    def test_clean_content(self):
        """Test content without keywords is not flagged."""
        result = local_filter("a peaceful landscape painting")

        assert result.flagged is False
        assert result.category == Category.OTHER
        assert result.severity == 0.0
        assert result.source == ModerationSource.LOCAL
        assert result.raw == {"fallback": True}

    def test_empty_string(self):
        """Test empty content is not flagged."""
        result = local_filter("")

        assert result.flagged is False
        assert result.category == Category.OTHER
        assert result.severity == 0.0


class TestLocalFilterOrdering:
    """Test first-match-wins ordering."""

    def test_first_category_in_table_wins(self):
        """Spam keyword appears first in text, but HATE_SPEECH is listed first in the table."""
        result = local_filter("tinyurl.com/xyz is run by a sexist")

        assert result.category == Category.HATE_SPEECH
        assert result.raw["matched"] == "sexist"

    def test_harassment_before_spam(self):
        """Test HARASSMENT is checked before SPAM."""
        result = local_filter("kys bit.ly/abc")

        assert result.category == Category.HARASSMENT

    def test_first_keyword_in_category_wins(self):
        """Test keyword order within a category decides the matched keyword."""
        result = local_filter("racist and hateful")

        assert result.raw["matched"] == "hate"

    def test_severity_constant_regardless_of_matches(self):
        """Test severity does not grow with the number of matches."""
        single = local_filter("racist")
        many = local_filter("racist sexist hate kys discord.gg/")

        assert single.severity == many.severity == LOCAL_FILTER_SEVERITY

    def test_default_table_categories(self):
        """Test the default table covers exactly the three keyword categories, in order."""
        assert list(DEFAULT_KEYWORD_TABLE) == [
            Category.HATE_SPEECH,
            Category.HARASSMENT,
            Category.SPAM,
        ]


class TestLocalFilterDeterminism:
    """Test the filter holds no hidden state."""

    @pytest.mark.parametrize("content", [
        "",
        "I hate you, you racist",
        "check this out discord.gg/abc123",
        "a peaceful landscape painting",
        "x" * 100_000,
    ])
    def test_idempotent(self, content):
        """Calling twice with identical input yields identical output."""
        first = local_filter(content)
        second = local_filter(content)

        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_custom_table(self):
        """Test a custom keyword table is honored."""
        custom = LocalFilter({Category.VIOLENCE: ["Stab"]})

        assert custom.filter("I will STAB").category == Category.VIOLENCE
        assert custom.filter("I hate this").flagged is False

    def test_custom_table_snapshot(self):
        """Test later mutation of the caller's table has no effect."""
        table = {Category.SPAM: ["buy now"]}
        custom = LocalFilter(table)
        table[Category.SPAM].append("free")

        assert custom.filter("free stuff").flagged is False
