"""
Unit tests for compiler settings.
"""

import pytest

from struct_grammar.settings import GrammarSettings, SampleSettings


class TestGrammarSettings:
    """Test grammar settings defaults and validation."""

    def test_defaults(self):
        """Test default values."""
        settings = GrammarSettings()

        assert settings.default_min_length == 1
        assert settings.default_max_length == 512
        assert settings.default_min_items == 0
        assert settings.default_max_items == 20
        assert settings.opening_delimiter == "⟨"
        assert settings.closing_delimiter == "⟩"
        assert settings.include_thinking is False
        assert settings.max_thinking_length == 1024
        assert settings.strict_formats is False
        assert settings.clamp_array_bounds is True

    def test_entry_rule(self):
        """Test that the entry rule follows the thinking flag."""
        assert GrammarSettings().entry_rule == "root"
        assert GrammarSettings(include_thinking=True).entry_rule == "thinking-root"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_min_length": 10, "default_max_length": 5},
            {"default_min_items": 3, "default_max_items": 2},
            {"default_min_length": -1},
            {"max_thinking_length": -1},
            {"opening_delimiter": "<<"},
            {"opening_delimiter": "|", "closing_delimiter": "|"},
            {"thinking_end": "END"},
            {"thinking_end": "<"},
            {"thinking_end": "<a<b>"},
            {"thinking_start": ""},
        ],
    )
    def test_invalid_values(self, kwargs):
        """Test that inconsistent settings are rejected."""
        with pytest.raises(ValueError):
            GrammarSettings(**kwargs)

    def test_frozen(self):
        """Test that settings are immutable."""
        settings = GrammarSettings()
        with pytest.raises(AttributeError):
            settings.default_max_length = 10


class TestSampleSettings:
    """Test sample settings validation."""

    def test_defaults(self):
        """Test default values."""
        settings = SampleSettings()

        assert settings.pretty_print is True
        assert settings.indent == "    "

    def test_invalid_indent(self):
        """Test that indentation must be whitespace."""
        with pytest.raises(ValueError, match="whitespace"):
            SampleSettings(indent="--")

    def test_invalid_delimiters(self):
        """Test delimiter checks."""
        with pytest.raises(ValueError):
            SampleSettings(opening_delimiter="[", closing_delimiter="[")
