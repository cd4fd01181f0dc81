"""
Unit tests for paragraph and verse numbering.
"""

import pytest

from oceanmd.numbering import auto_number, from_roman, number_verses, words_to_number
from oceanmd.options import ConversionOptions


class TestNumberReading:
    """Tests for reading numbers from headings."""

    @pytest.mark.parametrize("text,expected", [
        ("IV", 4),
        ("XIV", 14),
        ("mcmxxi", 1921),
        ("?", None),
    ])
    def test_from_roman(self, text, expected):
        """Test Roman numeral values."""
        assert from_roman(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("one", 1),
        ("Twelfth", 12),
        ("twenty-first", 21),
        ("one hundred and five", 105),
        ("ninetieth", 90),
        ("many", None),
    ])
    def test_words_to_number(self, text, expected):
        """Test English cardinal and ordinal words."""
        assert words_to_number(text) == expected


class TestAutoNumber:
    """Tests for sequential paragraph numbers."""

    def test_matching_paragraphs_numbered(self, engine):
        """Test that only matching paragraphs get a number."""
        content = "Para one.\n\nPara two.\n\n# Heading"
        numbered = auto_number(content, "/^Para/", 1, engine)
        assert numbered == "Para one. {¶=1}\n\nPara two. {¶=2}\n\n# Heading"

    def test_start_number(self, engine):
        """Test numbering from a given start."""
        numbered = auto_number("A.\n\nB.", "/./", 10, engine)
        assert numbered == "A. {¶=10}\n\nB. {¶=11}"


class TestNumberVerses:
    """Tests for chapter and verse references."""

    def test_chapter_and_verse_references(self, engine):
        """Test verses numbered under chapters written as words."""
        opts = ConversionOptions.resolve({
            "chPattern": "/CHAPTER {*}/",
            "chNumberFromText": True,
            "vPattern": "/(\\d+) (.+)/",
            "vNumberPosition": "$1",
        })
        content = (
            "CHAPTER ONE\n\n1 In the beginning.\n\n2 Then more.\n\n"
            "CHAPTER TWO\n\n1 Again."
        )
        assert number_verses(content, opts, engine) == (
            "CHAPTER ONE\n\nIn the beginning. {¶=1.1}\n\nThen more. {¶=1.2}\n\n"
            "CHAPTER TWO\n\nAgain. {¶=2.1}"
        )

    def test_roman_chapter_headings(self, engine):
        """Test chapter headings rewritten with their Roman number read."""
        opts = ConversionOptions.resolve({
            "chPattern": "/^Chapter {*}$/",
            "chNumberFromRoman": True,
            "chReplacement": "## Chapter $1",
        })
        numbered = number_verses("Chapter IV\n\nText.", opts, engine)
        assert numbered == "## Chapter IV {¶=4}\n\nText."

    def test_nothing_configured(self, engine):
        """Test that content is untouched without patterns."""
        opts = ConversionOptions.resolve()
        assert number_verses("1 Text", opts, engine) == "1 Text"
