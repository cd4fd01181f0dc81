"""
Unit tests for the plain and OCR text converter.
"""

import pytest

from oceanmd.converters import TextConverter
from tests.fixtures import EXPECTED_OCR_CONTENT, SAMPLE_OCR_TEXT


class TestTextConverter:
    """Tests for TextConverter class."""

    @pytest.fixture
    def convert(self, empty_corrector):
        """Convert text and return the document."""
        def _convert(text, **options):
            return TextConverter(text, options=options, corrector=empty_corrector).convert()
        return _convert

    def test_ocr_page_and_footnote(self, convert):
        """Test indented OCR text with a page marker and a footnote."""
        doc = convert(SAMPLE_OCR_TEXT)
        assert doc.content == EXPECTED_OCR_CONTENT

    def test_word_count_matches_tokens(self, convert):
        """Test the word count of the converted OCR text."""
        doc = convert(SAMPLE_OCR_TEXT)
        doc.serialize()
        assert doc.meta["wordsCount"] == len(EXPECTED_OCR_CONTENT.split()) == 20

    def test_page_marker_styles(self, convert):
        """Test the built-in page marker notations."""
        doc = convert("Text +P12 more <p13> and |PPage_14 end.\n")
        assert doc.content == "Text [pg 12] more [pg 13] and [pg 14] end.\n"

    def test_letter_o_in_page_number(self, convert):
        """Test that an O read instead of a zero is repaired."""
        assert convert("Page +P1O here.\n").content == "Page [pg 10] here.\n"

    def test_tab_starts_paragraph(self, convert):
        """Test that a tab-indented line starts a new paragraph."""
        doc = convert("\tFirst para\ncontinued\n\tSecond\n")
        assert doc.content == "First para\ncontinued\n\nSecond\n"

    def test_deep_indent_is_quotation(self, convert):
        """Test that a line indented past the paragraph indent is quoted."""
        doc = convert("Para one.\n\n     quoted line\n")
        assert doc.content == "Para one.\n\n> quoted line\n"

    def test_braced_footnote_text(self, convert):
        """Test footnote texts written as {n}."""
        doc = convert("Body[1] text.\n\n{1} Note here\n")
        assert doc.content == "Body[^1] text.\n\n[^1]: Note here\n"

    def test_chapter_pattern(self, convert):
        """Test a chapter heading pattern."""
        doc = convert("CHAPTER ONE\n\nText.\n", chPattern="/^CHAPTER {*}$/")
        assert doc.content == "## ONE\n\nText.\n"
        assert doc.meta["_conversionOpts"]["chPatterns"] == {"/^CHAPTER {*}$/": "## $1"}

    def test_custom_page_pattern(self, convert):
        """Test a page pattern given on its own."""
        doc = convert("Text [[7]] more.\n", pgPattern="[[{pg}]]")
        assert doc.content == "Text [pg 7] more.\n"

    def test_disabled_rule(self, convert):
        """Test that a default rule can be turned off."""
        doc = convert("Text +P12 more.\n", pgPatterns={"+P{pg}": False, "+P": False})
        assert doc.content == "Text +P12 more.\n"

    def test_page_split_paragraph(self, convert):
        """Test condensing page breaks in OCR output."""
        doc = convert("    the end of a\n\n+P5\n\n    sentence goes on.\n", condensePageBreaks=True)
        assert doc.content == "the end of a [pg 5] sentence goes on.\n"
