"""
Unit tests for front matter parsing, serialization and repair.
"""

import pytest

from oceanmd.exceptions import FrontMatterError
from oceanmd.frontmatter import (
    fix_front_matter,
    parse_front_matter,
    serialize_document,
)


class TestParseFrontMatter:
    """Tests for splitting documents."""

    def test_block_and_body(self):
        """Test a document with front matter."""
        result = parse_front_matter("---\ntitle: X\n---\nBody\n")
        assert result.found
        assert result.data == {"title": "X"}
        assert result.body == "Body\n"

    def test_no_block(self):
        """Test plain text without front matter."""
        result = parse_front_matter("Just text\n")
        assert not result.found
        assert result.data == {}
        assert result.body == "Just text\n"

    def test_empty_block(self):
        """Test an empty front matter block."""
        result = parse_front_matter("---\n---\nBody")
        assert result.found
        assert result.data == {}
        assert result.body == "Body"

    def test_byte_order_mark_ignored(self):
        """Test that a leading BOM does not hide the block."""
        result = parse_front_matter("\ufeff---\ntitle: X\n---\n")
        assert result.data == {"title": "X"}

    def test_invalid_yaml(self):
        """Test that broken YAML raises FrontMatterError."""
        with pytest.raises(FrontMatterError):
            parse_front_matter("---\ntitle: [unclosed\n---\nbody")

    def test_non_mapping(self):
        """Test that a YAML list is rejected."""
        with pytest.raises(FrontMatterError):
            parse_front_matter("---\n- a\n- b\n---\n")


class TestSerializeDocument:
    """Tests for writing documents."""

    def test_layout(self):
        """Test the fenced block followed by content."""
        text = serialize_document({"title": "Bahá’í", "priority": 10}, "x\n")
        assert text == "---\ntitle: Bahá’í\npriority: 10\n---\nx\n"

    def test_key_order_kept(self):
        """Test that keys are written in insertion order."""
        text = serialize_document({"b": 1, "a": 2}, "")
        assert text.index("b: 1") < text.index("a: 2")

    def test_parse_serialized(self):
        """Test that a serialized document parses back to the same data."""
        meta = {"title": "T", "author": ["A", "B"], "_conversionOpts": {"pIndent": ["x"]}}
        result = parse_front_matter(serialize_document(meta, "Body\n"))
        assert result.data == meta
        assert result.body == "Body\n"


class TestFixFrontMatter:
    """Tests for repairing hand-edited front matter."""

    def test_value_with_colon_and_apostrophe(self):
        """Test that a value with YAML special characters is folded."""
        text = "---\ntitle: God's Word: a study\nauthor: Someone\n---\nbody"
        with pytest.raises(FrontMatterError):
            parse_front_matter(text)

        result = parse_front_matter(fix_front_matter(text))
        assert result.data["title"] == "God's Word: a study"
        assert result.data["author"] == "Someone"
        assert result.body == "body"

    def test_valid_block_still_parses(self):
        """Test that repairing a valid block keeps its values."""
        text = "---\ntitle: Plain Title\nauthor: Someone\n---\nbody"
        result = parse_front_matter(fix_front_matter(text))
        assert result.data == {"title": "Plain Title", "author": "Someone"}

    def test_text_without_block_unchanged(self):
        """Test that text without a leading block is returned as is."""
        assert fix_front_matter("no front matter here\n") == "no front matter here\n"
