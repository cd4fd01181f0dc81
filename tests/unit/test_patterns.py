"""
Unit tests for the pattern engine.
"""

import re

import pytest

from oceanmd.exceptions import PatternError
from oceanmd.patterns import (
    PG_EXP,
    Literal,
    Regex,
    PatternEngine,
    expand_placeholders,
    expand_template,
    parse_spec,
    to_replacement,
)


class TestParseSpec:
    """Tests for classifying pattern specs."""

    def test_regex_literal(self):
        """Test that /source/flags is read as a regex."""
        assert parse_spec("/a+b/gi") == Regex("a+b", "gi")

    def test_regex_without_flags(self):
        """Test a regex literal with no flags."""
        assert parse_spec("/x/") == Regex("x", "")

    def test_plain_text(self):
        """Test that anything else is plain text."""
        assert parse_spec("+P{pg}") == Literal("+P{pg}")

    def test_single_slash_is_text(self):
        """Test that a lone slash is not a regex."""
        assert parse_spec("/") == Literal("/")


class TestPlaceholders:
    """Tests for placeholder expansion."""

    def test_expands_every_occurrence(self):
        """Test that repeated placeholders are all expanded."""
        source = expand_placeholders("{pg}-{pg}")
        assert source == f"{PG_EXP}-{PG_EXP}"

    def test_escaped_placeholders(self):
        """Test expansion inside escaped plain text."""
        source = expand_placeholders(re.escape("+P{pg}"), escaped=True)
        assert source.endswith(PG_EXP)

    def test_custom_expressions(self):
        """Test that the engine uses its own sub-patterns."""
        engine = PatternEngine(pg_exp=r"(\d+)")
        assert engine.replace("+P12x", "+P{pg}", "[pg $1]") == "[pg 12]x"


class TestPatternEngine:
    """Tests for PatternEngine compile, test and replace."""

    def test_plain_text_is_literal(self, engine):
        """Test that plain text specs match characters literally."""
        assert engine.test("a.b", "a.b")
        assert not engine.test("axb", "a.b")

    def test_plain_text_with_placeholder(self, engine):
        """Test a page marker spec with a placeholder."""
        assert engine.replace("+P12 text", "+P{pg}", "[pg $1]") == "[pg 12] text"

    def test_footnote_placeholder_captures(self, engine):
        """Test that {fn} becomes a capturing group for footnote labels."""
        assert engine.replace("Note+Fa-3 here", "+F{fn}", "[^$1]") == "Note[^a-3] here"

    def test_star_placeholder_captures(self, engine):
        """Test that {*} captures the text between its neighbours."""
        assert engine.replace("XabcY", "X{*}Y", "<$1>") == "<abc>"

    def test_placeholders_keep_their_order(self, engine):
        """Test group numbering when several placeholders are used."""
        assert engine.replace("+P7 +F2", "+P{pg} +F{fn}", "$2/$1") == "2/7"

    def test_escaped_control_characters_in_replacement(self, engine):
        """Test that \\n and \\t in replacements become real characters."""
        assert engine.replace("a b", " ", "\\n") == "a\nb"
        assert engine.replace("a b", " ", "\\t") == "a\tb"

    def test_regex_defaults_to_global(self, engine):
        """Test that a regex without flags replaces every match."""
        assert engine.replace("a a", "/a/", "b") == "b b"

    def test_regex_without_g_replaces_first(self, engine):
        """Test that explicit flags without g replace only the first match."""
        assert engine.replace("a a", "/a/m", "b") == "b a"

    def test_anchor_wraps_alternation(self, engine):
        """Test that anchors apply to the whole pattern."""
        text = "xa\nb"
        assert engine.replace(text, "/a|b/", "_", pre="^") == "xa\n_"

    def test_invalid_regex_names_rule_set(self, engine):
        """Test that a broken pattern reports the rule set it came from."""
        with pytest.raises(PatternError) as exc:
            engine.replace("x", "/(/", "y", rule_set="prePatterns")
        assert exc.value.rule_set == "prePatterns"
        assert "prePatterns" in str(exc.value)

    def test_compiled_pattern_passthrough(self, engine):
        """Test that precompiled patterns are used as given."""
        assert engine.replace("abc", re.compile("b"), "-") == "a-c"

    def test_callable_replacement(self, engine):
        """Test replacing with a function."""
        assert engine.replace("a1 a2", "/a(\\d)/", lambda m: m.group(1) * 2) == "11 22"


class TestApplyAll:
    """Tests for applying rule sets."""

    def test_mapping_in_order(self, engine):
        """Test that mapping rules run in declared order."""
        rules = {"a": "b", "b": "c"}
        assert engine.apply_all("a", rules) == "c"

    def test_false_disables_rule(self, engine):
        """Test that a False replacement skips the rule."""
        assert engine.apply_all("abc", {"a": "x", "b": False}) == "xbc"

    def test_empty_string_deletes(self, engine):
        """Test that an empty replacement removes matches."""
        assert engine.apply_all("a-b", {"-": ""}) == "ab"

    def test_list_with_single_replacement(self, engine):
        """Test a list of specs sharing one replacement."""
        assert engine.apply_all("a-b_c", ["-", "_"], " ") == "a b c"

    def test_line_anchor(self, engine):
        """Test rules anchored to line starts."""
        assert engine.apply_all("  x\n  y", ["  "], "", pre="^") == "x\ny"

    def test_empty_search(self, engine):
        """Test that an empty rule set leaves text alone."""
        assert engine.apply_all("text", {}) == "text"
        assert engine.apply_all("text", [], "x") == "text"


class TestExpandTemplate:
    """Tests for $-template expansion."""

    def _match(self, pattern, text):
        return re.search(pattern, text)

    def test_numbered_groups(self):
        """Test $1 and $2."""
        match = self._match(r"(\w+) (\w+)", "hello world")
        assert expand_template("$2 $1", match) == "world hello"

    def test_whole_match_and_dollar(self):
        """Test $& and $$."""
        match = self._match(r"\d+", "cost 42")
        assert expand_template("$$$&", match) == "$42"

    def test_two_digit_falls_back_to_one(self):
        """Test that $10 is group 1 then 0 when there are fewer groups."""
        match = self._match(r"(\d)", "7")
        assert expand_template("$10", match) == "70"

    def test_page_letter_o_repair(self, engine):
        """Test the OCR repair of O read instead of 0 in page numbers."""
        fixed = engine.replace("[pg 1O]", "/\\[pg (\\d*)O([\\dO]*)]/", "[pg $10$2]")
        assert fixed == "[pg 10]"

    def test_to_replacement(self):
        """Test the conversion of escaped newlines and tabs."""
        assert to_replacement("a\\nb\\tc") == "a\nb\tc"
        assert to_replacement("plain $1") == "plain $1"

    def test_missing_group_is_empty(self):
        """Test that groups that did not take part expand to nothing."""
        match = self._match(r"(a)|(b)", "b")
        assert expand_template("[$1|$2]", match) == "[|b]"
