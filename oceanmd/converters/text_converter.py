"""
Plain and OCR text to Ocean Markdown.

Recovers structure from typographic conventions: indented first lines
start paragraphs, indented blocks become quotations, and configurable
pattern maps turn chapter headings, footnote references, footnote texts
and page markers into their Markdown forms.
"""

from ..document import OceanDocument
from ..options import TextOptions


class TextConverter(OceanDocument):
    """Converts plain or OCR text."""

    name = "text"
    options_class = TextOptions

    def convert_structure(self):
        opts = self.options
        apply = self.engine.apply_all

        content = apply(self.content, opts.p_indent, "", pre="^", rule_set="pIndent")
        content = apply(content, opts.p_indent_first, "\n\n", pre="^", rule_set="pIndentFirst")
        content = apply(content, opts.to_line_breaks, "\n", rule_set="toLineBreaks")

        content = apply(content, opts.ch_patterns, rule_set="chPatterns")
        content = apply(content, opts.fn_ref_patterns, rule_set="fnRefPatterns")
        content = apply(content, opts.fn_text_patterns, rule_set="fnTextPatterns")
        content = apply(content, opts.pg_patterns, rule_set="pgPatterns")

        content = apply(content, opts.q_indent, "$1> ", pre="^", rule_set="qIndent")
        content = apply(content, opts.q_indent_first, "\n\n> ", pre="^", rule_set="qIndentFirst")
        self.content = apply(content, opts.end_patterns, rule_set="endPatterns")
        return self
