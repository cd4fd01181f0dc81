"""
Ocean Markdown document.

A document holds the raw source text, the Markdown ``content`` produced
from it, its front matter ``meta`` and the resolved conversion options.
Conversion is one forward pass:

    load front matter → resolve options → cleanup → structural repair
    → metadata finalization → serialization

Converters subclass ``OceanDocument`` and override ``prepare_content``
and/or ``convert_structure``.
"""

import logging
import os
import re
from typing import Dict, List

from .autocorrect import default_corrector
from .frontmatter import fix_front_matter, parse_front_matter, serialize_document
from .metadata import check_metadata, merge_metadata, new_metadata
from .numbering import auto_number, number_verses
from .options import ConversionOptions, record_overrides
from .patterns import PatternEngine
from .wordlists import default_word_list, is_known_word

logger = logging.getLogger(__name__)

# Options that only affect a single run and are not stored with the document.
TRANSIENT_OPTIONS = {"debug", "fixMeta"}

SOFT_HYPHEN_WORD = re.compile(
    r"[\"“'\(\[_`‘]*(\S+\xAD\S+?)[\"“\)\]\*\+'`‘!?.,;:_\d]*(?!\S)")
SEPARATOR_RUN = re.compile(r"(\* \* \*\n\n+)+")
LEADING_JUNK = re.compile(r"\A(?:\s*\n|\s*\[pg [^\]]+\]\s*\n|\* \* \*\n)+")
BLANK_LINES = re.compile(r"\n\n+")

STANDALONE_PAGE_MARKER = "/( \\{[^\\}]*\\})*(\\n\\n\\* \\* \\*)*\\n\\n(\\[pg {pg}\\])\\n\\n/"
SPLIT_PARAGRAPH = "/([^\\n\\s])\\s*\\n[\\n\\s]*\\n\\[pg {pg}\\]\\n[\\n\\s]*\\n([^\\n\\s]+)/"
REPEATED_PAGE_MARKERS = "/(?:\\[pg {pg}\\][\\s\\n]+)+(\\[pg {pg}\\])/"
ENDNOTE = "/^\\[\\^fn_{fn}\\]:[\\s\\S]+?\\n(?=\\[(?:pg|\\^fn)|\\* \\* \\*)/"
FOOTNOTE_TEXT = "/^\\[\\^(?:fn_)?{fn}\\]:.+$(\\n[ \xA0]*\\n    .+)*\\n[ \xA0]*\\n/"
FOOTNOTE_REF = "/\\s?\\[\\^(?:fn_)?{fn}\\]/"


class OceanDocument:
    """
    Base document and conversion lifecycle.

    Args:
        text: Source text, optionally starting with a front matter block
        options: Caller option overrides (camelCase keys)
        meta: Caller metadata; only schema fields of the right type are kept
        front_matter: Metadata of an existing document being reconverted;
            ``text`` is then that document's body
        file_path: Path of the document on disk, used in messages
        word_list: Known words for soft-hyphen resolution
        corrector: Term corrector for the autocorrection pass
    """

    name = "text"
    options_class = ConversionOptions

    def __init__(self, text: str = "", options: dict = None, meta: dict = None,
                 front_matter: dict = None, file_path: str = None,
                 word_list=None, corrector=None):
        self.file_path = file_path
        self.word_list = word_list
        self.corrector = corrector
        self.content = ""
        self.images: List[str] = []
        self.meta_errors: List[str] = []
        self.errors: List[str] = []
        self.debug_info: Dict[str, List[str]] = {}

        overrides = self.options_class.prepare_overrides(options or {})
        self.load_front_matter(text, front_matter, fix=overrides.get("fixMeta") is True)
        merge_metadata(self.meta, meta or {})
        self.resolve_options(overrides)

    def load_front_matter(self, text: str, front_matter: dict = None, fix: bool = False):
        """
        Split off the front matter block and start the metadata record.

        When ``front_matter`` is given, ``text`` is an already-split body
        and is kept as it is.
        """
        if front_matter is not None:
            self.raw = text or ""
            self.meta = new_metadata(dict(front_matter))
            return
        if fix:
            text = fix_front_matter(text)
        parsed = parse_front_matter(text or "")
        self.raw = parsed.body
        self.meta = new_metadata(dict(parsed.data))

    def resolve_options(self, overrides: dict):
        """
        Merge defaults, the options stored with the document and the
        caller overrides. The overrides are also stored for reconversion.

        Raises:
            ConfigurationError: If an option has the wrong type
        """
        types = self.options_class.option_types()
        stored = {k: v for k, v in self.meta["_conversionOpts"].items() if k in types}
        persistent = {k: v for k, v in overrides.items() if k not in TRANSIENT_OPTIONS}
        record_overrides(stored, persistent, types)
        self.meta["_conversionOpts"] = stored
        transient = {k: v for k, v in overrides.items() if k in TRANSIENT_OPTIONS}
        self.options = self.options_class.resolve(stored, transient)
        self.engine = PatternEngine(self.options.pg_exp, self.options.fn_exp, self.options.star_exp)

    @property
    def debug(self) -> bool:
        return self.options.debug

    # Lifecycle

    def convert(self):
        """Run the conversion pipeline on ``raw``, replacing ``content``."""
        if self.options.skip:
            logger.info("Skipping %s", self.label)
            self.content = ""
            return self

        self.convert_content()
        self.finalize_metadata()
        return self

    def convert_content(self):
        """Produce ``content`` from ``raw`` without touching the metadata."""
        self.prepare_content()
        self.cleanup()
        self.repair_structure()
        return self

    def prepare_content(self):
        """Load ``raw`` into ``content``."""
        if not self.raw:
            self.report_missing_source()
            self.content = ""
            return self
        self.content = self.raw
        return self

    def report_missing_source(self):
        source = self.meta.get("_convertedFrom")
        if not source:
            logger.warning("%s has no content to convert", self.file_path or "Document")
            return
        folder = os.path.dirname(self.file_path) if self.file_path else "."
        message = (
            f'"{source}" does not exist on your system, and you have requested to reconvert it. '
            f"You can either:\n"
            f'    1. change the "_convertedFrom" metadata in "{self.file_path or "the document"}", or\n'
            f"    2. go to the folder where the document is and convert it again with this option:\n"
            f'    -p "{folder}"'
        )
        self.errors.append(message)
        logger.error(message)

    def use_existing_content(self):
        """Keep the body as it is, without converting it again."""
        self.content = self.raw
        return self

    def cleanup(self):
        """Line endings, trailing spaces, soft hyphens and pre-patterns."""
        opts = self.options
        self.content = self.engine.apply_all(self.content, opts.cleanup_patterns,
                                             rule_set="cleanupPatterns")
        self.content = self.engine.apply_all(self.content, opts.pre_patterns, rule_set="prePatterns")
        if opts.correct_soft_hyphens:
            self.correct_soft_hyphens()
        if opts.correct_bahai_words:
            self.correct_terms()
        return self

    def correct_soft_hyphens(self):
        """
        Resolve soft hyphens: drop them when the joined word is known,
        otherwise turn them into visible hyphens.
        """
        if "\xAD" not in self.content:
            return self
        word_list = self.word_list if self.word_list is not None else default_word_list()
        trace = []
        for fragment in SOFT_HYPHEN_WORD.findall(self.content):
            word = fragment.replace("\xAD", "")
            if not is_known_word(word, word_list):
                word = fragment.replace("\xAD", "-")
            self.content = self.content.replace(fragment, word, 1)
            trace.append(f"{fragment}\t{word}")
        logger.debug("Resolved %d soft-hyphenated words", len(trace))
        if self.debug:
            self.debug_info["softhyphens"] = trace
        return self

    def correct_terms(self):
        corrector = self.corrector or default_corrector()
        self.content, diff = corrector.correct(self.content)
        if self.debug:
            self.debug_info["bahai"] = diff
        return self

    def convert_structure(self):
        """Converter-specific rules; the base document has none."""
        return self

    def repair_structure(self):
        """Converter rules followed by the footnote, page and numbering passes."""
        self.convert_structure()

        opts = self.options
        if opts.auto_number_pattern:
            self.content = auto_number(self.content, opts.auto_number_pattern,
                                       opts.auto_number_start, self.engine)
        if opts.footnotes_per_page:
            self.footnotes_per_page()
        if opts.multiline_footnotes:
            self.multiline_footnotes()
        if opts.footnotes_to_endnotes:
            self.footnotes_to_endnotes()
        if opts.remove_footnotes:
            self.remove_footnotes()
        if opts.condense_page_breaks:
            self.condense_page_breaks()
        if opts.ch_pattern or (opts.v_pattern and opts.v_number_position):
            self.content = number_verses(self.content, opts, self.engine)

        content = SEPARATOR_RUN.sub("* * *\n\n", self.content)
        content = self.engine.replace(content, STANDALONE_PAGE_MARKER, " $3$1$2\n\n")
        content = LEADING_JUNK.sub("", content)
        content = self.engine.apply_all(content, opts.post_patterns, rule_set="postPatterns")
        self.content = BLANK_LINES.sub("\n\n", content)
        return self

    def footnotes_per_page(self):
        """Rename footnotes to ``fn_<page>_<id>`` after the preceding page marker."""
        pattern = self.engine.compile(self.options.footnotes_per_page_exp,
                                      rule_set="footnotesPerPageExp")
        while pattern.search(self.content):
            renamed = pattern.sub(self.options.footnotes_per_page_replacement, self.content)
            if renamed == self.content:
                break
            self.content = renamed
        return self

    def multiline_footnotes(self):
        pattern = self.engine.compile(self.options.multiline_footnotes_exp,
                                      rule_set="multilineFootnotesExp")

        def indent(match):
            prefix, label, text = match.group(1) or "", match.group(2) or "", match.group(3)
            return f"[^{prefix}{label}]: " + text.replace("\n", "\n    ")

        self.content = pattern.sub(indent, self.content)
        return self

    def footnotes_to_endnotes(self):
        pattern = self.engine.compile(ENDNOTE)
        for note in [m.group(0) for m in pattern.finditer(self.content)]:
            self.content = self.content.replace(note, "", 1) + "\n\n" + note
        return self

    def remove_footnotes(self):
        self.content = self.engine.replace(self.content, FOOTNOTE_TEXT, "")
        self.content = self.engine.replace(self.content, FOOTNOTE_REF, "")
        return self

    def condense_page_breaks(self):
        """Rejoin paragraphs that a page marker split mid-sentence."""

        def join(match):
            before, page, after = match.group(1), match.group(2), match.group(3)
            if before in ".?!:*=" or after[0] in "#*-0123456789":
                return match.group(0)
            return f"{before} [pg {page}] {after}"

        self.content = self.engine.compile(SPLIT_PARAGRAPH).sub(join, self.content)
        self.content = self.engine.replace(self.content, REPEATED_PAGE_MARKERS, "$2")
        return self

    def finalize_metadata(self):
        """Validate metadata against the final content."""
        self.content = self.content.strip("\n") + "\n" if self.content.strip() else ""
        self.meta_errors = check_metadata(self.meta, self.content, self.corrector or default_corrector())
        if self.meta_errors:
            logger.warning("Metadata errors in %s: %s", self.label, ", ".join(self.meta_errors))
        return self

    def serialize(self) -> str:
        """Front matter plus Markdown, after a final metadata check."""
        self.finalize_metadata()
        return serialize_document(self.meta, self.content)

    def __str__(self):
        return self.serialize()

    @property
    def label(self) -> str:
        return self.file_path or self.meta.get("_convertedFrom") or self.meta.get("title") or "document"

    def dump_state(self) -> dict:
        """Internal state for debugging failed conversions."""
        return {
            "converter": self.name,
            "file_path": self.file_path,
            "raw": f"{len(self.raw)} chars",
            "content": f"{len(self.content)} chars",
            "meta": {k: v for k, v in self.meta.items() if k != "_conversionOpts"},
            "options": self.options.to_dict(),
            "meta_errors": self.meta_errors,
            "debug_info": self.debug_info,
        }
