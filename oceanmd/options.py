"""
Conversion options.

Each converter declares its options as a dataclass. Field names are
snake_case; the flat options surface (CLI flags, the ``_conversionOpts``
block stored in front matter, programmatic dicts) uses the camelCase
spelling of the same name. The field annotation is the option's type and
drives type-checked merging.
"""

from dataclasses import dataclass, field, fields
from functools import lru_cache
from typing import Dict, List, Mapping, get_origin, get_type_hints

from .exceptions import ConfigurationError
from .patterns import FN_EXP, PG_EXP, STAR_EXP


class _Clear:
    """Sentinel that resets an option to its type's zero value."""

    def __repr__(self):
        return "CLEAR"


CLEAR = _Clear()

ZERO_VALUES = {str: "", int: 0, bool: False, list: [], dict: {}}
TYPE_NAMES = {str: "string", int: "number", bool: "boolean", list: "array", dict: "object"}


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _type_name(value) -> str:
    for kind, name in TYPE_NAMES.items():
        if type(value) is kind:
            return name
    return type(value).__name__


def _zero(kind: type):
    value = ZERO_VALUES[kind]
    return value.copy() if isinstance(value, (list, dict)) else value


def _is_reset(value) -> bool:
    return value is CLEAR or value is False


def _check(key: str, value, kind: type):
    ok = isinstance(value, kind) and not (kind is int and isinstance(value, bool))
    if not ok:
        raise ConfigurationError(
            f"Wrong option type {_type_name(value)} for {key} (expected {TYPE_NAMES[kind]})"
        )


def merge_options(existing: dict, incoming: Mapping, types: Mapping[str, type]) -> dict:
    """
    Merge option values into ``existing`` in place and return it.

    Unknown keys are ignored. ``False`` (or ``CLEAR``) resets an option to
    the zero value of its type. A string merged into a list appends to it,
    lists concatenate, dicts update and scalars replace. Anything else of
    the wrong type raises ``ConfigurationError``.
    """
    for key, value in incoming.items():
        kind = types.get(key)
        if kind is None or value is None:
            continue
        if kind is not bool and _is_reset(value):
            existing[key] = _zero(kind)
            continue
        current = existing.get(key)
        if kind is list and isinstance(value, str):
            existing[key] = list(current or []) + [value]
            continue
        _check(key, value, kind)
        if kind is list:
            existing[key] = list(current or []) + list(value)
        elif kind is dict:
            existing[key] = {**(current or {}), **value}
        else:
            existing[key] = value
    return existing


def record_overrides(stored: dict, incoming: Mapping, types: Mapping[str, type]) -> dict:
    """
    Fold caller overrides into the options stored with a document.

    Works like ``merge_options`` except that resets are kept as ``False`` so
    they still apply when the stored block is merged over the defaults on
    a later reconversion, and list entries are not appended twice.
    """
    for key, value in incoming.items():
        kind = types.get(key)
        if kind is None or value is None:
            continue
        if kind is not bool and _is_reset(value):
            stored[key] = False
            continue
        current = stored.get(key)
        if current is False or current is None:
            current = None
        if kind is list:
            items = [value] if isinstance(value, str) else value
            _check(key, items, list)
            merged = list(current or [])
            merged.extend(item for item in items if item not in merged)
            stored[key] = merged
        elif kind is dict:
            _check(key, value, dict)
            stored[key] = {**(current or {}), **value}
        else:
            _check(key, value, kind)
            stored[key] = value
    return stored


# Shared rule tables

CLEANUP_PATTERNS = {
    "/\\r\\n?/": "\n",
    "/[ \\t]+$/": "",
    "/(\\d+)\xAD(\\d+)/": "$1-$2",
    "/[-\xAD]{2,}/": "--",
    " \xAD ": " - ",
}

BASE_PRE_PATTERNS = {
    "/ah([aá])(['`’‘])I/": "ah$1$2í",
}

BASE_POST_PATTERNS = {
    "/<[uU]>([CDGKSTZcdgkstz])([hH])<\\/[uU]>/": "$1_$2",
    "/\\n[\\n ]*\\n/": "\n\n",
}


@dataclass
class ConversionOptions:
    """Options shared by every converter."""

    converter: str = ""
    encoding: str = ""
    reconvert: bool = True
    skip: bool = False
    fix_meta: bool = False
    debug: bool = False

    correct_bahai_words: bool = True
    correct_soft_hyphens: bool = True

    pg_exp: str = PG_EXP
    fn_exp: str = FN_EXP
    star_exp: str = STAR_EXP

    cleanup_patterns: Dict[str, str] = field(default_factory=lambda: dict(CLEANUP_PATTERNS))
    pre_patterns: Dict[str, str] = field(default_factory=lambda: dict(BASE_PRE_PATTERNS))
    post_patterns: Dict[str, str] = field(default_factory=lambda: dict(BASE_POST_PATTERNS))

    auto_number_pattern: str = ""
    auto_number_start: int = 1

    footnotes_per_page: bool = False
    footnotes_per_page_exp: str = "/\\[pg {pg}\\]((?:(?!\\[pg)[\\s\\S])*?)\\[\\^{fn}\\]/m"
    footnotes_per_page_replacement: str = "[pg $1]$2[^fn_$1_$3]"
    multiline_footnotes: bool = False
    multiline_footnotes_exp: str = (
        "/^\\[\\^(fn_)?{fn}\\]: ((?:(?!\\n\\[|\\n\\* \\* \\*|\\n#)[\\s\\S])+)/gm"
    )
    footnotes_to_endnotes: bool = False
    remove_footnotes: bool = False
    condense_page_breaks: bool = False

    bk_pattern: str = ""
    bk_number_position: str = "$1"
    bk_number_from_text: bool = False
    bk_number_from_roman: bool = False
    bk_replacement: str = "$&"
    bk_separator: str = ":"

    ch_pattern: str = ""
    ch_number_position: str = "$1"
    ch_number_from_text: bool = False
    ch_number_from_roman: bool = False
    ch_replacement: str = "$&"
    ch_separator: str = "."

    v_pattern: str = ""
    v_number_position: str = ""
    v_number_from_text: bool = False
    v_number_from_roman: bool = False
    v_replacement: str = ""

    @classmethod
    def option_types(cls) -> Dict[str, type]:
        return _option_types(cls)

    @classmethod
    def defaults(cls) -> dict:
        """Default values keyed by camelCase option name."""
        return cls().to_dict()

    @classmethod
    def prepare_overrides(cls, overrides: Mapping) -> dict:
        """Hook for converters that rewrite caller options before merging."""
        return dict(overrides or {})

    @classmethod
    def resolve(cls, *layers: Mapping) -> "ConversionOptions":
        """Build options from the defaults with each layer merged in order."""
        types = cls.option_types()
        values = cls.defaults()
        for layer in layers:
            if layer:
                merge_options(values, layer, types)
        return cls(**{f.name: values[camel_case(f.name)] for f in fields(cls)})

    def to_dict(self) -> dict:
        return {camel_case(f.name): getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Look an option up by its camelCase name."""
        return self.to_dict().get(key, default)


@lru_cache(maxsize=None)
def _option_types(cls) -> Dict[str, type]:
    hints = get_type_hints(cls)
    types = {}
    for f in fields(cls):
        kind = hints[f.name]
        types[camel_case(f.name)] = get_origin(kind) or kind
    return types


# Text converter

TEXT_PRE_PATTERNS = {
    "/^\\s*<nd>\\s*$/": "\\n---\\n",
}

TEXT_POST_PATTERNS = {
    "/\\[pg (\\d*)O([\\dO]*)]/": "[pg $10$2]",
    "/\\[pg (\\d*)O(\\d*)]/": "[pg $10$2]",
}

FN_REF_PATTERNS = {
    "/\\[{fn}\\](\\s)/": "[^$1]$2",
    "+F{fn}": "[^$1]",
}

FN_TEXT_PATTERNS = {
    "/^>?[ \\t]*[\\[\\{]\\^?{fn}[\\]\\}] {*}/": "[^$1]: $2",
    "/^>?[ \\t]*\\[{fn}\\.? {*}\\]/": "[^$1]: $2",
    "/^>?[ \\t]*([0-9]+). \\[{*}\\]$/": "[^$1]: $2",
    "/^>?[ \\t]*\\.{10} ?\\[{fn}\\.? {*}\\]/": "[^$1]: $2",
}

PG_PATTERNS = {
    "|PPage_{pg}": "[pg $1]",
    "<p{pg}>": "[pg $1]",
    "+P{pg}": "[pg $1]",
    "/\\{\\{p?{pg}\\}\\}/": "[pg $1]",
    "+p": "[pg]",
    "+P": "[pg]",
}

END_PATTERNS = {
    "/(\\{ *| *\\})/": "_",
    "/^>* _[^_\\n]+$/": "$&_",
    "/^(>* )([^_\\n]+_)$/": "$1_$2",
    "/^>* _[^_\\n]+_[^_\\n]+_[^_\\n]+$/": "$&_",
}

# Replacement used when a single convenience pattern is folded into its map.
SINGLE_PATTERN_DEFAULTS = {
    "ch": "## $1",
    "fnRef": "[^$1]",
    "fnText": "[^$1]: $2",
    "pg": "[pg $1]",
}


@dataclass
class TextOptions(ConversionOptions):
    """Options for plain and OCR text."""

    converter: str = "text"

    pre_patterns: Dict[str, str] = field(
        default_factory=lambda: {**BASE_PRE_PATTERNS, **TEXT_PRE_PATTERNS})
    post_patterns: Dict[str, str] = field(
        default_factory=lambda: {**BASE_POST_PATTERNS, **TEXT_POST_PATTERNS})

    ch_patterns: Dict[str, str] = field(default_factory=dict)
    ch_replacement: str = "## $1"
    fn_ref_patterns: Dict[str, str] = field(default_factory=lambda: dict(FN_REF_PATTERNS))
    fn_ref_pattern: str = ""
    fn_ref_replacement: str = "[^$1]"
    fn_text_patterns: Dict[str, str] = field(default_factory=lambda: dict(FN_TEXT_PATTERNS))
    fn_text_pattern: str = ""
    fn_text_replacement: str = "[^$1]: $2"
    pg_patterns: Dict[str, str] = field(default_factory=lambda: dict(PG_PATTERNS))
    pg_pattern: str = ""
    pg_replacement: str = "[pg $1]"

    # continuation indent is stripped, first-line indent starts a paragraph
    p_indent: List[str] = field(default_factory=list)
    p_indent_first: List[str] = field(
        default_factory=lambda: ["\t", "/ {1,4}(?! )/", "/\\.{5}(?!\\.) ?/"])
    q_indent: List[str] = field(
        default_factory=lambda: ["/(>?) ?(?: {1,4}|\\t)/", "/(>?) ?\\.{10} ?/", "/(>) \\.{5} ?/"])
    q_indent_first: List[str] = field(default_factory=list)
    to_line_breaks: List[str] = field(
        default_factory=lambda: [
            "/^\\[?\\.\\]?\\s*\\[?\\.\\/\\/\\/?\\]?[ \\t]*/",
            "/^\\[?\\.\\/\\/\\/?\\]?\\s*\\[?\\.\\]?[ \\t]*/",
        ])
    end_patterns: Dict[str, str] = field(default_factory=lambda: dict(END_PATTERNS))

    @classmethod
    def prepare_overrides(cls, overrides: Mapping) -> dict:
        """Fold ``chPattern``-style single patterns into their pattern maps."""
        overrides = dict(overrides or {})
        for kind, default in SINGLE_PATTERN_DEFAULTS.items():
            pattern = overrides.pop(f"{kind}Pattern", None)
            if not pattern or not isinstance(pattern, str):
                continue
            rules = overrides.get(f"{kind}Patterns")
            rules = dict(rules) if isinstance(rules, dict) else {}
            rules[pattern] = overrides.get(f"{kind}Replacement") or default
            overrides[f"{kind}Patterns"] = rules
        return overrides


# HTML converters

@dataclass
class HtmlOptions(ConversionOptions):
    """Options for HTML pages."""

    converter: str = "html"

    content_element: str = "body"
    meta_elements: Dict[str, str] = field(
        default_factory=lambda: {"title": "title", "author": ""})
    remove_elements: List[str] = field(
        default_factory=lambda: ["script", "style", "noscript", "iframe"])
    convert_tables: bool = True
    convert_headerless_tables: bool = True
    collapse_table_cells: bool = True
    keep_hash_links: bool = True
    download_images: bool = False

    get_sub_links: bool = False
    sub_link_element: str = "a"
    sub_link_url_pattern: str = ""
    sub_link_text_pattern: str = ""
    sub_link_allow_parents: bool = False
    sub_link_depth: int = 1


@dataclass
class HtmlPreOptions(HtmlOptions):
    """HTML pages whose text sits in ``<pre>`` blocks."""

    converter: str = "htmlPre"
    content_element: str = "body pre"
