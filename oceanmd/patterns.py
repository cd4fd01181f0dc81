"""
Pattern Engine

Turns pattern specs into compiled regular expressions and applies ordered
substitution passes over document text.

A spec is either a regex literal written as ``/source/flags`` or plain
text. Plain text is escaped first, so the placeholders ``{pg}``, ``{fn}``
and ``{*}`` are the only way it can introduce capturing groups:

    {pg}  page-number glyphs (Arabic and Roman numerals, capital O for zero)
    {fn}  footnote-id glyphs (optional letter prefix, digits, hyphens, asterisk)
    {*}   greedy wildcard

Replacement templates use ``$1``/``$&`` references so that rules stored in
existing documents keep working unchanged.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Iterable, Mapping, Optional, Pattern, Union

from .exceptions import PatternError

logger = logging.getLogger(__name__)

PG_EXP = r"([0-9MDCLXVIOmdclxvi]+)"
FN_EXP = r"([a-zA-Z]?[-0-9_Ol\*]+)"
STAR_EXP = r"(.+)"
DEFAULT_FLAGS = "gm"

REGEX_LITERAL = re.compile(r"^/([\s\S]+)/([gimsuy]*)$")
TEMPLATE_TOKEN = re.compile(r"\$(\$|&|`|'|\d{1,2})")

FLAG_VALUES = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}

Replacement = Union[str, Callable[[re.Match], str]]


@dataclass(frozen=True)
class Literal:
    """Plain text matched character for character."""
    text: str


@dataclass(frozen=True)
class Regex:
    """Regex source with explicit flags (``g`` means replace every match).

    Empty flags fall back to the caller's defaults.
    """
    source: str
    flags: str


PatternSpec = Union[Literal, Regex]


def parse_spec(spec: str) -> PatternSpec:
    """Classify a spec string as a regex literal or plain text."""
    match = REGEX_LITERAL.match(spec)
    if match:
        return Regex(match.group(1), match.group(2))
    return Literal(spec)


def _escape_literal(text: str) -> str:
    return re.escape(text)


def expand_placeholders(source: str, escaped: bool = False,
                        pg_exp: str = PG_EXP, fn_exp: str = FN_EXP,
                        star_exp: str = STAR_EXP) -> str:
    """Replace ``{pg}``, ``{fn}`` and ``{*}`` with their sub-patterns."""
    if escaped:
        names = (r"\{pg\}", r"\{fn\}", r"\{\*\}")
    else:
        names = ("{pg}", "{fn}", "{*}")
    for name, exp in zip(names, (pg_exp, fn_exp, star_exp)):
        source = source.replace(name, exp)
    return source


@dataclass(frozen=True)
class CompiledPattern:
    """A compiled spec plus whether it replaces every match or only the first."""
    regex: Pattern
    replace_all: bool = True

    def sub(self, replacement: Replacement, text: str) -> str:
        return self.regex.sub(as_replacer(replacement), text,
                              count=0 if self.replace_all else 1)

    def search(self, text: str) -> Optional[re.Match]:
        return self.regex.search(text)

    def finditer(self, text: str):
        if self.replace_all:
            return self.regex.finditer(text)
        match = self.regex.search(text)
        return iter([match] if match else [])


@lru_cache(maxsize=2048)
def _compile(spec: str, pre: str, post: str, default_flags: str,
             pg_exp: str, fn_exp: str, star_exp: str) -> CompiledPattern:
    parsed = parse_spec(spec)
    if isinstance(parsed, Regex):
        source = expand_placeholders(parsed.source, False, pg_exp, fn_exp, star_exp)
        flags = parsed.flags or default_flags
    else:
        source = expand_placeholders(_escape_literal(parsed.text), True,
                                     pg_exp, fn_exp, star_exp)
        flags = default_flags
    if pre or post:
        source = f"{pre}(?:{source}){post}"
    re_flags = 0
    for flag in flags:
        re_flags |= FLAG_VALUES.get(flag, 0)
    try:
        regex = re.compile(source, re_flags)
    except re.error as e:
        raise PatternError(spec, str(e)) from e
    return CompiledPattern(regex, "g" in flags)


def to_replacement(template: str) -> str:
    """Turn literal ``\\n`` and ``\\t`` sequences into real control characters."""
    return template.replace("\\n", "\n").replace("\\t", "\t")


def expand_template(template: str, match: re.Match) -> str:
    """Expand ``$n``, ``$nn``, ``$&``, ``$`` ``$'`` and ``$$`` against a match.

    ``$10`` means group 10 only when the pattern has ten groups, otherwise
    group 1 followed by a literal ``0``. Groups that did not participate
    expand to the empty string.
    """
    groups = match.re.groups

    def token(m):
        tok = m.group(1)
        if tok == "$":
            return "$"
        if tok == "&":
            return match.group(0)
        if tok == "`":
            return match.string[:match.start()]
        if tok == "'":
            return match.string[match.end():]
        if len(tok) == 2 and 0 < int(tok) <= groups:
            return match.group(int(tok)) or ""
        n = int(tok[0])
        if 0 < n <= groups:
            return (match.group(n) or "") + tok[1:]
        return m.group(0)

    return TEMPLATE_TOKEN.sub(token, template)


def as_replacer(replacement: Replacement) -> Callable[[re.Match], str]:
    if callable(replacement):
        return replacement
    template = to_replacement(replacement)
    if "$" not in template:
        return lambda match: template
    return lambda match: expand_template(template, match)


SearchSpec = Union[str, Pattern, Iterable[Union[str, Pattern]], Mapping[str, object]]


class PatternEngine:
    """
    Compiles specs with a fixed set of placeholder expansions and applies
    rule sets to text.

    Args:
        pg_exp: Sub-pattern for ``{pg}``
        fn_exp: Sub-pattern for ``{fn}``
        star_exp: Sub-pattern for ``{*}``
    """

    def __init__(self, pg_exp: str = PG_EXP, fn_exp: str = FN_EXP, star_exp: str = STAR_EXP):
        self.pg_exp = pg_exp or PG_EXP
        self.fn_exp = fn_exp or FN_EXP
        self.star_exp = star_exp or STAR_EXP

    def compile(self, spec, pre: str = "", post: str = "",
                default_flags: str = DEFAULT_FLAGS, rule_set: str = None) -> CompiledPattern:
        """
        Compile a spec into a regular expression.

        Args:
            spec: ``/source/flags`` regex literal, plain text, or a compiled pattern
            pre: Anchor placed before the pattern (e.g. ``^``)
            post: Anchor placed after the pattern (e.g. ``$``)
            default_flags: Flags used when the spec is plain text

        Raises:
            PatternError: If the resulting expression does not compile
        """
        if isinstance(spec, CompiledPattern):
            return spec
        if isinstance(spec, re.Pattern):
            return CompiledPattern(spec, True)
        try:
            return _compile(spec, pre, post, default_flags,
                            self.pg_exp, self.fn_exp, self.star_exp)
        except PatternError as e:
            if rule_set and not e.rule_set:
                raise PatternError(spec, str(e.__cause__ or e), rule_set) from e
            raise

    def test(self, text: str, spec, pre: str = "", post: str = "",
             default_flags: str = DEFAULT_FLAGS) -> bool:
        return self.compile(spec, pre, post, default_flags).search(text) is not None

    def replace(self, text: str, spec, replacement: Replacement, pre: str = "",
                post: str = "", default_flags: str = DEFAULT_FLAGS, rule_set: str = None) -> str:
        """Apply a single rule."""
        pattern = self.compile(spec, pre, post, default_flags, rule_set)
        result = pattern.sub(replacement, text)
        if result != text:
            logger.debug("%s: %r rewrote text", rule_set or "rule", spec)
        return result

    def apply_all(self, text: str, search: SearchSpec, replacement: Replacement = None,
                  pre: str = "", post: str = "", default_flags: str = DEFAULT_FLAGS,
                  rule_set: str = None) -> str:
        """
        Apply a rule set in declared order.

        With a single ``replacement`` every spec in ``search`` (one spec or a
        list) is replaced by it. With a mapping of spec to replacement, only
        entries whose replacement is a string (including ``""``) are applied;
        ``False`` disables a rule.
        """
        if not search:
            return text
        if isinstance(search, Mapping):
            for spec, repl in search.items():
                if repl is None or isinstance(repl, bool):
                    continue
                if not callable(repl):
                    repl = str(repl)
                text = self.replace(text, spec, repl, pre, post, default_flags, rule_set)
            return text
        if replacement is None:
            return text
        if isinstance(search, (str, re.Pattern, CompiledPattern)):
            search = [search]
        for spec in search:
            if spec:
                text = self.replace(text, spec, replacement, pre, post, default_flags, rule_set)
        return text
