"""
YAML front matter: parsing, serialization and best-effort repair of
hand-edited blocks.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

from .exceptions import FrontMatterError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

# A block fenced with --- or 2-6 dots, starting at the top of the file.
CANDIDATE_PATTERN = re.compile(
    r"^([\s\S]*?)(?:\.{2,6}|---)\s*(\n[\s\S]+?\n*)(?:\s*\n\.{2,6}|---)\s*\n", re.M)

KEY = r"(?:[\w_]+|'[^']')"


@dataclass
class FrontMatterResult:
    """Result of splitting a document into front matter and body."""
    data: Dict[str, Any] = field(default_factory=dict)
    body: str = ""
    found: bool = False


def parse_front_matter(text: str) -> FrontMatterResult:
    """
    Split ``text`` into its front matter mapping and body.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping
    """
    text = text.lstrip("\ufeff")
    match = FRONT_MATTER_PATTERN.match(text)
    if not match:
        return FrontMatterResult(body=text)

    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(f"Front matter must be a mapping, got {type(data).__name__}")

    return FrontMatterResult(data=data, body=text[match.end():], found=True)


def dump_front_matter(meta: Dict[str, Any]) -> str:
    return yaml.safe_dump(meta, allow_unicode=True, sort_keys=False, default_flow_style=False)


def serialize_document(meta: Dict[str, Any], content: str) -> str:
    """Combine metadata and Markdown into the on-disk document format."""
    return f"---\n{dump_front_matter(meta)}---\n{content}"


def _split_list(match) -> str:
    indent, name, value = match.groups()
    items = f"\n{indent}  - ".join(value.split(","))
    return f"{indent}{name}:\n{indent}  - {items}"


def _fold_quoted(match) -> str:
    indent, key, value = match.groups()
    value = re.sub(r"'+", "'", value)
    return f"{indent}{key}: >-\n{indent}  {value}"


REPAIRS = [
    # lines that are only quotation marks (left behind by earlier repairs)
    (re.compile(rf"^( *)({KEY}): ['\"]('+)['\"]$", re.M), r"\1\2: >-\n\1  "),
    # several names on one line
    (re.compile(r"^( *)(author|translator): '?(.*[- á].*, .*[- á].*[^'])'?$", re.M), _split_list),
    # values containing apostrophes, quotes, brackets or colons
    (re.compile(rf"^( *)({KEY}): ['\"](.*)['\"]$", re.M), _fold_quoted),
    (re.compile(rf"^( *)({KEY}): (.*?['\"\[\]:].*)$", re.M), r"\1\2: >-\n\1  \3"),
    # keys without a value
    (re.compile(rf"^( *{KEY}): *\r?\n(?! {{2,}}(?:[\w_]+:|'|-))", re.M), r"\1: ''\n"),
    # values followed by unindented continuation lines
    (re.compile(rf"^({KEY}): (.{{3,}}\r?\n)(?![\w_]+: |'[^']': |---)", re.M), r"\1: |\n  \2"),
    (re.compile(r"^((?![\w_]+:[ \r\n]| '[^']':[ \r\n]|---)[^\s\r\n']+)", re.M), r"  \1"),
    # values wrapped in triple apostrophes
    (re.compile(r"^( +)'''(.+)\n(.+)'''", re.M), r"\1\2\3"),
]


def fix_front_matter(text: str) -> str:
    """
    Repair common mistakes in a hand-edited front matter block.

    Handles ``..``/``...`` fences, quoted values that contain quotes,
    comma-separated author lists, values with YAML special characters,
    empty values and unindented continuation lines. Text without a
    leading block is returned unchanged.
    """
    match = CANDIDATE_PATTERN.match(text)
    if not match or match.group(1) != "" or "\n\n" in match.group(2):
        return text

    block = f"---{match.group(2)}\n---\n".replace("\n\n", "\n", 1)
    for pattern, replacement in REPAIRS:
        block = pattern.sub(replacement, block)

    if block != match.group(0):
        logger.debug("Repaired front matter block")
    return text.replace(match.group(0), block, 1)
