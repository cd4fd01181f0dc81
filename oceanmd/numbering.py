"""
Paragraph numbering: automatic paragraph numbers and book/chapter/verse
markers of the form ``{¶=bk:ch.v}``.
"""

import re
from typing import Optional

from .patterns import PatternEngine, expand_template

ROMANS = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}

UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50, "sixty": 60,
    "seventy": 70, "eighty": 80, "ninety": 90,
}
ORDINALS = {
    "first": "one", "second": "two", "third": "three", "fourth": "four",
    "fifth": "five", "sixth": "six", "seventh": "seven", "eighth": "eight",
    "ninth": "nine", "twelfth": "twelve",
}
SCALES = {"hundred": 100, "thousand": 1000}

POSITION = re.compile(r"^(?:\$\d|auto)$")
PARAGRAPH_BREAK = re.compile(r"\n\n+")


def from_roman(text: str) -> Optional[int]:
    """Value of a Roman numeral; unknown characters count as zero."""
    total = 0
    last = 0
    for char in reversed(text):
        value = ROMANS.get(char.upper(), 0)
        if value < last:
            total -= value
        else:
            total += value
        last = value
    return total or None


def _cardinal(word: str) -> str:
    if word in ORDINALS:
        return ORDINALS[word]
    if word.endswith("ieth"):
        return word[:-4] + "y"
    if word.endswith("th"):
        return word[:-2]
    return word


def words_to_number(text: str) -> Optional[int]:
    """Read an English cardinal or ordinal number ("twenty-first" → 21)."""
    words = [_cardinal(w) for w in re.split(r"[\s-]+", text.lower().strip()) if w and w != "and"]
    if not words:
        return None
    total = 0
    current = 0
    for word in words:
        if word in UNITS:
            current += UNITS[word]
        elif word in TENS:
            current += TENS[word]
        elif word == "hundred":
            current = (current or 1) * 100
        elif word in SCALES:
            total += (current or 1) * SCALES[word]
            current = 0
        else:
            return None
    return total + current


def _read_number(value: str, from_text: bool, from_roman_numeral: bool) -> str:
    if from_text:
        number = words_to_number(value)
        return str(number) if number is not None else value
    if from_roman_numeral:
        number = from_roman(value)
        return str(number) if number is not None else value
    return value


def _paragraph_pattern(engine: PatternEngine, spec: str):
    """Compile ``spec`` to match a whole paragraph, with ``.`` spanning lines."""
    compiled = engine.compile(spec, "^", "$", "")
    return re.compile(compiled.regex.pattern, compiled.regex.flags | re.DOTALL)


def auto_number(content: str, pattern: str, start: int, engine: PatternEngine) -> str:
    """Append ``{¶=N}`` to every paragraph matching ``pattern``."""
    regex = engine.compile(pattern).regex
    number = start - 1
    paragraphs = []
    for paragraph in PARAGRAPH_BREAK.split(content):
        if regex.search(paragraph):
            number += 1
            body = paragraph.rstrip()
            paragraph = f"{body} {{¶={number}}}" + paragraph[len(body):]
        paragraphs.append(paragraph)
    return "\n\n".join(paragraphs)


def number_verses(content: str, opts, engine: PatternEngine) -> str:
    """
    Mark verses with ``{¶=bk:ch.v}`` references.

    Paragraphs are scanned in order. Book and chapter headings update the
    running numbers (read from a capture group, from number words or Roman
    numerals, or counted when the position is ``auto``); verses are
    numbered the same way. Without a verse pattern only chapter headings
    are rewritten.
    """
    if not opts.ch_pattern and not opts.v_pattern:
        return content

    number_books = bool(opts.bk_pattern and POSITION.match(opts.bk_number_position))
    number_chapters = bool(opts.ch_pattern and POSITION.match(opts.ch_number_position))

    if opts.v_pattern and POSITION.match(opts.v_number_position):
        return _number_paragraphs(content, opts, engine, number_books, number_chapters)

    if number_chapters and opts.ch_replacement and (
            opts.ch_replacement != "$&" or opts.ch_number_from_text or opts.ch_number_from_roman):
        if not opts.ch_number_from_text and not opts.ch_number_from_roman:
            return engine.replace(content, opts.ch_pattern, opts.ch_replacement, "^", "$",
                                  rule_set="chPattern")
        chapter = engine.compile(opts.ch_pattern, "^", "$")

        def heading(match):
            number = _read_number(expand_template(opts.ch_number_position, match),
                                  opts.ch_number_from_text, opts.ch_number_from_roman)
            text = expand_template(opts.ch_replacement, match)
            return f"{text} {{¶={number}}}"

        return chapter.sub(heading, content)
    return content


def _number_paragraphs(content, opts, engine, number_books, number_chapters) -> str:
    book_exp = _paragraph_pattern(engine, opts.bk_pattern) if number_books else None
    chapter_exp = _paragraph_pattern(engine, opts.ch_pattern) if number_chapters else None
    verse_exp = _paragraph_pattern(engine, opts.v_pattern)

    verse_replacement = opts.v_replacement
    if opts.v_number_position.startswith("$"):
        group = int(opts.v_number_position[1:])
        if not verse_replacement:
            verse_replacement = "".join(
                f"${i}" for i in range(1, verse_exp.groups + 1) if i != group)

    book, chapter, verse = "", "", 0
    paragraphs = []
    for paragraph in PARAGRAPH_BREAK.split(content):
        match = book_exp.match(paragraph) if book_exp else None
        if match:
            if opts.bk_number_position == "auto":
                book = str(int(book or 0) + 1)
            else:
                book = expand_template(opts.bk_number_position, match)
            book = _read_number(book, opts.bk_number_from_text, opts.bk_number_from_roman)
            if opts.bk_replacement and opts.bk_replacement != "$&":
                template = opts.bk_replacement.replace(opts.bk_number_position, book.replace("$", "$$"))
                paragraphs.append(expand_template(template, match))
                continue
        chapter_match = chapter_exp.match(paragraph) if chapter_exp else None
        verse_match = None if chapter_match else verse_exp.match(paragraph)
        if chapter_match:
            match = chapter_match
            if opts.ch_number_position == "auto":
                chapter = str(int(chapter or 0) + 1)
            else:
                chapter = expand_template(opts.ch_number_position, match)
            chapter = _read_number(chapter, opts.ch_number_from_text, opts.ch_number_from_roman)
            if opts.ch_replacement and opts.ch_replacement != "$&":
                template = opts.ch_replacement.replace(opts.ch_number_position, chapter.replace("$", "$$"))
                paragraphs.append(expand_template(template, match))
                continue
            if opts.v_number_position == "auto":
                verse = 0
        elif verse_match:
            match = verse_match
            if opts.v_number_position == "auto":
                verse = int(verse) + 1
            else:
                verse = expand_template(opts.v_number_position, match)
            verse = _read_number(str(verse), opts.v_number_from_text, opts.v_number_from_roman)
            reference = ""
            if book:
                reference += book + opts.bk_separator
            if chapter:
                reference += chapter + opts.ch_separator
            reference += str(verse)
            marker = f" {{¶={reference}}}".replace("$", "$$")
            paragraphs.append(expand_template(verse_replacement + marker, match))
            continue
        paragraphs.append(paragraph)
    return "\n\n".join(paragraphs)
