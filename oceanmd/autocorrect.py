"""
Autocorrection of Bahá'í terms.

Each canonical spelling in ``resources/bahai_terms.json`` also matches its
variants without diacritics, with straight or curly apostrophes (or none)
and with spaces instead of hyphens. Matches are rewritten to the canonical
spelling.
"""

import json
import logging
import re
import unicodedata
from functools import lru_cache
from importlib import resources
from typing import List, Tuple

logger = logging.getLogger(__name__)

TERMS_PACKAGE = "oceanmd.resources"
TERMS_FILE = "bahai_terms.json"

APOSTROPHES = "'’‘`ʻʼ"
HYPHENS = "-‑"


def load_terms(filename: str = TERMS_FILE) -> List[str]:
    """Load the canonical term list shipped with the package."""
    resource = resources.files(TERMS_PACKAGE).joinpath(filename)
    data = json.loads(resource.read_text(encoding="utf-8"))
    return data.get("terms", [])


def term_pattern(term: str) -> re.Pattern:
    parts = []
    for char in term:
        if char in APOSTROPHES:
            parts.append(f"[{APOSTROPHES}]?")
        elif char in HYPHENS:
            parts.append(f"[{HYPHENS} ]")
        else:
            base = unicodedata.normalize("NFD", char)[0]
            if base != char:
                parts.append(f"[{re.escape(base)}{re.escape(char)}]")
            else:
                parts.append(re.escape(char))
    return re.compile(r"(?<!\w)" + "".join(parts) + r"(?!\w)")


def strip_underlines(text: str) -> str:
    """Remove underscores used to mark underlined transliteration digraphs."""
    return text.replace("_", "")


class TermCorrector:
    """Rewrites known terms to their canonical spelling."""

    def __init__(self, terms: List[str] = None):
        terms = load_terms() if terms is None else terms
        # longest first so compound names win over their parts
        ordered = sorted(terms, key=len, reverse=True)
        self.rules = [(term_pattern(term), term) for term in ordered]

    def correct(self, text: str) -> Tuple[str, List[str]]:
        """
        Correct every known term in ``text``.

        Returns:
            The corrected text and a list of ``"before → after"`` lines
        """
        diff = []
        for pattern, canonical in self.rules:
            def replace(match, canonical=canonical):
                found = match.group(0)
                if found != canonical:
                    line = f"{found} → {canonical}"
                    if line not in diff:
                        diff.append(line)
                return canonical
            text = pattern.sub(replace, text)
        if diff:
            logger.debug("Corrected terms: %s", "; ".join(diff))
        return text, diff

    def correct_name(self, text: str) -> str:
        """Correct a metadata name (author or title)."""
        corrected, _ = self.correct(text)
        return strip_underlines(corrected)


@lru_cache(maxsize=None)
def default_corrector() -> TermCorrector:
    return TermCorrector()
