"""
Word lists used to decide whether a soft-hyphenated word is a real word.

Any object supporting ``in`` works as a word list; the default one is an
English and French spell-checking dictionary.
"""

import logging
from functools import lru_cache

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES = ("en", "fr")


@lru_cache(maxsize=None)
def default_word_list():
    """Load the English/French dictionary (once per process)."""
    try:
        from spellchecker import SpellChecker
    except ImportError:
        raise RuntimeError("pyspellchecker is not installed. Run: pip install pyspellchecker")

    logger.debug("Loading word list for %s", ", ".join(DEFAULT_LANGUAGES))
    return SpellChecker(language=list(DEFAULT_LANGUAGES))


def is_known_word(word: str, word_list) -> bool:
    return word in word_list or word.lower() in word_list
