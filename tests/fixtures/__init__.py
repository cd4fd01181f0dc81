# Test fixtures
from .sample_documents import (
    SAMPLE_OCR_TEXT,
    EXPECTED_OCR_CONTENT,
    SAMPLE_HTML_PAGE,
    SAMPLE_FOOTNOTE_HTML,
    BOOK_URL,
    CHAPTER_1_URL,
    CHAPTER_2_URL,
    OTHER_URL,
    BOOK_PAGES,
    SAMPLE_DOCUMENT_MD,
    FakeFetcher,
)

__all__ = [
    "SAMPLE_OCR_TEXT",
    "EXPECTED_OCR_CONTENT",
    "SAMPLE_HTML_PAGE",
    "SAMPLE_FOOTNOTE_HTML",
    "BOOK_URL",
    "CHAPTER_1_URL",
    "CHAPTER_2_URL",
    "OTHER_URL",
    "BOOK_PAGES",
    "SAMPLE_DOCUMENT_MD",
    "FakeFetcher",
]
