"""
Sample sources and documents for use in tests.
"""

from oceanmd.exceptions import FetchError


# Indented OCR text with a page marker and a bracketed footnote
SAMPLE_OCR_TEXT = (
    "    This is a paragraph with a +P5 marker and a [1] footnote ref.\n"
    "    [1. This is the footnote text.]\n"
)

EXPECTED_OCR_CONTENT = (
    "This is a paragraph with a [pg 5] marker and a [^1] footnote ref.\n"
    "\n"
    "[^1]: This is the footnote text.\n"
)

SAMPLE_HTML_PAGE = """<html>
<head>
<title>The Book</title>
<meta name="author" content="Jane Doe">
</head>
<body><p>Hello <b>world</b>.</p></body>
</html>"""

SAMPLE_FOOTNOTE_HTML = (
    '<html><body>'
    '<p>Text<sup><a href="#fn1">1</a></sup>.</p>'
    '<ol><li id="fn1">The note. <a href="#fnref1">back</a></li></ol>'
    '</body></html>'
)

# A small site whose chapters link to each other and back to the index
BOOK_URL = "https://example.org/book/index.html"
CHAPTER_1_URL = "https://example.org/book/ch1.html"
CHAPTER_2_URL = "https://example.org/book/ch2.html"
OTHER_URL = "https://example.org/other.html"

BOOK_PAGES = {
    BOOK_URL: (
        "<html><head><title>Book</title></head><body>"
        "<a href='ch1.html'>Chapter 1</a> "
        "<a href='ch2.html'>Chapter 2</a> "
        "<a href='../other.html'>Elsewhere</a>"
        "</body></html>"
    ),
    CHAPTER_1_URL: (
        "<html><body><p>First chapter.</p>"
        "<a href='ch2.html'>next</a> <a href='index.html'>up</a>"
        "</body></html>"
    ),
    CHAPTER_2_URL: (
        "<html><body><p>Second chapter.</p>"
        "<a href='ch1.html'>prev</a>"
        "</body></html>"
    ),
}

SAMPLE_DOCUMENT_MD = """---
title: Hand Written
author: Jane Doe
---
    Indented +P3 text.
"""


class FakeFetcher:
    """In-memory stand-in for the HTTP fetcher; records every request."""

    def __init__(self, pages: dict = None):
        self.pages = dict(pages or {})
        self.calls = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.pages:
            raise FetchError(url, "404 Client Error: Not Found")
        page = self.pages[url]
        return page if isinstance(page, bytes) else page.encode("utf-8")
