"""
Ocean Markdown - text and HTML to Ocean Markdown converter

Converts plain or OCR text, HTML files and web pages into Ocean Markdown
documents: a YAML front matter block with a fixed metadata schema,
followed by Markdown with page markers and footnotes.
"""

__version__ = "1.0.0"
