"""
Exception hierarchy for Ocean Markdown conversion.

Metadata validation problems are not exceptions: they are collected on
the document (``meta_errors``) so the file can still be written.
"""


class OceanMarkdownError(Exception):
    """Base class for all conversion errors."""
    pass


class ConfigurationError(OceanMarkdownError):
    """Raised when an option has the wrong type or a converter is unknown."""
    pass


class PatternError(OceanMarkdownError):
    """Raised when a pattern spec cannot be compiled."""

    def __init__(self, spec, reason, rule_set=None):
        self.spec = spec
        self.rule_set = rule_set
        where = f" in {rule_set}" if rule_set else ""
        super().__init__(f"Invalid pattern {spec!r}{where}: {reason}")


class FrontMatterError(OceanMarkdownError):
    """Raised when a front matter block cannot be parsed."""
    pass


class MissingSourceError(OceanMarkdownError):
    """Raised when a source path or URL cannot be resolved."""

    def __init__(self, source, message=None):
        self.source = source
        super().__init__(message or f"Source does not exist: {source}")


class ContentSelectorError(OceanMarkdownError):
    """Raised when the content selector matches nothing in an HTML page."""

    def __init__(self, url, selector):
        self.url = url
        self.selector = selector
        super().__init__(f'No content found for selector "{selector}" in {url or "<input>"}')


class FetchError(OceanMarkdownError):
    """Raised when a URL cannot be fetched."""

    def __init__(self, url, reason):
        self.url = url
        super().__init__(f"Could not fetch {url}: {reason}")
