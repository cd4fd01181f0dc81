"""
Converter registry.

Each converter is an ``OceanDocument`` subclass selected by the name
stored in the ``converter`` option.
"""

from ..exceptions import ConfigurationError
from .html_converter import HtmlConverter, TraversalContext
from .html_pre_converter import HtmlPreConverter
from .text_converter import TextConverter

CONVERTERS = {
    "text": TextConverter,
    "html": HtmlConverter,
    "htmlPre": HtmlPreConverter,
}

DEFAULT_CONVERTER = "text"


def get_converter(name: str):
    """
    Look up a converter class by name.

    Raises:
        ConfigurationError: If no converter has that name
    """
    try:
        return CONVERTERS[name or DEFAULT_CONVERTER]
    except KeyError:
        raise ConfigurationError(
            f"Unknown converter {name!r} (available: {', '.join(CONVERTERS)})") from None


__all__ = ["CONVERTERS", "get_converter", "TextConverter", "HtmlConverter",
           "HtmlPreConverter", "TraversalContext"]
