"""HTML pages whose text is kept in ``<pre>`` blocks."""

from ..options import HtmlPreOptions
from .html_converter import HtmlConverter


class HtmlPreConverter(HtmlConverter):
    """Converts preformatted text wrapped in HTML."""

    name = "htmlPre"
    options_class = HtmlPreOptions

    def render(self, nodes) -> str:
        # the text is already laid out; keep its line breaks
        return "\n\n".join(node.get_text().strip("\n") for node in nodes)
