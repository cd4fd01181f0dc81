"""
HTML to Ocean Markdown.

Pages are parsed with BeautifulSoup and rendered with a markdownify
converter whose table, link, image, list, rule and footnote handling is
adapted to Ocean Markdown. A page can pull in its linked sub-pages
(chapters of a book spread over several URLs) and aggregate them into
one document.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Set
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from markdownify import ATX, MarkdownConverter

from ..document import OceanDocument
from ..exceptions import ContentSelectorError, FetchError
from ..options import HtmlOptions
from ..sources import decode_bytes, image_file_name, is_url

logger = logging.getLogger(__name__)

SUB_PAGE_SEPARATOR = "\n\n* * *\n\n"
FOOTNOTE_ID = re.compile(r"^fn[-_:]?(\w+)$")
FOOTNOTE_BACKREF = re.compile(r"^#fn-?ref", re.I)
SEPARATOR_ROW = re.compile(r"^\|(?:\s*:?-+:?\s*\|)+\s*$")
LINE_WITH_CONTENT = re.compile(r"^(.+)$", re.M)


@dataclass
class TraversalContext:
    """
    State shared by one recursive sub-page traversal.

    ``visited`` holds every URL already claimed in the run; ``depth`` is
    the number of hops still allowed below the current page.
    """
    depth: int
    visited: Set[str] = field(default_factory=set)

    def visit(self, url: str) -> bool:
        """Claim ``url``; False when it was already visited."""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True

    def descend(self) -> "TraversalContext":
        return TraversalContext(self.depth - 1, self.visited)


class OceanMarkdownConverter(MarkdownConverter):
    """markdownify rules for Ocean Markdown output."""

    def __init__(self, base_url: str = "", keep_hash_links: bool = True,
                 convert_tables: bool = True, headerless_tables: bool = True,
                 collapse_cells: bool = True, download_images: bool = False, **options):
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        super().__init__(**options)
        self.base_url = base_url
        self.keep_hash_links = keep_hash_links
        self.convert_tables = convert_tables
        self.headerless_tables = headerless_tables
        self.collapse_cells = collapse_cells
        self.download_images = download_images
        self.images: List[str] = []

    def absolute(self, url: str) -> str:
        return urljoin(self.base_url, url) if self.base_url else url

    def convert_a(self, el, text, parent_tags):
        href = el.get("href")
        if not href:
            return text
        if FOOTNOTE_BACKREF.match(href) or "footnote-back" in (el.get("class") or []):
            return ""
        if href.startswith("#"):
            if not self.keep_hash_links:
                return text
        else:
            el["href"] = self.absolute(href)
        return super().convert_a(el, text, parent_tags)

    def convert_img(self, el, text, parent_tags):
        src = el.get("src")
        if src:
            src = self.absolute(src)
            if self.download_images and is_url(src):
                if src not in self.images:
                    self.images.append(src)
                src = image_file_name(src)
            el["src"] = src
        return super().convert_img(el, text, parent_tags)

    def convert_hr(self, el, text, parent_tags):
        return "\n\n* * *\n\n"

    def convert_sup(self, el, text, parent_tags):
        links = el.find_all("a")
        if len(links) == 1 and (links[0].get("href") or "").startswith("#"):
            label = links[0].get_text(strip=True).strip("[]()")
            if label:
                return f"[^{label}]"
        return super().convert_sup(el, text, parent_tags)

    def convert_li(self, el, text, parent_tags):
        found = FOOTNOTE_ID.match(el.get("id") or "")
        if found:
            text = LINE_WITH_CONTENT.sub(r"    \1", (text or "").strip())
            return f"\n\n[^{found.group(1)}]: {text.lstrip()}\n\n"
        return super().convert_li(el, text, parent_tags)

    def convert_list(self, el, text, parent_tags):
        parent = el.parent
        if parent is not None and parent.name in ("ul", "ol"):
            # list nested directly in a list belongs to the preceding item
            item = el.find_previous_sibling("li")
            width = len(self.bullet_for(item)) if item is not None else 2
            indent = " " * width
            return "\n" + LINE_WITH_CONTENT.sub(lambda m: indent + m.group(1), text.strip("\n")) + "\n"
        return super().convert_list(el, text, parent_tags)

    convert_ul = convert_list
    convert_ol = convert_list

    def bullet_for(self, item) -> str:
        parent = item.parent
        if parent is not None and parent.name == "ol":
            start = str(parent.get("start") or "1")
            start = int(start) if start.isnumeric() else 1
            return f"{start + len(item.find_previous_siblings('li'))}. "
        return "- "

    # Tables

    def convert_table(self, el, text, parent_tags):
        if not self.convert_tables:
            return "\n\n" + text.strip() + "\n\n"
        if not re.sub(r"[\s|:-]", "", text):
            return ""
        if not self.headerless_tables and not (el.find("th") or el.find("thead")):
            return "\n\n" + str(el) + "\n\n"

        rows = [row for row in text.strip().split("\n") if row.strip()]
        if len(rows) < 2 or not SEPARATOR_ROW.match(rows[1]):
            columns = max(rows[0].count("|") - 1, 1)
            rows = ["|   " * columns + "|", "| - " * columns + "|"] + rows
        return "\n\n" + "\n".join(rows) + "\n\n"

    def convert_tr(self, el, text, parent_tags):
        if not self.convert_tables:
            return text
        return super().convert_tr(el, text, parent_tags)

    def convert_td(self, el, text, parent_tags):
        if not self.convert_tables:
            return "\n\n" + text.strip() + "\n\n"
        if not self.collapse_cells:
            text = re.sub(r"\s*\n\s*", "<br>", text.strip())
        return super().convert_td(el, text, parent_tags)

    def convert_th(self, el, text, parent_tags):
        if not self.convert_tables:
            return "\n\n" + text.strip() + "\n\n"
        if not self.collapse_cells:
            text = re.sub(r"\s*\n\s*", "<br>", text.strip())
        return super().convert_th(el, text, parent_tags)


class HtmlConverter(OceanDocument):
    """
    Converts HTML pages.

    Args:
        fetcher: Object with ``fetch(url) -> bytes`` used for sub-pages
        context: Traversal state inherited from a parent page
    """

    name = "html"
    options_class = HtmlOptions

    def __init__(self, text: str = "", options: dict = None, meta: dict = None,
                 front_matter: dict = None, file_path: str = None, word_list=None,
                 corrector=None, fetcher=None, context: Optional[TraversalContext] = None):
        super().__init__(text, options, meta, front_matter, file_path, word_list, corrector)
        self.fetcher = fetcher
        self.sub_documents: Optional[List[OceanDocument]] = None

        source = self.meta.get("sourceUrl") or self.meta.get("_convertedFrom") or ""
        self.url = source if is_url(source) else ""
        if self.url and not self.meta.get("sourceUrl"):
            self.meta["sourceUrl"] = self.url

        self.is_sub_page = context is not None
        self.context = context or TraversalContext(self.options.sub_link_depth)
        if self.url:
            self.context.visit(self.url)

        self.soup = BeautifulSoup(self.raw, "html.parser")
        for selector in self.options.remove_elements:
            for tag in self.soup.select(selector):
                tag.decompose()
        self.extract_meta()

    def extract_meta(self):
        """Fill empty metadata fields from the configured page elements."""
        for key, selector in self.options.meta_elements.items():
            if not selector or self.meta.get(key):
                continue
            node = self.soup.select_one(selector)
            if node is None:
                continue
            if node.name == "meta":
                value = (node.get("content") or "").strip()
            else:
                value = node.get_text(" ", strip=True)
            if value:
                self.meta[key] = value
        return self

    def markdown_converter(self) -> OceanMarkdownConverter:
        opts = self.options
        return OceanMarkdownConverter(
            base_url=self.url,
            keep_hash_links=opts.keep_hash_links,
            convert_tables=opts.convert_tables,
            headerless_tables=opts.convert_headerless_tables,
            collapse_cells=opts.collapse_table_cells,
            download_images=opts.download_images,
        )

    def content_nodes(self):
        """
        Raises:
            ContentSelectorError: If the content selector matches nothing
        """
        nodes = self.soup.select(self.options.content_element)
        if not nodes:
            raise ContentSelectorError(self.url, self.options.content_element)
        return nodes

    def render(self, nodes) -> str:
        converter = self.markdown_converter()
        parts = [converter.process_tag(node, parent_tags=set()).strip("\n") for node in nodes]
        for url in converter.images:
            if url not in self.images:
                self.images.append(url)
        return "\n\n".join(p for p in parts if p)

    def prepare_content(self):
        if not self.raw:
            self.report_missing_source()
            self.content = ""
            return self

        if self.options.get_sub_links and self.context.depth > 0:
            pages = [doc.content.strip("\n") for doc in self.load_sub_documents()]
            pages = [page for page in pages if page]
            if pages:
                # a sub-page keeps its own text ahead of its children
                if self.is_sub_page:
                    pages.insert(0, self.render(self.content_nodes()))
                self.content = SUB_PAGE_SEPARATOR.join(page for page in pages if page)
                return self

        self.content = self.render(self.content_nodes())
        return self

    # Sub-pages

    def discover_sub_links(self) -> List[str]:
        """Absolute sub-page URLs in the order they appear on the page."""
        opts = self.options
        links = []
        for element in self.soup.select(opts.sub_link_element):
            anchors = [element] if element.name == "a" else element.select("a[href]")
            for anchor in anchors:
                href = anchor.get("href")
                if not href:
                    continue
                if opts.sub_link_text_pattern and not self.engine.test(
                        anchor.get_text(" ", strip=True), opts.sub_link_text_pattern):
                    continue
                url, _ = urldefrag(urljoin(self.url, href))
                if not is_url(url) or url == self.url or url in links:
                    continue
                if opts.sub_link_url_pattern and not self.engine.test(url, opts.sub_link_url_pattern):
                    continue
                if not opts.sub_link_allow_parents and not self.is_below(url):
                    continue
                links.append(url)
        return links

    def is_below(self, url: str) -> bool:
        """True when ``url`` is on the same host, inside this page's folder."""
        if not self.url:
            return False
        here, there = urlparse(self.url), urlparse(url)
        if (here.scheme, here.netloc) != (there.scheme, there.netloc):
            return False
        folder = here.path[:here.path.rfind("/") + 1] or "/"
        return there.path.startswith(folder)

    def load_sub_documents(self) -> List[OceanDocument]:
        """
        Fetch and convert sub-pages one at a time, in discovery order.

        A sub-page that cannot be fetched or has no content stops the
        traversal; the pages converted before it are kept.
        """
        if self.sub_documents is not None:
            return self.sub_documents
        self.sub_documents = []

        from . import get_converter

        if self.fetcher is None:
            from ..sources import CachedFetcher
            self.fetcher = CachedFetcher()

        converter_class = get_converter(self.name)
        options = dict(self.meta["_conversionOpts"], debug=self.options.debug)
        child_context = self.context.descend()

        for url in self.discover_sub_links():
            if not self.context.visit(url):
                continue
            logger.debug("Sub-page %s", url)
            try:
                text, _ = decode_bytes(self.fetcher.fetch(url))
                child = converter_class(
                    text, options=options, meta={"sourceUrl": url, "_convertedFrom": url},
                    word_list=self.word_list, corrector=self.corrector,
                    fetcher=self.fetcher, context=child_context,
                )
                child.convert_content()
            except (ContentSelectorError, FetchError) as e:
                logger.error("Sub-page failed, keeping %d earlier pages: %s", len(self.sub_documents), e)
                self.errors.append(str(e))
                break
            self.errors.extend(child.errors)
            for image in child.images:
                if image not in self.images:
                    self.images.append(image)
            self.sub_documents.append(child)
        return self.sub_documents
