"""
Ocean Convert Batch Driver

Resolves each input (a source file, an existing Ocean Markdown document
or a URL), picks its converter, runs the conversion and writes the
result. Inputs are processed by a small worker pool; a failing input is
logged and the batch moves on.
"""

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .converters import get_converter
from .exceptions import MissingSourceError
from .frontmatter import fix_front_matter, parse_front_matter
from .sources import (
    CachedFetcher,
    decode_bytes,
    download_images,
    extract_meta_from_name,
    is_url,
    url_to_filename,
)

logger = logging.getLogger(__name__)

MAX_WORKERS = 4
HTML_EXTENSIONS = {".html", ".htm", ".xhtml"}


@dataclass
class ConversionResult:
    """Outcome of converting one input."""
    source: str
    output: Optional[str] = None
    text: str = ""
    meta_errors: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return bool(self.error or self.errors or self.meta_errors)


def guess_converter(source: str) -> str:
    if is_url(source) or Path(source).suffix.lower() in HTML_EXTENSIONS:
        return "html"
    return "text"


class OceanConvert:
    """
    Converts files and URLs to Ocean Markdown documents.

    Args:
        options: Conversion option overrides (camelCase keys)
        meta: Metadata applied to every document
        output_dir: Write documents here instead of next to their source
        same_folder: Write ``<stem>.md`` next to each source file
        extract_meta: Read author and title from ``Author, Title.ext`` names
        fetcher: Object with ``fetch(url) -> bytes``; a cached HTTP fetcher
            is created on first use when omitted
    """

    def __init__(self, options: dict = None, meta: dict = None, output_dir: str = None,
                 same_folder: bool = False, extract_meta: bool = False, fetcher=None,
                 word_list=None, corrector=None, max_workers: int = MAX_WORKERS):
        self.options = dict(options or {})
        self.meta = dict(meta or {})
        self.output_dir = Path(output_dir) if output_dir else None
        self.same_folder = same_folder
        self.extract_meta = extract_meta
        self.word_list = word_list
        self.corrector = corrector
        self.max_workers = max_workers
        self._fetcher = fetcher

    @property
    def fetcher(self):
        if self._fetcher is None:
            self._fetcher = CachedFetcher()
        return self._fetcher

    @property
    def to_stdout(self) -> bool:
        return self.output_dir is None and not self.same_folder

    def status(self, message: str):
        print(message, file=sys.stderr if self.to_stdout else sys.stdout)

    def run(self, sources: Iterable[str]) -> List[ConversionResult]:
        """Convert every source with at most ``max_workers`` in flight."""
        sources = [s.strip() for s in sources if s and s.strip()]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(self.convert, sources))

    def convert(self, source: str) -> ConversionResult:
        """
        Convert a single source.

        Errors are logged and recorded on the result; with the ``debug``
        option they are re-raised after the document state is logged.
        """
        result = ConversionResult(source)
        doc = None
        try:
            doc = self.build(source)
            result.text = doc.serialize()
            result.meta_errors = list(doc.meta_errors)
            result.errors = list(doc.errors)
            result.output = self.write(source, doc, result.text)
        except Exception as e:
            if self.options.get("debug"):
                logger.exception("%s: %s", source, e)
                if doc is not None:
                    logger.error("Document state: %s", doc.dump_state())
                raise
            logger.error("%s: %s", source, e)
            result.error = str(e)
        return result

    # Loading

    def read(self, source: str, encoding: str = ""):
        """Return ``(text, encoding)`` for a URL or file path."""
        if is_url(source):
            self.status(f"[URL] Converting: {source}")
            return decode_bytes(self.fetcher.fetch(source), encoding)
        path = Path(source)
        if not path.is_file():
            raise MissingSourceError(source)
        self.status(f"[{path.suffix.upper().lstrip('.') or 'TXT'}] Converting: {source}")
        return decode_bytes(path.read_bytes(), encoding)

    def build(self, source: str):
        """Load a source and return its converted document."""
        if not is_url(source) and Path(source).suffix.lower() == ".md":
            return self.build_from_document(Path(source).resolve())

        text, encoding = self.read(source, self.options.get("encoding") or "")
        if not is_url(source):
            source = str(Path(source).resolve())
        meta = {"_convertedFrom": source}
        if self.extract_meta and not is_url(source):
            meta.update(extract_meta_from_name(source))
        meta.update(self.meta)

        name = self.options.get("converter") or guess_converter(source)
        doc = self.make_document(name, text, dict(self.options, encoding=encoding), meta)
        return doc.convert()

    def build_from_document(self, path: Path):
        """
        Reconvert an existing Ocean Markdown document.

        The original source named by ``_convertedFrom`` is converted again
        with the stored options; a document without one is converted from
        its own body. With ``reconvert`` off the document is only
        re-serialized.
        """
        if not path.is_file():
            raise MissingSourceError(str(path))
        text = path.read_text(encoding="utf-8")
        if self.options.get("fixMeta"):
            text = fix_front_matter(text)
        parsed = parse_front_matter(text)
        stored = parsed.data.get("_conversionOpts") or {}

        reconvert = self.options.get("reconvert", stored.get("reconvert", True))
        name = self.options.get("converter") or stored.get("converter")
        options = dict(self.options)

        if not reconvert:
            self.status(f"[MD] Updating: {path}")
            doc = self.make_document(name or "text", parsed.body, options, self.meta,
                                     front_matter=parsed.data, file_path=str(path))
            return doc.use_existing_content()

        origin = parsed.data.get("_convertedFrom")
        if not origin:
            self.status(f"[MD] Converting: {path}")
            doc = self.make_document(name or "text", parsed.body, options, self.meta,
                                     front_matter=parsed.data, file_path=str(path))
            return doc.convert()

        origin_path = origin if is_url(origin) else str((path.parent / origin).resolve())
        raw = ""
        if is_url(origin) or Path(origin_path).is_file():
            raw, encoding = self.read(origin_path, self.options.get("encoding") or stored.get("encoding") or "")
            options["encoding"] = encoding
        else:
            self.status(f"[MD] Source missing: {origin}")

        doc = self.make_document(name or guess_converter(origin), raw, options, self.meta,
                                 front_matter=parsed.data, file_path=str(path))
        return doc.convert()

    def make_document(self, name: str, text: str, options: dict, meta: dict,
                      front_matter: dict = None, file_path: str = None):
        converter_class = get_converter(name)
        kwargs = {}
        if hasattr(converter_class, "load_sub_documents"):
            kwargs["fetcher"] = self._fetcher
        return converter_class(text, options=options, meta=meta, front_matter=front_matter,
                               file_path=file_path, word_list=self.word_list,
                               corrector=self.corrector, **kwargs)

    # Output

    def output_path(self, source: str) -> Optional[Path]:
        if is_url(source):
            name = url_to_filename(source)
            if self.output_dir:
                return self.output_dir / name
            return Path.cwd() / name if self.same_folder else None

        path = Path(source).resolve()
        if self.output_dir:
            return self.output_dir / f"{path.stem}.md"
        if path.suffix.lower() == ".md":
            return path
        if self.same_folder:
            return path.with_suffix(".md")
        return None

    def write(self, source: str, doc, text: str) -> Optional[str]:
        """Write ``text`` where the settings say; ``None`` means stdout."""
        target = self.output_path(source)
        if target is None:
            print(text)
            return None

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        self.status(f"[SAVED] {target}")

        if doc.images and doc.options.get("downloadImages"):
            count = download_images(doc.images, target.parent, self.fetcher)
            logger.info("Downloaded %d images for %s", count, target)
        return str(target)
