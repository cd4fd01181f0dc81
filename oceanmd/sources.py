"""
Source access: URL detection, byte decoding, the cached HTTP fetcher and
image downloads.
"""

import logging
import os
import re
from binascii import crc_hqx
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Tuple
from urllib.parse import urlparse

from .exceptions import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 30
DEFAULT_EXPIRY = timedelta(days=30)
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "oceanmd"

IMAGE_DIR = "img"
NAME_PATTERN = re.compile(r"^(.+?)\s*,\s*(.+)\.[^.]+$")


def is_url(source: str) -> bool:
    """Check if the source looks like an http(s) URL."""
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def detect_encoding(data: bytes) -> str:
    """Best guess at the character encoding of ``data``."""
    try:
        from charset_normalizer import from_bytes
    except ImportError:
        raise RuntimeError("charset-normalizer is not installed. Run: pip install charset-normalizer")

    best = from_bytes(data).best()
    return best.encoding if best else "utf-8"


def decode_bytes(data: bytes, encoding: str = "") -> Tuple[str, str]:
    """
    Decode raw bytes.

    Args:
        data: Raw source bytes
        encoding: Explicit encoding; detected when empty

    Returns:
        Tuple of (text, encoding used)
    """
    if not encoding:
        encoding = detect_encoding(data)
    return data.decode(encoding, errors="replace"), encoding


class CachedFetcher:
    """
    HTTP fetcher with an on-disk read-through cache.

    Responses are kept for ``expire_after`` in ``cache_dir``; a URL fetched
    within that window is served from the cache whichever document asked
    for it first.
    """

    def __init__(self, cache_dir=None, expire_after: timedelta = DEFAULT_EXPIRY,
                 timeout: int = DEFAULT_TIMEOUT):
        try:
            import requests_cache
        except ImportError:
            raise RuntimeError("requests-cache is not installed. Run: pip install requests-cache")

        self.cache_dir = Path(cache_dir) if cache_dir else DEFAULT_CACHE_DIR
        self.timeout = timeout
        self.session = requests_cache.CachedSession(
            str(self.cache_dir / "http_cache"),
            backend="filesystem",
            expire_after=expire_after,
        )
        self.session.headers["User-Agent"] = USER_AGENT

    def fetch(self, url: str) -> bytes:
        """
        Return the body of ``url``.

        Raises:
            FetchError: On connection errors and HTTP error statuses
        """
        import requests

        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        logger.debug("%s %s", "Cache hit" if getattr(response, "from_cache", False) else "Fetched", url)
        return response.content


def image_file_name(url: str) -> str:
    """Local name for a downloaded image: CRC-16 of host and folder, then the basename."""
    parsed = urlparse(url)
    folder, basename = os.path.split(parsed.path)
    digest = crc_hqx(f"{parsed.netloc}{folder}".encode("utf-8"), 0)
    return f"{IMAGE_DIR}/{digest:x}.{basename}"


def download_images(urls: Iterable[str], output_dir, fetcher) -> int:
    """
    Download queued images into ``output_dir/img``. Failures are logged
    and skipped.

    Returns:
        Number of images written
    """
    written = 0
    for url in urls:
        target = Path(output_dir) / image_file_name(url)
        if target.exists():
            continue
        try:
            data = fetcher.fetch(url)
        except FetchError as e:
            logger.error("Image download failed: %s", e)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        written += 1
    return written


def url_to_filename(url: str) -> str:
    """Convert a URL to a safe Markdown filename."""
    parsed = urlparse(url)
    name = f"{parsed.netloc}{parsed.path}".rstrip("/")
    name = re.sub(r"\.html?$", "", name, flags=re.I)
    name = re.sub(r"[^\w\-.]", "_", name)
    name = re.sub(r"_+", "_", name).strip("_")
    if len(name) > 120:
        name = name[:120]
    return f"{name}.md"


def extract_meta_from_name(path) -> dict:
    """
    Read ``author`` and ``title`` from a file named ``Author, Title.ext``.

    Other names give the parent folder as author and the stem as title.
    """
    path = Path(path)
    match = NAME_PATTERN.match(path.name)
    if match:
        return {"author": match.group(1), "title": match.group(2)}
    return {"author": path.parent.name, "title": path.stem}
