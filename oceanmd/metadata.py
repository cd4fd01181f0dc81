"""
Metadata Model

Schema, merging, legacy upgrade and validation of Ocean Markdown front
matter.
"""

import logging
import re
import unicodedata
import zlib
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

METADATA_VERSION = 2
MAX_ID_LENGTH = 255


@dataclass(frozen=True)
class MetaField:
    """One front matter field: its scalar type and whether a list is allowed."""
    kind: type
    multiple: bool = False
    choices: Tuple = ()
    mergeable: bool = True

    def accepts(self, value) -> bool:
        if self.kind is int and isinstance(value, bool):
            return False
        return isinstance(value, self.kind)


METADATA_SCHEMA: Dict[str, MetaField] = {
    "id": MetaField(str, mergeable=False),
    "title": MetaField(str),
    "author": MetaField(str, multiple=True),
    "access": MetaField(str, choices=("research", "encumbered")),
    "language": MetaField(str, multiple=True),
    "priority": MetaField(int, choices=(5, 6, 7, 8, 9, 10)),
    "wordsCount": MetaField(int),
    "titleShort": MetaField(str),
    "ocnmd_version": MetaField(int),
    "sourceUrl": MetaField(str),
    "category": MetaField(str),
    "coverUrl": MetaField(str),
    "documentType": MetaField(str),
    "editor": MetaField(str, multiple=True),
    "needsEditing": MetaField(bool),
    "publicationName": MetaField(str),
    "publicationEdition": MetaField(str),
    "year": MetaField(int),
    "authorAbrv": MetaField(str),
    "titleAbrv": MetaField(str),
    "collectionTitle": MetaField(str),
    "collectionId": MetaField(str),
    "collectionCoverUrl": MetaField(str),
    "titleEn": MetaField(str),
    "originalLang": MetaField(str),
    "searchLang": MetaField(str, multiple=True),
    "translationRef": MetaField(str),
    "translator": MetaField(str, multiple=True),
    "audio": MetaField(bool),
    "audioUrl": MetaField(str, multiple=True),
    "narrator": MetaField(str, multiple=True),
    "_convertedFrom": MetaField(str),
    "_conversionOpts": MetaField(dict, mergeable=False),
}

# Fields every new document starts with, in serialization order.
DEFAULT_METADATA = {
    "id": "",
    "title": "",
    "author": "",
    "access": "research",
    "language": "en",
    "priority": 10,
    "wordsCount": 0,
    "_conversionOpts": {},
}

FUNCTION_WORDS = r"and|but|or|nor|for|a|an|the|some|on|of"


def new_metadata(front_matter: dict = None) -> dict:
    """
    Start a metadata record from parsed front matter.

    Keys keep the order they had in the front matter; missing defaults are
    appended.
    """
    meta = dict(front_matter or {})
    for key, value in DEFAULT_METADATA.items():
        if key not in meta:
            meta[key] = value.copy() if isinstance(value, dict) else value
    if not isinstance(meta.get("_conversionOpts"), dict):
        meta["_conversionOpts"] = {}
    return meta


def merge_metadata(meta: dict, incoming: dict) -> dict:
    """
    Merge untrusted metadata into ``meta`` in place.

    Only schema fields are taken, and only when the value has the right
    type. Lists for multi-valued fields keep their well-typed items.
    """
    if not incoming:
        return meta
    for key, spec in METADATA_SCHEMA.items():
        if not spec.mergeable or key not in incoming:
            continue
        value = incoming[key]
        if spec.multiple and isinstance(value, list):
            values = [v for v in value if spec.accepts(v)]
            if values:
                meta[key] = values
        elif spec.accepts(value):
            meta[key] = value
    return meta


def upgrade_metadata(meta: dict) -> dict:
    """Rename legacy fields and stamp the current schema version."""
    if "ocnmd_version" not in meta:
        if "encumbered" in meta:
            meta["access"] = "encumbered" if meta.pop("encumbered") else "research"
        meta.pop("status", None)

        source = meta.pop("source", None)
        if isinstance(source, str) and source:
            meta["publicationName"] = re.sub(r", (?:pages?|pg|vol).+", "", source, flags=re.I)

        meta.setdefault("language", "en")
        if not isinstance(meta.get("priority"), int) or isinstance(meta.get("priority"), bool):
            meta["priority"] = 9

        image = meta.pop("image", None)
        if isinstance(image, str):
            meta["coverUrl"] = image
        _rename(meta, "url", "sourceUrl")
        _rename(meta, "collection", "collectionTitle")
        _rename(meta, "collectionImage", "collectionCoverUrl")
        _rename(meta, "doctype", "documentType")

        date = meta.pop("date", None)
        if isinstance(date, int) and not isinstance(date, bool) and date < 2050:
            meta["year"] = date
        elif date:
            found = re.search(r"(\d{4})", str(date))
            if found:
                meta["year"] = int(found.group(1))

        audio = meta.get("audio")
        audio_url = meta.get("audioUrl")
        if isinstance(audio, str) and audio:
            meta["audioUrl"] = audio
            meta["audio"] = True
        elif isinstance(audio_url, str) and audio_url:
            meta["audio"] = True
        else:
            meta.pop("audio", None)

    meta["ocnmd_version"] = METADATA_VERSION
    return meta


def _rename(meta: dict, old: str, new: str):
    value = meta.pop(old, None)
    if value:
        meta[new] = value


def prune_metadata(meta: dict) -> dict:
    """Drop every key that is not part of the schema."""
    for key in [k for k in meta if k not in METADATA_SCHEMA]:
        logger.debug("Dropping unknown metadata field %r", key)
        del meta[key]
    return meta


def slugify(text: str, keep: str = "") -> str:
    """Lowercase ASCII slug with runs of other characters turned into ``-``."""
    text = unicodedata.normalize("NFKD", str(text)).encode("ascii", "ignore").decode("ascii")
    text = re.sub(rf"[^a-z0-9{re.escape(keep)}]+", "-", text.lower())
    return text.strip("-")


def count_words(content: str) -> Optional[int]:
    """Count whitespace runs; ``None`` when the content has no whitespace."""
    if not re.search(r"\s", content):
        return None
    return len(re.findall(r"\s+", content))


def content_checksum(content: str) -> int:
    return zlib.crc32(content.encode("utf-8")) & 0xFFFFFFFF


def generate_document_id(meta: dict, content: str) -> str:
    """
    Derive a stable document id from author (or publication), title,
    content checksum and language.
    """
    author = meta.get("author")
    if isinstance(author, list):
        author = ", ".join(author)
    who = author or meta.get("publicationName") or "unknown"
    title = (meta.get("titleEn") or meta.get("title") or "").replace(":", " ")
    language = meta.get("language")
    if isinstance(language, list):
        language = "-".join(language)
    raw = f"{who}::{title}::{content_checksum(content)}::{language}"
    raw = re.sub(r"[_‘’'()]", "", raw).replace("::", "__")
    doc_id = slugify(raw, keep="_")
    doc_id = re.sub(r"__(?:a|an|the)-", "__", doc_id, count=1)
    for _ in range(2):
        doc_id = re.sub(rf"-(?:{FUNCTION_WORDS})-", "-", doc_id)
    return re.sub(r"-?__-?", "__", doc_id)


def check_metadata(meta: dict, content: str, corrector=None) -> List[str]:
    """
    Finalize and validate a metadata record in place.

    Runs the legacy upgrade, corrects author and title, recomputes the word
    count, derives the collection id and the document id (only when none is
    set yet) and checks the enumerated fields.

    Returns:
        Names of the fields that failed validation
    """
    errors = []

    def error(key):
        if key not in errors:
            errors.append(key)

    upgrade_metadata(meta)
    prune_metadata(meta)

    for key in ("author", "title"):
        value = meta.get(key)
        if isinstance(value, str) and value:
            if corrector:
                meta[key] = corrector.correct_name(value)
        elif isinstance(value, list) and value and all(isinstance(v, str) for v in value):
            if corrector:
                meta[key] = [corrector.correct_name(v) for v in value]
        else:
            error(key)

    words = count_words(content)
    if words is not None:
        meta["wordsCount"] = words

    if meta.get("collectionTitle") and not meta.get("collectionId"):
        meta["collectionId"] = slugify(meta["collectionTitle"])

    options = meta.get("_conversionOpts")
    if isinstance(options, dict) and options.get("encoding") == "":
        del options["encoding"]

    if meta.get("title") and (meta.get("author") or meta.get("publicationName")) and not meta.get("id"):
        meta["id"] = generate_document_id(meta, content)
        logger.debug("Generated document id %s", meta["id"])

    if meta.get("access") not in METADATA_SCHEMA["access"].choices:
        error("access")
    language = meta.get("language")
    if not (isinstance(language, str) and language) and not (
            isinstance(language, list) and language and all(isinstance(v, str) and v for v in language)):
        error("language")
    if meta.get("priority") not in METADATA_SCHEMA["priority"].choices or isinstance(meta.get("priority"), bool):
        error("priority")
    doc_id = meta.get("id")
    if not isinstance(doc_id, str) or not doc_id or len(doc_id) > MAX_ID_LENGTH:
        error("id")

    return errors
