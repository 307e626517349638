from __future__ import annotations

import logging
from pathlib import Path

from topic_catalog.container_reader import extract_entry, find_entry, read_container_entries
from topic_catalog.errors import EntryNotFoundError, UnsupportedDocumentError
from topic_catalog.legacy_decoder import decode_legacy_document
from topic_catalog.markup_text import extract_paragraph_text

logger = logging.getLogger(__name__)

PLAIN_TEXT_EXTENSIONS = {".txt", ".md"}
CONTAINER_EXTENSION = ".docx"
LEGACY_EXTENSION = ".doc"
SUPPORTED_EXTENSIONS = PLAIN_TEXT_EXTENSIONS | {CONTAINER_EXTENSION, LEGACY_EXTENSION}

DOCUMENT_BODY_ENTRY = "word/document.xml"


def _normalize_extension(filename: str) -> str:
    # ".md" alone still counts as Markdown.
    name = Path(filename.strip()).name.lower()
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[1]


def is_supported_source(filename: str) -> bool:
    return _normalize_extension(filename) in SUPPORTED_EXTENSIONS


def read_container_document(content_bytes: bytes) -> str:
    entries = read_container_entries(content_bytes)
    body_entry = find_entry(entries, DOCUMENT_BODY_ENTRY)
    if body_entry is None:
        raise EntryNotFoundError(DOCUMENT_BODY_ENTRY)

    xml_bytes = extract_entry(content_bytes, body_entry)
    return extract_paragraph_text(xml_bytes.decode("utf-8", errors="replace"))


def read_protocol_source(filename: str, content_bytes: bytes) -> str:
    """Recover readable text from a protocol-description document.

    The extension decides the route: ``.txt``/``.md`` are decoded as UTF-8,
    ``.docx`` is unpacked and its body paragraphs flattened, ``.doc`` goes
    through the dual-encoding heuristic. Anything else is rejected before the
    bytes are looked at.
    """
    extension = _normalize_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedDocumentError(
            f"Unsupported document type '{extension or 'unknown'}'. "
            "Supported types: TXT, MD, DOC, DOCX."
        )

    logger.debug("Reading protocol source '%s' (%s bytes).", filename, len(content_bytes))
    if extension in PLAIN_TEXT_EXTENSIONS:
        return content_bytes.decode("utf-8-sig", errors="replace")
    if extension == CONTAINER_EXTENSION:
        return read_container_document(content_bytes)
    return decode_legacy_document(content_bytes)
