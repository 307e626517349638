from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path

from topic_catalog.catalog_normalizer import normalize_topic_document
from topic_catalog.errors import InvalidConnectionIdError
from topic_catalog.schema_models import (
    TOPIC_DOC_VERSION,
    TopicDocumentModel,
    TopicItemModel,
    dump_topic_document,
)

logger = logging.getLogger(__name__)

STORE_DIR = Path(os.getenv("TOPIC_STORE_DIR", "data/topic_docs"))


def validate_connection_id(connection_id: str) -> str:
    if not isinstance(connection_id, str) or not connection_id.strip():
        raise InvalidConnectionIdError("Connection id must not be empty.")
    return connection_id


def _document_path(connection_id: str) -> Path:
    # Hashed so distinct ids never share a file.
    digest = hashlib.sha256(validate_connection_id(connection_id).encode("utf-8")).hexdigest()
    return STORE_DIR / f"{digest}.json"


def _atomic_write_json(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        temp_path = Path(handle.name)
        try:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.flush()
        except Exception:
            handle.close()
            temp_path.unlink(missing_ok=True)
            raise
    temp_path.replace(path)


def load_topic_document(connection_id: str) -> TopicDocumentModel:
    """Return the stored document for a connection, or an empty one."""
    path = _document_path(connection_id)
    if not path.exists():
        return TopicDocumentModel(topics=[])

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Topic document %s is not valid JSON; treating it as empty.", path)
        return TopicDocumentModel(topics=[])

    return normalize_topic_document(raw) or TopicDocumentModel(topics=[])


def replace_topic_document(connection_id: str, topics: list[TopicItemModel]) -> TopicDocumentModel:
    """Overwrite the connection's whole document with ``topics``; nothing is merged."""
    document = TopicDocumentModel(
        version=TOPIC_DOC_VERSION,
        topics=[item.model_copy(deep=True) for item in topics],
    )
    _atomic_write_json(_document_path(connection_id), dump_topic_document(document))
    logger.info("Replaced topic document for connection '%s' with %s topics.", connection_id, len(topics))
    return document
