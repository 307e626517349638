from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from topic_catalog.errors import LegacyDecodeError

logger = logging.getLogger(__name__)

NARROW_ENCODING = "utf-8"
WIDE_ENCODING = "utf-16-le"
LEGACY_CONFIDENCE_THRESHOLD = 0.2

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")
_UNREADABLE_CHARS = re.compile(r"[^\x20-\x7e一-鿿\r\n\t]")
_WHITESPACE_RUNS = re.compile(r"\s{2,}")
_BLANK_LINE_RUNS = re.compile(r"\n{3,}")
_READABLE_CHARS = re.compile(r"[A-Za-z0-9一-鿿]")


@dataclass(frozen=True)
class DecodeCandidate:
    encoding: str
    text: str
    score: float


def cleanup_legacy_text(raw: str) -> str:
    cleaned = raw.replace("\x00", " ")
    cleaned = _CONTROL_CHARS.sub(" ", cleaned)
    cleaned = _UNREADABLE_CHARS.sub(" ", cleaned)
    cleaned = _WHITESPACE_RUNS.sub(" ", cleaned)
    cleaned = _BLANK_LINE_RUNS.sub("\n\n", cleaned)
    return cleaned.strip()


def score_text_candidate(text: str) -> float:
    if not text:
        return 0.0
    return len(_READABLE_CHARS.findall(text)) / len(text)


def decode_candidate(content_bytes: bytes, encoding: str) -> DecodeCandidate:
    text = cleanup_legacy_text(content_bytes.decode(encoding, errors="replace"))
    return DecodeCandidate(encoding=encoding, text=text, score=score_text_candidate(text))


def choose_candidate(narrow: DecodeCandidate, wide: DecodeCandidate) -> DecodeCandidate:
    """Prefer the wide reading unless the narrow one scores strictly higher."""
    return wide if wide.score >= narrow.score else narrow


def decode_legacy_document(content_bytes: bytes) -> str:
    narrow = decode_candidate(content_bytes, NARROW_ENCODING)
    wide = decode_candidate(content_bytes, WIDE_ENCODING)
    best = choose_candidate(narrow, wide)
    logger.info(
        "Legacy decode scores: %s=%.3f %s=%.3f; selected %s.",
        narrow.encoding,
        narrow.score,
        wide.encoding,
        wide.score,
        best.encoding,
    )

    if not best.text or best.score < LEGACY_CONFIDENCE_THRESHOLD:
        raise LegacyDecodeError(
            "Cannot reliably decode legacy document (.doc). Please convert it to .docx."
        )
    return best.text
