import pytest

from topic_catalog.errors import LegacyDecodeError
from topic_catalog.legacy_decoder import (
    LEGACY_CONFIDENCE_THRESHOLD,
    NARROW_ENCODING,
    WIDE_ENCODING,
    DecodeCandidate,
    choose_candidate,
    cleanup_legacy_text,
    decode_candidate,
    decode_legacy_document,
    score_text_candidate,
)


def _legacy_container(text: str) -> bytes:
    # Word 97 files wrap the UTF-16 text stream in binary structure bytes.
    return b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + text.encode("utf-16-le") + b"\x00\x00\x00\x00"


def test_cleanup_replaces_controls_and_collapses_whitespace():
    raw = "\x00\x01Topic:\x07 plant/temp\t\té� value\n\n\n\nend  "

    assert cleanup_legacy_text(raw) == "Topic: plant/temp value end"


def test_cleanup_keeps_cjk_text():
    assert cleanup_legacy_text("主题\x00\x00温度") == "主题 温度"


def test_score_counts_alphanumeric_and_cjk():
    assert score_text_candidate("") == 0.0
    assert score_text_candidate("ab12") == 1.0
    assert score_text_candidate("a b") == pytest.approx(2 / 3)
    assert score_text_candidate("温度 ") == pytest.approx(2 / 3)


def test_decode_candidate_is_pure_and_scored():
    candidate = decode_candidate("temp sensor".encode("utf-16-le"), WIDE_ENCODING)

    assert candidate == DecodeCandidate(encoding=WIDE_ENCODING, text="temp sensor", score=pytest.approx(10 / 11))


def test_choose_candidate_prefers_wide_on_tie_and_higher_score():
    narrow = DecodeCandidate(encoding=NARROW_ENCODING, text="a", score=0.5)
    wide_equal = DecodeCandidate(encoding=WIDE_ENCODING, text="b", score=0.5)
    wide_lower = DecodeCandidate(encoding=WIDE_ENCODING, text="c", score=0.49)

    assert choose_candidate(narrow, wide_equal) is wide_equal
    assert choose_candidate(narrow, wide_lower) is narrow


def test_wide_encoded_document_returns_normalized_text():
    text = "Topic plant/line1/temperature publishes JSON with QoS 1"

    assert decode_legacy_document(_legacy_container(text)) == text


def test_wide_encoded_cjk_document_is_decoded():
    text = "温度主题 plant/line1/temp"

    assert decode_legacy_document(_legacy_container(text)) == text


def test_low_confidence_document_is_rejected():
    noise = b"#### ---- ==== ;;;; " * 40

    with pytest.raises(LegacyDecodeError, match="Cannot reliably decode legacy document"):
        decode_legacy_document(noise)


def test_binary_noise_is_rejected_rather_than_returning_best_bad_candidate():
    noise = bytes([1, 2, 3, 0xFF, 0xFE, 0x0F]) * 50

    narrow = decode_candidate(noise, NARROW_ENCODING)
    wide = decode_candidate(noise, WIDE_ENCODING)
    assert max(narrow.score, wide.score) < LEGACY_CONFIDENCE_THRESHOLD

    with pytest.raises(LegacyDecodeError):
        decode_legacy_document(noise)
