import importlib.util
import zlib

import pytest

from topic_catalog.decompression import inflate_raw
from topic_catalog.errors import DecompressionError


def _deflate_raw(payload: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(payload) + compressor.flush()


def test_inflate_raw_round_trips_large_payload():
    payload = ("<w:t>sensor/temperature</w:t>" * 10000).encode("utf-8")

    assert inflate_raw(_deflate_raw(payload)) == payload


def test_inflate_raw_rejects_garbage():
    with pytest.raises(DecompressionError, match="Decompression failed"):
        inflate_raw(b"\xff\xff\xff\xff not deflate")


def test_inflate_raw_rejects_truncated_stream():
    compressed = _deflate_raw(b"abcdefghij" * 500)

    with pytest.raises(DecompressionError, match="truncated"):
        inflate_raw(compressed[: len(compressed) // 2])


def test_inflate_raw_reports_missing_zlib(monkeypatch):
    monkeypatch.setattr(importlib.util, "find_spec", lambda name: None)

    with pytest.raises(DecompressionError, match="unsupported in this environment"):
        inflate_raw(_deflate_raw(b"abc"))
