from __future__ import annotations

import importlib
import importlib.util

from topic_catalog.errors import DecompressionError

INFLATE_CHUNK_SIZE = 64 * 1024


def inflate_raw(payload: bytes) -> bytes:
    """Inflate a headerless deflate stream, failing instead of returning partial output."""
    if importlib.util.find_spec("zlib") is None:
        raise DecompressionError("Decompression unsupported in this environment.")

    zlib = importlib.import_module("zlib")
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    chunks: list[bytes] = []
    try:
        for start in range(0, len(payload), INFLATE_CHUNK_SIZE):
            chunks.append(decompressor.decompress(payload[start : start + INFLATE_CHUNK_SIZE]))
        chunks.append(decompressor.flush())
    except zlib.error as exc:
        raise DecompressionError(f"Decompression failed: {exc}") from exc

    if not decompressor.eof:
        raise DecompressionError("Decompression failed: compressed stream is truncated.")
    return b"".join(chunks)
