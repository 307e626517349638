from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from topic_catalog.decompression import inflate_raw
from topic_catalog.errors import MalformedContainerError

logger = logging.getLogger(__name__)

EOCD_SIGNATURE = 0x06054B50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014B50
LOCAL_FILE_HEADER_SIGNATURE = 0x04034B50

EOCD_SIZE = 22
EOCD_MAX_COMMENT_SIZE = 0x10000
CENTRAL_DIRECTORY_HEADER_SIZE = 46
LOCAL_FILE_HEADER_SIZE = 30

COMPRESSION_STORED = 0
COMPRESSION_DEFLATE = 8


@dataclass(frozen=True)
class ContainerEntry:
    name: str
    compression_method: int
    compressed_size: int
    local_header_offset: int


def _read_u16(buffer: bytes, offset: int) -> int:
    if offset < 0 or offset + 2 > len(buffer):
        raise MalformedContainerError(f"Container read out of bounds at offset {offset}.")
    return struct.unpack_from("<H", buffer, offset)[0]


def _read_u32(buffer: bytes, offset: int) -> int:
    if offset < 0 or offset + 4 > len(buffer):
        raise MalformedContainerError(f"Container read out of bounds at offset {offset}.")
    return struct.unpack_from("<I", buffer, offset)[0]


def find_end_of_central_directory(buffer: bytes) -> int:
    """Return the offset of the end-of-central-directory record.

    The record sits in the last 22 bytes plus an optional archive comment of
    at most 64KB, so the backward scan never goes further than that.
    """
    if len(buffer) < EOCD_SIZE:
        raise MalformedContainerError("Not a valid container: buffer is too small.")

    lower_bound = max(0, len(buffer) - EOCD_MAX_COMMENT_SIZE - EOCD_SIZE)
    for offset in range(len(buffer) - EOCD_SIZE, lower_bound - 1, -1):
        if _read_u32(buffer, offset) == EOCD_SIGNATURE:
            return offset

    raise MalformedContainerError("Not a valid container: end of central directory not found.")


def read_container_entries(buffer: bytes) -> list[ContainerEntry]:
    eocd_offset = find_end_of_central_directory(buffer)
    total_entries = _read_u16(buffer, eocd_offset + 10)
    directory_size = _read_u32(buffer, eocd_offset + 12)
    directory_offset = _read_u32(buffer, eocd_offset + 16)

    directory_end = directory_offset + directory_size
    if directory_end > len(buffer):
        raise MalformedContainerError(
            f"Central directory ({directory_offset}+{directory_size}) extends past the container ({len(buffer)} bytes)."
        )

    entries: list[ContainerEntry] = []
    cursor = directory_offset
    for _ in range(total_entries):
        if cursor + CENTRAL_DIRECTORY_HEADER_SIZE > directory_end:
            break
        if _read_u32(buffer, cursor) != CENTRAL_DIRECTORY_SIGNATURE:
            logger.warning("Central directory record at %s has no signature; stopping scan.", cursor)
            break

        compression_method = _read_u16(buffer, cursor + 10)
        compressed_size = _read_u32(buffer, cursor + 20)
        name_length = _read_u16(buffer, cursor + 28)
        extra_length = _read_u16(buffer, cursor + 30)
        comment_length = _read_u16(buffer, cursor + 32)
        local_header_offset = _read_u32(buffer, cursor + 42)

        name_start = cursor + CENTRAL_DIRECTORY_HEADER_SIZE
        name_end = name_start + name_length
        if name_end > len(buffer):
            raise MalformedContainerError(f"Entry name at offset {name_start} runs past the container.")
        name = buffer[name_start:name_end].decode("utf-8", errors="replace")

        entries.append(
            ContainerEntry(
                name=name,
                compression_method=compression_method,
                compressed_size=compressed_size,
                local_header_offset=local_header_offset,
            )
        )
        cursor = name_end + extra_length + comment_length

    logger.debug("Read %s container entries (declared %s).", len(entries), total_entries)
    return entries


def find_entry(entries: list[ContainerEntry], name: str) -> ContainerEntry | None:
    for entry in entries:
        if entry.name == name:
            return entry
    return None


def read_entry_data(buffer: bytes, entry: ContainerEntry) -> bytes:
    """Slice the raw (possibly compressed) payload of one entry."""
    offset = entry.local_header_offset
    if offset + LOCAL_FILE_HEADER_SIZE > len(buffer):
        raise MalformedContainerError(f"Invalid local file header offset for '{entry.name}'.")
    if _read_u32(buffer, offset) != LOCAL_FILE_HEADER_SIGNATURE:
        raise MalformedContainerError(f"Invalid local file header signature for '{entry.name}'.")

    name_length = _read_u16(buffer, offset + 26)
    extra_length = _read_u16(buffer, offset + 28)
    data_start = offset + LOCAL_FILE_HEADER_SIZE + name_length + extra_length
    data_end = data_start + entry.compressed_size
    if data_end > len(buffer):
        raise MalformedContainerError(f"Invalid compressed payload bounds for '{entry.name}'.")
    return bytes(buffer[data_start:data_end])


def extract_entry(buffer: bytes, entry: ContainerEntry) -> bytes:
    payload = read_entry_data(buffer, entry)
    if entry.compression_method == COMPRESSION_DEFLATE:
        return inflate_raw(payload)
    if entry.compression_method != COMPRESSION_STORED:
        logger.warning(
            "Entry '%s' uses unsupported compression method %s; passing bytes through.",
            entry.name,
            entry.compression_method,
        )
    return payload
