"""Reading and writing of simple tagged binary chunks.

A chunk is laid out as::

    |ma|gi|c.|..|   four byte magic tag
    |sz|sz|sz|sz|   four byte little-endian payload size
    |payload ....|  ``sz`` bytes of fixed-size records
"""

from __future__ import annotations

import struct
from typing import BinaryIO, Iterable

_HEADER = struct.Struct("<4sI")
_MAX_SIZE = 0xFFFFFFFF


class ChunkError(Exception):
    """Raised when a chunk cannot be read."""


def _magic_bytes(magic: str | bytes) -> bytes:
    if isinstance(magic, str):
        return magic.encode("latin-1")
    return bytes(magic)


def _read_payload(stream: BinaryIO, magic: str | bytes, element_size: int) -> bytes:
    header = stream.read(_HEADER.size)
    if len(header) != _HEADER.size:
        raise ChunkError("Failed to read chunk header")
    found, size = _HEADER.unpack(header)
    if found != _magic_bytes(magic):
        raise ChunkError("Unexpected magic number in chunk")
    if size % element_size != 0:
        raise ChunkError("Size of chunk not divisible by element size")
    payload = stream.read(size)
    if len(payload) != size:
        raise ChunkError("Failed to read chunk data.")
    return payload


def read_chunk(stream: BinaryIO, magic: str | bytes, record: struct.Struct) -> list[tuple]:
    """Read a chunk tagged ``magic`` and unpack its payload as ``record`` tuples."""
    if record.size == 0:
        raise ValueError("record format must have a non-zero size")
    payload = _read_payload(stream, magic, record.size)
    return list(record.iter_unpack(payload))


def read_chunk_bytes(stream: BinaryIO, magic: str | bytes) -> bytes:
    """Read a chunk tagged ``magic`` and return its raw payload."""
    return _read_payload(stream, magic, 1)


def write_chunk_bytes(magic: str | bytes, data: bytes, stream: BinaryIO) -> None:
    """Write ``data`` as a chunk tagged ``magic``."""
    tag = _magic_bytes(magic)
    if len(tag) != 4:
        raise ValueError("chunk magic must be exactly four bytes")
    payload = bytes(data)
    if len(payload) > _MAX_SIZE:
        raise ValueError("chunk payload too large")
    stream.write(_HEADER.pack(tag, len(payload)))
    stream.write(payload)


def write_chunk(
    magic: str | bytes,
    records: Iterable[tuple],
    record: struct.Struct,
    stream: BinaryIO,
) -> None:
    """Pack ``records`` with ``record`` and write them as a chunk tagged ``magic``."""
    payload = b"".join(record.pack(*fields) for fields in records)
    write_chunk_bytes(magic, payload, stream)