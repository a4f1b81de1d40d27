"""Encoders that lay out chunklists and trust caches for the test suite."""

from __future__ import annotations

import hashlib
import struct
from collections.abc import Sequence
from uuid import UUID

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from aumai_integrity.chunklist import CHUNKLIST_MAGIC, CHUNK_ENTRY_SIZE, HEADER_SIZE

ChunkSpec = tuple[int, bytes]


def chunk_specs(data: bytes, chunk_size: int, remainder_last: bool = False) -> list[ChunkSpec]:
    """(size, sha256) pairs covering *data* in *chunk_size* pieces.

    With *remainder_last* the final chunk is recorded with the zero size.
    """
    specs: list[ChunkSpec] = []
    for start in range(0, len(data), chunk_size):
        piece = data[start : start + chunk_size]
        specs.append((len(piece), hashlib.sha256(piece).digest()))
    if remainder_last and specs:
        specs[-1] = (0, specs[-1][1])
    return specs


def encode_chunklist(
    chunks: Sequence[ChunkSpec],
    private_key: RSAPrivateKey | None = None,
    *,
    magic: int = CHUNKLIST_MAGIC,
    file_version: int = 1,
    chunk_method: int = 1,
    signature_method: int = 1,
    chunk_count: int | None = None,
    signature: bytes | None = None,
) -> bytes:
    """Lay out a chunklist: header, chunk table, then a signature over both."""
    signature_offset = HEADER_SIZE + len(chunks) * CHUNK_ENTRY_SIZE
    header = struct.pack(
        "<IIBBBBQQQ",
        magic,
        HEADER_SIZE,
        file_version,
        chunk_method,
        signature_method,
        0,
        len(chunks) if chunk_count is None else chunk_count,
        HEADER_SIZE,
        signature_offset,
    )
    table = b"".join(struct.pack("<I", size) + digest for size, digest in chunks)
    signed = header + table
    if signature is None:
        assert private_key is not None
        signature = private_key.sign(signed, padding.PKCS1v15(), hashes.SHA256())
    return signed + signature


def encode_trust_cache(
    version: int, identifier: UUID, records: Sequence[bytes], count: int | None = None
) -> bytes:
    header = struct.pack("<I", version) + identifier.bytes
    header += struct.pack("<I", len(records) if count is None else count)
    return header + b"".join(records)
