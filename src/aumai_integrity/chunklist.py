"""Chunklist decoding and chunk-by-chunk verification of target files."""

from __future__ import annotations

import hashlib
import io
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from aumai_integrity.errors import (
    BadMagicError,
    MisplacedRemainderChunkError,
    NoValidSignatureError,
    SignatureMethodNotImplementedError,
    UnsupportedChunkMethodError,
    UnsupportedSignatureMethodError,
    UnsupportedVersionError,
)
from aumai_integrity.models import (
    SHA256_DIGEST_SIZE,
    ChunkManifest,
    ChunkRecord,
    FailureKind,
    VerificationFailure,
    VerificationResult,
)
from aumai_integrity.reader import BinaryCursor
from aumai_integrity.signature import (
    REV1_SIGNATURE_SIZE,
    RawKeySignature,
    SignatureMethod,
)

logger = logging.getLogger(__name__)

CHUNKLIST_MAGIC = 0x4C4B4E43  # "CNKL" on disk
FILE_VERSION_10 = 1
CHUNK_METHOD_10 = 1

HEADER_SIZE = 36
CHUNK_ENTRY_SIZE = 4 + SHA256_DIGEST_SIZE
HASH_BUFFER_SIZE = 32 * 1024


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _hash_region(stream: BinaryIO, length: int, buffer_size: int) -> bytes:
    """SHA-256 of the next *length* bytes of *stream*, read in bounded blocks.

    Stops early at end of file; the partial digest then cannot match.
    """
    hasher = hashlib.sha256()
    remaining = length
    while remaining > 0:
        block = stream.read(min(buffer_size, remaining))
        if not block:
            logger.debug("Target ended %d bytes short of the chunk", remaining)
            break
        hasher.update(block)
        remaining -= len(block)
    return hasher.digest()


# ---------------------------------------------------------------------------
# ChunklistReader
# ---------------------------------------------------------------------------


class ChunklistReader:
    """Decode chunklist manifests from bytes, streams or files."""

    def read(self, stream: BinaryIO) -> ChunkManifest:
        """Decode a manifest from a seekable binary *stream*.

        Header discriminants are validated as soon as they are read, so nothing
        that depends on an unsupported field is ever parsed.  The chunk table
        and signature block are bounds-checked against the stream size before
        they are read.

        Raises:
            DecodeError: on any structural problem (bad magic, unsupported
                version/method, truncated table or signature).
            SignatureMethodNotImplementedError: for recognised signature
                methods that have no decoder.
        """
        cursor = BinaryCursor(stream)

        magic = cursor.u32("magic")
        if magic != CHUNKLIST_MAGIC:
            raise BadMagicError(magic)

        header_size = cursor.u32("header size")

        file_version = cursor.u8("file version")
        if file_version != FILE_VERSION_10:
            raise UnsupportedVersionError(file_version)

        chunk_method = cursor.u8("chunk method")
        if chunk_method != CHUNK_METHOD_10:
            raise UnsupportedChunkMethodError(chunk_method)

        signature_method = cursor.u8("signature method")
        if signature_method not in set(SignatureMethod):
            raise UnsupportedSignatureMethodError(signature_method)

        cursor.u8("reserved")
        chunk_count = cursor.u64("chunk count")
        chunk_table_offset = cursor.u64("chunk table offset")
        signature_offset = cursor.u64("signature offset")

        chunks = self._read_chunks(cursor, chunk_table_offset, chunk_count)
        signature = self._read_signature(
            cursor, SignatureMethod(signature_method), signature_offset
        )

        cursor.seek(0)
        signed_region = cursor.read_exact(signature_offset, "signed region")

        manifest = ChunkManifest(
            magic=magic,
            header_size=header_size,
            file_version=file_version,
            chunk_method=chunk_method,
            signature_method=signature_method,
            chunk_count=chunk_count,
            chunk_table_offset=chunk_table_offset,
            signature_offset=signature_offset,
            chunks=chunks,
            signature=signature,
            signed_region=signed_region,
        )
        logger.info(
            "Decoded chunklist: %d chunks, signature method %d",
            chunk_count,
            signature_method,
        )
        return manifest

    def read_bytes(self, data: bytes) -> ChunkManifest:
        return self.read(io.BytesIO(data))

    def read_file(self, path: str) -> ChunkManifest:
        with Path(path).open("rb") as fh:
            return self.read(fh)

    def _read_chunks(
        self, cursor: BinaryCursor, offset: int, count: int
    ) -> tuple[ChunkRecord, ...]:
        cursor.require(offset, count * CHUNK_ENTRY_SIZE, "chunk table")
        cursor.seek(offset)

        chunks: list[ChunkRecord] = []
        for index in range(count):
            size = cursor.u32(f"chunk {index} size")
            digest = cursor.read_exact(SHA256_DIGEST_SIZE, f"chunk {index} hash")
            if size == 0 and index != count - 1:
                raise MisplacedRemainderChunkError(index, count)
            chunks.append(ChunkRecord(size=size, digest=digest))
        return tuple(chunks)

    def _read_signature(
        self, cursor: BinaryCursor, method: SignatureMethod, offset: int
    ) -> RawKeySignature:
        if method != SignatureMethod.rev1:
            raise SignatureMethodNotImplementedError(method)

        cursor.require(offset, REV1_SIGNATURE_SIZE, "signature")
        cursor.seek(offset)
        return RawKeySignature(
            signature=cursor.read_exact(REV1_SIGNATURE_SIZE, "signature")
        )


# ---------------------------------------------------------------------------
# ChunklistVerifier
# ---------------------------------------------------------------------------


class ChunklistVerifier:
    """Check a manifest's signature, then re-hash the target file chunk by chunk.

    The verifier holds only a reference to the trust anchors and never
    modifies them; one instance may be shared across threads as long as each
    call gets its own target stream.
    """

    def __init__(
        self,
        trust_anchors: Sequence[RSAPublicKey],
        buffer_size: int = HASH_BUFFER_SIZE,
    ) -> None:
        if not trust_anchors:
            raise ValueError("At least one trust anchor is required.")
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self._trust_anchors = trust_anchors
        self._buffer_size = buffer_size

    def verify_signature(self, manifest: ChunkManifest) -> RSAPublicKey:
        """Verify the manifest signature over its signed region.

        Returns:
            The trust anchor that validated the signature.

        Raises:
            NoValidSignatureError: if no anchor validates the signature.
            SignatureMethodNotImplementedError: for signature variants without
                a verification path.
        """
        return manifest.signature.verify(manifest.signed_region, self._trust_anchors)

    def verify(self, manifest: ChunkManifest, target: BinaryIO) -> VerificationResult:
        """Verify *target* against *manifest*.

        A signature failure is reported as the single failure and no chunk is
        hashed.  Otherwise every chunk is hashed, and each mismatch is
        reported by index.
        """
        try:
            self.verify_signature(manifest)
        except (NoValidSignatureError, SignatureMethodNotImplementedError) as exc:
            logger.info("Chunklist signature rejected: %s", exc)
            return VerificationResult(
                valid=False,
                chunk_count=manifest.chunk_count,
                failures=(
                    VerificationFailure(kind=FailureKind.signature, message=str(exc)),
                ),
            )

        total_size = target.seek(0, io.SEEK_END)
        target.seek(0, io.SEEK_SET)

        failures: list[VerificationFailure] = []
        for index, chunk in enumerate(manifest.chunks):
            position = target.tell()
            length = chunk.resolve_length(position, total_size)
            logger.debug(
                "Hashing chunk %d: %d bytes at offset %d", index, length, position
            )
            digest = _hash_region(target, length, self._buffer_size)
            if digest != chunk.digest:
                failures.append(
                    VerificationFailure(
                        kind=FailureKind.chunk,
                        chunk_index=index,
                        message=f"invalid chunk {index}",
                    )
                )

        trailing = total_size - target.tell()
        if trailing > 0:
            logger.warning("%d trailing target bytes are not covered by any chunk", trailing)

        result = VerificationResult(
            valid=not failures,
            chunk_count=manifest.chunk_count,
            failures=tuple(failures),
        )
        logger.info(
            "Verified %d chunks: %d failure(s)", manifest.chunk_count, len(failures)
        )
        return result

    def verify_file(self, manifest: ChunkManifest, path: str) -> VerificationResult:
        with Path(path).open("rb") as fh:
            return self.verify(manifest, fh)


__all__ = [
    "CHUNKLIST_MAGIC",
    "CHUNK_ENTRY_SIZE",
    "CHUNK_METHOD_10",
    "FILE_VERSION_10",
    "HASH_BUFFER_SIZE",
    "HEADER_SIZE",
    "ChunklistReader",
    "ChunklistVerifier",
]
