"""Pydantic models for aumai-integrity."""

from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import Annotated, Literal
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from aumai_integrity.errors import (
    AlgorithmMismatchError,
    HashComparisonError,
    LengthMismatchError,
    UnsupportedConversionError,
    UnsupportedHashTypeError,
)
from aumai_integrity.signature import ManifestSignature

logger = logging.getLogger(__name__)

SHA256_DIGEST_SIZE = 32
TRUST_CACHE_HASH_SIZE = 20

FLAG_AMFI = 0x01


# ---------------------------------------------------------------------------
# Typed hashes
# ---------------------------------------------------------------------------


class HashType(IntEnum):
    """Hash algorithm codes, as stored in trust-cache v1 records."""

    sha1 = 1
    sha256 = 2
    sha256_truncated = 3  # first 20 bytes of a SHA-256
    sha384 = 4


HASH_SIZES: dict[HashType, int] = {
    HashType.sha1: 20,
    HashType.sha256: 32,
    HashType.sha256_truncated: 20,
    HashType.sha384: 48,
}


class TypedHash(BaseModel):
    """A digest tagged with the algorithm that produced it."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    algorithm: HashType
    digest: bytes = Field(strict=True)

    @model_validator(mode="after")
    def _check_digest_size(self) -> TypedHash:
        expected = HASH_SIZES[self.algorithm]
        if len(self.digest) != expected:
            raise ValueError(
                f"{self.algorithm.name} digest must be {expected} bytes, "
                f"got {len(self.digest)}"
            )
        return self

    @classmethod
    def from_hex(cls, algorithm: HashType, text: str) -> TypedHash:
        return cls(algorithm=algorithm, digest=bytes.fromhex(text))

    @property
    def hexdigest(self) -> str:
        return self.digest.hex()

    def to_truncated(self) -> TypedHash:
        """Return this hash in truncated SHA-256 form.

        Raises:
            UnsupportedConversionError: for anything but SHA-256 and its
                truncated form.
        """
        if self.algorithm == HashType.sha256_truncated:
            return self
        if self.algorithm == HashType.sha256:
            return TypedHash(
                algorithm=HashType.sha256_truncated,
                digest=self.digest[: HASH_SIZES[HashType.sha256_truncated]],
            )
        raise UnsupportedConversionError(self.algorithm)

    def equals(self, other: TypedHash) -> bool:
        """Compare two typed hashes.

        When either side is a truncated SHA-256, both sides are normalized to
        that form first.  Otherwise the algorithms and lengths must match.

        Raises:
            UnsupportedConversionError: if one side is truncated and the other
                cannot be normalized (e.g. SHA-1).
            AlgorithmMismatchError: if the algorithms differ.
            LengthMismatchError: if the digest lengths differ.
        """
        truncated = HashType.sha256_truncated
        if truncated in (self.algorithm, other.algorithm):
            return self.to_truncated().digest == other.to_truncated().digest

        if self.algorithm != other.algorithm:
            raise AlgorithmMismatchError(self.algorithm, other.algorithm)
        if len(self.digest) != len(other.digest):
            raise LengthMismatchError(len(self.digest), len(other.digest))
        return self.digest == other.digest


# ---------------------------------------------------------------------------
# Chunklist
# ---------------------------------------------------------------------------


class ChunkRecord(BaseModel):
    """One entry of a chunklist's chunk table."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    size: int = Field(ge=0, le=0xFFFFFFFF)
    digest: bytes = Field(
        min_length=SHA256_DIGEST_SIZE, max_length=SHA256_DIGEST_SIZE, strict=True
    )

    @property
    def is_remainder(self) -> bool:
        """A zero size means "everything left in the target file"."""
        return self.size == 0

    @property
    def typed_hash(self) -> TypedHash:
        return TypedHash(algorithm=HashType.sha256, digest=self.digest)

    def resolve_length(self, position: int, total_size: int) -> int:
        """Number of target bytes this chunk covers when read at *position*."""
        if self.is_remainder:
            return max(total_size - position, 0)
        return self.size


class ChunkManifest(BaseModel):
    """A decoded chunklist: header fields, chunk table and signature.

    ``signed_region`` holds the manifest bytes from offset 0 up to
    ``signature_offset``.  It is what the signature covers and is never
    serialised.
    """

    model_config = ConfigDict(frozen=True)

    magic: int
    header_size: int
    file_version: int
    chunk_method: int
    signature_method: int
    chunk_count: int = Field(ge=0)
    chunk_table_offset: int = Field(ge=0)
    signature_offset: int = Field(ge=0)
    chunks: tuple[ChunkRecord, ...] = ()
    signature: ManifestSignature
    signed_region: bytes = Field(default=b"", repr=False, exclude=True)

    @model_validator(mode="after")
    def _check_chunks(self) -> ChunkManifest:
        if len(self.chunks) != self.chunk_count:
            raise ValueError(
                f"chunk_count {self.chunk_count} does not match "
                f"{len(self.chunks)} chunk records"
            )
        for index, chunk in enumerate(self.chunks[:-1]):
            if chunk.is_remainder:
                raise ValueError(
                    f"remainder chunk at index {index} must be the last of "
                    f"{self.chunk_count}"
                )
        return self

    @model_validator(mode="after")
    def _check_signature_method(self) -> ChunkManifest:
        if self.signature.method != self.signature_method:
            raise ValueError(
                f"signature_method {self.signature_method} does not match "
                f"{type(self.signature).__name__} (method {self.signature.method})"
            )
        return self


# ---------------------------------------------------------------------------
# Verification results
# ---------------------------------------------------------------------------


class FailureKind(str, Enum):
    """Category of a verification failure."""

    signature = "signature"
    chunk = "chunk"


class VerificationFailure(BaseModel):
    """A single authenticity or integrity failure."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    chunk_index: int | None = None


class VerificationResult(BaseModel):
    """Outcome of verifying a target file against a chunklist."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    chunk_count: int = Field(ge=0)
    failures: tuple[VerificationFailure, ...] = ()

    @property
    def failed_chunks(self) -> list[int]:
        return [
            f.chunk_index
            for f in self.failures
            if f.kind == FailureKind.chunk and f.chunk_index is not None
        ]


# ---------------------------------------------------------------------------
# Trust cache
# ---------------------------------------------------------------------------


def _record_hash(code: int, digest: bytes) -> TypedHash:
    try:
        algorithm = HashType(code)
    except ValueError:
        raise UnsupportedHashTypeError(code) from None

    # A 20-byte record can only hold the truncated form of a SHA-256.
    if algorithm == HashType.sha256:
        algorithm = HashType.sha256_truncated

    expected = HASH_SIZES[algorithm]
    if expected != len(digest):
        raise LengthMismatchError(expected, len(digest))
    return TypedHash(algorithm=algorithm, digest=digest)


class TrustCacheEntryV0(BaseModel):
    """Version 0 record: a bare SHA-1 digest with the AMFI flag implied."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    version: Literal[0] = 0
    digest: bytes = Field(
        min_length=TRUST_CACHE_HASH_SIZE, max_length=TRUST_CACHE_HASH_SIZE, strict=True
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hash_type(self) -> int:
        return int(HashType.sha1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def flags(self) -> int:
        return FLAG_AMFI

    def typed_hash(self) -> TypedHash:
        return _record_hash(self.hash_type, self.digest)


class TrustCacheEntryV1(BaseModel):
    """Version 1 record: digest plus explicit hash type and flags."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    version: Literal[1] = 1
    digest: bytes = Field(
        min_length=TRUST_CACHE_HASH_SIZE, max_length=TRUST_CACHE_HASH_SIZE, strict=True
    )
    hash_type: int = Field(ge=0, le=0xFF)
    flags: int = Field(ge=0, le=0xFF)

    def typed_hash(self) -> TypedHash:
        return _record_hash(self.hash_type, self.digest)


TrustCacheEntry = Annotated[
    TrustCacheEntryV0 | TrustCacheEntryV1, Field(discriminator="version")
]


class TrustCache(BaseModel):
    """A decoded trust cache."""

    model_config = ConfigDict(frozen=True)

    version: Literal[0, 1]
    uuid: UUID
    count: int = Field(ge=0)
    entries: tuple[TrustCacheEntry, ...] = ()

    @model_validator(mode="after")
    def _check_entries(self) -> TrustCache:
        if len(self.entries) != self.count:
            raise ValueError(
                f"count {self.count} does not match {len(self.entries)} entries"
            )
        for index, entry in enumerate(self.entries):
            if entry.version != self.version:
                raise ValueError(
                    f"entry {index} is version {entry.version}, "
                    f"trust cache is version {self.version}"
                )
        return self

    def lookup(self, digest: TypedHash) -> TrustCacheEntryV0 | TrustCacheEntryV1 | None:
        """Return the first entry whose hash equals *digest*, or None.

        Entries whose hash type cannot be compared with *digest* never match.
        """
        for index, entry in enumerate(self.entries):
            try:
                if entry.typed_hash().equals(digest):
                    return entry
            except HashComparisonError as exc:
                logger.debug("Skipping trust cache entry %d: %s", index, exc)
        return None


__all__ = [
    "FLAG_AMFI",
    "HASH_SIZES",
    "ChunkManifest",
    "ChunkRecord",
    "FailureKind",
    "HashType",
    "TrustCache",
    "TrustCacheEntry",
    "TrustCacheEntryV0",
    "TrustCacheEntryV1",
    "TypedHash",
    "VerificationFailure",
    "VerificationResult",
]
