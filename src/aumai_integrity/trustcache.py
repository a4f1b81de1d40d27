"""Trust cache decoding."""

from __future__ import annotations

import logging
from pathlib import Path
from uuid import UUID

from aumai_integrity.errors import (
    SizeMismatchError,
    TruncatedDataError,
    UnsupportedVersionError,
)
from aumai_integrity.models import (
    TRUST_CACHE_HASH_SIZE,
    TrustCache,
    TrustCacheEntryV0,
    TrustCacheEntryV1,
)
from aumai_integrity.reader import BinaryCursor

logger = logging.getLogger(__name__)

TRUST_CACHE_V0 = 0
TRUST_CACHE_V1 = 1
TRUST_CACHE_HEADER_SIZE = 24

RECORD_SIZES: dict[int, int] = {
    TRUST_CACHE_V0: TRUST_CACHE_HASH_SIZE,
    TRUST_CACHE_V1: TRUST_CACHE_HASH_SIZE + 2,
}


class TrustCacheReader:
    """Decode trust caches from raw bytes."""

    def read(self, data: bytes) -> TrustCache:
        """Decode *data* into a :class:`TrustCache`.

        The input length must equal the header size plus ``count`` records of
        the version's record size exactly; no prefix or partial cache is ever
        accepted.

        Raises:
            TruncatedDataError: if *data* is shorter than the header.
            UnsupportedVersionError: for versions other than 0 and 1.
            SizeMismatchError: if the length does not match the declared count.
        """
        if len(data) < TRUST_CACHE_HEADER_SIZE:
            raise TruncatedDataError(
                f"not enough data for header: {len(data)} < {TRUST_CACHE_HEADER_SIZE}"
            )

        cursor = BinaryCursor.from_bytes(data)
        version = cursor.u32("version")
        identifier = UUID(bytes=cursor.read_exact(16, "uuid"))
        count = cursor.u32("count")

        record_size = RECORD_SIZES.get(version)
        if record_size is None:
            raise UnsupportedVersionError(version)

        expected = TRUST_CACHE_HEADER_SIZE + count * record_size
        if len(data) != expected:
            raise SizeMismatchError(len(data), expected)

        entries: list[TrustCacheEntryV0 | TrustCacheEntryV1] = []
        for index in range(count):
            digest = cursor.read_exact(TRUST_CACHE_HASH_SIZE, f"entry {index} hash")
            if version == TRUST_CACHE_V0:
                entries.append(TrustCacheEntryV0(digest=digest))
            else:
                entries.append(
                    TrustCacheEntryV1(
                        digest=digest,
                        hash_type=cursor.u8(f"entry {index} hash type"),
                        flags=cursor.u8(f"entry {index} flags"),
                    )
                )

        logger.info(
            "Decoded trust cache %s: version %d, %d entries", identifier, version, count
        )
        return TrustCache(
            version=version, uuid=identifier, count=count, entries=tuple(entries)
        )

    def read_file(self, path: str) -> TrustCache:
        return self.read(Path(path).read_bytes())


__all__ = [
    "RECORD_SIZES",
    "TRUST_CACHE_HEADER_SIZE",
    "TRUST_CACHE_V0",
    "TRUST_CACHE_V1",
    "TrustCacheReader",
]
