"""aumai-integrity: Signed chunklist verification and trust cache decoding."""

from aumai_integrity.chunklist import ChunklistReader, ChunklistVerifier
from aumai_integrity.errors import (
    DecodeError,
    HashComparisonError,
    IntegrityError,
    NoValidSignatureError,
    SignatureMethodNotImplementedError,
)
from aumai_integrity.keys import KeyManager
from aumai_integrity.models import (
    ChunkManifest,
    ChunkRecord,
    FailureKind,
    HashType,
    TrustCache,
    TrustCacheEntryV0,
    TrustCacheEntryV1,
    TypedHash,
    VerificationFailure,
    VerificationResult,
)
from aumai_integrity.signature import (
    CertificateSignature,
    RawKeySignature,
    SignatureMethod,
)
from aumai_integrity.trustcache import TrustCacheReader

__version__ = "0.1.0"

__all__ = [
    "CertificateSignature",
    "ChunkManifest",
    "ChunkRecord",
    "ChunklistReader",
    "ChunklistVerifier",
    "DecodeError",
    "FailureKind",
    "HashComparisonError",
    "HashType",
    "IntegrityError",
    "KeyManager",
    "NoValidSignatureError",
    "RawKeySignature",
    "SignatureMethod",
    "SignatureMethodNotImplementedError",
    "TrustCache",
    "TrustCacheEntryV0",
    "TrustCacheEntryV1",
    "TrustCacheReader",
    "TypedHash",
    "VerificationFailure",
    "VerificationResult",
]
