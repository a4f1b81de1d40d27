"""Exception hierarchy for aumai-integrity."""

from __future__ import annotations


class IntegrityError(Exception):
    """Base class for every error raised by aumai-integrity."""


# ---------------------------------------------------------------------------
# Structural decode errors
# ---------------------------------------------------------------------------


class DecodeError(IntegrityError, ValueError):
    """Input bytes do not form a well-structured manifest or trust cache."""


class TruncatedDataError(DecodeError):
    """A field, table or block extends past the end of the input."""


class BadMagicError(DecodeError):
    def __init__(self, magic: int) -> None:
        super().__init__(f"bad magic {magic:08X}")
        self.magic = magic


class UnsupportedVersionError(DecodeError):
    def __init__(self, version: int) -> None:
        super().__init__(f"unsupported version {version}")
        self.version = version


class UnsupportedChunkMethodError(DecodeError):
    def __init__(self, method: int) -> None:
        super().__init__(f"unsupported chunk method {method}")
        self.method = method


class UnsupportedSignatureMethodError(DecodeError):
    def __init__(self, method: int) -> None:
        super().__init__(f"unsupported signature method {method}")
        self.method = method


class MisplacedRemainderChunkError(DecodeError):
    """A zero-size chunk appears before the last chunk of the table."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(
            f"chunk {index} of {count} uses the remainder size but is not last"
        )
        self.index = index


class SizeMismatchError(DecodeError):
    def __init__(self, actual: int, expected: int) -> None:
        super().__init__(
            f"data size {actual} does not match expected size {expected}"
        )
        self.actual = actual
        self.expected = expected


# ---------------------------------------------------------------------------
# Unsupported-but-recognized features
# ---------------------------------------------------------------------------


class SignatureMethodNotImplementedError(IntegrityError, NotImplementedError):
    def __init__(self, method: int) -> None:
        super().__init__(f"signature method {method} is not implemented")
        self.method = method


# ---------------------------------------------------------------------------
# Authenticity
# ---------------------------------------------------------------------------


class NoValidSignatureError(IntegrityError):
    """The manifest signature did not validate against any trust anchor."""

    def __init__(self, anchor_count: int) -> None:
        super().__init__(
            f"no valid signature (tried {anchor_count} trust anchor(s))"
        )
        self.anchor_count = anchor_count


# ---------------------------------------------------------------------------
# Typed-hash comparison
# ---------------------------------------------------------------------------


class HashComparisonError(IntegrityError):
    """Two typed hashes cannot be meaningfully compared."""


class UnsupportedConversionError(HashComparisonError):
    def __init__(self, algorithm: int) -> None:
        super().__init__(f"cannot truncate unrelated hash type {algorithm}")
        self.algorithm = algorithm


class AlgorithmMismatchError(HashComparisonError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"type {left} does not match type {right}")
        self.left = left
        self.right = right


class LengthMismatchError(HashComparisonError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"length {left} does not match length {right}")
        self.left = left
        self.right = right


class UnsupportedHashTypeError(HashComparisonError):
    def __init__(self, code: int) -> None:
        super().__init__(f"unknown hash type {code}")
        self.code = code


__all__ = [
    "AlgorithmMismatchError",
    "BadMagicError",
    "DecodeError",
    "HashComparisonError",
    "IntegrityError",
    "LengthMismatchError",
    "MisplacedRemainderChunkError",
    "NoValidSignatureError",
    "SignatureMethodNotImplementedError",
    "SizeMismatchError",
    "TruncatedDataError",
    "UnsupportedChunkMethodError",
    "UnsupportedConversionError",
    "UnsupportedHashTypeError",
    "UnsupportedSignatureMethodError",
    "UnsupportedVersionError",
]
