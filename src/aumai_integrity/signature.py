"""Chunklist signature variants and their verification logic."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence
from enum import IntEnum
from typing import Annotated, Literal
from uuid import UUID

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from pydantic import BaseModel, ConfigDict, Field

from aumai_integrity.errors import (
    NoValidSignatureError,
    SignatureMethodNotImplementedError,
)

logger = logging.getLogger(__name__)

REV1_SIGNATURE_SIZE = 256
REV2_SIGNATURE_SIZE = 808
RSA_KEY_BYTES = 2048 // 8


class SignatureMethod(IntEnum):
    """Signature method codes stored in the chunklist header."""

    rev1 = 1
    integrity_data = 2
    rev2 = 3


class RawKeySignature(BaseModel):
    """Bare RSA-2048 signature checked against an external list of keys."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    method: Literal[1] = 1
    signature: bytes = Field(
        min_length=REV1_SIGNATURE_SIZE,
        max_length=REV1_SIGNATURE_SIZE,
        repr=False,
        strict=True,
    )

    def verify(
        self, signed_region: bytes, trust_anchors: Sequence[RSAPublicKey]
    ) -> RSAPublicKey:
        """Verify the signature over *signed_region*.

        The region is hashed once with SHA-256 and the digest is checked with
        RSA PKCS#1 v1.5 against each anchor in order.

        Returns:
            The first trust anchor that validates the signature.

        Raises:
            ValueError: if *trust_anchors* is empty.
            NoValidSignatureError: if no anchor validates the signature.
        """
        if not trust_anchors:
            raise ValueError("At least one trust anchor is required.")

        digest = hashlib.sha256(signed_region).digest()
        for index, key in enumerate(trust_anchors):
            try:
                key.verify(
                    self.signature,
                    digest,
                    padding.PKCS1v15(),
                    utils.Prehashed(hashes.SHA256()),
                )
            except InvalidSignature:
                logger.debug("Trust anchor %d rejected the signature", index)
                continue
            logger.debug("Trust anchor %d accepted the signature", index)
            return key

        raise NoValidSignatureError(len(trust_anchors))


class CertificateSignature(BaseModel):
    """Certificate-style signature carrying its own RSA key.

    The layout is known but no verification path exists yet; :meth:`verify`
    always raises so the variant can never pass as verified.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="hex", val_json_bytes="hex")

    method: Literal[3] = 3
    length: Literal[808] = REV2_SIGNATURE_SIZE
    revision: int = Field(ge=0, le=0xFF)
    security_epoch: int = Field(ge=0, le=0xFF)
    certificate_type: int = Field(ge=0, le=0xFFFF)
    certificate_guid: UUID
    hash_type_guid: UUID
    rsa_public_key: bytes = Field(
        min_length=RSA_KEY_BYTES, max_length=RSA_KEY_BYTES, repr=False, strict=True
    )
    rsa_signature: bytes = Field(
        min_length=RSA_KEY_BYTES, max_length=RSA_KEY_BYTES, repr=False, strict=True
    )

    def verify(
        self, signed_region: bytes, trust_anchors: Sequence[RSAPublicKey]
    ) -> RSAPublicKey:
        raise SignatureMethodNotImplementedError(self.method)


ManifestSignature = Annotated[
    RawKeySignature | CertificateSignature, Field(discriminator="method")
]


__all__ = [
    "REV1_SIGNATURE_SIZE",
    "REV2_SIGNATURE_SIZE",
    "CertificateSignature",
    "ManifestSignature",
    "RawKeySignature",
    "SignatureMethod",
]
