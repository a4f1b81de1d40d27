"""Trust-anchor key loading and export."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

logger = logging.getLogger(__name__)

ANCHOR_KEY_SIZE = 2048
ANCHOR_MODULUS_BYTES = ANCHOR_KEY_SIZE // 8
ANCHOR_PUBLIC_EXPONENT = 0x010001

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[A-Z ]+)-----.+?-----END (?P=label)-----", re.DOTALL
)
_PUBLIC_KEY_LABELS = {b"RSA PUBLIC KEY", b"PUBLIC KEY"}


class KeyManager:
    """Load, build and export the RSA public keys used as trust anchors."""

    def load_trust_anchors(self, path: str) -> list[RSAPublicKey]:
        """Read every public key in the PEM file at *path*, in file order."""
        return self.parse_trust_anchors(Path(path).read_bytes())

    def parse_trust_anchors(self, pem_data: bytes) -> list[RSAPublicKey]:
        """Parse every ``RSA PUBLIC KEY`` / ``PUBLIC KEY`` block in *pem_data*.

        Blocks with other labels are skipped.

        Raises:
            ValueError: if a key is not a 2048-bit RSA key with exponent
                65537, or if no key is found at all.
        """
        anchors: list[RSAPublicKey] = []
        for match in _PEM_BLOCK.finditer(pem_data):
            label = match.group("label")
            if label not in _PUBLIC_KEY_LABELS:
                logger.debug("Skipping PEM block %r", label.decode("ascii"))
                continue
            key = serialization.load_pem_public_key(match.group(0))
            anchors.append(self._check_anchor(key))

        if not anchors:
            raise ValueError("No RSA public keys found in PEM data.")
        logger.info("Loaded %d trust anchor(s)", len(anchors))
        return anchors

    def anchor_from_modulus(self, modulus: bytes) -> RSAPublicKey:
        """Build a trust anchor from a raw big-endian 2048-bit modulus."""
        if len(modulus) != ANCHOR_MODULUS_BYTES:
            raise ValueError(
                f"modulus must be {ANCHOR_MODULUS_BYTES} bytes, got {len(modulus)}"
            )
        numbers = rsa.RSAPublicNumbers(
            ANCHOR_PUBLIC_EXPONENT, int.from_bytes(modulus, "big")
        )
        return self._check_anchor(numbers.public_key())

    def anchors_from_table(
        self, data: bytes, stride: int = ANCHOR_MODULUS_BYTES
    ) -> list[RSAPublicKey]:
        """Split a table of moduli into trust anchors.

        Each entry is *stride* bytes long and ends with the 256-byte modulus;
        any leading bytes of an entry are a per-key header and are skipped.
        """
        if stride < ANCHOR_MODULUS_BYTES:
            raise ValueError(
                f"stride must be at least {ANCHOR_MODULUS_BYTES}, got {stride}"
            )
        if not data or len(data) % stride:
            raise ValueError(
                f"key table of {len(data)} bytes is not a multiple of {stride}"
            )
        header = stride - ANCHOR_MODULUS_BYTES
        return [
            self.anchor_from_modulus(data[start + header : start + stride])
            for start in range(0, len(data), stride)
        ]

    def export_pem(self, key: RSAPublicKey) -> bytes:
        """Serialise *key* as a PKCS#1 ``RSA PUBLIC KEY`` PEM block."""
        return key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.PKCS1,
        )

    def _check_anchor(self, key: object) -> RSAPublicKey:
        if not isinstance(key, RSAPublicKey):
            raise ValueError(
                f"Unsupported public key type: {type(key).__name__}. "
                "Only RSA keys can be trust anchors."
            )
        if key.key_size != ANCHOR_KEY_SIZE:
            raise ValueError(
                f"Trust anchors must be {ANCHOR_KEY_SIZE}-bit RSA keys, "
                f"got {key.key_size}-bit"
            )
        if key.public_numbers().e != ANCHOR_PUBLIC_EXPONENT:
            raise ValueError(
                f"Trust anchors must use public exponent {ANCHOR_PUBLIC_EXPONENT}"
            )
        return key


__all__ = [
    "ANCHOR_KEY_SIZE",
    "ANCHOR_PUBLIC_EXPONENT",
    "KeyManager",
]
