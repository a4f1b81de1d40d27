"""Shared test fixtures for aumai-integrity."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from aumai_integrity.keys import KeyManager
from helpers import ChunkSpec, chunk_specs, encode_chunklist

# ---------------------------------------------------------------------------
# Key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def key_manager() -> KeyManager:
    """A shared KeyManager instance (stateless, safe to share)."""
    return KeyManager()


@pytest.fixture(scope="session")
def signing_key() -> RSAPrivateKey:
    """The RSA-2048 key whose public half is the trusted anchor."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def untrusted_key() -> RSAPrivateKey:
    """An RSA-2048 key that is never a trust anchor."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def trust_anchors(signing_key: RSAPrivateKey) -> list[RSAPublicKey]:
    return [signing_key.public_key()]


@pytest.fixture()
def anchors_pem_file(
    tmp_path: Path, signing_key: RSAPrivateKey, key_manager: KeyManager
) -> Path:
    path = tmp_path / "keys.pem"
    path.write_bytes(key_manager.export_pem(signing_key.public_key()))
    return path


# ---------------------------------------------------------------------------
# Target and chunklist fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def target_data() -> bytes:
    """10 KiB of patterned data: chunks of 4096, 4096 and 2048 bytes."""
    return bytes(range(256)) * 40


@pytest.fixture()
def target_file(tmp_path: Path, target_data: bytes) -> Path:
    path = tmp_path / "payload.dmg"
    path.write_bytes(target_data)
    return path


@pytest.fixture()
def chunklist_bytes(target_data: bytes, signing_key: RSAPrivateKey) -> bytes:
    return encode_chunklist(chunk_specs(target_data, 4096), signing_key)


@pytest.fixture()
def chunklist_file(tmp_path: Path, chunklist_bytes: bytes) -> Path:
    """Sits next to *target_file* under the name the CLI derives by default."""
    path = tmp_path / "payload.chunklist"
    path.write_bytes(chunklist_bytes)
    return path


@pytest.fixture()
def chunklist_factory(
    signing_key: RSAPrivateKey,
) -> Callable[..., bytes]:
    """encode_chunklist with the trusted key bound as the default signer."""

    def _build(chunks: Sequence[ChunkSpec], **kwargs: object) -> bytes:
        key = kwargs.pop("private_key", signing_key)
        return encode_chunklist(chunks, key, **kwargs)  # type: ignore[arg-type]

    return _build
