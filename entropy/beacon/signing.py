"""
Ed25519 signing and signature checks over round digests.

The signed message is the raw digest bytes (``bytes.fromhex(final_digest)``),
keys travel as hex-encoded raw 32-byte values and signatures as lowercase hex.
These choices match rounds published by earlier releases of the tool, so old
artifacts keep verifying.

Signing is local and never retried. Public key retrieval lives in
:mod:`entropy.beacon.verify` because it is networked.
"""

from __future__ import annotations

from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from entropy.errors import ConfigurationError, InvalidSignatureError
from entropy.utils.bytes import from_hex

__all__ = [
    "load_private_key",
    "load_public_key",
    "public_key_hex",
    "generate_keypair",
    "sign_digest",
    "verify_signature",
]

_KEY_LEN = 32


def load_private_key(value: Optional[str]) -> Ed25519PrivateKey:
    """Parse a hex-encoded 32-byte Ed25519 private key (seed)."""
    if value is None or not value.strip():
        raise ConfigurationError("missing private key")
    try:
        raw = from_hex(value.strip())
    except ValueError as e:
        raise ConfigurationError("private key must be hex encoded") from e
    if len(raw) != _KEY_LEN:
        raise ConfigurationError(f"private key must be {_KEY_LEN} bytes (got {len(raw)})")
    return Ed25519PrivateKey.from_private_bytes(raw)


def load_public_key(value: str) -> Ed25519PublicKey:
    """Parse a hex-encoded raw 32-byte Ed25519 public key; ValueError on bad input."""
    raw = from_hex(value.strip())
    if len(raw) != _KEY_LEN:
        raise ValueError(f"public key must be {_KEY_LEN} bytes (got {len(raw)})")
    return Ed25519PublicKey.from_public_bytes(raw)


def public_key_hex(private_key: Ed25519PrivateKey) -> str:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    ).hex()


def generate_keypair() -> Tuple[str, str]:
    """Return a fresh ``(private_key_hex, public_key_hex)`` pair."""
    sk = Ed25519PrivateKey.generate()
    sk_hex = sk.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    ).hex()
    return sk_hex, public_key_hex(sk)


def sign_digest(digest_hex: str, private_key: Ed25519PrivateKey) -> str:
    """Sign the raw bytes of *digest_hex*; returns the signature as hex."""
    try:
        message = from_hex(digest_hex)
    except ValueError as e:
        raise ConfigurationError(f"cannot sign non-hex digest {digest_hex!r}") from e
    return private_key.sign(message).hex()


def verify_signature(digest_hex: str, signature_hex: Optional[str], public_key_hex_value: str) -> None:
    """
    Check *signature_hex* over the raw bytes of *digest_hex*.

    Raises :class:`InvalidSignatureError` on any failure: missing or malformed
    signature, malformed key, or a signature that does not verify.
    """
    if not signature_hex:
        raise InvalidSignatureError(digest=digest_hex, reason="missing-signature")
    try:
        public_key = load_public_key(public_key_hex_value)
    except ValueError as e:
        raise InvalidSignatureError(digest=digest_hex, reason=f"malformed-key: {e}") from e
    try:
        signature = from_hex(signature_hex)
        message = from_hex(digest_hex)
    except ValueError as e:
        raise InvalidSignatureError(digest=digest_hex, reason="malformed-hex") from e
    try:
        public_key.verify(signature, message)
    except InvalidSignature as e:
        raise InvalidSignatureError(digest=digest_hex, reason="mismatch") from e
