"""
entropy.utils.bytes
===================

Small utilities for validating and normalizing hex identifiers.

Highlights
----------
- :func:`is_hex` loose check (optional ``0x``, even number of nibbles).
- :func:`ensure_hex_len` strict byte-length guard for identifiers such as
  SHA-1 commit ids (20 bytes) and SHA-256 digests (32 bytes).
- :func:`from_hex` strict decoding used for keys and signatures.
"""

from __future__ import annotations

import re

from entropy.errors import ValidationError

__all__ = ["is_hex", "strip_0x", "from_hex", "ensure_hex_len"]

_HEX_RE = re.compile(r"^(?:0x)?[0-9a-fA-F]*$")


def strip_0x(s: str) -> str:
    return s[2:] if s[:2] in ("0x", "0X") else s


def is_hex(s: str) -> bool:
    """
    Return True if *s* is a hex string with an optional ``0x`` prefix and an
    even number of nibbles. No whitespace is accepted.
    """
    if not isinstance(s, str) or not _HEX_RE.match(s):
        return False
    return len(strip_0x(s)) % 2 == 0


def from_hex(s: str) -> bytes:
    """Decode a hex string (optional ``0x``) to bytes; raises ValueError on bad input."""
    if not is_hex(s):
        raise ValueError(f"not a hex string: {s!r}")
    return bytes.fromhex(strip_0x(s))


def ensure_hex_len(name: str, value: str, n_bytes: int) -> str:
    """
    Require *value* to be ``0x``-optional hex of exactly *n_bytes* bytes.
    Returns *value* unchanged (prefix preserved) so callers keep the caller's
    spelling, e.g. for file names derived from it.
    """
    if not isinstance(value, str) or not is_hex(value) or len(strip_0x(value)) != 2 * n_bytes:
        raise ValidationError(
            name=name,
            value=str(value),
            expected=f"{n_bytes}-byte hex ({2 * n_bytes} hex digits, optional 0x prefix)",
        )
    return value
