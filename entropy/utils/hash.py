"""
entropy.utils.hash
==================

Thin hashlib helpers used by the collector and the digest chain builder.

Key pieces
----------
- :func:`new_hasher`: resolve an algorithm name, raising
  :class:`~entropy.errors.ConfigurationError` when it is unavailable.
- :func:`hex_digest`: one-shot lowercase hex digest of bytes.
- :func:`iterate_hex`: the naive iterated hash over hex strings.

Conventions
-----------
* Digests travel as lowercase hex strings, never raw bytes; the iterated hash
  re-hashes the UTF-8 encoding of the previous hex string. This keeps the
  output identical to rounds published by earlier releases of the tool.
"""

from __future__ import annotations

import hashlib
from typing import Any

from entropy.errors import ConfigurationError

__all__ = [
    "new_hasher",
    "hex_digest",
    "iterate_hex",
    "ensure_algorithm",
]


def new_hasher(algorithm: str) -> Any:
    """Return a fresh hashlib object for *algorithm*."""
    try:
        return hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"hash algorithm unavailable: {algorithm!r}") from e


def ensure_algorithm(algorithm: str) -> str:
    """Fail fast if *algorithm* cannot be used; returns it unchanged."""
    h = new_hasher(algorithm)
    if getattr(h, "digest_size", 0) == 0:
        # shake_* need an explicit output length; not usable as a chained digest
        raise ConfigurationError(f"hash algorithm has no fixed digest size: {algorithm!r}")
    return algorithm


def hex_digest(data: bytes, algorithm: str) -> str:
    """Return the lowercase hex digest of *data*."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("hex_digest expects a bytes-like object")
    h = new_hasher(algorithm)
    h.update(bytes(data))
    return h.hexdigest()


def iterate_hex(seed: str, algorithm: str, iterations: int) -> str:
    """
    h_0 = seed; h_i = hex(Hash(utf8(h_{i-1}))); return h_iterations.

    Strictly sequential: each step consumes the previous output.
    """
    if iterations < 1:
        raise ConfigurationError("iterations must be >= 1")
    ensure_algorithm(algorithm)
    # Bind the constructor once; hashlib.new per step is measurably slower.
    ctor = getattr(hashlib, algorithm, None)
    if ctor is None:
        def ctor(b: bytes) -> Any:
            return hashlib.new(algorithm, b)

    value = seed
    for _ in range(iterations):
        value = ctor(value.encode("utf-8")).hexdigest()
    return value
