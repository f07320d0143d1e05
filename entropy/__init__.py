"""
Observable entropy beacon package.

This package collects unpredictable public data (block headers, randomness
beacons, news items, user submissions) into a directory of JSON files and
turns it into a signed, hash-chained Round:

- collect  → one JSON artifact per source connector,
- generate → canonical file digests → slow hash → signed Round,
- verify   → public key check + independent recomputation,
- index    → previous round digest → publishing commit id.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

# Public version string (lazy fallback during early bootstrap)
try:
    from .version import __version__  # type: ignore
except Exception:  # pragma: no cover
    __version__ = "0.0.0+dev"

__all__ = ["__version__"]
