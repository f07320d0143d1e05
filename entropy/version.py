"""
Version helpers for the observable-entropy package.

Resolution order:
1) the installed distribution metadata (``observable-entropy``),
2) a static fallback ``BASE_VERSION`` tagged as a local source checkout.

The version is sent in the User-Agent of every outbound HTTP request and shown
by `entropy version`.
"""
from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _pkg_version

# Bump this when making intentional, source-level releases.
BASE_VERSION = "0.3.0"

_DIST_NAME = "observable-entropy"

# Schema version of the persisted Round record (independent of the package).
ROUND_SCHEMA_VERSION = 1


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return _pkg_version(_DIST_NAME)
    except PackageNotFoundError:
        return f"{BASE_VERSION}+source"


__version__ = get_version()
__all__ = ["__version__", "get_version", "BASE_VERSION", "ROUND_SCHEMA_VERSION"]
