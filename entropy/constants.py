"""
Entropy module constants.

This module centralizes:
- Hash parameters for per-file digests and the slow hash
- Well-known file and directory names of the on-disk layout
- Retry and HTTP defaults shared by every networked call
- Upstream endpoints of the public key service and the publisher

Operational knobs may be overridden via `entropy.config.EntropyConfig`, but
code that needs stable defaults can import from here. Changing the hash
parameters makes previously published rounds unverifiable.
"""

from __future__ import annotations

# -----------------------------
# Hashing
# -----------------------------
HASH_TYPE: str = "sha256"
# Naive sequential throttle, not a VDF: no proof of sequential work exists.
HASH_ITERATIONS: int = 500_000

# -----------------------------
# On-disk layout
# -----------------------------
ENTROPY_FILE: str = "entropy.json"
ENTROPY_DIR: str = "./entropy"
PREV_ENTROPY_FILE: str = f"{ENTROPY_DIR}/entropy_previous.json"
INDEX_DIR: str = "index/by/entropy_hash"
SOURCE_SUFFIX: str = ".json"

# -----------------------------
# Network / retry
# -----------------------------
HTTP_TIMEOUT_S: float = 5.0
RETRY_DELAY_S: float = 1.0
RETRY_MAX_ATTEMPTS: int = 3

PUBKEY_URL: str = "https://entropy.truestamp.com/pubkey"

# Cloudflare KV publisher
KV_API_BASE: str = "https://api.cloudflare.com/client/v4"
KV_LATEST_KEY: str = "latest"
KV_EXPIRATION_TTL_S: int = 60 * 6

__all__ = [
    "HASH_TYPE",
    "HASH_ITERATIONS",
    "ENTROPY_FILE",
    "ENTROPY_DIR",
    "PREV_ENTROPY_FILE",
    "INDEX_DIR",
    "SOURCE_SUFFIX",
    "HTTP_TIMEOUT_S",
    "RETRY_DELAY_S",
    "RETRY_MAX_ATTEMPTS",
    "PUBKEY_URL",
    "KV_API_BASE",
    "KV_LATEST_KEY",
    "KV_EXPIRATION_TTL_S",
]
