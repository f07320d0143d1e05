"""
Verify a persisted Round.

Steps, in order; the first failure aborts:

1. the current round file must exist            → MissingArtifactError
2. the public key is fetched with bounded retry → KeyRetrievalError
3. the stored signature must verify             → InvalidSignatureError
4. a fresh Round is recomputed from the sources (unsigned path)
5. the fresh record is compared with the stored one, ignoring ``createdAt``
6. any difference                               → IntegrityMismatchError

Comparison rule: every key of the recomputed record except ``createdAt``
must be present with an equal value in the stored record. Keys that exist
only in the stored record (``signature``, unknown extras) are ignored, and a
stored record without ``version`` is read as the current schema version.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from entropy.beacon.round import assemble_round
from entropy.beacon.signing import verify_signature
from entropy.errors import (
    ArtifactIOError,
    EntropyError,
    IntegrityMismatchError,
    InvalidSignatureError,
    KeyRetrievalError,
    MissingArtifactError,
    TooManyTries,
)
from entropy.metrics import METRICS
from entropy.sources.http import get_json, make_client
from entropy.store import read_json_optional
from entropy.types.core import Round, RunContext
from entropy.utils.retry import RetryPolicy, retry_call
from entropy.version import ROUND_SCHEMA_VERSION

log = logging.getLogger(__name__)

__all__ = ["fetch_public_key", "diff_rounds", "verify_round"]

_IGNORED_KEYS = frozenset({"createdAt"})


def fetch_public_key(client: httpx.Client, url: str, policy: RetryPolicy) -> str:
    """GET ``{"key": <hex>}`` from *url*; an empty key counts as a failed attempt."""

    def _once() -> str:
        data = get_json(client, url, target="pubkey")
        key = data.get("key") if isinstance(data, dict) else None
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"no public key in response from {url}")
        return key.strip()

    try:
        return retry_call(_once, policy, label="verify : retrieve public key")
    except TooManyTries as e:
        raise KeyRetrievalError(url=url, attempts=e.attempts, reason=e.last_error) from e


def diff_rounds(persisted: Dict[str, Any], fresh: Dict[str, Any]) -> List[str]:
    """Return the wire keys of *fresh* whose values differ in *persisted*."""
    diffs: List[str] = []
    for key, value in fresh.items():
        if key in _IGNORED_KEYS:
            continue
        if key not in persisted:
            # records written before the schema was versioned carry no `version`
            if key != "version" or value != ROUND_SCHEMA_VERSION:
                diffs.append(key)
        elif key == "files":
            diffs.extend(_diff_files(persisted[key], value))
        elif persisted[key] != value:
            diffs.append(key)
    return diffs


def _diff_files(persisted: Any, fresh: List[Dict[str, Any]]) -> List[str]:
    if not isinstance(persisted, list) or len(persisted) != len(fresh):
        return ["files"]
    return [f"files[{i}]" for i, (a, b) in enumerate(zip(persisted, fresh)) if a != b]


def verify_round(
    ctx: RunContext,
    *,
    public_key: Optional[str] = None,
    client: Optional[httpx.Client] = None,
) -> Round:
    """
    Verify the current round file. When *public_key* is None it is fetched
    from the configured endpoint. Returns the verified Round.
    """
    cfg = ctx.config
    outcome = "error"
    try:
        round_path = cfg.paths.round_path
        stored = read_json_optional(round_path)
        if stored is None:
            outcome = "missing_artifact"
            raise MissingArtifactError(path=str(round_path))
        if not isinstance(stored, dict):
            raise ArtifactIOError(path=str(round_path), reason="round record must be a JSON object")

        if public_key is None:
            outcome = "key_retrieval"
            policy = RetryPolicy.from_config(cfg.retry)
            if client is None:
                with make_client(cfg.network.timeout_s) as own:
                    public_key = fetch_public_key(own, cfg.network.pubkey_url, policy)
            else:
                public_key = fetch_public_key(client, cfg.network.pubkey_url, policy)

        outcome = "invalid_signature"
        digest = stored.get("hash")
        if not isinstance(digest, str):
            raise InvalidSignatureError(digest=str(digest), reason="missing-digest")
        verify_signature(digest, stored.get("signature"), public_key)

        outcome = "error"
        fresh = assemble_round(ctx)
        diffs = diff_rounds(stored, fresh.to_dict())
        if diffs:
            outcome = "integrity_mismatch"
            raise IntegrityMismatchError(
                fields=diffs, expected_digest=digest, actual_digest=fresh.final_digest
            )
    except EntropyError:
        METRICS.record_round("verify", outcome)
        raise

    METRICS.record_round("verify", "ok")
    log.info("entropy : verified", extra={"hash": fresh.final_digest})
    return Round.from_dict(stored)
