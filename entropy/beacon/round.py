"""
Assemble, sign and persist a Round.

Generation order (each step completes before the next starts):

1. the signing key is parsed, so a missing key fails before any file changes;
2. the current round file, if any, is copied byte-for-byte to the previous
   round archive;
3. the source files are collected and digested, the slow hash is derived and
   ``prevHash`` is linked from the archive written in step 2;
4. the digest is signed and the new round overwrites the current round file.

Archiving before overwriting is what lets a later verification recover the
true prior digest even after a new round exists.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from entropy.beacon.collector import collect_source_files
from entropy.beacon.digest import derive_final_digest
from entropy.beacon.signing import load_private_key, sign_digest
from entropy.errors import ArtifactIOError
from entropy.metrics import METRICS
from entropy.store import copy_file, read_json_optional, write_json
from entropy.types.core import Round, RunContext

log = logging.getLogger(__name__)

__all__ = [
    "read_round",
    "read_previous_digest",
    "assemble_round",
    "archive_current_round",
    "generate_round",
]


def read_round(path: Path) -> Optional[Round]:
    """Load a persisted Round, or None if the file does not exist."""
    data = read_json_optional(path)
    if data is None:
        return None
    try:
        return Round.from_dict(data)
    except (ValueError, TypeError) as e:
        raise ArtifactIOError(path=str(path), reason=f"not a round record: {e}") from e


def read_previous_digest(ctx: RunContext) -> Optional[str]:
    prev = read_round(ctx.config.paths.previous_path)
    return prev.final_digest if prev is not None else None


def assemble_round(ctx: RunContext, *, private_key: Optional[Ed25519PrivateKey] = None) -> Round:
    """
    Build a Round from the current on-disk sources. Pure read: nothing is
    written. Signed only when *private_key* is given.
    """
    cfg = ctx.config
    algorithm = cfg.hashing.algorithm
    iterations = cfg.hashing.iterations

    files = collect_source_files(cfg.paths.entropy_path, algorithm)
    final_digest = derive_final_digest(files, algorithm, iterations)

    rnd = Round(
        files=tuple(files),
        digest_algorithm=algorithm,
        digest_iterations=iterations,
        final_digest=final_digest,
        previous_digest=read_previous_digest(ctx),
        created_at=ctx.now_iso,
    )
    if private_key is not None:
        rnd = rnd.with_signature(sign_digest(final_digest, private_key))
    return rnd


def archive_current_round(ctx: RunContext) -> Optional[Path]:
    """Copy the current round file to the previous round archive, if it exists."""
    paths = ctx.config.paths
    if not paths.round_path.exists():
        return None
    dst = copy_file(paths.round_path, paths.previous_path)
    log.info("entropy : copied to '%s'", dst)
    return dst


def generate_round(ctx: RunContext, private_key: Optional[str]) -> Round:
    """Archive the previous round, then assemble, sign and persist a new one."""
    key = load_private_key(private_key)
    try:
        archive_current_round(ctx)
        rnd = assemble_round(ctx, private_key=key)
        write_json(ctx.config.paths.round_path, rnd.to_dict())
    except Exception:
        METRICS.record_round("generate", "error")
        raise
    METRICS.record_round("generate", "ok")
    log.info("entropy : generated", extra={"hash": rnd.final_digest, "files": len(rnd.files)})
    return rnd
