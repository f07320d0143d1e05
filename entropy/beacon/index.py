"""
Chain linkage index: previous round digest → external commit id.

The index answers "which commit published the round with this digest?". It
is keyed by the digest of the *archived* previous round because, at index
time, that is the round the parent commit carried.

Validation happens before anything is written: the commit id first, then
(only if an archive exists) the archived digest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from entropy.config import PathsConfig
from entropy.errors import ArtifactIOError
from entropy.store import read_json_optional, write_json
from entropy.types.core import IndexEntry
from entropy.utils.bytes import ensure_hex_len

log = logging.getLogger(__name__)

__all__ = ["index_previous_round", "write_index_entry"]

_COMMIT_ID_BYTES = 20
_DIGEST_BYTES = 32


def write_index_entry(index_dir: Path, entry: IndexEntry) -> Path:
    """Write ``<index_dir>/<digest>.json``; idempotent for identical input."""
    ensure_hex_len("commit id", entry.external_id, _COMMIT_ID_BYTES)
    ensure_hex_len("entropy hash", entry.digest, _DIGEST_BYTES)
    return write_json(Path(index_dir) / entry.file_name, entry.to_dict())


def index_previous_round(paths: PathsConfig, commit_id: Optional[str]) -> Optional[Path]:
    """
    Index the archived previous round under *commit_id*.

    Returns the written path, or None when there is no archived round yet.
    """
    ensure_hex_len("commit id", commit_id or "", _COMMIT_ID_BYTES)

    prev = read_json_optional(paths.previous_path)
    if prev is None:
        log.info("entropy-index : no previous round at '%s', nothing to index", paths.previous_path)
        return None
    if not isinstance(prev, dict):
        raise ArtifactIOError(path=str(paths.previous_path), reason="round record must be a JSON object")

    # Only the digest is needed; the rest of the archived record is not inspected.
    digest = ensure_hex_len("entropy hash", prev.get("hash"), _DIGEST_BYTES)
    entry = IndexEntry(digest=digest, external_id=commit_id)  # type: ignore[arg-type]
    out = write_index_entry(paths.index_path, entry)
    log.info("entropy-index : index file written : '%s' : %s", out, commit_id)
    return out
