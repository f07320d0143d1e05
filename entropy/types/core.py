from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from entropy.config import EntropyConfig
from entropy.version import ROUND_SCHEMA_VERSION

"""
Core typed records for the entropy beacon.

These are intentionally minimal so they can be shared by the collector, the
digest builder, the round assembler, the verifier and tests.

Types provided:
  • SourceFile  - one collected entropy artifact (name + digest)
  • Round       - one published, hash-chained, optionally signed artifact
  • IndexEntry  - previous round digest → external commit id
  • RunContext  - the single captured timestamp of one invocation

Wire keys (`hash`, `hashType`, `prevHash`, ...) are kept compatible with
rounds published by earlier releases of the tool.
"""


def _require_str(name: str, v: Any) -> str:
    if not isinstance(v, str) or not v:
        raise ValueError(f"{name} must be a non-empty string (got {v!r})")
    return v


def iso_utc(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a `Z` suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


# ---- Records -----------------------------------------------------------------


@dataclass(frozen=True)
class SourceFile:
    """
    Metadata of one collected file. The content itself stays on disk and is
    opaque to the core.

    Fields:
      name             - file name relative to the collection directory
      digest           - lowercase hex digest of the raw file bytes
      digest_algorithm - hashlib algorithm name used for `digest`
    """

    name: str
    digest: str
    digest_algorithm: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "hash": self.digest, "hashType": self.digest_algorithm}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceFile":
        return cls(
            name=_require_str("name", d.get("name")),
            digest=_require_str("hash", d.get("hash")),
            digest_algorithm=_require_str("hashType", d.get("hashType")),
        )


@dataclass(frozen=True)
class Round:
    """
    One immutable entropy artifact.

    `final_digest` depends only on the file digests (in canonical order), the
    algorithm and the iteration count. `previous_digest` links rounds but is
    not folded into `final_digest`; `created_at` is informational.
    """

    files: Tuple[SourceFile, ...]
    digest_algorithm: str
    digest_iterations: int
    final_digest: str
    previous_digest: Optional[str] = None
    signature: Optional[str] = None
    created_at: Optional[str] = None
    version: int = ROUND_SCHEMA_VERSION

    def with_signature(self, signature: str) -> "Round":
        return replace(self, signature=signature)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form; `None`-valued optional keys are omitted."""
        out: Dict[str, Any] = {
            "version": self.version,
            "files": [f.to_dict() for f in self.files],
            "hashType": self.digest_algorithm,
            "hashIterations": self.digest_iterations,
            "hash": self.final_digest,
        }
        if self.created_at is not None:
            out["createdAt"] = self.created_at
        if self.signature is not None:
            out["signature"] = self.signature
        if self.previous_digest is not None:
            out["prevHash"] = self.previous_digest
        return out

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Round":
        if not isinstance(d, dict):
            raise ValueError("round record must be a JSON object")
        files = d.get("files")
        if not isinstance(files, list):
            raise ValueError("round record 'files' must be a list")
        iterations = d.get("hashIterations")
        if not isinstance(iterations, int) or isinstance(iterations, bool):
            raise ValueError("round record 'hashIterations' must be an integer")
        return cls(
            files=tuple(SourceFile.from_dict(f) for f in files),
            digest_algorithm=_require_str("hashType", d.get("hashType")),
            digest_iterations=iterations,
            final_digest=_require_str("hash", d.get("hash")),
            previous_digest=d.get("prevHash"),
            signature=d.get("signature"),
            created_at=d.get("createdAt"),
            version=d.get("version", ROUND_SCHEMA_VERSION),
        )


@dataclass(frozen=True)
class IndexEntry:
    """Maps an indexed round digest to the external id (e.g. a git commit) that published it."""

    digest: str
    external_id: str

    @property
    def file_name(self) -> str:
        return f"{self.digest}.json"

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.external_id}


# ---- Invocation context ---------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RunContext:
    """
    Values fixed for the whole of one invocation: the captured `now` (reused by
    the timestamp connector and `createdAt`) and the resolved configuration.
    """

    config: EntropyConfig
    now: datetime = field(default_factory=_utcnow)

    @property
    def now_iso(self) -> str:
        return iso_utc(self.now)


__all__ = [
    "SourceFile",
    "Round",
    "IndexEntry",
    "RunContext",
    "iso_utc",
]
