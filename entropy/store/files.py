"""
JSON file helpers for the round, archive, index and source artifacts.

Every persisted artifact is pretty-printed UTF-8 JSON. Filesystem failures
surface as :class:`~entropy.errors.ArtifactIOError`; they are never retried
or swallowed here.

No locking is performed: one operator process is assumed to run one round
at a time against a given directory tree.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Optional, Union

from entropy.errors import ArtifactIOError

PathLike = Union[str, Path]

__all__ = ["read_json", "read_json_optional", "write_json", "copy_file", "ensure_dir"]


def ensure_dir(path: PathLike) -> Path:
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArtifactIOError(path=str(p), reason=str(e)) from e
    return p


def read_json(path: PathLike) -> Any:
    """Read and decode a JSON file; missing, unreadable or malformed → ArtifactIOError."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ArtifactIOError(path=str(p), reason=str(e)) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ArtifactIOError(path=str(p), reason=f"malformed JSON: {e}") from e


def read_json_optional(path: PathLike) -> Optional[Any]:
    """Like :func:`read_json` but returns None when the file does not exist."""
    p = Path(path)
    if not p.exists():
        return None
    return read_json(p)


def write_json(path: PathLike, data: Any) -> Path:
    """Write *data* as 2-space indented JSON, creating parent directories."""
    p = Path(path)
    ensure_dir(p.parent)
    try:
        p.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise ArtifactIOError(path=str(p), reason=str(e)) from e
    return p


def copy_file(src: PathLike, dst: PathLike) -> Path:
    """Byte-for-byte copy of *src* to *dst* (parents created)."""
    d = Path(dst)
    ensure_dir(d.parent)
    try:
        shutil.copyfile(src, d)
    except OSError as e:
        raise ArtifactIOError(path=str(src), reason=f"copy to {d} failed: {e}") from e
    return d
