"""
entropy.store
=============

File-backed persistence for the entropy beacon. The "store" is a fixed
directory layout shared across separate invocations of the tool:

- the current round file (``entropy.json``),
- the previous round archive (``entropy/entropy_previous.json``),
- the collection directory of per-source JSON files,
- the index directory (``index/by/entropy_hash/<digest>.json``).

All locations come from :class:`entropy.config.PathsConfig`.
"""

from __future__ import annotations

from .files import copy_file, ensure_dir, read_json, read_json_optional, write_json

__all__ = [
    "copy_file",
    "ensure_dir",
    "read_json",
    "read_json_optional",
    "write_json",
]
