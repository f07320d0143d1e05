"""
Collect the per-source JSON artifacts of a round and digest them.

Every regular file in the collection directory whose name ends in ``.json``
is read as raw bytes and digested; contents are never parsed. The result is
sorted by the upper-cased file name so two independent runs over the same
file set produce byte-identical ordering.

The previous round archive usually lives in the same directory and is
therefore digested like any other source.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Union

from entropy import constants as C
from entropy.errors import ArtifactIOError
from entropy.types.core import SourceFile
from entropy.utils.hash import ensure_algorithm, hex_digest

log = logging.getLogger(__name__)

__all__ = ["collect_source_files", "canonical_order"]


def canonical_order(files: List[SourceFile]) -> List[SourceFile]:
    """Case-insensitive ascending order on the file name."""
    return sorted(files, key=lambda f: f.name.upper())


def collect_source_files(
    directory: Union[str, Path],
    algorithm: str = C.HASH_TYPE,
) -> List[SourceFile]:
    """
    Return the canonically ordered :class:`SourceFile` list for *directory*.

    An empty directory yields ``[]``. Any listing or read failure aborts the
    whole collection with :class:`ArtifactIOError`.
    """
    ensure_algorithm(algorithm)
    root = Path(directory)
    try:
        with os.scandir(root) as it:
            entries = list(it)
    except OSError as e:
        raise ArtifactIOError(path=str(root), reason=str(e)) from e

    files: List[SourceFile] = []
    for entry in entries:
        if not entry.name.endswith(C.SOURCE_SUFFIX):
            continue
        try:
            if not entry.is_file():
                continue
            with open(entry.path, "rb") as fh:
                data = fh.read()
        except OSError as e:
            raise ArtifactIOError(path=entry.path, reason=str(e)) from e
        files.append(
            SourceFile(name=entry.name, digest=hex_digest(data, algorithm), digest_algorithm=algorithm)
        )

    ordered = canonical_order(files)
    log.debug("collected %d source file(s) from %s", len(ordered), root)
    return ordered
