"""
Entropy beacon - types package

Re-exports the typed records shared across the pipeline:
    from entropy.types import SourceFile, Round, IndexEntry, RunContext
"""

from __future__ import annotations

from .core import IndexEntry, Round, RunContext, SourceFile, iso_utc

__all__ = ["SourceFile", "Round", "IndexEntry", "RunContext", "iso_utc"]
