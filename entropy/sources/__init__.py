"""
entropy.sources
===============

I/O plumbing around the round protocol: the per-source connectors that fill
the collection directory, the Cloudflare KV publisher and the small httpx
helpers both share.
"""

from __future__ import annotations

from .connectors import CONNECTORS, CollectReport, clean_sources, collect_sources
from .publish import PublishResult, upload_latest

__all__ = [
    "CONNECTORS",
    "CollectReport",
    "collect_sources",
    "clean_sources",
    "PublishResult",
    "upload_latest",
]
