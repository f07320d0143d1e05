"""
entropy.sources.connectors
==========================

Source connectors: each fetches one public, hard-to-predict value and writes
it as one JSON file into the collection directory.

Connectors included
-------------------
- timestamp     : the invocation's captured `now` (no network)
- bitcoin       : latest block header fields from blockchain.info
- ethereum      : chain head summary from blockcypher (pass-through)
- nist-beacon   : last NIST randomness beacon 2.0 pulse (pass-through)
- user-entropy  : user-submitted entries feed (must be a JSON array)
- stellar       : latest closed ledger from Horizon (via fee_stats.last_ledger)
- drand-beacon  : drand chain info and latest randomness round
- hacker-news   : the ten newest stories

Every networked fetch runs under the shared fixed-delay retry policy. A
connector that still fails after its last attempt is logged and skipped so
the other sources are still collected; filesystem failures are not skipped.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from entropy import constants as C
from entropy.config import PathsConfig
from entropy.errors import ArtifactIOError, EntropyError, TooManyTries
from entropy.logging import phase_scope
from entropy.metrics import METRICS
from entropy.sources.http import get_json, make_client
from entropy.store import write_json
from entropy.types.core import RunContext
from entropy.utils.retry import RetryPolicy, retry_call

log = logging.getLogger(__name__)

__all__ = [
    "URLS",
    "Connector",
    "CONNECTORS",
    "CollectReport",
    "collect_sources",
    "clean_sources",
]

URLS: Dict[str, str] = {
    "bitcoin": "https://blockchain.info/latestblock",
    "ethereum": "https://api.blockcypher.com/v1/eth/main",
    "nist-beacon": "https://beacon.nist.gov/beacon/2.0/pulse/last",
    "user-entropy": "https://entropy.truestamp.com/entries",
    "stellar-fee-stats": "https://horizon.stellar.org/fee_stats",
    "stellar-ledger": "https://horizon.stellar.org/ledgers/{ledger}",
    "drand": "https://drand.cloudflare.com",
    "hn-new": "https://hacker-news.firebaseio.com/v0/newstories.json",
    "hn-item": "https://hacker-news.firebaseio.com/v0/item/{item}.json",
}

HN_STORY_COUNT = 10

Fetch = Callable[[httpx.Client, RunContext], Dict[str, Any]]


# -----------------------------------------------------------------------------#
# Fetchers
# -----------------------------------------------------------------------------#


def _timestamp(_client: httpx.Client, ctx: RunContext) -> Dict[str, Any]:
    return {"timestamp": ctx.now_iso}


def _bitcoin(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    data = get_json(client, URLS["bitcoin"], target="bitcoin")
    return {
        "height": data["height"],
        "hash": data["hash"],
        "time": data["time"],
        "blockIndex": data["block_index"],
    }


def _ethereum(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    return get_json(client, URLS["ethereum"], target="ethereum")


def _nist(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    return get_json(client, URLS["nist-beacon"], target="nist-beacon")


def _user_entropy(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    data = get_json(client, URLS["user-entropy"], target="user-entropy")
    if not isinstance(data, list):
        raise ValueError(f"user-entropy : expected Array, got {type(data).__name__}")
    return {"data": data}


def _stellar(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    fee_stats = get_json(client, URLS["stellar-fee-stats"], target="stellar")
    ledger = fee_stats["last_ledger"]
    return get_json(client, URLS["stellar-ledger"].format(ledger=ledger), target="stellar")


def _drand(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    base = URLS["drand"]
    chain_info = get_json(client, f"{base}/info", target="drand-beacon")
    randomness = get_json(client, f"{base}/public/latest", target="drand-beacon")
    return {"chainInfo": chain_info, "randomness": randomness}


def _hacker_news(client: httpx.Client, _ctx: RunContext) -> Dict[str, Any]:
    ids = get_json(client, URLS["hn-new"], target="hacker-news")
    if not isinstance(ids, list) or len(ids) < HN_STORY_COUNT:
        raise ValueError("hacker-news : not enough new stories")
    stories = [
        get_json(client, URLS["hn-item"].format(item=item), target="hacker-news")
        for item in ids[:HN_STORY_COUNT]
    ]
    return {"stories": stories}


# -----------------------------------------------------------------------------#
# Registry
# -----------------------------------------------------------------------------#


@dataclass(frozen=True)
class Connector:
    name: str
    file_name: str
    fetch: Fetch
    networked: bool = True


CONNECTORS: Dict[str, Connector] = {
    c.name: c
    for c in (
        Connector("timestamp", "timestamp.json", _timestamp, networked=False),
        Connector("bitcoin", "bitcoin.json", _bitcoin),
        Connector("ethereum", "ethereum.json", _ethereum),
        Connector("nist-beacon", "nist-beacon.json", _nist),
        Connector("user-entropy", "user-entropy.json", _user_entropy),
        Connector("stellar", "stellar.json", _stellar),
        Connector("drand-beacon", "drand-beacon.json", _drand),
        Connector("hacker-news", "hacker-news.json", _hacker_news),
    )
}


@dataclass
class CollectReport:
    collected: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.skipped


def collect_sources(
    ctx: RunContext,
    names: Optional[Iterable[str]] = None,
    *,
    client: Optional[httpx.Client] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CollectReport:
    """
    Run the selected connectors in the order given (all of them, in table
    order, when *names* is None).
    Unknown names raise ValueError before anything is fetched.
    """
    selected = list(CONNECTORS) if names is None else list(dict.fromkeys(names))
    unknown = [n for n in selected if n not in CONNECTORS]
    if unknown:
        raise ValueError(f"unknown source(s): {', '.join(unknown)}")

    policy = RetryPolicy.from_config(ctx.config.retry)
    out_dir = ctx.config.paths.entropy_path
    report = CollectReport()

    own_client = client is None and any(CONNECTORS[n].networked for n in selected)
    http = make_client(ctx.config.network.timeout_s) if own_client else client
    try:
        for name in selected:
            conn = CONNECTORS[name]
            with phase_scope("collect", source=name):
                try:
                    payload = retry_call(
                        lambda: conn.fetch(http, ctx),
                        policy,
                        label=f"collect attempt : {name}",
                        retry_on=(EntropyError, ValueError, KeyError, TypeError),
                        sleep=sleep,
                    )
                except TooManyTries as e:
                    log.error("collect %s tooManyTries : %s", name, e.last_error)
                    METRICS.record_source(name, collected=False)
                    report.skipped[name] = e.last_error or "failed"
                    continue
                write_json(out_dir / conn.file_name, payload)
                METRICS.record_source(name, collected=True)
                report.collected.append(name)
    finally:
        if own_client:
            http.close()
    return report


def clean_sources(paths: PathsConfig) -> List[Path]:
    """
    Remove collected ``*.json`` files from the collection directory. The
    previous round archive is kept so the next round can still link to it.
    """
    directory = paths.entropy_path
    if not directory.is_dir():
        return []
    keep = paths.previous_path.resolve()
    removed: List[Path] = []
    try:
        for entry in sorted(directory.iterdir()):
            if not entry.is_file() or entry.suffix != C.SOURCE_SUFFIX:
                continue
            if entry.resolve() == keep:
                continue
            entry.unlink()
            removed.append(entry)
    except OSError as e:
        raise ArtifactIOError(path=str(directory), reason=str(e)) from e
    log.info("clean : removed %d file(s) from '%s'", len(removed), directory)
    return removed
