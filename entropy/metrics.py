"""
Prometheus metrics for the entropy beacon.

This module defines counters and histograms for the pipeline:
  • rounds_total         - generate/verify runs per outcome
  • slow_hash_seconds    - wall time of the iterated hash
  • fetch_attempts_total - individual HTTP attempts per target and outcome
  • sources_total        - connector results per source and outcome

Label cardinality is bounded: sources come from a fixed connector table and
outcomes from the small vocabularies below.

Usage
-----
    from entropy.metrics import METRICS

    with METRICS.slow_hash_timer():
        digest = slow_hash(seed, "sha256", 500_000)
    METRICS.record_round("verify", "integrity_mismatch")
"""

from __future__ import annotations

from contextlib import contextmanager
from time import perf_counter
from typing import Iterable, Iterator

from prometheus_client import REGISTRY, Counter, Histogram

_ROUND_MODES = ("generate", "verify")

_ROUND_OUTCOMES = (
    "ok",
    "missing_artifact",
    "key_retrieval",
    "invalid_signature",
    "integrity_mismatch",
    "error",
)

_FETCH_OUTCOMES = ("ok", "error")

_SOURCE_OUTCOMES = ("collected", "skipped")

# Slow hash runs roughly 0.1s–2s at the default iteration count.
_SLOW_HASH_BUCKETS = (
    0.01, 0.05, 0.1, 0.25, 0.5,
    1.0, 2.0, 5.0, 10.0, 30.0,
)


class Metrics:
    """
    Container for all entropy Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "observable",
        subsystem: str = "entropy",
        registry=REGISTRY,
        slow_hash_buckets: Iterable[float] = _SLOW_HASH_BUCKETS,
    ) -> None:
        self.rounds_total = Counter(
            "rounds_total",
            "Generate/verify runs, labeled by mode and outcome.",
            labelnames=("mode", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.fetch_attempts_total = Counter(
            "fetch_attempts_total",
            "Individual HTTP attempts, labeled by target and outcome.",
            labelnames=("target", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.sources_total = Counter(
            "sources_total",
            "Source connector results, labeled by source and outcome.",
            labelnames=("source", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.slow_hash_seconds = Histogram(
            "slow_hash_seconds",
            "Time spent in the iterated slow hash (seconds).",
            buckets=tuple(slow_hash_buckets),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_round(self, mode: str, outcome: str) -> None:
        if mode not in _ROUND_MODES:
            raise ValueError(f"unknown round mode: {mode}")
        if outcome not in _ROUND_OUTCOMES:
            outcome = "error"
        self.rounds_total.labels(mode=mode, outcome=outcome).inc()

    def record_fetch(self, target: str, ok: bool) -> None:
        self.fetch_attempts_total.labels(target=target, outcome=_FETCH_OUTCOMES[0 if ok else 1]).inc()

    def record_source(self, source: str, collected: bool) -> None:
        self.sources_total.labels(source=source, outcome=_SOURCE_OUTCOMES[0 if collected else 1]).inc()

    @contextmanager
    def slow_hash_timer(self) -> Iterator[None]:
        start = perf_counter()
        try:
            yield
        finally:
            self.slow_hash_seconds.observe(perf_counter() - start)


METRICS = Metrics()

__all__ = ["Metrics", "METRICS"]
