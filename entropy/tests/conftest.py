import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Tuple

import pytest

from entropy.beacon.signing import generate_keypair
from entropy.config import EntropyConfig, HashParams, PathsConfig, RetryConfig
from entropy.types.core import RunContext

# Small iteration count keeps the suite fast; the algorithm is unchanged.
TEST_ITERATIONS = 10

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def write_sources(directory: Path, files: Dict[str, object]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name, body in files.items():
        raw = body if isinstance(body, (bytes, str)) else json.dumps(body)
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        (directory / name).write_bytes(raw)


@pytest.fixture()
def config(tmp_path: Path) -> EntropyConfig:
    entropy_dir = tmp_path / "entropy"
    cfg = EntropyConfig(
        paths=PathsConfig(
            entropy_dir=str(entropy_dir),
            round_file=str(tmp_path / "entropy.json"),
            previous_file=str(entropy_dir / "entropy_previous.json"),
            index_dir=str(tmp_path / "index" / "by" / "entropy_hash"),
        ),
        hashing=HashParams(iterations=TEST_ITERATIONS),
        retry=RetryConfig(delay_s=0.0, max_attempts=3),
    )
    cfg.validate()
    return cfg


@pytest.fixture()
def ctx(config: EntropyConfig) -> RunContext:
    return RunContext(config=config, now=FIXED_NOW)


@pytest.fixture()
def keypair() -> Tuple[str, str]:
    return generate_keypair()


@pytest.fixture()
def sources(config: EntropyConfig) -> Path:
    """A small collection directory with two sources."""
    directory = config.paths.entropy_path
    write_sources(
        directory,
        {
            "bitcoin.json": {"height": 820000, "hash": "00" * 32},
            "timestamp.json": {"timestamp": "2024-01-02T03:04:05.678Z"},
        },
    )
    return directory
