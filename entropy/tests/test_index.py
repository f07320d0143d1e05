import json
from pathlib import Path
from typing import Tuple

import pytest

from entropy.beacon.index import index_previous_round, write_index_entry
from entropy.beacon.round import generate_round
from entropy.errors import ArtifactIOError, ValidationError
from entropy.types.core import IndexEntry, RunContext

COMMIT = "a" * 40
DIGEST = "b" * 64


def _two_rounds(ctx: RunContext, sk: str):
    r1 = generate_round(ctx, sk)
    generate_round(ctx, sk)
    return r1


def test_indexes_previous_round_digest(ctx: RunContext, sources: Path, keypair: Tuple[str, str]) -> None:
    r1 = _two_rounds(ctx, keypair[0])

    out = index_previous_round(ctx.config.paths, COMMIT)

    assert out == ctx.config.paths.index_path / f"{r1.final_digest}.json"
    assert json.loads(out.read_text(encoding="utf-8")) == {"id": COMMIT}


def test_accepts_0x_prefixed_commit_id(ctx: RunContext, sources: Path, keypair: Tuple[str, str]) -> None:
    _two_rounds(ctx, keypair[0])
    out = index_previous_round(ctx.config.paths, "0x" + COMMIT)
    assert json.loads(out.read_text(encoding="utf-8")) == {"id": "0x" + COMMIT}


def test_idempotent(ctx: RunContext, sources: Path, keypair: Tuple[str, str]) -> None:
    _two_rounds(ctx, keypair[0])
    first = index_previous_round(ctx.config.paths, COMMIT)
    content = first.read_bytes()
    second = index_previous_round(ctx.config.paths, COMMIT)
    assert second == first
    assert second.read_bytes() == content
    assert len(list(ctx.config.paths.index_path.iterdir())) == 1


def test_no_archive_is_a_noop(ctx: RunContext, sources: Path) -> None:
    assert index_previous_round(ctx.config.paths, COMMIT) is None
    assert not ctx.config.paths.index_path.exists()


@pytest.mark.parametrize("commit_id", [None, "", "a" * 38, "a" * 42, "g" * 40, "0x" + "a" * 38])
def test_bad_commit_id_rejected_even_without_archive(ctx: RunContext, commit_id) -> None:
    with pytest.raises(ValidationError):
        index_previous_round(ctx.config.paths, commit_id)
    assert not ctx.config.paths.index_path.exists()


def test_short_archived_digest_rejected(ctx: RunContext, sources: Path, keypair: Tuple[str, str]) -> None:
    _two_rounds(ctx, keypair[0])
    prev = ctx.config.paths.previous_path
    data = json.loads(prev.read_text(encoding="utf-8"))
    data["hash"] = "c" * 62
    prev.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(ValidationError) as ei:
        index_previous_round(ctx.config.paths, COMMIT)
    assert ei.value.name == "entropy hash"
    assert not ctx.config.paths.index_path.exists()


def test_write_index_entry_rejects_19_and_31_byte_values(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        write_index_entry(tmp_path / "idx", IndexEntry(digest=DIGEST, external_id="a" * 38))
    with pytest.raises(ValidationError):
        write_index_entry(tmp_path / "idx", IndexEntry(digest="b" * 62, external_id=COMMIT))
    assert not (tmp_path / "idx").exists()


def _write_archive(ctx: RunContext, data) -> None:
    prev = ctx.config.paths.previous_path
    prev.parent.mkdir(parents=True, exist_ok=True)
    prev.write_text(json.dumps(data), encoding="utf-8")


@pytest.mark.parametrize("bad_hash", ["", 123, None])
def test_unusable_archived_hash_is_validation_error(ctx: RunContext, bad_hash) -> None:
    _write_archive(ctx, {"files": [], "hashType": "sha256", "hashIterations": 10, "hash": bad_hash})
    with pytest.raises(ValidationError) as ei:
        index_previous_round(ctx.config.paths, COMMIT)
    assert ei.value.name == "entropy hash"
    assert not ctx.config.paths.index_path.exists()


def test_archive_without_hash_is_validation_error(ctx: RunContext) -> None:
    _write_archive(ctx, {"files": []})
    with pytest.raises(ValidationError):
        index_previous_round(ctx.config.paths, COMMIT)


def test_hash_only_archive_is_indexed(ctx: RunContext) -> None:
    _write_archive(ctx, {"hash": DIGEST})
    out = index_previous_round(ctx.config.paths, COMMIT)
    assert out.name == f"{DIGEST}.json"
    assert json.loads(out.read_text(encoding="utf-8")) == {"id": COMMIT}


def test_non_object_archive_is_io_error(ctx: RunContext) -> None:
    _write_archive(ctx, [DIGEST])
    with pytest.raises(ArtifactIOError):
        index_previous_round(ctx.config.paths, COMMIT)
