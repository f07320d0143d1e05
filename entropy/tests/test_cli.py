import json
import logging
from pathlib import Path
from typing import Iterator, List, Tuple

import pytest
import respx
from typer.testing import CliRunner

from entropy.cli import app
from entropy.tests.conftest import write_sources

runner = CliRunner()

PUBKEY_URL = "https://entropy.truestamp.com/pubkey"


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("ENTROPY_RETRY_DELAY_S", "0")
    for var in ("ED25519_PRIVATE_KEY", "PARENT_COMMIT_ID", "CF_ACCOUNT_ID", "CF_NAMESPACE_ID"):
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _base(tmp_path: Path) -> List[str]:
    return [
        "--dir", str(tmp_path / "entropy"),
        "--round-file", str(tmp_path / "entropy.json"),
        "--previous-file", str(tmp_path / "entropy" / "entropy_previous.json"),
        "--index-dir", str(tmp_path / "index"),
        "--iterations", "10",
        "--log-level", "CRITICAL",
    ]


def invoke(tmp_path: Path, args: List[str], env=None, ok: bool = True):
    result = runner.invoke(app, _base(tmp_path) + args, env=env)
    if ok:
        assert result.exit_code == 0, result.output
    return result


@pytest.fixture()
def seeded(tmp_path: Path) -> Path:
    write_sources(tmp_path / "entropy", {"a.json": {"a": 1}, "b.json": {"b": 2}})
    return tmp_path


def test_keygen_prints_hex_pair(tmp_path: Path) -> None:
    data = json.loads(invoke(tmp_path, ["keygen"]).output)
    assert len(bytes.fromhex(data["privateKey"])) == 32
    assert len(bytes.fromhex(data["publicKey"])) == 32


def _keys(tmp_path: Path) -> Tuple[str, str]:
    data = json.loads(invoke(tmp_path, ["keygen"]).output)
    return data["privateKey"], data["publicKey"]


def test_generate_verify_index_flow(seeded: Path) -> None:
    sk, pk = _keys(seeded)

    first = invoke(seeded, ["generate"], env={"ED25519_PRIVATE_KEY": sk}).output.strip()
    invoke(seeded, ["generate", "--private-key", sk])
    out = invoke(seeded, ["verify", "--public-key", pk]).output
    assert out.startswith("verified ")

    commit = "c" * 40
    index_out = invoke(seeded, ["index"], env={"PARENT_COMMIT_ID": commit}).output.strip()
    assert index_out.endswith(f"{first}.json")
    assert json.loads(Path(index_out).read_text(encoding="utf-8")) == {"id": commit}


@respx.mock
def test_verify_fetches_key(seeded: Path) -> None:
    sk, pk = _keys(seeded)
    invoke(seeded, ["generate", "--private-key", sk])
    respx.get(PUBKEY_URL).respond(json={"key": pk})
    invoke(seeded, ["verify"])


def test_generate_without_key_fails_with_phase(seeded: Path) -> None:
    result = invoke(seeded, ["generate"], ok=False)
    assert result.exit_code == 1
    assert "generate failed: missing private key" in result.output
    assert not (seeded / "entropy.json").exists()


def test_verify_without_round_fails(seeded: Path) -> None:
    result = invoke(seeded, ["verify", "--public-key", "00" * 32], ok=False)
    assert result.exit_code == 1
    assert "verify failed: required file" in result.output


def test_verify_tampered_source_fails(seeded: Path) -> None:
    sk, pk = _keys(seeded)
    invoke(seeded, ["generate", "--private-key", sk])
    (seeded / "entropy" / "a.json").write_text('{"a": 2}', encoding="utf-8")

    result = invoke(seeded, ["verify", "--public-key", pk], ok=False)
    assert result.exit_code == 1
    assert "verify failed: recomputed round does not match" in result.output


def test_index_rejects_bad_commit(seeded: Path) -> None:
    result = invoke(seeded, ["index", "--commit-id", "abc"], ok=False)
    assert result.exit_code == 1
    assert "index failed: invalid commit id" in result.output


def test_index_without_archive_is_noop(seeded: Path) -> None:
    out = invoke(seeded, ["index", "--commit-id", "d" * 40]).output
    assert "no previous round" in out


def test_collect_timestamp_and_clean(seeded: Path) -> None:
    data = json.loads(invoke(seeded, ["collect", "--source", "timestamp"]).output)
    assert data == {"collected": ["timestamp"], "skipped": {}}
    assert (seeded / "entropy" / "timestamp.json").exists()

    out = invoke(seeded, ["clean"]).output
    assert "removed 3 file(s)" in out
    assert list((seeded / "entropy").iterdir()) == []


def test_collect_unknown_source_is_usage_error(seeded: Path) -> None:
    result = invoke(seeded, ["collect", "--source", "dogecoin"], ok=False)
    assert result.exit_code == 2


def test_upload_kv_without_round_fails(seeded: Path) -> None:
    result = invoke(seeded, ["upload-kv"], ok=False)
    assert result.exit_code == 1
    assert "upload-kv failed" in result.output


def test_upload_kv_disabled_is_reported(seeded: Path) -> None:
    sk, _ = _keys(seeded)
    invoke(seeded, ["generate", "--private-key", sk])
    data = json.loads(invoke(seeded, ["upload-kv"]).output)
    assert data["uploaded"] is False


def test_bad_config_env_fails(tmp_path: Path) -> None:
    result = invoke(tmp_path, ["keygen"], env={"ENTROPY_HASH_TYPE": "nope"}, ok=False)
    assert result.exit_code == 1
    assert "config failed" in result.output


def test_badly_typed_config_file_reports_config_phase(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("hashing:\n  iterations: abc\n", encoding="utf-8")
    result = runner.invoke(app, ["--config", str(cfg), "keygen"])
    assert result.exit_code == 1
    assert "config failed" in result.output
