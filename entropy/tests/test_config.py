import json
from pathlib import Path

import pytest

from entropy import constants as C
from entropy.config import EntropyConfig
from entropy.errors import ConfigurationError


def test_defaults_match_published_layout() -> None:
    cfg = EntropyConfig.from_env(env={})
    assert cfg.paths.round_file == "entropy.json"
    assert cfg.paths.previous_file == "./entropy/entropy_previous.json"
    assert cfg.paths.index_dir == "index/by/entropy_hash"
    assert cfg.hashing.algorithm == "sha256"
    assert cfg.hashing.iterations == 500_000
    assert cfg.retry.delay_s == C.RETRY_DELAY_S
    assert cfg.retry.max_attempts == 3
    assert not cfg.kv.enabled


def test_env_overrides() -> None:
    cfg = EntropyConfig.from_env(
        env={
            "ENTROPY_DIR": "/tmp/e",
            "ENTROPY_HASH_ITERATIONS": "42",
            "ENTROPY_RETRY_DELAY_S": "0.5",
            "CF_ACCOUNT_ID": "acct",
            "CF_NAMESPACE_ID": "ns",
            "CF_AUTH_KEY": "secret",
        }
    )
    assert cfg.paths.entropy_dir == "/tmp/e"
    assert cfg.hashing.iterations == 42
    assert cfg.retry.delay_s == 0.5
    assert cfg.kv.enabled
    assert cfg.to_dict()["kv"]["auth_key"] == "***"
    assert "secret" not in cfg.to_json()


@pytest.mark.parametrize(
    "env",
    [
        {"ENTROPY_HASH_ITERATIONS": "many"},
        {"ENTROPY_HASH_ITERATIONS": "0"},
        {"ENTROPY_HASH_TYPE": "not-a-hash"},
        {"ENTROPY_RETRY_MAX_ATTEMPTS": "0"},
        {"ENTROPY_PUBKEY_URL": "ftp://example.com/key"},
        {"ENTROPY_ROUND_FILE": "same.json", "ENTROPY_PREVIOUS_FILE": "same.json"},
    ],
)
def test_invalid_env_is_configuration_error(env) -> None:
    with pytest.raises(ConfigurationError):
        EntropyConfig.from_env(env=env)


def test_from_json_file(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"hashing": {"iterations": 7}, "retry": {"max_attempts": 5}}), encoding="utf-8")
    cfg = EntropyConfig.from_file(str(path))
    assert cfg.hashing.iterations == 7
    assert cfg.retry.max_attempts == 5
    assert cfg.paths.round_file == "entropy.json"


def test_from_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "paths:\n  entropy_dir: ./sources\n  index_dir: idx\nnetwork:\n  timeout_s: 2.5\n",
        encoding="utf-8",
    )
    cfg = EntropyConfig.from_file(str(path))
    assert cfg.paths.entropy_dir == "./sources"
    assert cfg.paths.index_dir == "idx"
    assert cfg.network.timeout_s == 2.5


def test_unknown_file_key_is_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"hashing": {"rounds": 7}}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        EntropyConfig.from_file(str(path))


def test_missing_file_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        EntropyConfig.from_file(str(tmp_path / "missing.yaml"))


def test_file_values_are_cast_to_field_types(tmp_path: Path) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "hashing:\n  iterations: '12'\nretry:\n  delay_s: 2\n  max_attempts: '4'\nkv:\n  account_id: 1234\n",
        encoding="utf-8",
    )
    cfg = EntropyConfig.from_file(str(path))
    assert cfg.hashing.iterations == 12
    assert cfg.retry.delay_s == 2.0 and isinstance(cfg.retry.delay_s, float)
    assert cfg.retry.max_attempts == 4
    assert cfg.kv.account_id == "1234"


@pytest.mark.parametrize(
    "body",
    [
        "hashing:\n  iterations: abc\n",
        "hashing:\n  iterations: true\n",
        "retry:\n  delay_s: [1, 2]\n",
        "network:\n  timeout_s: null\n",
        "paths: just-a-string\n",
    ],
)
def test_badly_typed_file_values_are_configuration_errors(tmp_path: Path, body: str) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        EntropyConfig.from_file(str(path))
