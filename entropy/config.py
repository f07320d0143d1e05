"""
Entropy beacon configuration.

This file defines typed configuration objects and helpers for:
- The on-disk layout (collection dir, current/previous round files, index dir)
- Slow-hash parameters (algorithm, iteration count)
- The shared fixed-delay retry policy and HTTP timeout
- The Cloudflare KV publisher

It provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file

The well-known paths are explicit configuration so that tests (and unusual
deployments) can point every invocation at an isolated directory tree.
Secrets (the signing key, the parent commit id) are not part of these
objects; they are read at the CLI boundary.
"""

from __future__ import annotations

import hashlib
import json
import os
from dataclasses import MISSING, asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import urlparse

from entropy import constants as C
from entropy.errors import ConfigurationError

# -------------------------
# Sub-configs
# -------------------------


@dataclass
class PathsConfig:
    """
    Well-known locations shared across separate invocations of the tool.

    entropy_dir:   collection directory holding one JSON file per source
    round_file:    canonical "current round" file
    previous_file: archive of the prior current round (copied before overwrite)
    index_dir:     one `<digest>.json` entry per indexed previous round
    """

    entropy_dir: str = C.ENTROPY_DIR
    round_file: str = C.ENTROPY_FILE
    previous_file: str = C.PREV_ENTROPY_FILE
    index_dir: str = C.INDEX_DIR

    @property
    def entropy_path(self) -> Path:
        return Path(self.entropy_dir)

    @property
    def round_path(self) -> Path:
        return Path(self.round_file)

    @property
    def previous_path(self) -> Path:
        return Path(self.previous_file)

    @property
    def index_path(self) -> Path:
        return Path(self.index_dir)

    def validate(self) -> None:
        for name in ("entropy_dir", "round_file", "previous_file", "index_dir"):
            if not getattr(self, name):
                raise ConfigurationError(f"{name} must be a non-empty path")
        if Path(self.round_file).resolve() == Path(self.previous_file).resolve():
            raise ConfigurationError("round_file and previous_file must differ")


@dataclass
class HashParams:
    """
    Parameters of the per-file digest and slow-hash steps.

    algorithm:  hashlib algorithm name (both steps use the same primitive)
    iterations: slow-hash rounds; a throttle, not a proof of sequential work
    """

    algorithm: str = C.HASH_TYPE
    iterations: int = C.HASH_ITERATIONS

    def validate(self) -> None:
        if self.algorithm not in hashlib.algorithms_available:
            raise ConfigurationError(f"hash algorithm unavailable: {self.algorithm}")
        if self.iterations < 1:
            raise ConfigurationError("iterations must be >= 1")


@dataclass
class RetryConfig:
    """Fixed-delay, capped-attempt retry applied to every networked call."""

    delay_s: float = C.RETRY_DELAY_S
    max_attempts: int = C.RETRY_MAX_ATTEMPTS

    def validate(self) -> None:
        if self.delay_s < 0:
            raise ConfigurationError("delay_s must be >= 0")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")


@dataclass
class NetworkConfig:
    """HTTP timeout and the public key distribution endpoint."""

    timeout_s: float = C.HTTP_TIMEOUT_S
    pubkey_url: str = C.PUBKEY_URL

    def validate(self) -> None:
        if self.timeout_s <= 0:
            raise ConfigurationError("timeout_s must be > 0")
        u = urlparse(self.pubkey_url)
        if u.scheme not in {"http", "https"}:
            raise ConfigurationError("pubkey_url must be http(s)")


@dataclass
class KVConfig:
    """
    Cloudflare KV publisher settings. Publishing is enabled only when the
    account and namespace identifiers are both set.
    """

    account_id: Optional[str] = None
    namespace_id: Optional[str] = None
    auth_email: str = ""
    auth_key: str = ""
    key_name: str = C.KV_LATEST_KEY
    expiration_ttl_s: int = C.KV_EXPIRATION_TTL_S
    api_base: str = C.KV_API_BASE
    heartbeat_url: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.account_id and self.namespace_id)

    def validate(self) -> None:
        if self.expiration_ttl_s < 60:
            raise ConfigurationError("expiration_ttl_s must be >= 60")
        if self.heartbeat_url and urlparse(self.heartbeat_url).scheme not in {"http", "https"}:
            raise ConfigurationError("heartbeat_url must be http(s)")


# -------------------------
# Top-level config
# -------------------------


@dataclass
class EntropyConfig:
    """Everything one invocation of the tool needs, minus secrets."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    hashing: HashParams = field(default_factory=HashParams)
    retry: RetryConfig = field(default_factory=RetryConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    kv: KVConfig = field(default_factory=KVConfig)

    def validate(self) -> None:
        self.paths.validate()
        self.hashing.validate()
        self.retry.validate()
        self.network.validate()
        self.kv.validate()

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # never echo the KV credential
        if data["kv"].get("auth_key"):
            data["kv"]["auth_key"] = "***"
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "ENTROPY_", env: Optional[Dict[str, str]] = None) -> "EntropyConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys (examples):
          - ENTROPY_DIR=./entropy
          - ENTROPY_ROUND_FILE=entropy.json
          - ENTROPY_PREVIOUS_FILE=./entropy/entropy_previous.json
          - ENTROPY_INDEX_DIR=index/by/entropy_hash

          - ENTROPY_HASH_TYPE=sha256
          - ENTROPY_HASH_ITERATIONS=500000

          - ENTROPY_RETRY_DELAY_S=1
          - ENTROPY_RETRY_MAX_ATTEMPTS=3
          - ENTROPY_HTTP_TIMEOUT_S=5
          - ENTROPY_PUBKEY_URL=https://entropy.truestamp.com/pubkey

        The publisher keeps the upstream variable names:
          - CF_ACCOUNT_ID, CF_NAMESPACE_ID, CF_AUTH_EMAIL, CF_AUTH_KEY
          - BETTER_UPTIME_HEARTBEAT_URL
        """
        source = os.environ if env is None else env

        def _get(name: str, cast: Any, default: Any, *, raw_key: bool = False) -> Any:
            key = name if raw_key else prefix + name
            raw = source.get(key)
            if raw is None or raw == "":
                return default
            try:
                return cast(raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {key}: {raw!r}") from e

        cfg = EntropyConfig(
            paths=PathsConfig(
                entropy_dir=_get("DIR", str, C.ENTROPY_DIR),
                round_file=_get("ROUND_FILE", str, C.ENTROPY_FILE),
                previous_file=_get("PREVIOUS_FILE", str, C.PREV_ENTROPY_FILE),
                index_dir=_get("INDEX_DIR", str, C.INDEX_DIR),
            ),
            hashing=HashParams(
                algorithm=_get("HASH_TYPE", str, C.HASH_TYPE),
                iterations=_get("HASH_ITERATIONS", int, C.HASH_ITERATIONS),
            ),
            retry=RetryConfig(
                delay_s=_get("RETRY_DELAY_S", float, C.RETRY_DELAY_S),
                max_attempts=_get("RETRY_MAX_ATTEMPTS", int, C.RETRY_MAX_ATTEMPTS),
            ),
            network=NetworkConfig(
                timeout_s=_get("HTTP_TIMEOUT_S", float, C.HTTP_TIMEOUT_S),
                pubkey_url=_get("PUBKEY_URL", str, C.PUBKEY_URL),
            ),
            kv=KVConfig(
                account_id=_get("CF_ACCOUNT_ID", str, None, raw_key=True),
                namespace_id=_get("CF_NAMESPACE_ID", str, None, raw_key=True),
                auth_email=_get("CF_AUTH_EMAIL", str, "", raw_key=True),
                auth_key=_get("CF_AUTH_KEY", str, "", raw_key=True),
                heartbeat_url=_get("BETTER_UPTIME_HEARTBEAT_URL", str, None, raw_key=True),
            ),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "EntropyConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            paths:
              entropy_dir: ./entropy
              round_file: entropy.json
              previous_file: ./entropy/entropy_previous.json
              index_dir: index/by/entropy_hash
            hashing:
              algorithm: sha256
              iterations: 500000
            retry:
              delay_s: 1
              max_attempts: 3
        """
        text = _read_text(path)
        data = _parse_json_or_yaml(text, path)
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path!r} must contain a mapping at the top level")

        cfg = EntropyConfig(
            paths=_section(PathsConfig, "paths", data, path),
            hashing=_section(HashParams, "hashing", data, path),
            retry=_section(RetryConfig, "retry", data, path),
            network=_section(NetworkConfig, "network", data, path),
            kv=_section(KVConfig, "kv", data, path),
        )
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise ConfigurationError(f"cannot read config file {path!r}: {e}") from e


_S = TypeVar("_S")


def _section(cls: Type[_S], name: str, data: Dict[str, Any], path_hint: str) -> _S:
    """
    Build one sub-config from a parsed file section, casting each value to the
    type of the field's default (str for fields defaulting to None).
    """
    raw = data.get(name) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"section {name!r} in {path_hint!r} must be a mapping")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ConfigurationError(f"unknown key(s) in {path_hint!r} section {name!r}: {', '.join(unknown)}")

    kwargs: Dict[str, Any] = {}
    for key, value in raw.items():
        default = known[key].default
        if value is None:
            if default is not None:
                raise ConfigurationError(f"{name}.{key} in {path_hint!r} must not be null")
            kwargs[key] = None
            continue
        target = str if default is None or default is MISSING else type(default)
        if isinstance(value, (bool, dict, list)):
            raise ConfigurationError(f"invalid value for {name}.{key} in {path_hint!r}: {value!r}")
        try:
            kwargs[key] = target(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid value for {name}.{key} in {path_hint!r}: {value!r}") from e
    return cls(**kwargs)


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    # First try JSON
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    import yaml

    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse {path_hint!r} as JSON or YAML: {e}"
        ) from e


DEFAULT: EntropyConfig = EntropyConfig()


__all__ = [
    "PathsConfig",
    "HashParams",
    "RetryConfig",
    "NetworkConfig",
    "KVConfig",
    "EntropyConfig",
    "DEFAULT",
]
