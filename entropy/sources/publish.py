"""
Publish the latest round to Cloudflare Workers KV and ping an uptime heartbeat.

Both steps are best-effort: failures are logged and reported to the caller,
never raised, so a publishing outage cannot block round generation.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from entropy.config import KVConfig
from entropy.errors import TooManyTries
from entropy.sources.http import ping, put_json
from entropy.utils.retry import RetryPolicy, retry_call

log = logging.getLogger(__name__)

__all__ = ["PublishResult", "kv_url", "upload_latest"]


@dataclass
class PublishResult:
    uploaded: bool = False
    heartbeat: Optional[bool] = None  # None: no heartbeat URL configured
    error: Optional[str] = None


def kv_url(cfg: KVConfig) -> str:
    return (
        f"{cfg.api_base.rstrip('/')}/accounts/{cfg.account_id}"
        f"/storage/kv/namespaces/{cfg.namespace_id}"
        f"/values/{cfg.key_name}?expiration_ttl={cfg.expiration_ttl_s}"
    )


def upload_latest(
    round_dict: Dict[str, Any],
    cfg: KVConfig,
    client: httpx.Client,
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> PublishResult:
    """PUT *round_dict* under the configured KV key, then ping the heartbeat URL."""
    result = PublishResult()
    if not cfg.enabled:
        result.error = "KV account_id/namespace_id not configured"
        log.warning("upload-kv : skipped : %s", result.error)
        return result

    headers = {"X-Auth-Email": cfg.auth_email, "X-Auth-Key": cfg.auth_key}
    try:
        retry_call(
            lambda: put_json(client, kv_url(cfg), round_dict, headers=headers, target="kv"),
            policy,
            label="upload-kv",
            sleep=sleep,
        )
        result.uploaded = True
        log.info("upload-kv : uploaded", extra={"hash": round_dict.get("hash")})
    except TooManyTries as e:
        result.error = e.last_error or str(e)
        log.error("upload-kv : failed : %s", result.error)
        return result

    if cfg.heartbeat_url:
        try:
            retry_call(
                lambda: ping(client, cfg.heartbeat_url, target="heartbeat"),
                policy,
                label="upload-kv heartbeat",
                sleep=sleep,
            )
            result.heartbeat = True
        except TooManyTries as e:
            result.heartbeat = False
            log.error("upload-kv : heartbeat failed : %s", e.last_error)
    return result
