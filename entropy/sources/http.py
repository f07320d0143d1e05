"""
Minimal JSON-over-HTTP helpers on top of httpx.

Each helper performs exactly one attempt; retrying is the caller's job (see
:mod:`entropy.utils.retry`). Transport errors, timeouts, HTTP status >= 400
and undecodable bodies all surface as :class:`~entropy.errors.FetchError`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from entropy import constants as C
from entropy.errors import FetchError
from entropy.metrics import METRICS
from entropy.version import __version__

log = logging.getLogger(__name__)

__all__ = ["make_client", "get_json", "put_json", "ping"]


def make_client(timeout_s: float = C.HTTP_TIMEOUT_S) -> httpx.Client:
    return httpx.Client(
        timeout=timeout_s,
        follow_redirects=True,
        headers={"User-Agent": f"observable-entropy/{__version__}", "Accept": "application/json"},
    )


def _request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    target: str,
    json_body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Any:
    try:
        resp = client.request(method, url, json=json_body, headers=headers)
    except httpx.TimeoutException as e:
        METRICS.record_fetch(target, ok=False)
        raise FetchError(url=url, reason=f"timeout: {e}") from e
    except httpx.HTTPError as e:
        METRICS.record_fetch(target, ok=False)
        raise FetchError(url=url, reason=str(e) or type(e).__name__) from e

    if resp.status_code >= 400:
        METRICS.record_fetch(target, ok=False)
        raise FetchError(url=url, reason=resp.reason_phrase or "http error", status_code=resp.status_code)
    try:
        data = resp.json()
    except ValueError as e:
        METRICS.record_fetch(target, ok=False)
        raise FetchError(url=url, reason="response is not JSON", status_code=resp.status_code) from e

    METRICS.record_fetch(target, ok=True)
    return data


def ping(client: httpx.Client, url: str, *, target: str = "heartbeat") -> int:
    """GET *url* ignoring the body; returns the status code. Status >= 400 raises FetchError."""
    try:
        resp = client.get(url)
    except httpx.HTTPError as e:
        METRICS.record_fetch(target, ok=False)
        raise FetchError(url=url, reason=str(e) or type(e).__name__) from e
    ok = resp.status_code < 400
    METRICS.record_fetch(target, ok=ok)
    if not ok:
        raise FetchError(url=url, reason=resp.reason_phrase or "http error", status_code=resp.status_code)
    return resp.status_code


def get_json(client: httpx.Client, url: str, *, target: str = "source") -> Any:
    """GET *url* and decode the JSON body."""
    return _request(client, "GET", url, target=target)


def put_json(
    client: httpx.Client,
    url: str,
    body: Dict[str, Any],
    *,
    headers: Optional[Dict[str, str]] = None,
    target: str = "publish",
) -> Any:
    """PUT *body* as JSON to *url* and decode the JSON response."""
    return _request(client, "PUT", url, target=target, json_body=body, headers=headers)
