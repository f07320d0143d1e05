"""
entropy.utils.retry
===================

Fixed-delay retry combinator applied uniformly to networked calls (source
connectors, public key retrieval, the KV publisher).

Policy
------
- fixed delay between attempts, no exponential backoff, no jitter;
- capped attempt count; each retry re-invokes the operation from scratch;
- on exhaustion :class:`~entropy.errors.TooManyTries` is raised, chained to
  the last error so the cause is preserved in tracebacks.

Usage
-----
    policy = RetryPolicy(delay_s=1.0, max_attempts=3)
    data = retry_call(lambda: get_json(client, url), policy, label="collect bitcoin")

    @retrying(policy, label="pubkey")
    def fetch() -> str: ...
"""

from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from entropy.errors import TooManyTries

log = logging.getLogger(__name__)

T = TypeVar("T")

__all__ = ["RetryPolicy", "retry_call", "retrying"]


@dataclass(frozen=True)
class RetryPolicy:
    delay_s: float = 1.0
    max_attempts: int = 3

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_s < 0:
            raise ValueError("delay_s must be >= 0")

    @classmethod
    def from_config(cls, cfg) -> "RetryPolicy":
        """Build from an `entropy.config.RetryConfig`."""
        return cls(delay_s=float(cfg.delay_s), max_attempts=int(cfg.max_attempts))


def retry_call(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    label: str = "operation",
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Invoke *fn* until it returns, at most ``policy.max_attempts`` times,
    sleeping ``policy.delay_s`` between attempts. Exceptions outside
    *retry_on* propagate immediately.
    """
    last: Optional[BaseException] = None
    for attempt in range(1, policy.max_attempts + 1):
        log.info("%s : attempt %d/%d", label, attempt, policy.max_attempts)
        try:
            return fn()
        except retry_on as e:
            last = e
            log.warning("%s : attempt %d failed : %s", label, attempt, e)
        if attempt < policy.max_attempts and policy.delay_s > 0:
            sleep(policy.delay_s)
    raise TooManyTries(
        label=label, attempts=policy.max_attempts, last_error=str(last) if last else None
    ) from last


def retrying(
    policy: RetryPolicy,
    *,
    label: Optional[str] = None,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`retry_call`."""

    def deco(fn: Callable[..., T]) -> Callable[..., T]:
        name = label or fn.__name__

        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> T:
            return retry_call(
                lambda: fn(*args, **kwargs), policy, label=name, retry_on=retry_on, sleep=sleep
            )

        return wrapper

    return deco
