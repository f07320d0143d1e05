"""
Digest chain builder: concatenated file digests → slow hash → final digest.

The slow hash is a naive fixed-iteration hash chain. It adds a small, fixed
time cost to producing a digest, but it is *not* a verifiable delay function:
no proof of sequential work is produced and a verifier pays the same cost as
the producer. The loop must stay single-threaded; :func:`derive_final_digest_async`
only moves it off the event loop, it never splits the iteration count.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from entropy import constants as C
from entropy.metrics import METRICS
from entropy.types.core import SourceFile
from entropy.utils.hash import iterate_hex

log = logging.getLogger(__name__)

__all__ = [
    "concatenate_digests",
    "slow_hash",
    "derive_final_digest",
    "derive_final_digest_async",
]


def concatenate_digests(files: Iterable[SourceFile]) -> str:
    """Join the per-file digests in the given order, no separator."""
    return "".join(f.digest for f in files)


def slow_hash(seed: str, algorithm: str = C.HASH_TYPE, iterations: int = C.HASH_ITERATIONS) -> str:
    with METRICS.slow_hash_timer():
        out = iterate_hex(seed, algorithm, iterations)
    log.debug("slow hash done", extra={"iterations": iterations, "algorithm": algorithm})
    return out


def derive_final_digest(
    files: Iterable[SourceFile],
    algorithm: str = C.HASH_TYPE,
    iterations: int = C.HASH_ITERATIONS,
) -> str:
    """`Hash^iterations(concatenate_digests(files))`; zero files hash the empty string."""
    return slow_hash(concatenate_digests(files), algorithm, iterations)


async def derive_final_digest_async(
    files: Iterable[SourceFile],
    algorithm: str = C.HASH_TYPE,
    iterations: int = C.HASH_ITERATIONS,
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> str:
    """Run :func:`derive_final_digest` on the default executor."""
    files = list(files)
    loop = loop or asyncio.get_running_loop()
    return await loop.run_in_executor(None, derive_final_digest, files, algorithm, iterations)
