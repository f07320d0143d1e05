"""
entropy.beacon
==============

The round protocol proper:

- :mod:`.collector` - digest and canonically order the collected source files
- :mod:`.digest`    - concatenate file digests and derive the slow hash
- :mod:`.round`     - assemble, sign, archive and persist a Round
- :mod:`.signing`   - Ed25519 helpers over the raw digest bytes
- :mod:`.verify`    - public key retrieval, signature check, recomputation
- :mod:`.index`     - previous round digest → publishing commit id
"""

from __future__ import annotations

from .collector import collect_source_files
from .digest import derive_final_digest, slow_hash
from .index import index_previous_round
from .round import assemble_round, generate_round
from .verify import verify_round

__all__ = [
    "collect_source_files",
    "derive_final_digest",
    "slow_hash",
    "assemble_round",
    "generate_round",
    "verify_round",
    "index_previous_round",
]
