"""Identifier allocation for redirects created without a custom key.

Allocation Flow
===============
::
    ┌──────────────────────┐
    │ attempt = 0          │
    └──────────┬───────────┘
               ▼
    ┌──────────────────────┐
    │ sha256(dest, time,   │
    │  random, attempt)    │
    │ → base32 → truncate  │
    └──────────┬───────────┘
               ▼
    ┌──────────────────────┐   taken    ┌──────────────┐
    │ store.exists(id)?    ├───────────►│ attempt += 1 │──┐
    └──────────┬───────────┘            └──────────────┘  │
               ▼ free                          ▲          │
    ┌──────────────────────┐  DuplicateKey     │          │
    │ store.insert_if_     ├───────────────────┘          │
    │ absent(id, dest)     │                              │
    └──────────┬───────────┘                              │
               ▼                                          │
          Redirect           attempt == max_attempts ◄────┘
                                     │
                                     ▼
                            AllocationExhausted

The existence check only avoids a wasted insert. Two concurrent allocations
can pick the same free candidate; the store's primary key lets exactly one
insert through and the loser retries with the next attempt index.
"""

import hashlib
import logging
import secrets
import time

from qrlocal import codec
from qrlocal.errors import AllocationExhausted, DuplicateKey
from qrlocal.metrics import ALLOCATION_COLLISIONS_TOTAL
from qrlocal.models import Redirect
from qrlocal.store import RedirectStore

__all__ = ["IdentifierAllocator", "DEFAULT_MAX_ATTEMPTS"]

DEFAULT_MAX_ATTEMPTS = 10

logger = logging.getLogger("qrlocal.allocator")


class IdentifierAllocator:
    def __init__(
        self,
        store: RedirectStore,
        max_id_length: int,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if not 1 <= max_id_length <= 20:
            raise ValueError(f"max_id_length must be between 1 and 20, got {max_id_length}")
        self._store = store
        self._max_id_length = max_id_length
        self._max_attempts = max_attempts

    def candidate(self, destination: str, attempt: int) -> str:
        """Derive one normalized candidate id.

        The destination only seeds the hash; the id cannot be reversed into
        the URL.
        """
        material = f"{destination}{time.time_ns()}{secrets.randbits(64)}{attempt}"
        digest = hashlib.sha256(material.encode("utf-8")).digest()
        return codec.normalize(codec.encode(digest)[: self._max_id_length])

    async def assign(self, destination: str) -> Redirect:
        """Allocate a fresh id for ``destination`` and insert the record.

        Raises:
            AllocationExhausted: every attempt collided.
            StoreFailure: the store failed; not retried here.
        """
        for attempt in range(self._max_attempts):
            identifier = self.candidate(destination, attempt)
            if await self._store.exists(identifier):
                ALLOCATION_COLLISIONS_TOTAL.inc()
                logger.debug(f"Candidate {identifier} taken (attempt {attempt + 1})")
                continue
            try:
                return await self._store.insert_if_absent(identifier, destination)
            except DuplicateKey:
                ALLOCATION_COLLISIONS_TOTAL.inc()
                logger.debug(f"Candidate {identifier} lost insert race (attempt {attempt + 1})")

        logger.error(
            f"No free identifier after {self._max_attempts} attempts "
            f"(max_id_length={self._max_id_length})"
        )
        raise AllocationExhausted()
