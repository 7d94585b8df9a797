"""Redirect resolution for the public ``GET /{id}`` entrypoint.

Resolution Flow
===============
::
    raw id ─► normalize ─► cache.get ──hit──┐
                              │ miss        │
                              ▼             │
                          store.get ─miss─► NotFound
                              │ hit         │
                              ▼             │
                          cache.fill        │
                              │             │
                              ▼◄────────────┘
                    defer(record_visit, id)  ← runs after the response
                              │
                              ▼
                         destination

The visit update is decoupled from the response: it is scheduled exactly
once per successful resolution and its failure is logged and counted,
never raised to the caller.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from qrlocal import codec
from qrlocal.cache import RedirectCache
from qrlocal.enums import RequestStatus
from qrlocal.errors import NotFound, RedirectError
from qrlocal.metrics import REDIRECT_REQUESTS_TOTAL, VISIT_RECORD_FAILURES_TOTAL
from qrlocal.store import RedirectStore

__all__ = ["RedirectResolver", "Defer"]

logger = logging.getLogger("qrlocal.resolver")

# Same call shape as fastapi.BackgroundTasks.add_task
Defer = Callable[..., Any]


class RedirectResolver:
    def __init__(self, store: RedirectStore, cache: RedirectCache):
        self._store = store
        self._cache = cache
        self._pending: set[asyncio.Task] = set()

    async def resolve(self, raw_id: str, defer: Defer | None = None) -> str:
        """Return the destination for ``raw_id`` and schedule one visit.

        Args:
            raw_id: identifier as it appeared in the request path, any case.
            defer: scheduler for the visit update. Without one the update
                runs as a detached task.

        Raises:
            NotFound: no record for the normalized id.
            StoreFailure: the lookup itself failed.
        """
        identifier = codec.normalize(raw_id)

        destination = await self._cache.get(identifier)
        if destination is None:
            try:
                record = await self._store.get(identifier)
            except NotFound:
                REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.NOT_FOUND).inc()
                logger.info(f"Redirect not found: {identifier}")
                raise
            destination = record.destination
            await self._cache.fill(identifier, destination)

        if defer is not None:
            defer(self.record_visit, identifier)
        else:
            self._spawn(self.record_visit(identifier))

        REDIRECT_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        return destination

    async def record_visit(self, identifier: str) -> None:
        try:
            updated = await self._store.record_visit(identifier)
        except RedirectError as exc:
            VISIT_RECORD_FAILURES_TOTAL.inc()
            logger.error(f"Failed to record visit for {identifier}: {exc.message}")
            return
        except Exception:
            VISIT_RECORD_FAILURES_TOTAL.inc()
            logger.exception(f"Unexpected error recording visit for {identifier}")
            return
        if not updated:
            logger.debug(f"Visit for {identifier} dropped, record was deleted")

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for detached visit updates; used at shutdown."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
