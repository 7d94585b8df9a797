"""Service layer for redirect creation, lookup and deletion.

This module wires the validator, the allocator, the store and the cache into
the operations the HTTP layer exposes.

Flow Diagram: add()
====================
::
    ┌─────────────┐
    │ add(url,    │
    │     key?)   │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ validate_   │── InvalidURL
    │ destination │
    └──────┬──────┘
    KEY?   │
    ┌──────┴──────┐
    │ YES          │ NO
    ▼              ▼
┌───────────┐  ┌───────────┐
│ validate_ │  │ allocator │── AllocationExhausted
│ custom_key│  │ .assign() │
└─────┬─────┘  └─────┬─────┘
      ▼              │
┌───────────┐        │
│ insert_if_│        │
│ absent    │── DuplicateKey (terminal)
└─────┬─────┘        │
      └──────┬───────┘
             ▼
        Redirect (201)

How to Use
===========
**Step 1: Build from the shared manager**::
    service = RedirectService(store, allocator, cache, settings)

**Step 2: Call operations**::
    record = await service.add("https://example.com")
    record = await service.add("https://example.com", key="MYKEY23")
    existing = await service.check("https://example.com")
    removed = await service.delete("mykey23")

Key Behaviours
===============
- Validation always happens before any store call.
- An empty key is treated as "no key" and an id is generated.
- ``check`` returns None for an unknown URL; absence is not an error.
- ``delete`` invalidates the cached destination.
"""

import logging
import time
from typing import Any

from qrlocal import codec
from qrlocal.allocator import IdentifierAllocator
from qrlocal.cache import RedirectCache
from qrlocal.config import Settings
from qrlocal.enums import RequestStatus
from qrlocal.errors import DuplicateKey, InvalidKeyFormat, InvalidURL, NotFound, RedirectError
from qrlocal.metrics import CREATION_DURATION, CREATION_REQUESTS_TOTAL
from qrlocal.models import Redirect
from qrlocal.store import RedirectStore
from qrlocal.validation import validate_custom_key, validate_destination

__all__ = ["RedirectService"]

_STATUS_BY_ERROR = {
    InvalidURL: RequestStatus.VALIDATION_ERROR,
    InvalidKeyFormat: RequestStatus.VALIDATION_ERROR,
    DuplicateKey: RequestStatus.CONFLICT,
}


class RedirectService:
    def __init__(
        self,
        store: RedirectStore,
        allocator: IdentifierAllocator,
        cache: RedirectCache,
        settings: Settings,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self._store = store
        self._allocator = allocator
        self._cache = cache
        self._settings = settings
        self._logger = logger or logging.getLogger("qrlocal")

    def short_url(self, identifier: str) -> str:
        return self._settings.short_url(identifier)

    async def add(self, url: Any, key: Any = None) -> Redirect:
        """Create a redirect for ``url``, using ``key`` if one is given.

        Raises:
            InvalidURL, InvalidKeyFormat: before touching the store.
            DuplicateKey: the custom key is taken.
            AllocationExhausted: no free generated id was found.
            StoreFailure: the store failed.
        """
        start_time = time.perf_counter()
        try:
            destination = validate_destination(url)
            if key is None or key == "":
                record = await self._allocator.assign(destination)
            else:
                identifier = validate_custom_key(key, self._settings.MAX_ID_LENGTH)
                record = await self._store.insert_if_absent(identifier, destination)
        except RedirectError as exc:
            status = _STATUS_BY_ERROR.get(type(exc), RequestStatus.ERROR)
            CREATION_REQUESTS_TOTAL.labels(status=status).inc()
            CREATION_DURATION.observe(time.perf_counter() - start_time)
            if status is RequestStatus.ERROR:
                self._logger.error(f"Redirect creation failed: {exc.message}")
            else:
                self._logger.warning(f"Redirect creation rejected: {exc.message}")
            raise

        duration = time.perf_counter() - start_time
        CREATION_DURATION.observe(duration)
        CREATION_REQUESTS_TOTAL.labels(status=RequestStatus.SUCCESS).inc()
        self._logger.info(f"Redirect created: {record.id} -> {record.destination} in {duration:.3f}s")
        return record

    async def check(self, url: Any) -> Redirect | None:
        destination = validate_destination(url)
        try:
            return await self._store.get_by_destination(destination)
        except NotFound:
            return None

    async def get(self, raw_id: str) -> Redirect:
        return await self._store.get(codec.normalize(raw_id))

    async def delete(self, raw_id: str) -> Redirect:
        identifier = codec.normalize(raw_id)
        record = await self._store.delete(identifier)
        await self._cache.invalidate(identifier)
        self._logger.info(f"Redirect deleted: {record.id} -> {record.destination}")
        return record

    async def list_all(self) -> list[Redirect]:
        return await self._store.list_all()
