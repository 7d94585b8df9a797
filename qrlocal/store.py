"""Redirect store: atomic persistence operations over SQLAlchemy.

The store is the only shared mutable resource in the service and the single
source of truth for per-key mutual exclusion. Allocation and validation never
trust their own existence checks; they rely on the primary key constraint
enforced by ``insert_if_absent``.

Operation Summary
=================
::
    insert_if_absent(id, dest)  INSERT              → Redirect | DuplicateKey
    get(id)                     SELECT by pk        → Redirect | NotFound
    exists(id)                  SELECT by pk        → bool
    get_by_destination(dest)    SELECT by index     → Redirect | NotFound
    record_visit(id)            UPDATE +1, now      → bool (row touched)
    delete(id)                  DELETE … RETURNING  → Redirect | NotFound
    list_all()                  SELECT ORDER BY created_at DESC
    ping()                      SELECT 1

Each operation runs in its own short transaction on a fresh session from the
shared factory. Any other SQLAlchemy error surfaces as StoreFailure.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from qrlocal.errors import DuplicateKey, NotFound, StoreFailure
from qrlocal.models import Redirect, utcnow

__all__ = ["RedirectStore"]

logger = logging.getLogger("qrlocal.store")


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Store operation '{operation}' failed: {exc}")
        raise StoreFailure() from exc


class RedirectStore:
    """Durable identifier → redirect mapping."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert_if_absent(self, identifier: str, destination: str) -> Redirect:
        """Insert a new record; exactly one concurrent caller wins per id.

        Raises:
            DuplicateKey: a record with this id already exists.
            StoreFailure: any other database error.
        """
        record = Redirect(
            id=identifier,
            destination=destination,
            created_at=utcnow(),
            visit_count=0,
            last_visit_at=None,
        )
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(record)
        except IntegrityError as exc:
            logger.debug(f"Insert rejected, id already taken: {identifier}")
            raise DuplicateKey() from exc
        except SQLAlchemyError as exc:
            logger.error(f"Store operation 'insert' failed: {exc}")
            raise StoreFailure() from exc
        return record

    async def get(self, identifier: str) -> Redirect:
        with _store_errors("get"):
            async with self._session_factory() as session:
                record = await session.get(Redirect, identifier)
        if record is None:
            raise NotFound()
        return record

    async def exists(self, identifier: str) -> bool:
        with _store_errors("exists"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Redirect.id).where(Redirect.id == identifier)
                )
                return result.scalar_one_or_none() is not None

    async def get_by_destination(self, destination: str) -> Redirect:
        # Several records may share a destination; the earliest one wins.
        with _store_errors("get_by_destination"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Redirect)
                    .where(Redirect.destination == destination)
                    .order_by(Redirect.created_at.asc())
                    .limit(1)
                )
                record = result.scalar_one_or_none()
        if record is None:
            raise NotFound("No redirect found for this URL")
        return record

    async def record_visit(self, identifier: str) -> bool:
        """Atomically bump the visit counter and stamp ``last_visit_at``.

        Returns False when the record no longer exists.
        """
        with _store_errors("record_visit"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(Redirect)
                        .where(Redirect.id == identifier)
                        .values(
                            visit_count=Redirect.visit_count + 1,
                            last_visit_at=utcnow(),
                        )
                        .execution_options(synchronize_session=False)
                    )
        return result.rowcount > 0

    async def delete(self, identifier: str) -> Redirect:
        with _store_errors("delete"):
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(Redirect)
                        .where(Redirect.id == identifier)
                        .returning(Redirect)
                        .execution_options(synchronize_session=False)
                    )
                    record = result.scalar_one_or_none()
        if record is None:
            raise NotFound()
        return record

    async def list_all(self) -> list[Redirect]:
        with _store_errors("list_all"):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Redirect).order_by(Redirect.created_at.desc())
                )
                return list(result.scalars().all())

    async def ping(self) -> None:
        with _store_errors("ping"):
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
