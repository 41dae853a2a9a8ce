"""Mutual exclusion for booking writes on one ``(area, date)`` slot.

Two layers are held together for the whole check-then-insert:

* a process-local ``asyncio.Lock`` per key, serialising coroutines of this
  worker process;
* on PostgreSQL, ``pg_advisory_xact_lock`` on a stable 64-bit hash of the key,
  serialising transactions across processes until commit or rollback.

The ``ex_rentals_no_overlap`` exclusion constraint remains the storage-level
guarantee if anything writes rentals outside this lock.
"""

import asyncio
import hashlib
import uuid
import weakref
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator

from libs.common.logging import get_logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

_LOCKS: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def slot_key(area_id: uuid.UUID, rental_date: date) -> str:
    return f"rental-slot:{area_id}:{rental_date.isoformat()}"


def advisory_lock_id(key: str) -> int:
    """Signed 64-bit integer derived from ``key``, stable across processes."""
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def _local_lock(key: str) -> asyncio.Lock:
    lock = _LOCKS.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _LOCKS[key] = lock
    return lock


def _is_postgres(db: AsyncSession) -> bool:
    return db.get_bind().dialect.name == "postgresql"


@asynccontextmanager
async def slot_lock(
    db: AsyncSession, area_id: uuid.UUID, rental_date: date
) -> AsyncIterator[None]:
    """Hold the slot for ``(area_id, rental_date)``.

    The caller must commit (or roll back) inside the block; the advisory lock
    is transaction scoped and released by that commit.
    """
    key = slot_key(area_id, rental_date)
    lock = _local_lock(key)
    async with lock:
        if _is_postgres(db):
            await db.execute(
                text("SELECT pg_advisory_xact_lock(:lock_id)"),
                {"lock_id": advisory_lock_id(key)},
            )
        logger.debug("Acquired slot lock %s", key)
        yield
