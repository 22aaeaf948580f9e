"""Durable, expiry-aware storage of signing keys.

Records are immutable: the store only supports insert and reads. Every read
opens its own session, so it observes exactly the inserts committed before
it started and never a half-written row.
"""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from jwks_server.exceptions import DuplicateKeyError, StorageError
from jwks_server.keys.models import SigningKey
from jwks_server.keys.schemas import KeyRecord

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Falha no armazenamento de chaves (%s): %s", operation, type(exc).__name__)
        raise StorageError(f"Falha no armazenamento de chaves: {operation}") from exc


class KeyStore:
    """Process-wide handle on the ``signing_keys`` table."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory
        # Serialises inserts within the process; the primary key guards across processes
        self._write_lock = asyncio.Lock()

    async def insert(self, record: KeyRecord) -> None:
        async with self._write_lock:
            async with self._session_factory() as db:
                with _storage_errors("insert"):
                    if await db.get(SigningKey, record.kid) is not None:
                        raise DuplicateKeyError(record.kid)
                    db.add(SigningKey.from_record(record))
                    try:
                        await db.commit()
                    except IntegrityError as exc:
                        await db.rollback()
                        raise DuplicateKeyError(record.kid) from exc

    async def get(self, kid: str) -> KeyRecord | None:
        async with self._session_factory() as db:
            with _storage_errors("get"):
                row = await db.get(SigningKey, kid)
        return row.to_record() if row else None

    async def list_valid(self, now: datetime) -> list[KeyRecord]:
        """All keys with ``expires_at > now``, oldest first."""
        return await self._list(SigningKey.expires_at > now, "list_valid")

    async def list_expired(self, now: datetime) -> list[KeyRecord]:
        """All keys with ``expires_at <= now``, oldest first."""
        return await self._list(SigningKey.expires_at <= now, "list_expired")

    async def pick_valid(self, now: datetime) -> KeyRecord | None:
        """The most recently created valid key, if any."""
        return await self._pick(SigningKey.expires_at > now, "pick_valid")

    async def pick_expired(self, now: datetime) -> KeyRecord | None:
        """The most recently created expired key, if any."""
        return await self._pick(SigningKey.expires_at <= now, "pick_expired")

    async def _list(self, condition, operation: str) -> list[KeyRecord]:
        stmt = (
            select(SigningKey)
            .where(condition)
            .order_by(SigningKey.created_at, SigningKey.kid)
        )
        async with self._session_factory() as db:
            with _storage_errors(operation):
                result = await db.execute(stmt)
                rows = result.scalars().all()
        return [row.to_record() for row in rows]

    async def _pick(self, condition, operation: str) -> KeyRecord | None:
        # Freshest key wins; kid breaks exact created_at ties deterministically
        stmt = (
            select(SigningKey)
            .where(condition)
            .order_by(SigningKey.created_at.desc(), SigningKey.kid.desc())
            .limit(1)
        )
        async with self._session_factory() as db:
            with _storage_errors(operation):
                result = await db.execute(stmt)
                row = result.scalars().first()
        return row.to_record() if row else None
