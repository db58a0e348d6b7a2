from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncEngine

from paper_api.middleware.cache import CachedResponse, CacheStore
from paper_api.persistence.db import create_engine, create_session_factory, init_db
from paper_api.persistence.models import CachedResponseRecord

logger = logging.getLogger(__name__)


class SqlCacheStore(CacheStore):
    """Cache store backed by a SQL table so several workers can share entries."""

    def __init__(
        self,
        database_url: str | None = None,
        *,
        engine: AsyncEngine | None = None,
        default_ttl: int | None = None,
        check_period: int = 120,
    ) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required for SqlCacheStore")
            engine = create_engine(database_url)
        self.engine = engine
        self.session_factory = create_session_factory(engine)
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._last_prune: datetime | None = None

    async def initialize(self) -> None:
        await init_db(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def get(self, key: str) -> CachedResponse | None:
        async with self.session_factory() as session:
            result = await session.execute(select(CachedResponseRecord).where(CachedResponseRecord.key == key))
            record = result.scalar_one_or_none()
            if record is None:
                return None
            if record.expires_at is not None and record.expires_at < datetime.utcnow():
                await session.delete(record)
                await session.commit()
                return None
            return CachedResponse(
                body=record.body,
                status_code=record.status_code,
                media_type=record.media_type,
                headers=dict(record.headers or {}),
            )

    async def set(self, key: str, value: CachedResponse, ttl: int | None = None) -> None:
        effective_ttl = ttl if ttl is not None else self.default_ttl
        now = datetime.utcnow()
        async with self.session_factory() as session:
            # merge() turns a repeated key into an update of the existing row.
            await session.merge(
                CachedResponseRecord(
                    key=key,
                    body=value.body,
                    status_code=value.status_code,
                    media_type=value.media_type,
                    headers=dict(value.headers),
                    created_at=now,
                    expires_at=now + timedelta(seconds=effective_ttl) if effective_ttl else None,
                )
            )
            if self._last_prune is None or (now - self._last_prune).total_seconds() >= self.check_period:
                result = await session.execute(
                    delete(CachedResponseRecord).where(CachedResponseRecord.expires_at < now)
                )
                self._last_prune = now
                if result.rowcount:
                    logger.debug("Pruned %d expired cache rows", result.rowcount)
            await session.commit()

    async def delete(self, key: str) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(CachedResponseRecord).where(CachedResponseRecord.key == key))
            await session.commit()

    async def clear(self) -> None:
        async with self.session_factory() as session:
            await session.execute(delete(CachedResponseRecord))
            await session.commit()
