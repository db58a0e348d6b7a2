"""Response cache keyed by request signature.

Responses with a status below 400 are stored as serialized bodies for the
configured TTL. Hits are answered straight from the store, so the pipeline is
not invoked again within the TTL window.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from fastapi import Request, Response
from fastapi.routing import APIRoute

logger = logging.getLogger(__name__)

_PASSTHROUGH_HEADERS = ("content-disposition",)


@dataclass(frozen=True)
class CachedResponse:
    body: bytes
    status_code: int = 200
    media_type: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


class CacheStore(ABC):
    """Process-wide store for serialized responses."""

    @abstractmethod
    async def get(self, key: str) -> CachedResponse | None:
        pass

    @abstractmethod
    async def set(self, key: str, value: CachedResponse, ttl: int | None = None) -> None:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        return None


class MemoryCacheStore(CacheStore):
    def __init__(
        self,
        *,
        default_ttl: int | None = None,
        check_period: int = 120,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.check_period = check_period
        self._clock = clock
        self._data: dict[str, tuple[CachedResponse, float | None]] = {}
        self._lock = asyncio.Lock()
        self._last_prune = clock()

    async def get(self, key: str) -> CachedResponse | None:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() > expires_at:
                del self._data[key]
                return None
            return value

    async def set(self, key: str, value: CachedResponse, ttl: int | None = None) -> None:
        effective_ttl = ttl if ttl is not None else self.default_ttl
        async with self._lock:
            now = self._clock()
            self._data[key] = (value, now + effective_ttl if effective_ttl else None)
            if now - self._last_prune >= self.check_period:
                self._prune_expired(now)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()

    def size(self) -> int:
        return len(self._data)

    def _prune_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at is not None and now > expires_at]
        for key in expired:
            del self._data[key]
        self._last_prune = now
        if expired:
            logger.debug("Pruned %d expired cache entries", len(expired))


def cache_key(request: Request) -> str:
    query = json.dumps(sorted(request.query_params.multi_items()), separators=(",", ":"))
    return f"{request.method}-{request.url.path}-{query}"


class ResponseCache:
    def __init__(self, store: CacheStore, *, enabled: bool, ttl_seconds: int) -> None:
        self.store = store
        self.enabled = enabled
        self.ttl_seconds = ttl_seconds

    async def lookup(self, request: Request) -> Response | None:
        key = cache_key(request)
        cached = await self.store.get(key)
        if cached is None:
            logger.info("Cache miss for %s", key)
            return None
        logger.info("Cache hit for %s", key)
        headers = dict(cached.headers)
        headers["X-Cache"] = "HIT"
        return Response(
            content=cached.body,
            status_code=cached.status_code,
            media_type=cached.media_type,
            headers=headers,
        )

    async def remember(self, request: Request, response: Response) -> None:
        if response.status_code >= 400:
            return
        body = getattr(response, "body", None)
        if body is None:
            return
        key = cache_key(request)
        headers = {name: response.headers[name] for name in _PASSTHROUGH_HEADERS if name in response.headers}
        await self.store.set(
            key,
            CachedResponse(
                body=bytes(body),
                status_code=response.status_code,
                media_type=response.headers.get("content-type"),
                headers=headers,
            ),
            ttl=self.ttl_seconds,
        )
        logger.info("Cached response for %s", key)


class CachedRoute(APIRoute):
    """API route that serves and stores responses through ``app.state.response_cache``."""

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        original_handler = super().get_route_handler()

        async def cached_handler(request: Request) -> Response:
            cache: ResponseCache | None = getattr(request.app.state, "response_cache", None)
            if cache is None or not cache.enabled:
                return await original_handler(request)

            hit = await cache.lookup(request)
            if hit is not None:
                return hit

            response = await original_handler(request)
            await cache.remember(request, response)
            if response.status_code < 400:
                response.headers["X-Cache"] = "MISS"
            return response

        return cached_handler
