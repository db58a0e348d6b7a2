from __future__ import annotations

import logging
import math

from fastapi import Request
from fastapi.responses import JSONResponse
from pyrate_limiter import Limiter, Rate
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again after some time"


class ClientRateLimiter:
    """Fixed request budget per client address over a sliding window.

    Each client key is counted by its own ``Limiter``.
    """

    def __init__(self, *, max_requests: int, window_ms: int) -> None:
        if max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got: {max_requests}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got: {window_ms}")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._limiters: dict[str, Limiter] = {}

    def _limiter_for(self, client_key: str) -> Limiter:
        limiter = self._limiters.get(client_key)
        if limiter is None:
            limiter = Limiter([Rate(self.max_requests, self.window_ms)], raise_when_fail=False)
            self._limiters[client_key] = limiter
            logger.debug("Created limiter for client %s", client_key)
        return limiter

    def try_acquire(self, client_key: str) -> bool:
        return bool(self._limiter_for(client_key).try_acquire(f"client:{client_key}"))

    def tracked_clients(self) -> int:
        return len(self._limiters)

    @property
    def window_seconds(self) -> int:
        return max(1, math.ceil(self.window_ms / 1000))

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Policy": f"{self.max_requests};w={self.window_seconds}",
        }


def client_address(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, limiter: ClientRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client = client_address(request)
        if not self.limiter.try_acquire(client):
            logger.warning("Rate limit exceeded for %s on %s %s", client, request.method, request.url.path)
            headers = self.limiter.headers()
            headers["Retry-After"] = str(self.limiter.window_seconds)
            return JSONResponse(
                status_code=429,
                content={"status": "error", "message": RATE_LIMIT_MESSAGE},
                headers=headers,
            )
        response = await call_next(request)
        for name, value in self.limiter.headers().items():
            response.headers.setdefault(name, value)
        return response
