from __future__ import annotations

import asyncio
import json
import random
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from paper_api.errors import UpstreamError


RETRYABLE_STATUS = {408, 409, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class HttpResponse:
    url: str
    status_code: int
    headers: dict[str, str]
    body: bytes


class AsyncHttpClient:
    def __init__(
        self,
        *,
        timeout_seconds: int = 20,
        max_retries: int = 2,
        user_agent: str = "doi-pdf-api/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.user_agent = user_agent
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(float(timeout_seconds)),
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _retry_after_seconds(self, headers: httpx.Headers | dict[str, Any] | None) -> float | None:
        if not headers:
            return None
        raw = headers.get("retry-after") or headers.get("Retry-After")
        if raw is None:
            return None
        text = str(raw).strip()
        if not text:
            return None
        try:
            return max(float(text), 0.0)
        except Exception:
            pass
        try:
            dt = parsedate_to_datetime(text)
            now = time.time()
            return max(dt.timestamp() - now, 0.0)
        except Exception:
            return None

    def _backoff_seconds(self, *, attempt: int, retry_after_seconds: float | None = None) -> float:
        if retry_after_seconds is not None:
            # Add small jitter to avoid synchronized retries.
            return max(0.0, retry_after_seconds + random.uniform(0.0, 0.25))
        base = min(0.5 * (2**attempt), 8.0)
        return base + random.uniform(0.0, 0.25)

    async def request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> HttpResponse:
        req_headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/plain, */*",
        }
        if headers:
            req_headers.update(headers)
        clean_params = {k: v for k, v in (params or {}).items() if v is not None} or None

        last_exc: Exception | None = None
        last_retry_meta: dict[str, Any] = {
            "attempts": 0,
            "retry_count": 0,
            "delays_seconds": [],
            "retry_after_seconds": None,
        }
        for attempt in range(self.max_retries + 1):
            last_retry_meta["attempts"] = attempt + 1
            try:
                resp = await self._client.request(method.upper(), url, params=clean_params, headers=req_headers)
            except httpx.TransportError as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    delay = self._backoff_seconds(attempt=attempt)
                    last_retry_meta["retry_count"] = int(last_retry_meta["retry_count"]) + 1
                    last_retry_meta["delays_seconds"].append(round(delay, 3))
                    await asyncio.sleep(delay)
                    continue
                raise UpstreamError(
                    message=f"Network error while contacting upstream source: {exc}",
                    retryable=True,
                    details={"url": url, "retry": last_retry_meta},
                ) from exc

            if resp.is_success:
                return HttpResponse(
                    url=str(resp.url),
                    status_code=resp.status_code,
                    headers={k.lower(): v for k, v in resp.headers.items()},
                    body=resp.content,
                )

            retryable = resp.status_code in RETRYABLE_STATUS
            retry_after = self._retry_after_seconds(resp.headers)
            if retry_after is not None:
                last_retry_meta["retry_after_seconds"] = retry_after
            if retryable and attempt < self.max_retries:
                delay = self._backoff_seconds(attempt=attempt, retry_after_seconds=retry_after)
                last_retry_meta["retry_count"] = int(last_retry_meta["retry_count"]) + 1
                last_retry_meta["delays_seconds"].append(round(delay, 3))
                await asyncio.sleep(delay)
                continue
            if resp.status_code == 404:
                raise UpstreamError(
                    code="NOT_FOUND",
                    message=f"Upstream resource not found: {url}",
                    details={"url": url, "status_code": 404},
                )
            if resp.status_code == 429:
                raise UpstreamError(
                    code="RATE_LIMIT",
                    message=f"Rate limited by upstream source: {url}",
                    retryable=True,
                    details={"url": url, "status_code": 429, "retry": last_retry_meta},
                )
            raise UpstreamError(
                message=f"HTTP {resp.status_code} from upstream source",
                retryable=retryable,
                details={"url": url, "status_code": resp.status_code, "retry": last_retry_meta},
            )

        raise UpstreamError(
            message="Unexpected HTTP client failure",
            details={"url": url, "last_error": str(last_exc) if last_exc else None, "retry": last_retry_meta},
        )

    async def get_json(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[Any, dict[str, str]]:
        resp = await self.request(method="GET", url=url, params=params, headers=headers)
        try:
            payload = json.loads(resp.body.decode("utf-8"))
        except Exception as exc:
            raise UpstreamError(
                message="Upstream returned non-JSON payload",
                details={"url": resp.url, "status_code": resp.status_code},
            ) from exc
        return payload, resp.headers

    async def get_text(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[str, dict[str, str]]:
        resp = await self.request(method="GET", url=url, params=params, headers=headers)
        return resp.body.decode("utf-8", errors="replace"), resp.headers

    async def get_bytes(
        self,
        *,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> tuple[bytes, dict[str, str]]:
        resp = await self.request(method="GET", url=url, params=params, headers=headers)
        return resp.body, resp.headers
