from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paper_api.api.error_handlers import register_error_handlers
from paper_api.api.paper import router as paper_router
from paper_api.config import Settings, get_settings
from paper_api.http_client import AsyncHttpClient
from paper_api.logging_config import setup_logging
from paper_api.middleware.cache import CacheStore, MemoryCacheStore, ResponseCache
from paper_api.middleware.rate_limit import ClientRateLimiter, RateLimitMiddleware
from paper_api.middleware.security_headers import SecurityHeadersMiddleware
from paper_api.persistence.service import SqlCacheStore
from paper_api.services import DocumentFetcher, MetadataResolver, PaperService, SourceLocator, TextExtractor

logger = logging.getLogger(__name__)


def build_cache_store(settings: Settings) -> CacheStore:
    if settings.cache_backend == "sql":
        return SqlCacheStore(
            settings.database_url,
            default_ttl=settings.cache_ttl_seconds,
            check_period=settings.cache_check_period_seconds,
        )
    return MemoryCacheStore(
        default_ttl=settings.cache_ttl_seconds,
        check_period=settings.cache_check_period_seconds,
    )


def build_paper_service(settings: Settings, client: AsyncHttpClient) -> PaperService:
    return PaperService(
        locator=SourceLocator(settings.mirror_base_url),
        fetcher=DocumentFetcher(client),
        extractor=TextExtractor(),
        metadata_resolver=MetadataResolver(client, base_url=settings.metadata_base_url),
    )


def create_app(
    settings: Settings | None = None,
    *,
    paper_service: PaperService | None = None,
    cache_store: CacheStore | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title="DOI Paper API", version="1.0.0")
    app.state.settings = settings

    http_client: AsyncHttpClient | None = None
    if paper_service is None:
        http_client = AsyncHttpClient(
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
            user_agent=settings.http_user_agent,
        )
        paper_service = build_paper_service(settings, http_client)
    app.state.paper_service = paper_service

    store = cache_store or build_cache_store(settings)
    app.state.response_cache = ResponseCache(
        store,
        enabled=settings.cache_enabled,
        ttl_seconds=settings.cache_ttl_seconds,
    )

    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=ClientRateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_ms=settings.rate_limit_window_ms,
            ),
        )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    @app.on_event("startup")
    async def _startup() -> None:
        if settings.cache_enabled:
            await store.initialize()
        logger.info(
            "DOI paper API ready env=%s cache=%s backend=%s rate_limit=%s",
            settings.env,
            settings.cache_enabled,
            settings.cache_backend,
            settings.rate_limit_enabled,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        if http_client is not None:
            await http_client.aclose()
        await store.close()

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(paper_router)
    logger.info("Registered paper router at /api/paper")
    return app


app = create_app()
