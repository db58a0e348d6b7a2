from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from paper_api.config import Settings
from paper_api.errors import AppError

logger = logging.getLogger(__name__)


def error_body(exc: Exception, *, include_stack: bool) -> dict[str, Any]:
    operational = isinstance(exc, AppError) and exc.is_operational
    body: dict[str, Any] = {
        "status": "error",
        "message": str(exc) if operational else "Internal server error",
    }
    if include_stack:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    include_stack = not settings.is_production

    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log("%s %s -> %s", request.method, request.url.path, exc.message, extra={"error": exc.to_error_payload()})
        return JSONResponse(status_code=exc.status_code, content=error_body(exc, include_stack=include_stack))

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("%s %s -> %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content=error_body(exc, include_stack=include_stack))
