from __future__ import annotations

import logging
from time import perf_counter

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from queryspec.core.errors import InvalidRequestError

_LOG = logging.getLogger("queryspec.http")


def _query_keys(request: Request) -> str:
    # Keys only: search values may carry user data.
    return ",".join(sorted({key for key, _ in request.query_params.multi_items()})) or "-"


async def _invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    _LOG.warning("rejected query path=%s params=%s detail=%s", request.url.path, _query_keys(request), exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def install_request_logging(app: FastAPI) -> None:
    """Log one line per request and every rejected listing query."""
    app.add_exception_handler(InvalidRequestError, _invalid_request_handler)

    @app.middleware("http")
    async def _request_logging_middleware(request: Request, call_next):
        started_at = perf_counter()
        response = await call_next(request)
        duration_ms = (perf_counter() - started_at) * 1000.0
        _LOG.info(
            "%s %s status=%s duration_ms=%.2f params=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            _query_keys(request),
        )
        return response
