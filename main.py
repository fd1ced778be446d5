from __future__ import annotations

import logging
import time
import traceback
from typing import Any, AsyncIterator, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from seo_audit.config import Settings, configure_logging, get_settings
from seo_audit.engine.analyzer import analyze, now_iso
from seo_audit.engine.fetcher import (
    FetchTimeoutError,
    Fetcher,
    HostUnreachableError,
    UpstreamStatusError,
)
from seo_audit.engine.urls import validate_url

logger = logging.getLogger("seo_audit.api")

STARTED_AT = time.monotonic()


class AnalyzeRequest(BaseModel):
    url: Optional[Any] = None


app = FastAPI(title="SEO Audit Tool API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


def _error(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, **extra})


def _internal_error(exc: Exception, development: bool) -> JSONResponse:
    extra = {}
    if development:
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return _error(500, "Internal Server Error", str(exc), **extra)


async def get_fetcher(settings: Settings = Depends(get_settings)) -> AsyncIterator[Fetcher]:
    async with Fetcher(user_agent=settings.user_agent, default_timeout=settings.primary_timeout_seconds) as fetcher:
        yield fetcher


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request", "Request body must be JSON with a 'url' string.")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return _internal_error(exc, get_settings().is_development)


@app.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict:
    return {
        "status": "ok",
        "timestamp": now_iso(),
        "uptimeSeconds": round(time.monotonic() - STARTED_AT, 1),
        "environment": settings.environment,
    }


@app.get("/")
def index() -> dict:
    return {
        "message": "SEO Audit Tool API",
        "endpoints": {
            "health": "/health",
            "analyze": "/api/analyze",
        },
    }


@app.post("/api/analyze")
async def analyze_endpoint(
    req: AnalyzeRequest,
    fetcher: Fetcher = Depends(get_fetcher),
    settings: Settings = Depends(get_settings),
):
    try:
        url = validate_url(req.url)
    except ValueError as exc:
        return _error(400, "Invalid URL", str(exc))

    try:
        return await analyze(url, fetcher, settings)
    except HostUnreachableError as exc:
        logger.warning("Could not connect: %s", exc)
        return _error(400, "Could not connect", f"Could not connect to {url}. Check the URL and try again.")
    except UpstreamStatusError as exc:
        logger.warning("Upstream error: %s", exc)
        return _error(
            exc.status,
            "Target site error",
            f"Target site returned {exc.status} {exc.reason}".strip(),
        )
    except FetchTimeoutError as exc:
        logger.warning("Timeout: %s", exc)
        return _error(504, "Gateway Timeout", f"Timed out fetching {url}.")
    except Exception as exc:
        logger.exception("Analysis of %s failed", url)
        return _internal_error(exc, settings.is_development)


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
