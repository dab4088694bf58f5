"""FastAPI server for NewsDigest"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from newsdigest.api.routes.categories import router as categories_router
from newsdigest.api.routes.digests import router as digests_router
from newsdigest.api.routes.health import router as health_router
from newsdigest.api.routes.subscriptions import router as subscriptions_router
from newsdigest.config import (
    APP_VERSION,
    DIGESTS_COLLECTION,
    SCHEDULER_COLLECTION,
    SCHEDULER_ENABLED,
    SUBSCRIPTIONS_COLLECTION,
)
from newsdigest.digest.scheduler import DigestScheduler
from newsdigest.errors import NewsDigestError
from newsdigest.infrastructure.settings import is_development
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter, log_event
from newsdigest.storage.record_store import get_record_store
from newsdigest.utils.error_sanitizer import sanitize_error_message

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize the record store and run the daily scheduler for the app's lifetime."""
    store = get_record_store()
    logger.info("Initializing record store at %s", store.data_dir)
    await store.initialize(SUBSCRIPTIONS_COLLECTION, DIGESTS_COLLECTION, SCHEDULER_COLLECTION)

    scheduler: DigestScheduler | None = None
    if SCHEDULER_ENABLED:
        scheduler = DigestScheduler(store=store)
        scheduler.start()
    else:
        logger.info("Digest scheduler disabled (NEWSDIGEST_SCHEDULER_ENABLED=false)")
    app.state.scheduler = scheduler

    log_event("api.startup", service="newsdigest", version=APP_VERSION)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown()


app = FastAPI(title="NewsDigest API", version=APP_VERSION, lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Malformed bodies are client errors (400); only field names are echoed back.
    """
    logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "message": "Invalid request format. Please check your request and try again.",
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Errors use a ``{"message": ...}`` body."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(NewsDigestError)
async def domain_exception_handler(request: Request, exc: NewsDigestError) -> JSONResponse:
    """Safety net for domain errors a route did not translate itself."""
    logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": sanitize_error_message(str(exc), exc.status_code)},
    )


# CORS - the UI is served from these origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("NEWSDIGEST_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]

# Allow localhost in development only
if is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:8000",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:8000",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

# Include routers
app.include_router(health_router)
app.include_router(categories_router)
app.include_router(subscriptions_router)
app.include_router(digests_router)


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "NewsDigest API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/api/health",
            "categories": "/api/categories",
            "subscribe": "/api/subscribe",
            "subscriptions": "/api/subscriptions",
            "generate": "/api/digest/generate",
            "latest_digest": "/api/digest/{category}",
            "digests": "/api/digests/{category}",
        },
    }


def main() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    from newsdigest.infrastructure.settings import API_HOST, API_PORT, LOG_LEVEL

    uvicorn.run("newsdigest.api.app:app", host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
