"""
ListingTrust FastAPI Service

REST API for the listing trust evaluation engine.

Endpoints:
    GET  /health                        - Liveness probe
    POST /businesses/{id}/verify        - Run verification, returns full result
    POST /businesses/{id}/review        - Apply admin decision and feedback
    GET  /configuration                 - Current configuration + version
    PUT  /configuration                 - Apply or test-mode a partial update
    GET  /configuration/history         - Change history with summary
    GET  /feedback                      - Recorded admin feedback
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from listingtrust import __version__
from listingtrust.exceptions import (
    ComputationError,
    ConcurrencyConflictError,
    ConfigurationInvariantError,
    ListingTrustError,
    NotFoundError,
    ValidationError,
)
from service import context as service_context
from service.routers import configuration, feedback, review, verify
from service.schemas.responses import HealthResponse

# =============================================================================
# Configuration
# =============================================================================

LT_LOG_LEVEL = os.getenv("LT_LOG_LEVEL", "INFO")
LT_DOCS_ENABLED = os.getenv("LT_DOCS_ENABLED", "true").lower() == "true"
LT_CONFIG_PACK = os.getenv("LT_CONFIG_PACK") or None
LT_MAX_WORKERS = int(os.getenv("LT_MAX_WORKERS", "5"))
LT_SEED_DEMO_DATA = os.getenv("LT_SEED_DEMO_DATA", "false").lower() == "true"

# =============================================================================
# Logging Setup (Structured JSON)
# =============================================================================

LOG_EXTRA_FIELDS = (
    "request_id",
    "business_id",
    "decision",
    "confidence",
    "config_version",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in LOG_EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


logger = logging.getLogger("listingtrust")
logger.setLevel(getattr(logging, LT_LOG_LEVEL.upper(), logging.INFO))
if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

# =============================================================================
# Error Mapping
# =============================================================================

ERROR_STATUS = (
    (NotFoundError, 404),
    (ConcurrencyConflictError, 409),
    (ConfigurationInvariantError, 400),
    (ValidationError, 400),
    (ComputationError, 500),
)


def status_for(exc: ListingTrustError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


async def handle_listingtrust_error(request: Request, exc: ListingTrustError):
    request_id = getattr(request.state, "request_id", "unknown")
    status = status_for(exc)
    body = exc.to_dict()
    details = {k: v for k, v in body.items() if k not in ("code", "message")}
    if status >= 500:
        logger.error("%s", exc, extra={"request_id": request_id})
    else:
        logger.warning("%s", exc, extra={"request_id": request_id})
    content = {
        "error": exc.message,
        "code": exc.code,
        "details": details or None,
        "request_id": request_id,
    }
    if isinstance(exc, ConfigurationInvariantError):
        content["validation_errors"] = list(exc.violations)
    return JSONResponse(status_code=status, content=content)

# =============================================================================
# App Factory
# =============================================================================


def create_app(ctx: Optional[service_context.ServiceContext] = None) -> FastAPI:
    """
    Build the FastAPI app.

    When `ctx` is given it is used as-is (tests); otherwise the context
    is built at startup from the LT_* environment settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if ctx is not None:
            service_context.set_context(ctx)
        else:
            service_context.set_context(service_context.build_context(
                pack_path=LT_CONFIG_PACK,
                max_workers=LT_MAX_WORKERS,
                seed_demo_data=LT_SEED_DEMO_DATA,
            ))
        logger.info("ListingTrust starting", extra={"request_id": "startup"})
        logger.info(f"Version: {__version__}")
        logger.info(f"Docs enabled: {LT_DOCS_ENABLED}")
        yield
        logger.info("ListingTrust shutting down")
        service_context.set_context(None)

    app = FastAPI(
        title="ListingTrust",
        description="Trust evaluation engine for business listings",
        version=__version__,
        docs_url="/docs" if LT_DOCS_ENABLED else None,
        redoc_url="/redoc" if LT_DOCS_ENABLED else None,
        openapi_url="/openapi.json" if LT_DOCS_ENABLED else None,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        logger.debug(
            "%s %s -> %d", request.method, request.url.path, response.status_code,
            extra={
                "request_id": request_id,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return response

    app.add_exception_handler(ListingTrustError, handle_listingtrust_error)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check():
        """Liveness probe."""
        current = service_context.current_context()
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=__version__,
            configuration_version=current.config_store.version if current else None,
        )

    app.include_router(verify.router)
    app.include_router(review.router)
    app.include_router(configuration.router)
    app.include_router(feedback.router)
    return app


app = create_app()
