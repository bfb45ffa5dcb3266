# main.py - Vice City content API
# Features:
# - Wiki pages with revision history, news articles, editor drafts
# - Primary document store with local-cache fallback
# - Request correlation IDs
# - Security headers
# - Health check reporting degraded (fallback) mode

import os
import json
import time
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

import config
from database import init_db, close_db
from errors import ContentError
from logging_system import RequestContext, configure_logging, reset_current_context, set_current_context
from services import ContentServices, get_content_services
from telemetry import setup_telemetry

# Logging
configure_logging(config.LOG_LEVEL)
logger = logging.getLogger("vice-city")


def _check_startup_config():
    """Validate critical configuration on startup."""
    warnings = []

    jwt_key = os.getenv("JWT_SECRET_KEY", "")
    if not jwt_key or len(jwt_key) < 32:
        warnings.append("⚠️  JWT_SECRET_KEY is not set or too short - editor tokens cannot be verified reliably")

    if config.LOCAL_CACHE_BACKEND == "memory":
        warnings.append("⚠️  LOCAL_CACHE_BACKEND=memory - fallback writes are lost on restart")

    if config.BREAKER_RESET_SECONDS is None:
        logger.info("Primary store breaker stays open until an explicit connectivity check")

    for w in warnings:
        logger.warning(w)

    return len(warnings) == 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting Vice City content API v{config.SERVICE_VERSION}...")
    try:
        await init_db()
        logger.info("✅ Primary store initialized")
    except Exception as e:
        logger.warning(f"Primary store unavailable at startup, serving from local cache: {e}")
    _check_startup_config()
    result = await get_content_services().probe.check_connectivity()
    logger.info(f"Store mode: {'primary' if result.available else 'fallback'}")
    setup_telemetry(app)
    yield
    logger.info("🛑 Shutting down Vice City content API...")
    await close_db()


app = FastAPI(
    title="Vice City",
    description="Fan-site content backend: wiki, revisions and news with local fallback storage",
    version=config.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ============================================================
# CORS
# ============================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    context = RequestContext.create(
        request_id=request.headers.get("X-Request-ID"),
        correlation_id=request.headers.get("X-Correlation-ID"),
    )
    request.state.request_id = context.request_id
    request.state.correlation_id = context.correlation_id
    token = set_current_context(context)

    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        reset_current_context(token)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = context.request_id
    response.headers["X-Correlation-ID"] = context.correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration:.3f}s) [rid={context.request_id[:8]}]"
    )
    return response


# ============================================================
# MIDDLEWARE: Security Headers
# ============================================================

@app.middleware("http")
async def security_headers_middleware(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _clean_errors(errors):
    # Sanitise errors to ensure JSON serialisability
    cleaned = []
    for err in errors:
        clean_err = {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
        }
        if "input" in err:
            try:
                json.dumps(err["input"])
                clean_err["input"] = err["input"]
            except (TypeError, ValueError):
                clean_err["input"] = str(err["input"])
        cleaned.append(clean_err)
    return cleaned


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": _clean_errors(exc.errors()),
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(ValidationError)
async def document_validation_handler(request: Request, exc: ValidationError):
    """Merged document failed validation inside a repository."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": _clean_errors(exc.errors()),
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    if exc.http_status >= 500:
        logger.error(f"{exc.code}: {exc}")
    return JSONResponse(
        status_code=exc.http_status,
        content={
            "detail": str(exc),
            "code": exc.code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "code": "VC-SYS-001",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import wiki, news, admin

app.include_router(wiki.router)
app.include_router(news.router)
app.include_router(admin.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check(services: ContentServices = Depends(get_content_services)):
    """Health check; degraded while content is served from the local cache"""
    result = await services.probe.check_connectivity()
    return {
        "status": "healthy" if result.available else "degraded",
        "version": config.SERVICE_VERSION,
        "environment": config.ENVIRONMENT,
        "primary_store": "connected" if result.available else f"error: {(result.error or '')[:100]}",
        "mode": "primary" if services.breaker.available else "fallback",
        "local_cache": services.cache.stats(),
    }


@app.get("/")
async def root():
    return {
        "name": "Vice City",
        "version": config.SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "status": "operational",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=config.ENVIRONMENT != "production",
    )
