"""
TAPT Portal Gateway
===================

FastAPI back end for the TAPT website: public form submissions, the admin
back office and period rollover.

Endpoints:
- GET /: Health check + build info
- GET /health: Container health check
- POST /submit/{kind}: Public form submissions
- /admin/*: Admin mutations (bearer token, admin role)
- POST /secure-upload: Signed upload URLs (any signed-in user)
- POST /rollover: Archive a period and activate the next one
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tapt_gateway import config
from tapt_gateway.config import BUILD_ID, GITHUB_COMMIT
from tapt_gateway.errors import GENERIC_ERROR_MESSAGE, GatewayError, RateLimited, ValidationError
from tapt_gateway.middleware.security import SecurityHeadersMiddleware
from tapt_gateway.models.responses import ErrorResponse, HealthResponse

# Import API routers
from tapt_gateway.api import (
    admin_board_members,
    admin_content,
    admin_log,
    admin_resources,
    admin_role,
    admin_settings,
    admin_status,
    admin_users,
    rollover,
    secure_upload,
    submit,
)

config.configure_logging()
logger = logging.getLogger(__name__)

# ============================================================
# Lifespan Context Manager
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: check configuration and log a summary.

    Missing configuration is logged, not fatal: each request builds its own
    Supabase client and fails on its own if credentials are absent.
    """
    logger.info("🚀 TAPT portal gateway starting (build %s, commit %s)", BUILD_ID, GITHUB_COMMIT)
    try:
        config.validate_config()
        logger.info("✅ Configuration valid")
    except ValueError as e:
        logger.error(f"❌ {e}")
    yield
    logger.info("✅ TAPT portal gateway shutdown complete")


# ============================================================
# Create FastAPI App
# ============================================================

app = FastAPI(
    title="TAPT Portal Gateway",
    description="Form submissions, admin back office and period rollover for the TAPT website",
    version="1.0.0",
    lifespan=lifespan,
)

# ============================================================
# CORS + Security Headers
# ============================================================
# Replaces the permissive CORSMiddleware: only ALLOWED_ORIGINS are echoed

app.add_middleware(SecurityHeadersMiddleware, allowed_origins=config.ALLOWED_ORIGINS)

# ============================================================
# Exception Handlers
# ============================================================

def _error_response(status_code: int, body: dict, headers: dict = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500 or getattr(exc, "code", None):
        logger.error(f"❌ {request.method} {request.url.path}: {exc!s}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return _error_response(exc.status_code, exc.to_dict(), headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(
        exc.status_code,
        ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
        getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    return _error_response(400, ValidationError(errors).to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
    return _error_response(500, ErrorResponse(error=GENERIC_ERROR_MESSAGE).model_dump(exclude_none=True))


# ============================================================
# Include API Routers
# ============================================================

app.include_router(submit.router)
app.include_router(admin_content.router)
app.include_router(admin_users.router)
app.include_router(admin_role.router)
app.include_router(admin_resources.router)
app.include_router(admin_board_members.router)
app.include_router(admin_settings.router)
app.include_router(admin_status.router)
app.include_router(admin_log.router)
app.include_router(secure_upload.router)
app.include_router(rollover.router)

# ============================================================
# Health Check Endpoints
# ============================================================

@app.get("/", response_model=HealthResponse)
async def root():
    """
    Health check + build info.

    Returns gateway status, build ID, and commit hash.
    """
    return HealthResponse(
        service="tapt-portal-gateway",
        status="ok",
        build_id=BUILD_ID,
        github_commit=GITHUB_COMMIT,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@app.get("/health", response_model=HealthResponse)
async def health():
    """Container health check."""
    return HealthResponse(
        service="tapt-portal-gateway",
        status="healthy",
        build_id=BUILD_ID,
        github_commit=GITHUB_COMMIT,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


# ============================================================
# Run Server
# ============================================================

def run():
    import uvicorn

    config.print_config_summary()
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
