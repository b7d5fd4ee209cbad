"""
main.py: Fiscaal.ai FastAPI application entry point.

Start with: uvicorn fiscaal.main:app --reload --port 8000
(run from the repository root)
"""
import logging
import os
import subprocess
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from fiscaal.chat.tax_service import TaxServiceError, create_tax_service_client
from fiscaal.config import settings

# ---------------------------------------------------------------------------
# Logging: configured before anything else
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


# ---------------------------------------------------------------------------
# Migrations: alembic runs in a subprocess from the package directory
# ---------------------------------------------------------------------------
def migration_env() -> dict[str, str]:
    """Subprocess environment that points alembic at the app's own database."""
    return {**os.environ, "DATABASE_URL": settings.database_url}


def run_migrations() -> None:
    """Apply pending Alembic migrations. Raises RuntimeError on failure."""
    package_dir = os.path.dirname(os.path.abspath(__file__))
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        capture_output=True,
        text=True,
        cwd=package_dir,
        env=migration_env(),
    )
    if result.returncode != 0:
        logger.error("Alembic migration failed:\n%s", result.stderr)
        raise RuntimeError(f"Alembic migration failed: {result.stderr}")
    msg = result.stdout.strip() or "No pending migrations"
    logger.info("Alembic: %s", msg)


# ---------------------------------------------------------------------------
# Lifespan: startup & shutdown hooks
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Run Alembic migrations (auto-applied: no manual step needed)
      2. Initialize Redis connection pool (sessions + login tokens)
      3. Create the shared answering-service HTTP client
    Shutdown:
      1. Close the HTTP client
      2. Close Redis pool
    """
    # --- 1. Database: run Alembic migrations ---
    run_migrations()

    # --- 2. Redis ---
    from fiscaal.cache import create_redis_pool
    app.state.redis = await create_redis_pool()

    # --- 3. Answering service client: singleton for HTTP connection pool reuse ---
    app.state.tax_service = create_tax_service_client()
    logger.info("Tax service client initialized base_url=%s", settings.tax_service_url)

    logger.info("Fiscaal.ai v%s starting up", settings.app_version)
    yield

    # --- Shutdown ---
    await app.state.tax_service.aclose()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")
    logger.info("Fiscaal.ai shutting down")


# ---------------------------------------------------------------------------
# FastAPI application instance
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Fiscaal.ai",
    version=settings.app_version,
    description=(
        "Dutch tax-question chat assistant. Proxies questions to the tax-answering "
        "service, keeps chat history and a tax profile for signed-in users."
    ),
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

# ---------------------------------------------------------------------------
# CORS middleware: restricted to frontend origins from settings
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error response helper
# ---------------------------------------------------------------------------
def _make_error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Build a standard {error: {code, message, details}} response."""
    body = {
        "error": {
            "code": code,
            "message": message,
            "details": details or [],
        }
    }
    return JSONResponse(status_code=status_code, content=body)


# ---------------------------------------------------------------------------
# Global exception handlers: registered BEFORE routers
# ---------------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Converts Pydantic / FastAPI 422 validation errors to standard format.
    Returns ALL field violations in one response.
    """
    details = []
    for error in exc.errors():
        # Build dot-notation field path, excluding the top-level 'body' loc
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        details.append({"field": field or None, "issue": error["msg"]})
    return _make_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        details=details,
        status_code=422,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Converts FastAPI HTTPException to standard error format with semantic code.
    """
    code_map = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        429: "RATE_LIMITED",
    }
    code = code_map.get(exc.status_code, f"HTTP_{exc.status_code}")
    return _make_error_response(
        code=code,
        message=str(exc.detail),
        status_code=exc.status_code,
    )


@app.exception_handler(TaxServiceError)
async def tax_service_error_handler(
    request: Request, exc: TaxServiceError
) -> JSONResponse:
    """The answering service failed: the widget shows its fixed apology turn."""
    return _make_error_response(
        code="UPSTREAM_ERROR",
        message=str(exc),
        status_code=502,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Catch-all for unexpected errors (database down, SMTP refused, ...).
    DEBUG=true  → includes exception type & message in details (dev only).
    DEBUG=false → generic message; full traceback logged server-side only.
    """
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        exc_info=True,
    )
    if settings.debug:
        details = [{"issue": f"{type(exc).__name__}: {exc}"}]
        message = "An unexpected error occurred (debug details included)"
    else:
        details = []
        message = "An unexpected error occurred"
    return _make_error_response(
        code="INTERNAL_ERROR",
        message=message,
        details=details,
        status_code=500,
    )


# ---------------------------------------------------------------------------
# Health endpoint (no auth required)
# ---------------------------------------------------------------------------
@app.get("/api/health", tags=["System"])
async def health_check() -> dict:
    """Returns service health status."""
    return {
        "status": "ok",
        "version": settings.app_version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ---------------------------------------------------------------------------
# Routers + static assets
# ---------------------------------------------------------------------------
from fiscaal.auth.routes import router as auth_router
from fiscaal.chat.routes import router as chat_router
from fiscaal.pages import router as pages_router
from fiscaal.profile.routes import router as profile_router

app.include_router(auth_router)
app.include_router(chat_router)
app.include_router(profile_router)
app.include_router(pages_router)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
