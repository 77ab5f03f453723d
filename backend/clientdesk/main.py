import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clientdesk.api.auth import router as auth_router
from clientdesk.api.customers import router as customers_router
from clientdesk.api.deps import get_db
from clientdesk.api.users import router as users_router
from clientdesk.core.config import APP_VERSION, INSECURE_SECRET_DEFAULTS, settings
from clientdesk.core.errors import HTTPError, domain_error_handler, http_error_handler
from clientdesk.core.exceptions import ClientDeskError
from clientdesk.core.logging import setup_logging
from clientdesk.core.middleware import ErrorResponseMiddleware, RequestValidationMiddleware
from clientdesk.db.base import Base
from clientdesk.db.session import engine
from clientdesk.services.login_throttle import LoginThrottle

# Register models on Base.metadata
import clientdesk.models  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    setup_logging()

    # Reject insecure secret defaults in production
    if not settings.DEBUG and settings.JWT_SECRET_KEY.lower() in INSECURE_SECRET_DEFAULTS:
        raise RuntimeError(
            "CRITICAL SECURITY CONFIGURATION ERROR:\n"
            "  - JWT_SECRET_KEY is using insecure default in production. "
            "Set a secure secret via environment variable: "
            "JWT_SECRET_KEY=$(openssl rand -base64 32)"
        )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Login throttle: %d attempts per %d minutes",
        settings.LOGIN_MAX_ATTEMPTS,
        settings.LOGIN_ATTEMPT_WINDOW_MINUTES,
    )

    yield

    logger.info("Disposing database engine")
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    redirect_slashes=False,
)

# One throttle per process, shared by every login request
app.state.login_throttle = LoginThrottle(
    max_attempts=settings.LOGIN_MAX_ATTEMPTS,
    window_seconds=settings.LOGIN_ATTEMPT_WINDOW_MINUTES * 60,
)

app.add_exception_handler(HTTPError, http_error_handler)
app.add_exception_handler(ClientDeskError, domain_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add OWASP-recommended security headers to all responses."""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
    response.headers["Cross-Origin-Resource-Policy"] = "same-origin"

    # HSTS only in production with HTTPS
    if not settings.DEBUG:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response


app.add_middleware(
    RequestValidationMiddleware,
    max_request_size=1024 * 1024,
    enforce_content_type=True,
)

# Added last so it wraps everything else
app.add_middleware(ErrorResponseMiddleware)


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check endpoint for container orchestration.

    Returns 200 when the database answers, 503 otherwise.
    """
    checks = {"status": "healthy", "database": False}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        checks["status"] = "unhealthy"

    status_code = 200 if checks["database"] else 503
    return JSONResponse(content=checks, status_code=status_code)


app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(customers_router, prefix="/api")
