from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.database import engine, Base
from app.core.errors import register_exception_handlers
from app.core.logging_config import (
    setup_security_logging,
    CorrelationIdMiddleware,
    log_security_event,
)
from app.core.rate_limit import limiter
from app.api.endpoints import admin, auth, generate, stories, users
from slowapi.middleware import SlowAPIMiddleware
import logging

# Configure structured JSON logging
security_logger = setup_security_logging(
    logging.DEBUG if settings.DEBUG else logging.INFO
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # HTTP Strict Transport Security (HSTS)
        if settings.ENABLE_HSTS and settings.is_production:
            hsts_value = f"max-age={settings.HSTS_MAX_AGE}"
            if settings.HSTS_INCLUDE_SUBDOMAINS:
                hsts_value += "; includeSubDomains"
            if settings.HSTS_PRELOAD:
                hsts_value += "; preload"
            response.headers["Strict-Transport-Security"] = hsts_value

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # JSON API only; the docs UI needs its CDN assets when DEBUG is on
        if not settings.DEBUG:
            response.headers["Content-Security-Policy"] = (
                "default-src 'none'; frame-ancestors 'none';"
            )

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Story Generator API...")

    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; story generation will fail")

    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

    yield

    logger.info("Shutting down Story Generator API...")


def include_api_routers(app: FastAPI) -> None:
    app.include_router(auth.router, prefix=API_PREFIX, tags=["auth"])
    app.include_router(users.router, prefix=API_PREFIX, tags=["users"])
    app.include_router(stories.router, prefix=API_PREFIX, tags=["stories"])
    app.include_router(generate.router, prefix=API_PREFIX, tags=["generation"])
    app.include_router(admin.router, prefix=f"{API_PREFIX}/admin", tags=["admin"])


app = FastAPI(
    title="Story Generator API",
    description="Accounts, AI story generation and saved stories",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=f"{API_PREFIX}/doc" if settings.DEBUG else None,
    redoc_url=None,
)

register_exception_handlers(app)

# Add correlation ID middleware (first, so all logs have correlation IDs)
app.add_middleware(CorrelationIdMiddleware)

# Add rate limiting
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(SecurityHeadersMiddleware)

log_security_event(
    event_type="app.startup",
    message=f"Story Generator API starting (production={settings.is_production})",
    event_category="system",
    production=settings.is_production,
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

include_api_routers(app)


@app.get("/")
def root():
    return {
        "name": "Story Generator API",
        "version": "1.0.0",
        "description": "Accounts, AI story generation and saved stories",
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
