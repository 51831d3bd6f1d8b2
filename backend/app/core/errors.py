"""Render every error as a JSON ``{"message": ...}`` body."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


def _describe_validation_error(error: dict) -> str:
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, ") :]

    loc = [str(part) for part in error.get("loc", ()) if part not in ("body",)]
    if loc and loc[0] in ("query", "path"):
        loc = loc[1:]
    if loc:
        return f"{'.'.join(loc)}: {message}"
    return message


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Must stay sync: SlowAPIMiddleware calls it without awaiting."""
    logger.warning(
        f"Rate limit exceeded on {request.method} {request.url.path}: {exc.detail}"
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"message": f"Rate limit exceeded: {exc.detail}"},
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = "; ".join(_describe_validation_error(e) for e in exc.errors())
    logger.info(f"Rejected invalid request to {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": message or "Invalid request."},
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc!r}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
