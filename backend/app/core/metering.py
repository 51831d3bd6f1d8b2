"""Per-endpoint request metering for authenticated routes."""

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.core.auth import get_current_admin, get_current_user
from app.core.database import get_db
from app.models.user import User
from app.services.usage import increment_resource_count

logger = logging.getLogger(__name__)


def _record_request(request: Request, db: Session) -> None:
    """Count the request against its route template; failures are only logged."""
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    try:
        increment_resource_count(db, endpoint, request.method)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record usage for {request.method} {endpoint}: {e}")


async def track_usage(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> User:
    """Authenticate, then meter. Unauthenticated requests never reach the counter."""
    _record_request(request, db)
    return current_user


async def track_admin_usage(
    request: Request,
    current_admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
) -> User:
    _record_request(request, db)
    return current_admin
