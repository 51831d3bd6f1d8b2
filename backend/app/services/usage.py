"""Per-user API call quota and per-endpoint request counters."""

from typing import List
from sqlalchemy import case
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import upsert_insert
from app.models.api_usage import ApiUsage
from app.models.resource import Resource


def _current_api_calls(db: Session, user_id: int):
    return (
        db.query(ApiUsage.api_calls).filter(ApiUsage.user_id == user_id).scalar()
    )


def get_api_calls(db: Session, user_id: int) -> int:
    """Remaining API calls; creates the usage row with the default when missing."""
    api_calls = _current_api_calls(db, user_id)
    if api_calls is not None:
        return api_calls

    stmt = (
        upsert_insert(db, ApiUsage)
        .values(user_id=user_id, api_calls=settings.DEFAULT_API_CALLS)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    db.execute(stmt)
    db.commit()
    return _current_api_calls(db, user_id)


def decrement_api_calls(db: Session, user_id: int) -> int:
    """
    Use up one API call, never going below zero.

    A user without a usage row starts from the default, so the row is
    inserted with one call already spent.
    """
    floored = case((ApiUsage.api_calls > 0, ApiUsage.api_calls - 1), else_=0)
    stmt = (
        upsert_insert(db, ApiUsage)
        .values(user_id=user_id, api_calls=max(settings.DEFAULT_API_CALLS - 1, 0))
        .on_conflict_do_update(
            index_elements=["user_id"], set_={"api_calls": floored}
        )
    )
    db.execute(stmt)
    db.commit()
    return _current_api_calls(db, user_id)


def increment_resource_count(db: Session, endpoint: str, method: str) -> None:
    """Count one request against (endpoint, method), creating the row on first use."""
    stmt = (
        upsert_insert(db, Resource)
        .values(endpoint=endpoint, method=method, requests=1)
        .on_conflict_do_update(
            index_elements=["endpoint", "method"],
            set_={"requests": Resource.requests + 1},
        )
    )
    db.execute(stmt)
    db.commit()


def list_resources(db: Session) -> List[Resource]:
    return db.query(Resource).order_by(Resource.endpoint, Resource.method).all()
