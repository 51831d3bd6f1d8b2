"""User accounts: registration, lookup, profile changes and removal."""

from typing import List, Optional
from sqlalchemy.orm import Session
import logging

from app.core.auth import hash_password, verify_password
from app.core.config import settings
from app.models.api_usage import ApiUsage
from app.models.user import User

logger = logging.getLogger(__name__)


def create_user(db: Session, username: str, email: str, password: str) -> User:
    """Create a user together with its API usage row in one transaction."""
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_admin=False,
    )
    user.api_usage = ApiUsage(api_calls=settings.DEFAULT_API_CALLS)
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Created user {user.id} with {settings.DEFAULT_API_CALLS} API calls")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Return the user if the credentials match, otherwise None."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def list_users_with_usage(db: Session) -> List[dict]:
    """All users with their remaining API calls (default when no row exists yet)."""
    rows = (
        db.query(User, ApiUsage.api_calls)
        .outerjoin(ApiUsage, ApiUsage.user_id == User.id)
        .order_by(User.id)
        .all()
    )
    return [
        {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "is_admin": bool(user.is_admin),
            "api_calls": (
                api_calls if api_calls is not None else settings.DEFAULT_API_CALLS
            ),
        }
        for user, api_calls in rows
    ]


def update_username(db: Session, user_id: int, username: str) -> Optional[User]:
    user = get_user_by_id(db, user_id)
    if not user:
        return None

    user.username = username
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> bool:
    """
    Delete a user.

    API usage and stories go with it through ON DELETE CASCADE; tags stay.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    db.delete(user)
    db.commit()
    return True
