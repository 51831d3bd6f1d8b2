from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.api.validation import UserIdPath
from app.core.auth import create_user_token, set_auth_cookie
from app.core.database import get_db
from app.core.logging_config import log_security_event, get_client_ip
from app.core.metering import track_usage
from app.models.user import User
from app.schemas.user import UsernameUpdate
from app.services import usage as usage_service
from app.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/update/{user_id}")
async def update_username(
    request: Request,
    update: UsernameUpdate,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """
    Change a username.

    Users may only rename themselves (admins may rename anyone). When the
    caller renames themselves the session cookie is re-issued so the token
    carries the new username.
    """
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized access."
        )

    try:
        user = user_service.update_username(db, user_id, update.username)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error updating user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="User update failed.")

    if not user:
        raise HTTPException(status_code=400, detail="User not found.")

    log_security_event(
        event_type="user.username.updated",
        message="Username changed",
        user_id=current_user.id,
        username=current_user.email,
        ip_address=get_client_ip(request),
        request_method="PUT",
        request_path=request.url.path,
        event_category="account",
        target_user_id=str(user.id),
    )

    response = JSONResponse(
        content={"message": "User updated successfully.", "username": user.username}
    )
    if user.id == current_user.id:
        set_auth_cookie(response, create_user_token(user))
    return response


@router.get("/getApiCalls")
async def get_api_calls(
    db: Session = Depends(get_db),
    current_user: User = Depends(track_usage),
):
    """Remaining story generations for the current user."""
    try:
        api_calls = usage_service.get_api_calls(db, current_user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error reading API calls for user {current_user.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch API calls.")

    return {"apiCalls": api_calls}
