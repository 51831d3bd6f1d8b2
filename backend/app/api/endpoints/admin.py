from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.api.validation import UserIdPath
from app.core.database import get_db
from app.core.logging_config import log_security_event, get_client_ip
from app.core.metering import track_admin_usage
from app.models.user import User
from app.services import usage as usage_service
from app.services import users as user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/data")
async def get_admin_data(
    db: Session = Depends(get_db),
    current_admin: User = Depends(track_admin_usage),
):
    """Every user with their remaining API calls."""
    try:
        users = user_service.list_users_with_usage(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error listing users: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch users.")

    return {"isAdmin": True, "users": users}


@router.get("/resource")
async def get_resource_usage(
    db: Session = Depends(get_db),
    current_admin: User = Depends(track_admin_usage),
):
    """Request counts per endpoint and method."""
    try:
        resources = usage_service.list_resources(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error listing resource usage: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch resource data.")

    return {
        "resources": [
            {
                "method": resource.method,
                "endpoint": resource.endpoint,
                "requests": resource.requests,
            }
            for resource in resources
        ]
    }


@router.delete("/delete/{user_id}")
async def delete_user(
    request: Request,
    user_id: int = UserIdPath,
    db: Session = Depends(get_db),
    current_admin: User = Depends(track_admin_usage),
):
    """
    Delete a non-admin user.

    Their API usage row and stories are removed by cascade.
    """
    target = user_service.get_user_by_id(db, user_id)
    if not target:
        raise HTTPException(status_code=400, detail="User not found.")
    if target.is_admin:
        raise HTTPException(status_code=400, detail="Admin users cannot be deleted.")

    target_email = target.email
    try:
        user_service.delete_user(db, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error deleting user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete user.")

    log_security_event(
        event_type="admin.user.deleted",
        message=f"Admin deleted user {target_email}",
        user_id=current_admin.id,
        username=current_admin.email,
        ip_address=get_client_ip(request),
        request_method="DELETE",
        request_path=request.url.path,
        event_category="admin",
        target_user_id=str(user_id),
    )

    return {"message": "User deleted successfully."}
