from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from app.core.auth import (
    clear_auth_cookie,
    create_user_token,
    decode_token,
    get_current_user,
    set_auth_cookie,
)
from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import log_security_event, get_client_ip
from app.core.rate_limit import limiter
from app.models.user import User
from app.schemas.user import UserLogin, UserOut, UserRegister
from app.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register(
    request: Request, user_data: UserRegister, db: Session = Depends(get_db)
):
    """Create an account with the default API call allowance."""
    if user_service.get_user_by_email(db, user_data.email):
        raise HTTPException(status_code=400, detail="Email is already registered.")

    try:
        user = user_service.create_user(
            db, user_data.username, user_data.email, user_data.password
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email is already registered.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error registering user: {e}")
        raise HTTPException(status_code=500, detail="User registration failed.")

    log_security_event(
        event_type="auth.user.created",
        message="New user account registered",
        user_id=user.id,
        username=user.email,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path=request.url.path,
        event_category="authentication",
    )

    return {"message": "User registered successfully."}


@router.post("/login")
@limiter.limit("10/minute")
async def login(request: Request, credentials: UserLogin, db: Session = Depends(get_db)):
    """Check credentials and set the session cookie."""
    client_ip = get_client_ip(request)

    user = user_service.authenticate_user(db, credentials.email, credentials.password)
    if not user:
        log_security_event(
            event_type="auth.login.failure",
            message="Login failed: invalid credentials",
            level=logging.WARNING,
            username=credentials.email,
            ip_address=client_ip,
            user_agent=request.headers.get("user-agent"),
            request_method="POST",
            request_path=request.url.path,
            event_category="authentication",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    log_security_event(
        event_type="auth.login.success",
        message="User logged in successfully",
        user_id=user.id,
        username=user.email,
        ip_address=client_ip,
        user_agent=request.headers.get("user-agent"),
        request_method="POST",
        request_path=request.url.path,
        event_category="authentication",
    )

    response = JSONResponse(
        content={
            "message": "Login successful.",
            "isAdmin": bool(user.is_admin),
            "user": UserOut.model_validate(user).model_dump(by_alias=True),
        }
    )
    set_auth_cookie(response, create_user_token(user))
    return response


@router.post("/logout")
async def logout(request: Request):
    """Clear the session cookie. Works with or without a valid session."""
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        try:
            payload = decode_token(token)
            log_security_event(
                event_type="auth.logout.success",
                message="User logged out successfully",
                user_id=payload.get("sub"),
                ip_address=get_client_ip(request),
                user_agent=request.headers.get("user-agent"),
                request_method="POST",
                request_path=request.url.path,
                event_category="authentication",
            )
        except HTTPException:
            logger.debug("Logout with an invalid or expired session token")

    response = JSONResponse(content={"message": "Logged out successfully."})
    clear_auth_cookie(response)
    return response


@router.get("/checkUser")
async def check_user(current_user: User = Depends(get_current_user)):
    """Identity of the logged-in user."""
    return UserOut.model_validate(current_user).model_dump(by_alias=True)
