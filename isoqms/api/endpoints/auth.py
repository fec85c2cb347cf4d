"""
Authentication Endpoints

Global account registration, login and the current-user view.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from isoqms.database import get_db
from isoqms.models.user import User
from isoqms.schemas.auth import LoginRequest, Token, RegisterRequest
from isoqms.schemas.user import UserResponse
from isoqms.api.deps import get_current_user
from isoqms.api.responses import DataResponse
from isoqms.core.security import (
    verify_password,
    get_password_hash,
    create_access_token
)
from isoqms.core.exceptions import AuthenticationError, ConflictError
from isoqms.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=DataResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def register(
    registration: RegisterRequest,
    db: Session = Depends(get_db)
):
    """Create a global user account. The new user belongs to no tenant yet."""
    email = registration.email.lower()

    if db.query(User).filter(User.email == email).first():
        raise ConflictError("A user with this email already exists")

    new_user = User(
        email=email,
        hashed_password=get_password_hash(registration.password),
        name=registration.name,
        is_active=True,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"New user registered: {new_user.id}")
    return {"data": new_user}


@router.post("/login", response_model=DataResponse[Token])
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return a JWT access token.

    Unknown email and wrong password get the same error.
    """
    email = credentials.email.lower()
    user = db.query(User).filter(User.email == email).first()

    if not user:
        log_security_event("failed_login", {"reason": "user_not_found", "email": email})
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user.hashed_password):
        log_security_event("failed_login", {"reason": "invalid_password"}, user_id=user.id)
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event("failed_login", {"reason": "user_inactive"}, user_id=user.id)
        raise AuthenticationError("User account is inactive")

    user.last_login_at = datetime.utcnow()
    db.commit()

    logger.info(f"Successful login: user={user.id}")
    return {"data": Token(access_token=create_access_token(user.id))}


@router.get("/me", response_model=DataResponse[UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return {"data": current_user}
