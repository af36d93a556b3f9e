"""Authentication router: register, login and current user."""
import logging

import bcrypt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import or_
from sqlmodel import Session, select

from todo_api.db.config import get_session
from todo_api.middleware.auth import CurrentUser, create_access_token, get_current_user
from todo_api.middleware.rate_limit import AUTH_LIMIT, limiter
from todo_api.models.user import User
from todo_api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from todo_api.services.shared_list_service import SharedListService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])  # No prefix since main.py adds /auth prefix


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode("utf-8")[:72]  # bcrypt limit
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(plain_password.encode("utf-8")[:72], hashed_password.encode("utf-8"))


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(request: Request, body: RegisterRequest, session: Session = Depends(get_session)):
    """Create an account and return a token."""
    logger.info("Registration attempt: %s", body.email)

    existing = session.exec(
        select(User).where(or_(User.email == body.email, User.username == body.username))
    ).first()
    if existing:
        logger.warning("Registration failed - user already exists: %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered" if existing.email == body.email else "Username already taken",
        )

    user = User(
        username=body.username,
        email=body.email,
        hashed_password=get_password_hash(body.password),
    )
    session.add(user)
    session.commit()
    session.refresh(user)

    claimed = SharedListService(session).claim_invites(user)
    logger.info("User registered: %s (claimed %d invites)", user.id, claimed)

    return TokenResponse(
        message="User registered successfully",
        token=create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_LIMIT)
async def login(request: Request, body: LoginRequest, session: Session = Depends(get_session)):
    """Exchange credentials for a token."""
    user = session.exec(select(User).where(User.email == body.email)).first()

    if not user or not verify_password(body.password, user.hashed_password):
        logger.warning("Login failed: %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials"
        )

    logger.info("Login successful: %s", user.id)
    return TokenResponse(
        message="Login successful",
        token=create_access_token(user.id, user.email),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Return the authenticated user."""
    user = session.get(User, current_user.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User no longer exists"
        )
    return user
