"""
Authentication for PocketPal.
Email/password accounts with JWT bearer tokens.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import secrets

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from sqlalchemy.orm import Session

from pocketpal.core.config import settings
from pocketpal.core.database import get_db
from pocketpal.modules.profiles.models import User, Profile, UserRole

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

ROLES = ("admin", "user")


class TokenResponse(BaseModel):
    """Token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


@dataclass
class CurrentUser:
    """Authenticated caller: user id plus the token id of the session."""
    id: int
    session_id: str
    expires_at: Optional[int] = None  # token exp, epoch seconds


class AuthError(HTTPException):
    """Authentication error."""
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


def _password_bytes(password: str) -> bytes:
    # bcrypt only uses the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt and a fresh random salt."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(user: User, password: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), user.password_hash.encode("utf-8"))


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token. Each token starts a new session (its jti)."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "jti": secrets.token_hex(16),
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except JWTError as e:
        if "expired" in str(e).lower():
            raise AuthError("Token has expired")
        raise AuthError("Invalid token")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Dependency to get the current authenticated user.
    Raises 401 when the token is missing, malformed, expired or logged out.
    """
    if credentials is None:
        raise AuthError("Authentication required")

    payload = decode_token(credentials.credentials)
    try:
        user = CurrentUser(
            id=int(payload["sub"]),
            session_id=payload["jti"],
            expires_at=payload.get("exp"),
        )
    except (KeyError, ValueError):
        raise AuthError("Invalid token")

    if request.app.state.sessions.is_revoked(user.session_id):
        raise AuthError("Session has ended")
    return user


async def require_onboarded(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Route guard: authenticated AND onboarding finished.
    Pages behind it redirect to the onboarding wizard on 403.
    """
    profile = db.get(Profile, user.id)
    if profile is None:
        raise AuthError("Unknown user")
    if not profile.onboarding_completed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="onboarding_required")
    return user


def has_role(db: Session, user_id: int, role: str) -> bool:
    return db.query(UserRole).filter(
        UserRole.owner_id == user_id,
        UserRole.role == role,
    ).first() is not None


def _issue_token(user: User) -> TokenResponse:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return TokenResponse(
        access_token=create_access_token(user.id, expires_delta),
        expires_in=int(expires_delta.total_seconds()),
    )


def register_user(db: Session, email: str, password: str) -> TokenResponse:
    """Create the user with an empty profile and the 'user' role."""
    email = email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    db.flush()

    db.add(Profile(
        id=user.id,
        primary_currency=settings.DEFAULT_CURRENCY,
        preferences={},
        onboarding_completed=False,
    ))
    db.add(UserRole(owner_id=user.id, role="user"))
    db.commit()

    logger.info(f"Registered user {user.id}")
    return _issue_token(user)


def authenticate(db: Session, email: str, password: str) -> TokenResponse:
    """
    Authenticate with email and password and return an access token.
    """
    user = db.query(User).filter(User.email == email.lower()).first()
    if user is None or not verify_password(user, password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    return _issue_token(user)
