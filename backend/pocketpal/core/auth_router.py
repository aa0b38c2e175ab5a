"""
Authentication API routes.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, TokenResponse, authenticate, get_current_user, register_user
from pocketpal.core.database import get_db
from pocketpal.core.session import SessionState, get_session_state
from pocketpal.modules.profiles.services import get_profile, profile_payload
from pocketpal.modules.snapshots.services import run_once_per_session
from pocketpal.shared.validations import LoginSchema, SignUpSchema

router = APIRouter()


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(request: SignUpSchema, db: Session = Depends(get_db)):
    """
    Create an account. The new profile still has to go through onboarding.
    """
    return register_user(db, request.email, request.password)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginSchema, db: Session = Depends(get_db)):
    """
    Authenticate with email and password.
    Every token starts a new session.
    """
    return authenticate(db, request.email, request.password)


@router.post("/logout")
async def logout(request: Request, user: CurrentUser = Depends(get_current_user)):
    """
    End the session. The token is refused from now on, until it expires.
    """
    request.app.state.sessions.end(user.session_id, expires_at=user.expires_at)
    return {"message": "Logged out successfully"}


@router.get("/verify")
async def verify_token(user: CurrentUser = Depends(get_current_user)):
    """Check that the current token is valid."""
    return {
        "valid": True,
        "user_id": user.id,
        "session_id": user.session_id,
    }


@router.get("/me")
async def get_me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return profile_payload(db, user.id)


@router.get("/session")
async def load_session(
    user: CurrentUser = Depends(get_current_user),
    session: SessionState = Depends(get_session_state),
    db: Session = Depends(get_db),
):
    """
    Called by the client once the app has loaded.

    For onboarded users, the first call of each session records last month's
    auto snapshots. Later calls in the same session skip that step.
    """
    auto_snapshots = None
    if get_profile(db, user.id).onboarding_completed:
        auto_snapshots = run_once_per_session(db, user.id, session)

    return {
        "profile": profile_payload(db, user.id),
        "auto_snapshots": auto_snapshots,
    }
