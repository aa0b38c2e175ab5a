"""
Profile and onboarding API routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, get_current_user
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.modules.profiles.services import (
    SUGGESTED_RECURRING,
    ProfileUpdate,
    complete_onboarding,
    profile_payload,
    update_own_profile,
)
from pocketpal.shared.validations import OnboardingSchema, ProfileUpdateSchema

router = APIRouter()


@router.get("/me")
async def get_own_profile(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return profile_payload(db, user.id)


@router.patch("/me")
async def update_own(
    body: ProfileUpdateSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Update display name, avatar, currency or preferences.
    Fields missing from the body are left as they are; an explicit null clears them.
    """
    update_own_profile(db, user.id, ProfileUpdate.from_request(body))
    commit_or_rollback(db)
    return {"profile": profile_payload(db, user.id)}


@router.get("/onboarding/suggestions")
async def onboarding_suggestions(user: CurrentUser = Depends(get_current_user)):
    """Common recurring expenses offered on the last onboarding step."""
    return {"recurring": SUGGESTED_RECURRING}


@router.post("/onboarding")
async def finish_onboarding(
    body: OnboardingSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Create default categories, the accounts and the chosen recurring expenses,
    then mark onboarding as completed. 409 when it was already completed.
    """
    complete_onboarding(db, user.id, body)
    commit_or_rollback(db)
    return {"profile": profile_payload(db, user.id)}
