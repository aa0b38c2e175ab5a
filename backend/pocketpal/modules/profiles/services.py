"""
Profile and onboarding service.

Profile edits go through update_own_profile, which only touches the fields
the caller explicitly set. Onboarding seeds a new user's categories, accounts
and recurring expenses in one unit of work.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from pocketpal.core.errors import IntegrityGuardError, NotFoundError
from pocketpal.core.timezone import format_datetime_for_api
from pocketpal.modules.accounts.models import Account, WalletConfig
from pocketpal.modules.categories.models import Category
from pocketpal.modules.profiles.models import Profile, User
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.shared.validations import AccountKind, CategoryKind, OnboardingSchema

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Payroll", CategoryKind.INCOME),
    ("Freelance", CategoryKind.INCOME),
    ("Other income", CategoryKind.INCOME),
    ("Groceries", CategoryKind.EXPENSE),
    ("Housing", CategoryKind.EXPENSE),
    ("Transport", CategoryKind.EXPENSE),
    ("Leisure", CategoryKind.EXPENSE),
    ("Health", CategoryKind.EXPENSE),
    ("Subscriptions", CategoryKind.EXPENSE),
    ("Other expenses", CategoryKind.EXPENSE),
    ("Index fund", CategoryKind.INVESTMENT),
]

RECURRING_CATEGORY = "Other expenses"

# Pre-filled choices shown on the last onboarding step, none selected
SUGGESTED_RECURRING = [
    {"concept": "Rent", "amount": -900},
    {"concept": "Gym", "amount": -50},
    {"concept": "Netflix", "amount": -12},
    {"concept": "Spotify", "amount": -10},
    {"concept": "Internet", "amount": -40},
    {"concept": "Mobile", "amount": -25},
]

PROFILE_FIELDS = ("display_name", "avatar_url", "primary_currency", "preferences")


@dataclass
class FieldUpdate:
    """A value plus whether the caller asked to write it (None is a valid value)."""
    value: Any = None
    is_set: bool = False


@dataclass
class ProfileUpdate:
    display_name: FieldUpdate = field(default_factory=FieldUpdate)
    avatar_url: FieldUpdate = field(default_factory=FieldUpdate)
    primary_currency: FieldUpdate = field(default_factory=FieldUpdate)
    preferences: FieldUpdate = field(default_factory=FieldUpdate)

    @classmethod
    def from_request(cls, body: BaseModel) -> "ProfileUpdate":
        """Fields present in the request body are set, everything else is left alone."""
        return cls(**{
            name: FieldUpdate(getattr(body, name), True)
            for name in PROFILE_FIELDS
            if name in body.model_fields_set
        })


def get_profile(db: Session, owner_id: int) -> Profile:
    profile = db.get(Profile, owner_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def serialize_profile(profile: Profile, email: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "email": email,
        "display_name": profile.display_name,
        "avatar_url": profile.avatar_url,
        "primary_currency": profile.primary_currency,
        "default_account_id": profile.default_account_id,
        "preferences": profile.preferences or {},
        "onboarding_completed": profile.onboarding_completed,
        "updated_at": format_datetime_for_api(profile.updated_at),
    }


def profile_payload(db: Session, owner_id: int) -> Dict[str, Any]:
    user = db.get(User, owner_id)
    return serialize_profile(get_profile(db, owner_id), user.email if user else None)


def update_own_profile(db: Session, owner_id: int, update: ProfileUpdate) -> Profile:
    """Write every field whose `is_set` flag is on, including explicit None."""
    profile = get_profile(db, owner_id)

    for name in PROFILE_FIELDS:
        change: FieldUpdate = getattr(update, name)
        if not change.is_set:
            continue
        value = change.value
        if name == "display_name" and isinstance(value, str):
            value = value.strip() or None
        if name == "preferences":
            value = dict(value or {})
        if name == "primary_currency" and value is None:
            continue  # column is required
        setattr(profile, name, value)

    db.flush()
    return profile


def complete_onboarding(db: Session, owner_id: int, data: OnboardingSchema) -> Profile:
    """
    Seed a new user's data from the onboarding wizard.

    Creates the default categories, the named accounts (and wallet configs),
    the selected recurring expenses on the default account, then marks the
    profile as onboarded. Raises IntegrityGuardError when already done.
    """
    profile = get_profile(db, owner_id)
    if profile.onboarding_completed:
        raise IntegrityGuardError("Onboarding already completed")

    categories = {}
    position_by_kind: Dict[str, int] = {}
    for name, kind in DEFAULT_CATEGORIES:
        position = position_by_kind.get(kind.value, 0)
        position_by_kind[kind.value] = position + 1
        category = Category(owner_id=owner_id, name=name, kind=kind.value, sort_order=position)
        db.add(category)
        categories[name] = category

    default_account = None
    for index, item in enumerate(data.named_accounts()):
        account = Account(
            owner_id=owner_id,
            name=item.name.strip(),
            kind=item.kind.value,
            currency=data.currency,
            initial_balance=item.initial_balance,
            initial_invested_capital=0,
            is_active=True,
            sort_order=index,
        )
        if item.kind == AccountKind.WALLET and item.monthly_topup:
            account.wallet_config = WalletConfig(
                owner_id=owner_id,
                monthly_topup=item.monthly_topup,
                topup_day=1,
                is_active=True,
            )
        db.add(account)
        if item.is_default:
            default_account = account

    db.flush()

    for expense in data.recurring:
        db.add(RecurringTemplate(
            owner_id=owner_id,
            concept=expense.concept,
            amount=expense.amount,
            day_of_month=1,
            account_id=default_account.id,
            category_id=categories[RECURRING_CATEGORY].id,
            is_active=True,
            is_transfer=False,
        ))

    profile.primary_currency = data.currency
    profile.default_account_id = default_account.id
    profile.onboarding_completed = True
    db.flush()

    logger.info(
        f"Onboarding completed for user {owner_id}: "
        f"{len(categories)} categories, {len(data.named_accounts())} accounts, {len(data.recurring)} recurring"
    )
    return profile
