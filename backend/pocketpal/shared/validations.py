"""
Request schemas for every form in the application.

All field-level and cross-field rules live here and run before any write.
FastAPI turns a failing schema into a 422 with one entry per field.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    EmailStr,
    Field,
    StringConstraints,
    ValidationInfo,
    field_validator,
    model_validator,
)


class AccountKind(str, Enum):
    CURRENT = "current"
    INVESTMENT = "investment"
    WALLET = "wallet"


class CategoryKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"


class SnapshotKind(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


Concept = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
Notes = Annotated[str, StringConstraints(max_length=500)]
MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
MonthKey = Annotated[str, StringConstraints(pattern=MONTH_PATTERN)]


def _non_zero(value: Decimal) -> Decimal:
    if value == 0:
        raise ValueError("Amount cannot be 0")
    return value


Amount = Annotated[Decimal, AfterValidator(_non_zero)]


# =============================================================================
# AUTH
# =============================================================================

class LoginSchema(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if len(value) > 255:
                raise ValueError("Email is too long")
        return value


class SignUpSchema(LoginSchema):
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if value != info.data.get("password"):
            raise ValueError("Passwords do not match")
        return value


# =============================================================================
# LEDGER
# =============================================================================

class MovementSchema(BaseModel):
    date: date
    concept: Concept
    amount: Amount
    account_id: int
    category_id: int
    subcategory_id: Optional[int] = None
    notes: Optional[Notes] = None


class AccountSchema(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
    kind: AccountKind
    currency: str = "EUR"
    initial_balance: Decimal = Decimal("0")
    current_balance: Optional[Decimal] = None  # Balance override when editing
    initial_invested_capital: Optional[Decimal] = None
    color: str = "#3B82F6"
    monthly_topup: Optional[Decimal] = Field(default=None, gt=0)


class CategorySchema(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    kind: CategoryKind
    parent_id: Optional[int] = None
    icon: Optional[str] = None
    color: str = "#6B7280"


class CategoryUpdateSchema(BaseModel):
    """Only cosmetic fields can change once a category exists."""
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    icon: Optional[str] = None
    color: str = "#6B7280"


class RecurringTemplateSchema(BaseModel):
    concept: Concept
    amount: Amount
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    account_id: int
    category_id: int
    subcategory_id: Optional[int] = None
    notes: Optional[Notes] = None
    is_transfer: bool = False
    destination_account_id: Optional[int] = None

    @model_validator(mode="after")
    def transfer_needs_other_account(self) -> "RecurringTemplateSchema":
        if self.is_transfer and (
            self.destination_account_id is None
            or self.destination_account_id == self.account_id
        ):
            raise ValueError("Choose a destination account different from the source account")
        return self


class SnapshotSchema(BaseModel):
    month: MonthKey
    account_id: int
    registered_balance: Optional[Decimal] = None
    exchange_rate: Optional[Decimal] = None
    notes: Optional[Notes] = None


# =============================================================================
# ONBOARDING
# =============================================================================

class OnboardingAccount(BaseModel):
    name: str = ""
    kind: AccountKind = AccountKind.CURRENT
    initial_balance: Decimal = Decimal("0")
    monthly_topup: Optional[Decimal] = Field(default=None, gt=0)
    is_default: bool = False


class OnboardingRecurring(BaseModel):
    concept: Concept
    amount: Amount

    @field_validator("amount")
    @classmethod
    def always_expense(cls, value: Decimal) -> Decimal:
        return -abs(value)


class OnboardingSchema(BaseModel):
    currency: str = "EUR"
    accounts: list[OnboardingAccount]
    recurring: list[OnboardingRecurring] = []

    @model_validator(mode="after")
    def one_named_default_account(self) -> "OnboardingSchema":
        named = [a for a in self.accounts if a.name.strip()]
        if not named:
            raise ValueError("Add at least one account with a name")
        defaults = [a for a in named if a.is_default]
        if len(defaults) != 1:
            raise ValueError("Mark exactly one account as default")
        return self

    def named_accounts(self) -> list[OnboardingAccount]:
        return [a for a in self.accounts if a.name.strip()]


# =============================================================================
# PROFILE
# =============================================================================

class ProfileUpdateSchema(BaseModel):
    """Partial update: only the fields present in the body are written."""
    display_name: Optional[Annotated[str, StringConstraints(max_length=100)]] = None
    avatar_url: Optional[Annotated[str, StringConstraints(max_length=500)]] = None
    primary_currency: Optional[Annotated[str, StringConstraints(min_length=3, max_length=3)]] = None
    preferences: Optional[dict[str, Any]] = None
