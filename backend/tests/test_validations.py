"""
Form schemas: field and cross-field rules.

Run with: pytest tests/test_validations.py -v
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from pocketpal.shared.validations import (
    MovementSchema,
    OnboardingRecurring,
    OnboardingSchema,
    ProfileUpdateSchema,
    RecurringTemplateSchema,
    SignUpSchema,
    SnapshotSchema,
)

MOVEMENT = {
    "date": "2025-04-10",
    "concept": "Lunch",
    "amount": "-12.50",
    "account_id": 1,
    "category_id": 2,
}


class TestMovementSchema:

    def test_valid(self):
        movement = MovementSchema(**MOVEMENT)
        assert movement.amount == Decimal("-12.50")

    def test_zero_amount_rejected(self):
        with pytest.raises(ValidationError, match="Amount cannot be 0"):
            MovementSchema(**{**MOVEMENT, "amount": "0.00"})

    def test_concept_is_stripped(self):
        assert MovementSchema(**{**MOVEMENT, "concept": "  Lunch  "}).concept == "Lunch"

    @pytest.mark.parametrize("concept", ["", "   ", "x" * 201])
    def test_concept_length(self, concept):
        with pytest.raises(ValidationError):
            MovementSchema(**{**MOVEMENT, "concept": concept})

    def test_notes_length(self):
        with pytest.raises(ValidationError):
            MovementSchema(**{**MOVEMENT, "notes": "n" * 501})


class TestSignUpSchema:

    def test_passwords_must_match(self):
        with pytest.raises(ValidationError, match="Passwords do not match"):
            SignUpSchema(email="ana@example.com", password="secret123", confirm_password="secret124")

    def test_short_password(self):
        with pytest.raises(ValidationError):
            SignUpSchema(email="ana@example.com", password="abc", confirm_password="abc")

    def test_email_trimmed(self):
        schema = SignUpSchema(email="  ana@example.com ", password="secret123", confirm_password="secret123")
        assert schema.email == "ana@example.com"


class TestRecurringTemplateSchema:

    BASE = {"concept": "Savings", "amount": "-200", "account_id": 1, "category_id": 2}

    @pytest.mark.parametrize("name,destination", [
        ("Missing destination", None),
        ("Same as source", 1),
    ])
    def test_transfer_destination(self, name, destination):
        with pytest.raises(ValidationError):
            RecurringTemplateSchema(**self.BASE, is_transfer=True, destination_account_id=destination)

    def test_transfer_to_other_account(self):
        template = RecurringTemplateSchema(**self.BASE, is_transfer=True, destination_account_id=3)
        assert template.destination_account_id == 3

    @pytest.mark.parametrize("day", [0, 32])
    def test_day_of_month_range(self, day):
        with pytest.raises(ValidationError):
            RecurringTemplateSchema(**self.BASE, day_of_month=day)


class TestSnapshotSchema:

    @pytest.mark.parametrize("month", ["2025-4", "2025-13", "25-04", "2025-00"])
    def test_bad_month_key(self, month):
        with pytest.raises(ValidationError):
            SnapshotSchema(month=month, account_id=1)


class TestOnboardingSchema:

    def test_recurring_amount_forced_negative(self):
        assert OnboardingRecurring(concept="Rent", amount="900").amount == Decimal("-900")

    def test_blank_accounts_ignored(self):
        schema = OnboardingSchema(accounts=[
            {"name": "Main", "is_default": True},
            {"name": "   "},
        ])
        assert [a.name for a in schema.named_accounts()] == ["Main"]

    @pytest.mark.parametrize("name,accounts", [
        ("No named account", [{"name": ""}]),
        ("No default", [{"name": "Main"}]),
        ("Two defaults", [{"name": "A", "is_default": True}, {"name": "B", "is_default": True}]),
    ])
    def test_account_rules(self, name, accounts):
        with pytest.raises(ValidationError):
            OnboardingSchema(accounts=accounts)


class TestProfileUpdateSchema:

    def test_fields_set_tracks_presence(self):
        schema = ProfileUpdateSchema(display_name=None)
        assert schema.model_fields_set == {"display_name"}

    def test_currency_code_length(self):
        with pytest.raises(ValidationError):
            ProfileUpdateSchema(primary_currency="EURO")
