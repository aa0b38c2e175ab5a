"""
Profile edits and onboarding.

Run with: pytest tests/test_profiles.py -v
"""

from decimal import Decimal

import pytest

from pocketpal.core.auth import has_role
from pocketpal.core.errors import IntegrityGuardError
from pocketpal.modules.accounts.models import Account, WalletConfig
from pocketpal.modules.categories.models import Category
from pocketpal.modules.profiles.models import Profile
from pocketpal.modules.profiles.services import (
    DEFAULT_CATEGORIES,
    FieldUpdate,
    ProfileUpdate,
    complete_onboarding,
    update_own_profile,
)
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.shared.validations import OnboardingSchema, ProfileUpdateSchema


class TestUpdateOwnProfile:

    def _profile(self, seed):
        profile = seed.db.get(Profile, seed.owner_id)
        profile.display_name = "Ana"
        profile.avatar_url = "https://example.com/a.png"
        seed.db.flush()
        return profile

    def test_unset_fields_untouched(self, seed):
        profile = self._profile(seed)

        update_own_profile(seed.db, seed.owner_id, ProfileUpdate(
            display_name=FieldUpdate("Ana María", True),
        ))

        assert profile.display_name == "Ana María"
        assert profile.avatar_url == "https://example.com/a.png"

    def test_explicit_none_is_written(self, seed):
        profile = self._profile(seed)

        update = ProfileUpdate.from_request(ProfileUpdateSchema(avatar_url=None))
        update_own_profile(seed.db, seed.owner_id, update)

        assert profile.avatar_url is None
        assert profile.display_name == "Ana"

    def test_currency_cannot_be_cleared(self, seed):
        profile = self._profile(seed)
        update = ProfileUpdate.from_request(ProfileUpdateSchema(primary_currency=None, display_name="  "))

        update_own_profile(seed.db, seed.owner_id, update)

        assert profile.primary_currency == "EUR"
        assert profile.display_name is None


class TestCompleteOnboarding:

    DATA = {
        "currency": "USD",
        "accounts": [
            {"name": "Main", "kind": "current", "initial_balance": "1000", "is_default": True},
            {"name": "Cash", "kind": "wallet", "initial_balance": "40", "monthly_topup": "100"},
            {"name": "  ", "kind": "investment"},
        ],
        "recurring": [{"concept": "Rent", "amount": "900"}, {"concept": "Gym", "amount": "-50"}],
    }

    @pytest.fixture
    def fresh(self, seed):
        seed.db.get(Profile, seed.owner_id).onboarding_completed = False
        seed.db.flush()
        return seed

    def test_seeds_user_data(self, fresh):
        profile = complete_onboarding(fresh.db, fresh.owner_id, OnboardingSchema(**self.DATA))
        db = fresh.db

        assert db.query(Category).count() == len(DEFAULT_CATEGORIES) == 11
        accounts = db.query(Account).order_by(Account.sort_order).all()
        assert [(a.name, a.currency) for a in accounts] == [("Main", "USD"), ("Cash", "USD")]
        assert db.query(WalletConfig).one().monthly_topup == Decimal("100")

        templates = db.query(RecurringTemplate).order_by(RecurringTemplate.concept).all()
        assert [(t.concept, t.amount, t.day_of_month) for t in templates] == [
            ("Gym", Decimal("-50"), 1),
            ("Rent", Decimal("-900"), 1),
        ]
        assert {t.account_id for t in templates} == {accounts[0].id}

        assert profile.onboarding_completed is True
        assert profile.default_account_id == accounts[0].id
        assert profile.primary_currency == "USD"

    def test_category_sort_order_per_kind(self, fresh):
        complete_onboarding(fresh.db, fresh.owner_id, OnboardingSchema(**self.DATA))

        expenses = fresh.db.query(Category).filter(Category.kind == "expense").order_by(Category.sort_order).all()
        assert [c.sort_order for c in expenses] == list(range(7))
        assert expenses[0].name == "Groceries"

    def test_second_run_refused(self, fresh):
        complete_onboarding(fresh.db, fresh.owner_id, OnboardingSchema(**self.DATA))

        with pytest.raises(IntegrityGuardError):
            complete_onboarding(fresh.db, fresh.owner_id, OnboardingSchema(**self.DATA))
        assert fresh.db.query(Account).count() == 2


class TestRoles:

    def test_new_users_get_user_role(self, seed):
        assert has_role(seed.db, seed.owner_id, "user") is True
        assert has_role(seed.db, seed.owner_id, "admin") is False
