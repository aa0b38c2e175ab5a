"""
Account service: derived balances, overrides, reorder and guarded delete.

Run with: pytest tests/test_accounts.py -v
"""

from datetime import date
from decimal import Decimal

import pytest

from pocketpal.core.errors import IntegrityGuardError
from pocketpal.modules.accounts.models import Account, AccountBalanceHistory, WalletConfig
from pocketpal.modules.accounts.services import (
    create_account,
    delete_account,
    list_accounts,
    list_accounts_with_balance,
    reorder_account,
    update_account,
)
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.profiles.models import Profile
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.shared.validations import AccountSchema

TODAY = date(2025, 4, 15)


def _movement(seed, account, category, amount, day=date(2025, 4, 2)):
    movement = Movement(
        owner_id=seed.owner_id, date=day, concept="x", amount=Decimal(amount),
        account_id=account.id, category_id=category.id, is_recurring=False,
        month=day.strftime("%Y-%m"),
    )
    seed.db.add(movement)
    seed.db.flush()
    return movement


class TestListWithBalance:

    def test_wallet_month_spending(self, seed):
        wallet = seed.account("Cash", kind="wallet", initial_balance="100", monthly_topup="50")
        category = seed.category()
        _movement(seed, wallet, category, "-10")
        _movement(seed, wallet, category, "-5")
        _movement(seed, wallet, category, "20")
        _movement(seed, wallet, category, "-7", date(2025, 3, 30))

        [data] = list_accounts_with_balance(seed.db, seed.owner_id, today=TODAY)

        assert data["current_balance"] == 98.0
        assert data["month_spent"] == 15.0
        assert data["wallet_config"]["monthly_topup"] == 50.0

    def test_investment_returns(self, seed):
        fund = seed.account("Fund", kind="investment", initial_balance="1200", initial_invested_capital="1000")

        [data] = list_accounts_with_balance(seed.db, seed.owner_id, today=TODAY)

        assert data["id"] == fund.id
        assert data["invested"] == 1000.0
        assert data["returns"] == 200.0


class TestCreateAndUpdate:

    def test_wallet_config_created(self, seed):
        account = create_account(seed.db, seed.owner_id, AccountSchema(
            name="Cash", kind="wallet", monthly_topup="100",
        ))
        assert account.wallet_config is not None
        assert account.wallet_config.monthly_topup == Decimal("100")

    def test_wallet_config_dropped_when_kind_changes(self, seed):
        account = create_account(seed.db, seed.owner_id, AccountSchema(
            name="Cash", kind="wallet", monthly_topup="100",
        ))
        update_account(seed.db, seed.owner_id, account.id, AccountSchema(name="Cash", kind="current"))
        seed.db.flush()

        assert seed.db.query(WalletConfig).count() == 0

    def test_sort_order_appends(self, seed):
        seed.account("First")
        second = create_account(seed.db, seed.owner_id, AccountSchema(name="Second", kind="current"))
        assert second.sort_order == 1

    def test_balance_override_backsolves_initial(self, seed):
        account = seed.account("Main", initial_balance="1000")
        category = seed.category()
        _movement(seed, account, category, "-200")

        update_account(seed.db, seed.owner_id, account.id, AccountSchema(
            name="Main", kind="current", initial_balance="1000", current_balance="1500",
        ))
        seed.db.flush()

        assert Decimal(account.initial_balance) == Decimal("1700")
        [data] = list_accounts_with_balance(seed.db, seed.owner_id, today=TODAY)
        assert data["current_balance"] == 1500.0

        [entry] = seed.db.query(AccountBalanceHistory).all()
        assert Decimal(entry.previous_balance) == Decimal("800")
        assert Decimal(entry.new_balance) == Decimal("1500")

    def test_override_with_changed_initial_records_shown_balance(self, seed):
        account = seed.account("Main", initial_balance="1000")
        _movement(seed, account, seed.category(), "-200")

        update_account(seed.db, seed.owner_id, account.id, AccountSchema(
            name="Main", kind="current", initial_balance="5000", current_balance="1500",
        ))
        seed.db.flush()

        assert Decimal(account.initial_balance) == Decimal("1700")
        [entry] = seed.db.query(AccountBalanceHistory).all()
        assert Decimal(entry.previous_balance) == Decimal("800")

    def test_unchanged_balance_keeps_form_initial(self, seed):
        account = seed.account("Main", initial_balance="1000")
        _movement(seed, account, seed.category(), "-200")

        update_account(seed.db, seed.owner_id, account.id, AccountSchema(
            name="Main", kind="current", initial_balance="900", current_balance="800",
        ))
        seed.db.flush()

        assert Decimal(account.initial_balance) == Decimal("900")
        assert seed.db.query(AccountBalanceHistory).count() == 0


class TestReorder:

    @pytest.mark.parametrize("name,target,direction,expected", [
        ("Move middle up", "B", "up", ["B", "A", "C"]),
        ("Move middle down", "B", "down", ["A", "C", "B"]),
        ("Top cannot go up", "A", "up", ["A", "B", "C"]),
        ("Bottom cannot go down", "C", "down", ["A", "B", "C"]),
    ])
    def test_swap_with_neighbour(self, seed, name, target, direction, expected):
        accounts = {n: seed.account(n, sort_order=i) for i, n in enumerate("ABC")}

        reorder_account(seed.db, seed.owner_id, accounts[target].id, direction)
        seed.db.flush()

        assert [a.name for a in list_accounts(seed.db, seed.owner_id)] == expected, name


class TestDeleteAccount:

    def _used_account(self, seed):
        account = seed.account("Main")
        category = seed.category()
        _movement(seed, account, category, "-10")
        seed.db.add(RecurringTemplate(
            owner_id=seed.owner_id, concept="Rent", amount=Decimal("-900"), day_of_month=1,
            account_id=account.id, category_id=category.id, is_active=True, is_transfer=False,
        ))
        profile = seed.db.get(Profile, seed.owner_id)
        profile.default_account_id = account.id
        seed.db.flush()
        return account

    def test_refused_while_in_use(self, seed):
        account = self._used_account(seed)

        with pytest.raises(IntegrityGuardError):
            delete_account(seed.db, seed.owner_id, account.id)
        assert seed.db.get(Account, account.id) is not None

    def test_cascade_removes_dependents(self, seed):
        account = self._used_account(seed)

        removed = delete_account(seed.db, seed.owner_id, account.id, cascade=True)
        seed.db.flush()
        seed.db.expire_all()

        assert removed["movements"] == 1
        assert removed["recurring_templates"] == 1
        assert seed.db.query(Movement).count() == 0
        assert seed.db.query(RecurringTemplate).count() == 0
        assert seed.db.get(Profile, seed.owner_id).default_account_id is None

    def test_unused_account_deleted_without_cascade(self, seed):
        account = seed.account("Spare")
        delete_account(seed.db, seed.owner_id, account.id)
        seed.db.flush()
        assert list_accounts(seed.db, seed.owner_id) == []
