"""
Balance calculator tests.

Run with: pytest tests/test_balances.py -v
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from pocketpal.modules.movements.models import Movement
from pocketpal.shared.services.balances import (
    account_balances,
    calculate_balance,
    group_by_account,
    index_by_id,
    movements_before,
    to_decimal,
)


@dataclass
class Row:
    amount: object
    date: date = date(2025, 3, 10)
    account_id: int = 1
    id: int = 0


# =============================================================================
# TEST FIXTURES - Known scenarios with expected outcomes
# =============================================================================

BALANCE_SCENARIOS = [
    # (name, initial_balance, amounts, expected)
    ("No movements", "1000.00", [], "1000.00"),
    ("Mixed movements", "1000.00", ["-45.50", "-12.00", "2500.00"], "3442.50"),
    ("Goes negative", "10.00", ["-25.00"], "-15.00"),
    ("Cents do not drift", "0", ["0.10", "0.20"], "0.30"),
    ("Numeric from DB as float", 0.0, [0.1, 0.2], "0.3"),
]


class TestCalculateBalance:

    @pytest.mark.parametrize("name,initial,amounts,expected", BALANCE_SCENARIOS)
    def test_balance(self, name, initial, amounts, expected):
        result = calculate_balance(initial, [Row(a) for a in amounts])
        assert result == Decimal(expected), f"{name}: got {result}"

    def test_none_initial_is_zero(self):
        assert calculate_balance(None, [Row("5")]) == Decimal("5")

    def test_to_decimal_keeps_decimal(self):
        value = Decimal("1.25")
        assert to_decimal(value) is value


class TestMonthBoundary:

    def test_only_strictly_before_boundary(self):
        rows = [
            Row("1", date(2025, 2, 28)),
            Row("2", date(2025, 3, 1)),
            Row("4", date(2025, 3, 31)),
        ]
        before = movements_before(rows, date(2025, 3, 1))
        assert [r.amount for r in before] == ["1"]

    def test_boundary_balance(self):
        rows = [Row("100", date(2025, 1, 5)), Row("-30", date(2025, 2, 5))]
        assert calculate_balance("0", movements_before(rows, date(2025, 2, 1))) == Decimal("100")


class TestIndexes:

    def test_index_by_id(self):
        rows = [Row("1", id=3), Row("2", id=7)]
        indexed = index_by_id(rows)
        assert set(indexed) == {3, 7}
        assert indexed[7].amount == "2"

    def test_group_by_account(self):
        rows = [Row("1", account_id=1), Row("2", account_id=2), Row("3", account_id=1)]
        grouped = group_by_account(rows)
        assert [r.amount for r in grouped[1]] == ["1", "3"]
        assert [r.amount for r in grouped[2]] == ["2"]


class TestAccountBalances:

    def _movement(self, seed, account, amount, day, category):
        seed.db.add(Movement(
            owner_id=seed.owner_id,
            date=day,
            concept="x",
            amount=Decimal(amount),
            account_id=account.id,
            category_id=category.id,
            is_recurring=False,
            month=day.strftime("%Y-%m"),
        ))
        seed.db.flush()

    def test_every_account_in_one_call(self, seed):
        main = seed.account("Main", initial_balance="1000.00")
        cash = seed.account("Cash", kind="wallet", initial_balance="20")
        food = seed.category()
        self._movement(seed, main, "-45.50", date(2025, 3, 2), food)
        self._movement(seed, main, "-12.00", date(2025, 3, 3), food)
        self._movement(seed, main, "2500.00", date(2025, 3, 4), food)
        self._movement(seed, cash, "-5", date(2025, 3, 4), food)

        balances = account_balances(seed.db, seed.owner_id, [main, cash])

        assert balances[main.id] == Decimal("3442.50")
        assert balances[cash.id] == Decimal("15")

    def test_before_filters_by_date(self, seed):
        main = seed.account("Main", initial_balance="100")
        food = seed.category()
        self._movement(seed, main, "-10", date(2025, 2, 28), food)
        self._movement(seed, main, "-20", date(2025, 3, 1), food)

        balances = account_balances(seed.db, seed.owner_id, [main], before=date(2025, 3, 1))
        assert balances[main.id] == Decimal("90")

    def test_no_accounts(self, seed):
        assert account_balances(seed.db, seed.owner_id, []) == {}
