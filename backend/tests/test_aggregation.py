"""
Dashboard/explore reductions over in-memory movement lists.

Run with: pytest tests/test_aggregation.py -v
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import pytest

from pocketpal.shared.services.aggregation import (
    jsonable_buckets,
    paginate,
    period_range,
    sum_income_expense,
    temporal_evolution,
    top_distribution,
    totals_by_category,
    totals_by_subcategory,
)


@dataclass
class Row:
    amount: str
    category_id: int = 1
    subcategory_id: Optional[int] = None
    date: date = date(2025, 4, 10)


@dataclass
class Cat:
    id: int
    name: str
    parent_id: Optional[int] = None


CATEGORIES = {
    1: Cat(1, "Food"),
    2: Cat(2, "Leisure"),
    3: Cat(3, "Cinema", parent_id=2),
    4: Cat(4, "Payroll"),
}


# =============================================================================
# TEST FIXTURES - Known scenarios with expected outcomes
# =============================================================================

PERIOD_SCENARIOS = [
    # (name, period, year, month, quarter, expected_start, expected_end)
    ("April", "month", 2025, 4, None, date(2025, 4, 1), date(2025, 4, 30)),
    ("Leap February", "month", 2024, 2, None, date(2024, 2, 1), date(2024, 2, 29)),
    ("December", "month", 2025, 12, None, date(2025, 12, 1), date(2025, 12, 31)),
    ("Q1", "quarter", 2025, None, 1, date(2025, 1, 1), date(2025, 3, 31)),
    ("Q4", "quarter", 2025, None, 4, date(2025, 10, 1), date(2025, 12, 31)),
    ("Year", "year", 2025, None, None, date(2025, 1, 1), date(2025, 12, 31)),
]


class TestPeriodRange:

    @pytest.mark.parametrize("name,period,year,month,quarter,start,end", PERIOD_SCENARIOS)
    def test_range(self, name, period, year, month, quarter, start, end):
        assert period_range(period, year, month, quarter) == (start, end), name

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            period_range("week", 2025)


class TestSumIncomeExpense:

    def test_totals_and_savings_rate(self):
        result = sum_income_expense([Row("2000"), Row("-300"), Row("-200")])
        assert result == {
            "income": Decimal("2000"),
            "expenses": Decimal("500"),
            "balance": Decimal("1500"),
            "savings_rate": Decimal("75"),
        }

    def test_no_income_means_zero_rate(self):
        result = sum_income_expense([Row("-50")])
        assert result["balance"] == Decimal("-50")
        assert result["savings_rate"] == 0


class TestCategoryTotals:

    def test_root_categories_only(self):
        rows = [Row("-10", 1), Row("-30", 2), Row("-5", 3), Row("1000", 4)]
        result = totals_by_category(rows, CATEGORIES)
        assert [(b["name"], b["total"]) for b in result] == [
            ("Payroll", Decimal("1000")),
            ("Leisure", Decimal("-30")),
            ("Food", Decimal("-10")),
        ]

    def test_subcategories_with_none_bucket(self):
        rows = [Row("-9", 2, 3), Row("-4", 2, 3), Row("-20", 2)]
        result = totals_by_subcategory(rows, CATEGORIES)
        assert [(b["id"], b["total"]) for b in result] == [
            ("none", Decimal("-20")),
            (3, Decimal("-13")),
        ]


class TestTopDistribution:

    def test_rest_grouped_as_other(self):
        categories = {i: Cat(i, f"C{i}") for i in range(1, 8)}
        rows = [Row(f"-{i * 10}", i) for i in range(1, 8)]

        result = top_distribution(rows, categories)

        assert [b["name"] for b in result] == ["C7", "C6", "C5", "C4", "C3", "Other"]
        assert result[-1]["total"] == Decimal("30")

    def test_no_other_when_few(self):
        result = top_distribution([Row("-5", 1), Row("12", 4)], CATEGORIES)
        assert [b["name"] for b in result] == ["Payroll", "Food"]

    def test_by_subcategory(self):
        rows = [Row("-9", 2, 3), Row("-20", 2)]
        result = top_distribution(rows, CATEGORIES, by_subcategory=True)
        assert [b["name"] for b in result] == ["No subcategory", "Cinema"]

    def test_jsonable(self):
        [bucket] = jsonable_buckets(top_distribution([Row("-5.5", 1)], CATEGORIES))
        assert bucket["total"] == 5.5


class TestTemporalEvolution:

    def test_empty(self):
        assert temporal_evolution([], "month", 2025, 4) == []

    def test_month_weeks_start_on_monday(self):
        # April 2025 starts on a Tuesday: S1 is Mar 31 - Apr 6
        rows = [Row("-1", date=date(2025, 4, 1)), Row("-2", date=date(2025, 4, 7)), Row("-3", date=date(2025, 4, 30))]
        weeks = temporal_evolution(rows, "month", 2025, 4)

        assert [w["name"] for w in weeks] == ["S1", "S2", "S3", "S4", "S5"]
        assert [w["total"] for w in weeks] == [Decimal("-1"), Decimal("-2"), 0, 0, Decimal("-3")]

    def test_four_week_february(self):
        # February 2021 starts on a Monday and has 28 days
        weeks = temporal_evolution([Row("-1", date=date(2021, 2, 1))], "month", 2021, 2)
        assert len(weeks) == 4

    def test_quarter_months(self):
        rows = [Row("-1", date=date(2025, 4, 5)), Row("-2", date=date(2025, 6, 30))]
        buckets = temporal_evolution(rows, "quarter", 2025, quarter=2)
        assert [(b["name"], b["total"]) for b in buckets] == [
            ("Apr", Decimal("-1")), ("May", 0), ("Jun", Decimal("-2")),
        ]

    def test_year_has_twelve_buckets(self):
        buckets = temporal_evolution([Row("5")], "year", 2025)
        assert len(buckets) == 12
        assert buckets[3]["total"] == Decimal("5")


class TestPaginate:

    @pytest.mark.parametrize("page,expected_items", [
        (1, [0, 1, 2, 3, 4]),
        (3, [10, 11]),
        (4, []),
    ])
    def test_pages(self, page, expected_items):
        result = paginate(list(range(12)), page, 5)
        assert result["items"] == expected_items
        assert result["total"] == 12
        assert result["total_pages"] == 3
