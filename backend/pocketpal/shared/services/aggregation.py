"""
Client-side style reductions used by the dashboard and the explore view.

Every function takes an already-fetched, already-filtered movement list and
recomputes from scratch. Nothing here touches the database.
"""

from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from math import ceil
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from pocketpal.shared.services.balances import ZERO, to_decimal

MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

PERIODS = ('month', 'quarter', 'year')

NO_SUBCATEGORY = {'id': 'none', 'name': 'No subcategory'}
OTHER_BUCKET = {'id': 'other', 'name': 'Other'}

TOP_N = 5


def period_range(
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
) -> Tuple[date, date]:
    """First and last day (inclusive) of a month, quarter or year."""
    if period == 'month':
        start = date(year, month, 1)
        end = start + relativedelta(months=1) - timedelta(days=1)
    elif period == 'quarter':
        start = date(year, (quarter - 1) * 3 + 1, 1)
        end = start + relativedelta(months=3) - timedelta(days=1)
    elif period == 'year':
        start = date(year, 1, 1)
        end = date(year, 12, 31)
    else:
        raise ValueError(f"Unknown period: {period}")
    return start, end


def sum_income_expense(movements: Iterable[Any]) -> Dict[str, Decimal]:
    """Income, expenses (as a positive number), balance and savings rate (%)."""
    income = ZERO
    expenses = ZERO
    for m in movements:
        amount = to_decimal(m.amount)
        if amount > 0:
            income += amount
        elif amount < 0:
            expenses += abs(amount)

    balance = income - expenses
    savings_rate = (balance / income * 100) if income > 0 else ZERO

    return {
        'income': income,
        'expenses': expenses,
        'balance': balance,
        'savings_rate': savings_rate,
    }


def _sorted_buckets(buckets: Dict[Any, Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(buckets.values(), key=lambda b: abs(b['total']), reverse=True)


def _add(buckets: Dict[Any, Dict[str, Any]], key: Any, name: str, amount: Decimal) -> None:
    if key not in buckets:
        buckets[key] = {'id': key, 'name': name, 'total': ZERO}
    buckets[key]['total'] += amount


def totals_by_category(movements: Iterable[Any], categories_by_id: Dict[int, Any]) -> List[Dict[str, Any]]:
    """
    Signed totals per root category, largest absolute value first.
    Movements whose category is unknown or is itself a subcategory are skipped.
    """
    buckets: Dict[Any, Dict[str, Any]] = OrderedDict()
    for m in movements:
        category = categories_by_id.get(m.category_id)
        if category is None or category.parent_id:
            continue
        _add(buckets, category.id, category.name, to_decimal(m.amount))
    return _sorted_buckets(buckets)


def totals_by_subcategory(movements: Iterable[Any], categories_by_id: Dict[int, Any]) -> List[Dict[str, Any]]:
    """Signed totals per subcategory, with a 'none' bucket for movements without one."""
    buckets: Dict[Any, Dict[str, Any]] = OrderedDict()
    for m in movements:
        amount = to_decimal(m.amount)
        if m.subcategory_id:
            subcategory = categories_by_id.get(m.subcategory_id)
            if subcategory is None:
                continue
            _add(buckets, subcategory.id, subcategory.name, amount)
        else:
            _add(buckets, NO_SUBCATEGORY['id'], NO_SUBCATEGORY['name'], amount)
    return _sorted_buckets(buckets)


def top_distribution(
    movements: Iterable[Any],
    categories_by_id: Dict[int, Any],
    by_subcategory: bool = False,
    limit: int = TOP_N,
) -> List[Dict[str, Any]]:
    """
    Absolute totals per category (or per subcategory), the `limit` largest
    buckets followed by an 'Other' bucket holding the rest.
    """
    buckets: Dict[Any, Dict[str, Any]] = OrderedDict()
    for m in movements:
        amount = abs(to_decimal(m.amount))
        if by_subcategory:
            subcategory = categories_by_id.get(m.subcategory_id) if m.subcategory_id else None
            if subcategory is not None:
                _add(buckets, subcategory.id, subcategory.name, amount)
            else:
                _add(buckets, NO_SUBCATEGORY['id'], NO_SUBCATEGORY['name'], amount)
        else:
            category = categories_by_id.get(m.category_id)
            if category is None:
                continue
            _add(buckets, category.id, category.name, amount)

    ranked = sorted(buckets.values(), key=lambda b: b['total'], reverse=True)
    top = ranked[:limit]
    other = sum((b['total'] for b in ranked[limit:]), ZERO)
    if other > 0:
        top.append({'id': OTHER_BUCKET['id'], 'name': OTHER_BUCKET['name'], 'total': other})
    return top


def _sum_between(movements: List[Any], start: date, end_exclusive: date) -> Decimal:
    return sum((to_decimal(m.amount) for m in movements if start <= m.date < end_exclusive), ZERO)


def temporal_evolution(
    movements: Iterable[Any],
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Totals over time inside the selected period:
    - year: one bucket per month
    - quarter: one bucket per month of the quarter
    - month: Monday-started weeks, at most 5 (S1..S5)
    """
    movements = list(movements)
    if not movements:
        return []

    if period in ('year', 'quarter'):
        first_month = 1 if period == 'year' else (quarter - 1) * 3 + 1
        count = 12 if period == 'year' else 3
        buckets = []
        for i in range(count):
            start = date(year, first_month + i, 1)
            end = start + relativedelta(months=1)
            buckets.append({
                'name': MONTH_NAMES[start.month - 1],
                'total': _sum_between(movements, start, end),
            })
        return buckets

    month_start = date(year, month, 1)
    week_start = month_start - timedelta(days=month_start.weekday())
    weeks = []
    week_num = 1
    while week_num == 1 or (week_start.year, week_start.month) == (year, month):
        week_end = week_start + timedelta(days=7)
        weeks.append({'name': f"S{week_num}", 'total': _sum_between(movements, week_start, week_end)})
        week_start = week_end
        week_num += 1
        if week_num > 5:
            break
    return weeks


def paginate(items: List[Any], page: int, page_size: int) -> Dict[str, Any]:
    """Slice a list for page `page` (1-based)."""
    total = len(items)
    start = (page - 1) * page_size
    return {
        'items': items[start:start + page_size],
        'page': page,
        'page_size': page_size,
        'total': total,
        'total_pages': ceil(total / page_size) if page_size else 0,
    }


def jsonable_buckets(buckets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Same buckets with float totals for JSON responses."""
    return [{**b, 'total': float(b['total'])} for b in buckets]
