"""
Dashboard data: headline metrics, net-worth evolution, accounts by kind and
the income/expense distribution for a period.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from pocketpal.core.timezone import month_key, month_start, today_local
from pocketpal.modules.accounts.services import list_accounts, list_accounts_with_balance
from pocketpal.modules.categories.models import Category
from pocketpal.modules.movements.models import Movement
from pocketpal.shared.services.aggregation import (
    MONTH_NAMES,
    jsonable_buckets,
    period_range,
    sum_income_expense,
    totals_by_category,
    totals_by_subcategory,
)
from pocketpal.shared.services.balances import ZERO, account_balances, index_by_id, to_decimal, to_float
from pocketpal.shared.validations import AccountKind

logger = logging.getLogger(__name__)

MOVEMENT_TYPES = ('expenses', 'income', 'all')

HISTORY_MONTHS = 6


def net_worth_history(db: Session, owner_id: int, today: date, months: int = HISTORY_MONTHS) -> List[Dict[str, Any]]:
    """
    Net worth of the active accounts at the end of each of the last `months`
    months, oldest first. The current month is the last point.
    """
    accounts = list_accounts(db, owner_id, active_only=True)
    history = []
    for i in range(months - 1, -1, -1):
        start = month_start(today) - relativedelta(months=i)
        boundary = start + relativedelta(months=1)
        balances = account_balances(db, owner_id, accounts, before=boundary)
        history.append({
            'month': month_key(start),
            'label': MONTH_NAMES[start.month - 1],
            'net_worth': to_float(sum(balances.values(), ZERO)),
        })
    return history


def get_metrics(db: Session, owner_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """Net worth, this month's balance, change vs last month-end and savings rate."""
    today = today or today_local()
    accounts = list_accounts(db, owner_id, active_only=True)

    net_worth = sum(account_balances(db, owner_id, accounts).values(), ZERO)
    previous_net_worth = sum(
        account_balances(db, owner_id, accounts, before=month_start(today)).values(), ZERO
    )

    month_movements = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.month == month_key(today),
    ).all()
    totals = sum_income_expense(month_movements)

    return {
        'net_worth': to_float(net_worth),
        'month_income': to_float(totals['income']),
        'month_expenses': to_float(totals['expenses']),
        'month_balance': to_float(totals['balance']),
        'variation': to_float(net_worth - previous_net_worth),
        'savings_rate': to_float(totals['savings_rate']),
    }


def accounts_by_kind(db: Session, owner_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """Active accounts with balances, grouped by kind, plus a total per group."""
    grouped: Dict[str, Any] = {
        kind.value: {'accounts': [], 'total': 0.0}
        for kind in AccountKind
    }
    for account in list_accounts_with_balance(db, owner_id, active_only=True, today=today):
        group = grouped[account['kind']]
        group['accounts'].append(account)
        group['total'] = to_float(to_decimal(group['total']) + to_decimal(account['current_balance']))
    return grouped


def get_overview(db: Session, owner_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or today_local()
    return {
        'month': month_key(today),
        'metrics': get_metrics(db, owner_id, today),
        'net_worth_history': net_worth_history(db, owner_id, today),
        'accounts': accounts_by_kind(db, owner_id, today),
    }


def filter_by_type(query, movement_type: str):
    if movement_type == 'expenses':
        return query.filter(Movement.amount < 0)
    if movement_type == 'income':
        return query.filter(Movement.amount > 0)
    return query


def get_distribution(
    db: Session,
    owner_id: int,
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
    movement_type: str = 'expenses',
) -> Dict[str, Any]:
    """Signed totals by root category and by subcategory for the period."""
    start, end = period_range(period, year, month, quarter)

    query = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.date >= start,
        Movement.date <= end,
    )
    movements = filter_by_type(query, movement_type).all()
    categories_by_id = index_by_id(
        db.query(Category).filter(Category.owner_id == owner_id).all()
    )

    return {
        'period': period,
        'start': start.isoformat(),
        'end': end.isoformat(),
        'movement_type': movement_type,
        'by_category': jsonable_buckets(totals_by_category(movements, categories_by_id)),
        'by_subcategory': jsonable_buckets(totals_by_subcategory(movements, categories_by_id)),
    }
