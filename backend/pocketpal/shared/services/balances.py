"""
Account balance calculation.

An account never stores its balance. The balance is always:

    initial_balance + sum(movement.amount for movements of the account)

"Current balance" uses every movement; "balance at a month boundary" uses the
movements dated strictly before the boundary. The only difference is the
pre-filter the caller applies.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from pocketpal.modules.movements.models import Movement

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert DB numerics, ints, floats and strings to Decimal without float noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_float(value: Any) -> Optional[float]:
    """JSON-friendly money value (None stays None)."""
    return float(value) if value is not None else None


def calculate_balance(initial_balance: Any, movements: Iterable[Any]) -> Decimal:
    """Initial balance plus the sum of the movement amounts. Empty -> initial balance."""
    return to_decimal(initial_balance) + sum((to_decimal(m.amount) for m in movements), ZERO)


def movements_before(movements: Iterable[Any], boundary: date) -> List[Any]:
    """Movements dated strictly before `boundary`."""
    return [m for m in movements if m.date < boundary]


def index_by_id(rows: Iterable[Any]) -> Dict[int, Any]:
    """Map rows by id. Built once per fetch, then used for every lookup."""
    return {row.id: row for row in rows}


def group_by_account(movements: Iterable[Any]) -> Dict[int, List[Any]]:
    grouped: Dict[int, List[Any]] = defaultdict(list)
    for m in movements:
        grouped[m.account_id].append(m)
    return grouped


def account_balances(
    db: Session,
    owner_id: int,
    accounts: List[Any],
    before: Optional[date] = None,
) -> Dict[int, Decimal]:
    """
    Balance for each account in one query.
    With `before`, only movements dated before that day are counted.
    """
    if not accounts:
        return {}

    query = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.account_id.in_([a.id for a in accounts]),
    )
    if before is not None:
        query = query.filter(Movement.date < before)

    grouped = group_by_account(query.all())

    return {
        account.id: calculate_balance(account.initial_balance, grouped.get(account.id, []))
        for account in accounts
    }
