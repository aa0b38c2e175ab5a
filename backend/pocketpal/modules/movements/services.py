"""
Movement ledger service.

Movements are listed per month bucket. Related accounts and categories are
resolved through id indexes built once per request instead of scanning the
lists for every movement.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from pocketpal.core.errors import DomainValidationError, NotFoundError
from pocketpal.core.timezone import month_key
from pocketpal.modules.accounts.models import Account
from pocketpal.modules.categories.models import Category
from pocketpal.modules.movements.models import Movement
from pocketpal.shared.services.aggregation import sum_income_expense
from pocketpal.shared.services.balances import index_by_id, to_float
from pocketpal.shared.validations import MovementSchema

logger = logging.getLogger(__name__)


def load_lookups(db: Session, owner_id: int) -> Tuple[Dict[int, Account], Dict[int, Category]]:
    """Accounts and categories of the user, keyed by id."""
    accounts = db.query(Account).filter(Account.owner_id == owner_id).all()
    categories = db.query(Category).filter(Category.owner_id == owner_id).all()
    return index_by_id(accounts), index_by_id(categories)


def check_references(
    db: Session,
    owner_id: int,
    account_id: int,
    category_id: int,
    subcategory_id: Optional[int] = None,
) -> None:
    """Account and categories must belong to the user; subcategory must hang off the category."""
    account = db.query(Account).filter(Account.id == account_id, Account.owner_id == owner_id).first()
    if account is None:
        raise DomainValidationError(f"Unknown account {account_id}")

    category = db.query(Category).filter(Category.id == category_id, Category.owner_id == owner_id).first()
    if category is None:
        raise DomainValidationError(f"Unknown category {category_id}")

    if subcategory_id is not None:
        subcategory = db.query(Category).filter(
            Category.id == subcategory_id,
            Category.owner_id == owner_id,
        ).first()
        if subcategory is None or subcategory.parent_id != category.id:
            raise DomainValidationError("Subcategory does not belong to the selected category")


def get_movement(db: Session, owner_id: int, movement_id: int) -> Movement:
    movement = db.query(Movement).filter(
        Movement.id == movement_id,
        Movement.owner_id == owner_id,
    ).first()
    if movement is None:
        raise NotFoundError(f"Movement {movement_id} not found")
    return movement


def list_month(db: Session, owner_id: int, month: str) -> List[Movement]:
    """Movements of a 'YYYY-MM' bucket, oldest first."""
    return db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.month == month,
    ).order_by(Movement.date, Movement.id).all()


def sort_by_date(movements: List[Movement]) -> List[Movement]:
    return sorted(movements, key=lambda m: (m.date, m.id or 0))


def ref(row: Any) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    return {"id": row.id, "name": row.name, "color": row.color}


def serialize_movement(
    m: Movement,
    accounts_by_id: Dict[int, Account],
    categories_by_id: Dict[int, Category],
) -> Dict[str, Any]:
    return {
        "id": m.id,
        "date": m.date.isoformat(),
        "concept": m.concept,
        "amount": to_float(m.amount),
        "account_id": m.account_id,
        "category_id": m.category_id,
        "subcategory_id": m.subcategory_id,
        "notes": m.notes,
        "is_recurring": m.is_recurring,
        "recurring_template_id": m.recurring_template_id,
        "month": m.month,
        "account": ref(accounts_by_id.get(m.account_id)),
        "category": ref(categories_by_id.get(m.category_id)),
        "subcategory": ref(categories_by_id.get(m.subcategory_id)) if m.subcategory_id else None,
    }


def serialize_movements(db: Session, owner_id: int, movements: List[Movement]) -> List[Dict[str, Any]]:
    accounts_by_id, categories_by_id = load_lookups(db, owner_id)
    return [serialize_movement(m, accounts_by_id, categories_by_id) for m in movements]


def month_totals(movements: List[Movement]) -> Dict[str, float]:
    totals = sum_income_expense(movements)
    return {
        "income": to_float(totals["income"]),
        "expenses": to_float(totals["expenses"]),
        "balance": to_float(totals["balance"]),
    }


def _apply(movement: Movement, data: MovementSchema) -> None:
    movement.date = data.date
    movement.concept = data.concept
    movement.amount = data.amount
    movement.account_id = data.account_id
    movement.category_id = data.category_id
    movement.subcategory_id = data.subcategory_id
    movement.notes = data.notes or None
    movement.month = month_key(data.date)


def create_movement(db: Session, owner_id: int, data: MovementSchema) -> Movement:
    check_references(db, owner_id, data.account_id, data.category_id, data.subcategory_id)
    movement = Movement(owner_id=owner_id, is_recurring=False)
    _apply(movement, data)
    db.add(movement)
    db.flush()
    return movement


def update_movement(db: Session, owner_id: int, movement_id: int, data: MovementSchema) -> Movement:
    """Full-row update; the month bucket follows the new date."""
    movement = get_movement(db, owner_id, movement_id)
    check_references(db, owner_id, data.account_id, data.category_id, data.subcategory_id)
    _apply(movement, data)
    db.flush()
    return movement


def delete_movement(db: Session, owner_id: int, movement_id: int) -> None:
    db.delete(get_movement(db, owner_id, movement_id))
