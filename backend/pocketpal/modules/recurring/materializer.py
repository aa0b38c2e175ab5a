"""
Recurring Template Materializer.

Turns the user's active recurring templates into concrete movements for a
month. Per (user, month) the banner is either:

    offered     - current month, no recurring movements yet, not declined in
                  this session, at least one active template
    suppressed  - any of the above does not hold

Materialising inserts one movement per active template in a single batch and
moves the month to `suppressed` for good (recurring movements now exist).
Declining only lasts for the session.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pocketpal.core.database import flush_or_rollback
from pocketpal.core.errors import IntegrityGuardError
from pocketpal.core.session import SessionState
from pocketpal.core.timezone import days_in_month, month_key, parse_month, today_local
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.recurring.services import list_templates

logger = logging.getLogger(__name__)

OFFERED = "offered"
SUPPRESSED = "suppressed"


def resolve_occurrence_date(month: str, day_of_month: Optional[int]) -> date:
    """
    Date of a template occurrence inside `month`.
    Days past the end of the month land on its last day (31 -> 30 in April).
    """
    first = parse_month(month)
    day = min(day_of_month or 1, days_in_month(month))
    return first.replace(day=day)


def has_recurring_movements(db: Session, owner_id: int, month: str) -> bool:
    return db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.month == month,
        Movement.is_recurring.is_(True),
    ).first() is not None


def banner_state(
    db: Session,
    owner_id: int,
    month: str,
    session: SessionState,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Whether to offer generating this month's recurring movements."""
    today = today or today_local()
    templates = list_templates(db, owner_id, active_only=True)

    reason = None
    if month != month_key(today):
        reason = "not_current_month"
    elif has_recurring_movements(db, owner_id, month):
        reason = "already_generated"
    elif month in session.declined_recurring_months:
        reason = "declined"
    elif not templates:
        reason = "no_templates"

    return {
        "month": month,
        "state": SUPPRESSED if reason else OFFERED,
        "reason": reason,
        "template_count": len(templates),
    }


def decline(session: SessionState, month: str) -> None:
    """Hide the banner for `month` until the session ends."""
    session.declined_recurring_months.add(month)


def materialize(db: Session, owner_id: int, month: str) -> List[Movement]:
    """
    Create one movement per active template for `month`.

    Rows are added and flushed together; the caller commits once, so either
    every template lands or none does. Refused when the month already holds
    recurring movements.
    """
    if has_recurring_movements(db, owner_id, month):
        logger.warning(f"Recurring movements for {month} already exist for user {owner_id}")
        raise IntegrityGuardError(f"Recurring movements for {month} were already generated")

    templates = list_templates(db, owner_id, active_only=True)

    created = [
        Movement(
            owner_id=owner_id,
            date=resolve_occurrence_date(month, t.day_of_month),
            concept=t.concept,
            amount=t.amount,
            account_id=t.account_id,
            category_id=t.category_id,
            subcategory_id=t.subcategory_id,
            notes=t.notes,
            is_recurring=True,
            recurring_template_id=t.id,
            month=month,
        )
        for t in templates
    ]
    db.add_all(created)
    flush_or_rollback(db)

    logger.info(f"Materialised {len(created)} recurring movements for {month} (user {owner_id})")
    return created
