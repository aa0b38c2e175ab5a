"""
Movements API routes.
The month view, its recurring banner and the month CSV.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.core.session import SessionState, get_session_state
from pocketpal.core.timezone import month_key, today_local
from pocketpal.modules.export.services import month_movements_csv
from pocketpal.modules.movements.services import (
    create_movement,
    delete_movement,
    get_movement,
    list_month,
    month_totals,
    serialize_movements,
    sort_by_date,
    update_movement,
)
from pocketpal.modules.recurring.materializer import banner_state, decline, materialize
from pocketpal.shared.validations import MONTH_PATTERN, MovementSchema

router = APIRouter()


def _month_or_current(month: Optional[str]) -> str:
    return month or month_key(today_local())


@router.get("")
async def list_for_month(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN, description="YYYY-MM, defaults to the current month"),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
    session: SessionState = Depends(get_session_state),
):
    """
    Movements of a month, oldest first, with the month totals and whether
    to offer generating the recurring movements.
    """
    month = _month_or_current(month)
    movements = list_month(db, user.id, month)
    return {
        "month": month,
        "movements": serialize_movements(db, user.id, movements),
        "totals": month_totals(movements),
        "recurring": banner_state(db, user.id, month, session),
    }


@router.get("/export")
async def export_month(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    month = _month_or_current(month)
    return Response(
        content=month_movements_csv(db, user.id, month),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename=movements_{month}.csv"},
    )


@router.post("/recurring/generate", status_code=status.HTTP_201_CREATED)
async def generate_recurring(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Create this month's movements from the active recurring templates,
    all in one transaction. Returns the updated month list.
    """
    month = _month_or_current(month)
    created = materialize(db, user.id, month)
    commit_or_rollback(db)

    movements = sort_by_date(list_month(db, user.id, month))
    return {
        "month": month,
        "created": len(created),
        "movements": serialize_movements(db, user.id, movements),
        "totals": month_totals(movements),
    }


@router.post("/recurring/decline")
async def decline_recurring(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
    session: SessionState = Depends(get_session_state),
):
    """Hide the recurring banner for the month until the next login."""
    month = _month_or_current(month)
    decline(session, month)
    return banner_state(db, user.id, month, session)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create(
    movement: MovementSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = create_movement(db, user.id, movement)
    commit_or_rollback(db)
    return serialize_movements(db, user.id, [result])[0]


@router.get("/{movement_id}")
async def get_one(
    movement_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    return serialize_movements(db, user.id, [get_movement(db, user.id, movement_id)])[0]


@router.put("/{movement_id}")
async def update(
    movement_id: int,
    movement: MovementSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = update_movement(db, user.id, movement_id, movement)
    commit_or_rollback(db)
    return serialize_movements(db, user.id, [result])[0]


@router.delete("/{movement_id}")
async def delete(
    movement_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    delete_movement(db, user.id, movement_id)
    commit_or_rollback(db)
    return {"deleted": movement_id}
