"""
Dashboard API routes.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import get_db
from pocketpal.core.timezone import today_local
from pocketpal.modules.dashboard.services import get_distribution, get_overview

router = APIRouter()


@router.get("/overview")
async def overview(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Headline metrics, six months of net worth and the active accounts by kind.
    """
    return get_overview(db, user.id)


@router.get("/distribution")
async def distribution(
    period: Literal["month", "quarter", "year"] = "month",
    year: Optional[int] = Query(default=None, ge=1900, le=2999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    movement_type: Literal["expenses", "income", "all"] = "expenses",
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Totals by category and by subcategory for a month, quarter or year.
    Missing year/month/quarter default to today's.
    """
    today = today_local()
    return get_distribution(
        db,
        user.id,
        period=period,
        year=year or today.year,
        month=month or today.month,
        quarter=quarter or (today.month - 1) // 3 + 1,
        movement_type=movement_type,
    )
