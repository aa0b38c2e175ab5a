"""
Explore API routes.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import get_db
from pocketpal.core.timezone import today_local
from pocketpal.modules.explore.services import explore

router = APIRouter()


@router.get("")
async def explore_movements(
    period: Literal["month", "quarter", "year"] = "month",
    year: Optional[int] = Query(default=None, ge=1900, le=2999),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    quarter: Optional[int] = Query(default=None, ge=1, le=4),
    category_id: Optional[int] = None,
    subcategory_id: Optional[int] = None,
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=200),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Movements of a period, newest first, with summary, evolution and top-5
    distribution. Filtering by category breaks the distribution down by
    subcategory instead.
    """
    today = today_local()
    return explore(
        db,
        user.id,
        period=period,
        year=year or today.year,
        month=month or today.month,
        quarter=quarter or (today.month - 1) // 3 + 1,
        category_id=category_id,
        subcategory_id=subcategory_id,
        page=page,
        page_size=page_size,
    )
