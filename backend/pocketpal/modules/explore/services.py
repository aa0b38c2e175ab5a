"""
Explore view: every movement of a period, optionally narrowed to a category
or subcategory, with a summary, an evolution series, a top-5 distribution and
one page of the list.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from pocketpal.core.config import settings
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.movements.services import load_lookups, serialize_movement
from pocketpal.shared.services.aggregation import (
    jsonable_buckets,
    paginate,
    period_range,
    temporal_evolution,
    top_distribution,
)
from pocketpal.shared.services.balances import ZERO, to_decimal, to_float

logger = logging.getLogger(__name__)


def explore(
    db: Session,
    owner_id: int,
    period: str,
    year: int,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
    category_id: Optional[int] = None,
    subcategory_id: Optional[int] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> Dict[str, Any]:
    start, end = period_range(period, year, month, quarter)

    query = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.date >= start,
        Movement.date <= end,
    )
    if category_id:
        query = query.filter(Movement.category_id == category_id)
    if subcategory_id:
        query = query.filter(Movement.subcategory_id == subcategory_id)
    movements = query.order_by(Movement.date.desc(), Movement.id.desc()).all()

    accounts_by_id, categories_by_id = load_lookups(db, owner_id)

    result = paginate(movements, page, page_size or settings.PAGE_SIZE)
    result['items'] = [serialize_movement(m, accounts_by_id, categories_by_id) for m in result['items']]

    # A category filter switches the breakdown to its subcategories
    by_subcategory = category_id is not None
    evolution = temporal_evolution(movements, period, year, month, quarter)

    return {
        'period': period,
        'start': start.isoformat(),
        'end': end.isoformat(),
        'summary': {
            'total': to_float(sum((to_decimal(m.amount) for m in movements), ZERO)),
            'count': len(movements),
        },
        'evolution': jsonable_buckets(evolution),
        'distribution': {
            'by': 'subcategory' if by_subcategory else 'category',
            'buckets': jsonable_buckets(top_distribution(movements, categories_by_id, by_subcategory)),
        },
        'movements': result,
    }
