"""
Centralized date helpers.

Month buckets are stored as 'YYYY-MM' strings on movements and snapshots.
"Today" is always evaluated in the configured user timezone (TIMEZONE setting)
so a movement entered late on the 31st does not land in the next month.
"""

import calendar
from datetime import date, datetime
from dateutil.relativedelta import relativedelta
import pytz

from pocketpal.core.config import settings

UTC = pytz.UTC


def local_tz():
    """Timezone configured for the application."""
    return pytz.timezone(settings.TIMEZONE)


def today_local() -> date:
    """Current date in the configured timezone."""
    return datetime.now(local_tz()).date()


def month_key(d: date) -> str:
    """Month bucket for a date, e.g. 2025-03-14 -> '2025-03'."""
    return d.strftime('%Y-%m')


def parse_month(month: str) -> date:
    """First day of a 'YYYY-MM' month bucket."""
    return datetime.strptime(month, '%Y-%m').date()


def month_start(d: date) -> date:
    return d.replace(day=1)


def previous_month(d: date) -> str:
    """Month bucket of the calendar month before `d`."""
    return month_key(d - relativedelta(months=1))


def days_in_month(month: str) -> int:
    first = parse_month(month)
    return calendar.monthrange(first.year, first.month)[1]


def format_datetime_for_api(dt: datetime) -> str | None:
    """
    Convert a datetime to UTC ISO string for API responses.
    Naive datetimes are assumed to be UTC (they come from datetime.utcnow()).
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(UTC).isoformat().replace('+00:00', 'Z')

    return dt.isoformat() + 'Z'
