"""
CSV export and full backup.

Fields are quoted only when they contain a comma, a quote or a newline;
embedded quotes are doubled. The backup is a ZIP holding one CSV per table.
"""

import csv
import logging
import zipfile
from datetime import date
from io import BytesIO, StringIO
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from pocketpal.core.timezone import today_local
from pocketpal.modules.accounts.models import Account
from pocketpal.modules.accounts.services import list_accounts
from pocketpal.modules.categories.models import Category
from pocketpal.modules.categories.services import list_categories
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.movements.services import load_lookups
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.modules.recurring.services import list_templates
from pocketpal.shared.services.balances import index_by_id, to_decimal

logger = logging.getLogger(__name__)

MOVEMENT_HEADERS = ['Date', 'Concept', 'Amount', 'Account', 'Category', 'Subcategory', 'Notes', 'Recurring']
ACCOUNT_HEADERS = ['Name', 'Kind', 'Currency', 'Initial balance', 'Color', 'Active']
CATEGORY_HEADERS = ['Name', 'Kind', 'Parent category', 'Color']
RECURRING_HEADERS = ['Concept', 'Amount', 'Day of month', 'Account', 'Category', 'Notes', 'Active']

BACKUP_FILES = ('movements.csv', 'accounts.csv', 'categories.csv', 'recurring_templates.csv')


def _yes_no(flag: bool) -> str:
    return 'Yes' if flag else 'No'


def _name(row: Any) -> str:
    return row.name if row is not None else ''


def generate_csv(headers: Sequence[str], rows: Iterable[Sequence[Optional[Any]]]) -> str:
    """Header line plus one line per row, joined by '\\n' (no trailing newline)."""
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator='\n', quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(['' if value is None else str(value) for value in row])

    content = buffer.getvalue()
    return content[:-1] if content.endswith('\n') else content


def movements_csv(
    movements: List[Movement],
    accounts_by_id: Dict[int, Account],
    categories_by_id: Dict[int, Category],
) -> str:
    rows = [
        [
            m.date.isoformat(),
            m.concept,
            to_decimal(m.amount),
            _name(accounts_by_id.get(m.account_id)),
            _name(categories_by_id.get(m.category_id)),
            _name(categories_by_id.get(m.subcategory_id)) if m.subcategory_id else '',
            m.notes,
            _yes_no(m.is_recurring),
        ]
        for m in movements
    ]
    return generate_csv(MOVEMENT_HEADERS, rows)


def accounts_csv(accounts: List[Account]) -> str:
    rows = [
        [
            a.name,
            a.kind,
            a.currency or 'EUR',
            to_decimal(a.initial_balance),
            a.color,
            _yes_no(a.is_active),
        ]
        for a in accounts
    ]
    return generate_csv(ACCOUNT_HEADERS, rows)


def categories_csv(categories: List[Category]) -> str:
    categories_by_id = index_by_id(categories)
    rows = [
        [
            c.name,
            c.kind,
            _name(categories_by_id.get(c.parent_id)) if c.parent_id else '',
            c.color,
        ]
        for c in categories
    ]
    return generate_csv(CATEGORY_HEADERS, rows)


def recurring_csv(
    templates: List[RecurringTemplate],
    accounts_by_id: Dict[int, Account],
    categories_by_id: Dict[int, Category],
) -> str:
    rows = [
        [
            t.concept,
            to_decimal(t.amount),
            t.day_of_month or 1,
            _name(accounts_by_id.get(t.account_id)),
            _name(categories_by_id.get(t.category_id)),
            t.notes,
            _yes_no(t.is_active),
        ]
        for t in templates
    ]
    return generate_csv(RECURRING_HEADERS, rows)


def month_movements_csv(db: Session, owner_id: int, month: str) -> str:
    """CSV of one month bucket, oldest first."""
    movements = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.month == month,
    ).order_by(Movement.date, Movement.id).all()
    accounts_by_id, categories_by_id = load_lookups(db, owner_id)
    return movements_csv(movements, accounts_by_id, categories_by_id)


def backup_filename(today: Optional[date] = None) -> str:
    today = today or today_local()
    return f"pocketpal_backup_{today.isoformat()}.zip"


def build_backup(db: Session, owner_id: int) -> BytesIO:
    """ZIP archive with every table of the user as CSV."""
    movements = db.query(Movement).filter(
        Movement.owner_id == owner_id,
    ).order_by(Movement.date.desc(), Movement.id.desc()).all()
    accounts = list_accounts(db, owner_id)
    categories = list_categories(db, owner_id)
    templates = list_templates(db, owner_id)

    accounts_by_id = index_by_id(accounts)
    categories_by_id = index_by_id(categories)

    contents = {
        'movements.csv': movements_csv(movements, accounts_by_id, categories_by_id),
        'accounts.csv': accounts_csv(accounts),
        'categories.csv': categories_csv(categories),
        'recurring_templates.csv': recurring_csv(templates, accounts_by_id, categories_by_id),
    }

    buffer = BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        for filename in BACKUP_FILES:
            archive.writestr(filename, contents[filename])
    buffer.seek(0)

    logger.info(
        f"Backup for user {owner_id}: {len(movements)} movements, {len(accounts)} accounts, "
        f"{len(categories)} categories, {len(templates)} recurring templates"
    )
    return buffer
