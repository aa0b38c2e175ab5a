"""
Recurring template service.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from pocketpal.core.errors import DomainValidationError, NotFoundError
from pocketpal.modules.accounts.models import Account
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.movements.services import check_references, ref, load_lookups
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.shared.services.balances import to_float
from pocketpal.shared.validations import RecurringTemplateSchema

logger = logging.getLogger(__name__)


def get_template(db: Session, owner_id: int, template_id: int) -> RecurringTemplate:
    template = db.query(RecurringTemplate).filter(
        RecurringTemplate.id == template_id,
        RecurringTemplate.owner_id == owner_id,
    ).first()
    if template is None:
        raise NotFoundError(f"Recurring template {template_id} not found")
    return template


def list_templates(db: Session, owner_id: int, active_only: bool = False) -> List[RecurringTemplate]:
    query = db.query(RecurringTemplate).filter(RecurringTemplate.owner_id == owner_id)
    if active_only:
        query = query.filter(RecurringTemplate.is_active.is_(True))
    return query.order_by(RecurringTemplate.concept, RecurringTemplate.id).all()


def serialize_templates(db: Session, owner_id: int, templates: List[RecurringTemplate]) -> List[Dict[str, Any]]:
    accounts_by_id, categories_by_id = load_lookups(db, owner_id)
    return [
        {
            "id": t.id,
            "concept": t.concept,
            "amount": to_float(t.amount),
            "day_of_month": t.day_of_month,
            "account_id": t.account_id,
            "category_id": t.category_id,
            "subcategory_id": t.subcategory_id,
            "notes": t.notes,
            "is_active": t.is_active,
            "is_transfer": t.is_transfer,
            "destination_account_id": t.destination_account_id,
            "account": ref(accounts_by_id.get(t.account_id)),
            "destination_account": ref(accounts_by_id.get(t.destination_account_id)) if t.destination_account_id else None,
            "category": ref(categories_by_id.get(t.category_id)),
            "subcategory": ref(categories_by_id.get(t.subcategory_id)) if t.subcategory_id else None,
        }
        for t in templates
    ]


def _check_destination(db: Session, owner_id: int, data: RecurringTemplateSchema) -> None:
    if not data.is_transfer:
        return
    destination = db.query(Account).filter(
        Account.id == data.destination_account_id,
        Account.owner_id == owner_id,
    ).first()
    if destination is None:
        raise DomainValidationError(f"Unknown account {data.destination_account_id}")


def _apply(template: RecurringTemplate, data: RecurringTemplateSchema) -> None:
    template.concept = data.concept
    template.amount = data.amount
    template.day_of_month = data.day_of_month
    template.account_id = data.account_id
    template.category_id = data.category_id
    template.subcategory_id = data.subcategory_id
    template.notes = data.notes or None
    template.is_transfer = data.is_transfer
    template.destination_account_id = data.destination_account_id if data.is_transfer else None


def create_template(db: Session, owner_id: int, data: RecurringTemplateSchema) -> RecurringTemplate:
    check_references(db, owner_id, data.account_id, data.category_id, data.subcategory_id)
    _check_destination(db, owner_id, data)

    template = RecurringTemplate(owner_id=owner_id, is_active=True)
    _apply(template, data)
    db.add(template)
    db.flush()
    return template


def update_template(db: Session, owner_id: int, template_id: int, data: RecurringTemplateSchema) -> RecurringTemplate:
    """Full-row update. Movements already materialised keep their values."""
    template = get_template(db, owner_id, template_id)
    check_references(db, owner_id, data.account_id, data.category_id, data.subcategory_id)
    _check_destination(db, owner_id, data)
    _apply(template, data)
    db.flush()
    return template


def toggle_template(db: Session, owner_id: int, template_id: int) -> RecurringTemplate:
    template = get_template(db, owner_id, template_id)
    template.is_active = not template.is_active
    return template


def delete_template(db: Session, owner_id: int, template_id: int) -> None:
    """Delete a template. Its movements stay, without the back-reference."""
    template = get_template(db, owner_id, template_id)
    db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.recurring_template_id == template.id,
    ).update({Movement.recurring_template_id: None}, synchronize_session=False)
    db.delete(template)
