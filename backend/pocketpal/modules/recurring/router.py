"""
Recurring templates API routes.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.modules.recurring.services import (
    create_template,
    delete_template,
    list_templates,
    serialize_templates,
    toggle_template,
    update_template,
)
from pocketpal.shared.validations import RecurringTemplateSchema

router = APIRouter()


@router.get("")
async def list_all(
    active_only: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """List templates ordered by concept, with account and category names."""
    templates = list_templates(db, user.id, active_only=active_only)
    return {
        "templates": serialize_templates(db, user.id, templates),
        "count": len(templates),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create(
    template: RecurringTemplateSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = create_template(db, user.id, template)
    commit_or_rollback(db)
    return serialize_templates(db, user.id, [result])[0]


@router.put("/{template_id}")
async def update(
    template_id: int,
    template: RecurringTemplateSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = update_template(db, user.id, template_id, template)
    commit_or_rollback(db)
    return serialize_templates(db, user.id, [result])[0]


@router.post("/{template_id}/toggle")
async def toggle(
    template_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = toggle_template(db, user.id, template_id)
    commit_or_rollback(db)
    return {"id": result.id, "is_active": result.is_active}


@router.delete("/{template_id}")
async def delete(
    template_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """Delete a template. Movements generated from it are kept."""
    delete_template(db, user.id, template_id)
    commit_or_rollback(db)
    return {"deleted": template_id}
