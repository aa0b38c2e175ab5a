"""
Categories API routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.modules.categories.services import (
    build_tree,
    create_category,
    delete_category,
    list_categories,
    serialize_category,
    update_category,
)
from pocketpal.shared.validations import CategoryKind, CategorySchema, CategoryUpdateSchema

router = APIRouter()


@router.get("")
async def list_all(
    kind: Optional[CategoryKind] = None,
    tree: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    List categories in display order, optionally of one kind.
    With `tree=true`, root categories come with their subcategories nested.
    """
    categories = list_categories(db, user.id, kind.value if kind else None)
    if tree:
        return {"categories": build_tree(categories)}
    return {"categories": [serialize_category(c) for c in categories]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create(
    category: CategorySchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """Create a category. A subcategory takes the kind of its parent."""
    result = create_category(db, user.id, category)
    commit_or_rollback(db)
    return serialize_category(result)


@router.put("/{category_id}")
async def update(
    category_id: int,
    category: CategoryUpdateSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = update_category(db, user.id, category_id, category)
    commit_or_rollback(db)
    return serialize_category(result)


@router.delete("/{category_id}")
async def delete(
    category_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    delete_category(db, user.id, category_id)
    commit_or_rollback(db)
    return {"deleted": category_id}
