"""
Category tree service.

Categories are at most two levels deep. A subcategory inherits the kind of its
parent when it is created, and a category can only be deleted once nothing
refers to it anymore.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pocketpal.core.errors import DomainValidationError, IntegrityGuardError, NotFoundError
from pocketpal.modules.categories.models import Category
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.shared.validations import CategorySchema, CategoryUpdateSchema

logger = logging.getLogger(__name__)


def get_category(db: Session, owner_id: int, category_id: int) -> Category:
    category = db.query(Category).filter(
        Category.id == category_id,
        Category.owner_id == owner_id,
    ).first()
    if category is None:
        raise NotFoundError(f"Category {category_id} not found")
    return category


def list_categories(db: Session, owner_id: int, kind: Optional[str] = None) -> List[Category]:
    query = db.query(Category).filter(Category.owner_id == owner_id)
    if kind:
        query = query.filter(Category.kind == kind)
    return query.order_by(Category.sort_order, Category.id).all()


def serialize_category(category: Category) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "kind": category.kind,
        "parent_id": category.parent_id,
        "icon": category.icon,
        "color": category.color,
        "sort_order": category.sort_order,
    }


def build_tree(categories: List[Category]) -> List[Dict[str, Any]]:
    """Root categories, each with its `children` list, in the given order."""
    children: Dict[int, List[Category]] = {}
    for c in categories:
        if c.parent_id:
            children.setdefault(c.parent_id, []).append(c)

    tree = []
    for root in (c for c in categories if not c.parent_id):
        node = serialize_category(root)
        node["children"] = [
            {**serialize_category(child), "children": []}
            for child in children.get(root.id, [])
        ]
        tree.append(node)
    return tree


def create_category(db: Session, owner_id: int, data: CategorySchema) -> Category:
    kind = data.kind.value
    parent = None

    if data.parent_id is not None:
        parent = get_category(db, owner_id, data.parent_id)
        if parent.parent_id is not None:
            raise DomainValidationError("Nested subcategories are not allowed")
        kind = parent.kind

    position = db.query(Category).filter(
        Category.owner_id == owner_id,
        Category.kind == kind,
    ).count()

    category = Category(
        owner_id=owner_id,
        name=data.name,
        kind=kind,
        parent_id=parent.id if parent else None,
        icon=data.icon,
        color=data.color,
        sort_order=position,
    )
    db.add(category)
    db.flush()
    return category


def update_category(db: Session, owner_id: int, category_id: int, data: CategoryUpdateSchema) -> Category:
    category = get_category(db, owner_id, category_id)
    category.name = data.name
    category.color = data.color
    category.icon = data.icon
    return category


def delete_category(db: Session, owner_id: int, category_id: int) -> None:
    """
    Delete a category that nothing references.
    Raises IntegrityGuardError (no row removed) when movements, recurring
    templates or subcategories still point at it.
    """
    category = get_category(db, owner_id, category_id)

    movement_count = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        or_(Movement.category_id == category_id, Movement.subcategory_id == category_id),
    ).count()
    if movement_count > 0:
        logger.warning(f"Refused to delete category {category_id}: {movement_count} movements")
        raise IntegrityGuardError(f"This category has {movement_count} movements")

    child_count = db.query(Category).filter(
        Category.owner_id == owner_id,
        Category.parent_id == category_id,
    ).count()
    if child_count > 0:
        raise IntegrityGuardError("This category has subcategories. Delete them first.")

    template_count = db.query(RecurringTemplate).filter(
        RecurringTemplate.owner_id == owner_id,
        or_(
            RecurringTemplate.category_id == category_id,
            RecurringTemplate.subcategory_id == category_id,
        ),
    ).count()
    if template_count > 0:
        raise IntegrityGuardError(f"This category is used by {template_count} recurring templates")

    db.delete(category)
