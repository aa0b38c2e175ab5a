"""
Category tree model. Two levels at most: root categories and their children.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index

from pocketpal.shared.models.base import BaseModel, OwnedMixin


class Category(BaseModel, OwnedMixin):
    """Income / expense / investment category or subcategory."""

    __tablename__ = "categories"

    name = Column(String(50), nullable=False)
    kind = Column(String(20), nullable=False)  # 'income', 'expense', 'investment'
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    icon = Column(String(20), nullable=True)
    color = Column(String(20), nullable=False, default="#6B7280")
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_category_owner_kind', 'owner_id', 'kind'),
        Index('idx_category_parent', 'parent_id'),
    )
