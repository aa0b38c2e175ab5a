"""
Movement (ledger entry) model.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, Text, Boolean, ForeignKey, Index

from pocketpal.shared.models.base import BaseModel, OwnedMixin


class Movement(BaseModel, OwnedMixin):
    """A single dated income (+) or expense (-) entry."""

    __tablename__ = "movements"

    date = Column(Date, nullable=False)
    concept = Column(String(200), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)  # Signed, never zero

    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    subcategory_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    notes = Column(Text, nullable=True)

    is_recurring = Column(Boolean, nullable=False, default=False)
    recurring_template_id = Column(
        Integer, ForeignKey("recurring_templates.id", ondelete="SET NULL"), nullable=True
    )

    # 'YYYY-MM', always derived from date
    month = Column(String(7), nullable=False)

    __table_args__ = (
        Index('idx_movement_owner_month', 'owner_id', 'month'),
        Index('idx_movement_account_date', 'account_id', 'date'),
    )
