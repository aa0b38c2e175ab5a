"""
Recurring template model.
"""

from sqlalchemy import Column, Integer, String, Numeric, Text, Boolean, ForeignKey

from pocketpal.shared.models.base import BaseModel, OwnedMixin


class RecurringTemplate(BaseModel, OwnedMixin):
    """Monthly movement definition, materialised on demand into movements."""

    __tablename__ = "recurring_templates"

    concept = Column(String(200), nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    day_of_month = Column(Integer, nullable=True)  # 1-31, None means day 1

    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    subcategory_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    is_transfer = Column(Boolean, nullable=False, default=False)
    destination_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
