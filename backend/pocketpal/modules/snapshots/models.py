"""
Monthly net-worth snapshot model.

registered_balance is what the user typed in (bank statement),
calculated_balance is what the system derived from movements.
"""

from sqlalchemy import Column, Integer, String, Numeric, Text, ForeignKey, UniqueConstraint, Index

from pocketpal.shared.models.base import BaseModel, OwnedMixin


class NetWorthSnapshot(BaseModel, OwnedMixin):
    """Per-account balance data point for one month."""

    __tablename__ = "net_worth_snapshots"

    month = Column(String(7), nullable=False)  # 'YYYY-MM'
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)

    registered_balance = Column(Numeric(18, 2), nullable=True)
    calculated_balance = Column(Numeric(18, 2), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=True)  # Stored only, never applied

    kind = Column(String(10), nullable=False, default="manual")  # 'manual', 'auto'
    notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint('owner_id', 'account_id', 'month', name='uq_snapshot_account_month'),
        Index('idx_snapshot_owner_month', 'owner_id', 'month'),
    )
