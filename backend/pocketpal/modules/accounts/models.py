"""
Accounts module database models.

Balances are never stored: the current balance of an account is always
initial_balance + sum of its movements (see shared.services.balances).
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from pocketpal.shared.models.base import BaseModel, OwnedMixin


class Account(BaseModel, OwnedMixin):
    """Money container: current account, investment account or wallet."""

    __tablename__ = "accounts"

    name = Column(String(100), nullable=False)
    kind = Column(String(20), nullable=False)  # 'current', 'investment', 'wallet'
    currency = Column(String(3), nullable=False, default="EUR")

    initial_balance = Column(Numeric(18, 2), nullable=False, default=0)
    initial_invested_capital = Column(Numeric(18, 2), nullable=False, default=0)  # investment accounts

    color = Column(String(20), nullable=False, default="#3B82F6")
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    wallet_config = relationship("WalletConfig", uselist=False, back_populates="account")

    __table_args__ = (
        Index('idx_account_owner_order', 'owner_id', 'sort_order'),
    )


class WalletConfig(BaseModel, OwnedMixin):
    """Monthly top-up settings, only for wallet accounts."""

    __tablename__ = "wallet_configs"

    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, unique=True)
    monthly_topup = Column(Numeric(18, 2), nullable=False)
    topup_day = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)

    account = relationship("Account", back_populates="wallet_config")


class AccountBalanceHistory(BaseModel, OwnedMixin):
    """Audit trail of manual balance overrides."""

    __tablename__ = "account_balance_history"

    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    snapshot_id = Column(Integer, ForeignKey("net_worth_snapshots.id", ondelete="SET NULL"), nullable=True)
    previous_balance = Column(Numeric(18, 2), nullable=False)
    new_balance = Column(Numeric(18, 2), nullable=False)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
