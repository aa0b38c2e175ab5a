"""
User, profile and role models.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON, UniqueConstraint

from pocketpal.core.database import Base
from pocketpal.shared.models.base import BaseModel, TimestampMixin, OwnedMixin


class User(BaseModel):
    """Login identity. Everything else a user owns hangs off users.id."""

    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(64), nullable=False)


class Profile(Base, TimestampMixin):
    """One profile per user; shares the user's primary key."""

    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)

    display_name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    primary_currency = Column(String(3), nullable=False, default="EUR")
    default_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    preferences = Column(JSON, nullable=False, default=dict)
    onboarding_completed = Column(Boolean, nullable=False, default=False)


class UserRole(BaseModel, OwnedMixin):
    """Application roles ('admin', 'user')."""

    __tablename__ = "user_roles"

    role = Column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint('owner_id', 'role', name='uq_user_role'),
    )
