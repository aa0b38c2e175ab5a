"""Shared database models."""

from pocketpal.shared.models.base import BaseModel, TimestampMixin, OwnedMixin

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "OwnedMixin",
]
