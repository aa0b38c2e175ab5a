"""Core application components."""

from pocketpal.core.config import settings
from pocketpal.core.database import Base, get_db, engine

__all__ = ["settings", "Base", "get_db", "engine"]
