"""
Import every model so they're registered with Base.metadata.
Used by the app factory, Alembic and the test suite.
"""

from pocketpal.modules.profiles.models import User, Profile, UserRole
from pocketpal.modules.accounts.models import Account, WalletConfig, AccountBalanceHistory
from pocketpal.modules.categories.models import Category
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.snapshots.models import NetWorthSnapshot

__all__ = [
    "User",
    "Profile",
    "UserRole",
    "Account",
    "WalletConfig",
    "AccountBalanceHistory",
    "Category",
    "RecurringTemplate",
    "Movement",
    "NetWorthSnapshot",
]
