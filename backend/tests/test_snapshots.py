"""
Monthly auto snapshot generator.

Run with: pytest tests/test_snapshots.py -v
"""

from datetime import date
from decimal import Decimal

from pocketpal.core.scheduler import run_snapshots_for_all_users
from pocketpal.core.session import SessionState
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.snapshots.models import NetWorthSnapshot
from pocketpal.modules.snapshots.services import (
    generate_auto_snapshots,
    register_balance,
    run_once_per_session,
)
from pocketpal.shared.validations import SnapshotSchema

TODAY = date(2025, 4, 3)
PREVIOUS = "2025-03"


def _movement(seed, account, category, amount, day):
    seed.db.add(Movement(
        owner_id=seed.owner_id, date=day, concept="x", amount=Decimal(amount),
        account_id=account.id, category_id=category.id, is_recurring=False,
        month=day.strftime("%Y-%m"),
    ))
    seed.db.flush()


def _snapshots(seed):
    return seed.db.query(NetWorthSnapshot).filter(NetWorthSnapshot.owner_id == seed.owner_id).all()


class TestGenerateAutoSnapshots:

    def test_previous_month_end_balances(self, seed):
        main = seed.account("Main", initial_balance="1000")
        category = seed.category()
        _movement(seed, main, category, "-100", date(2025, 3, 31))
        _movement(seed, main, category, "-50", date(2025, 4, 1))  # current month, not counted

        result = generate_auto_snapshots(seed.db, seed.owner_id, TODAY)

        assert result == {"month": PREVIOUS, "skipped": False, "created": 1, "updated": 0}
        snapshot = _snapshots(seed)[0]
        assert snapshot.month == PREVIOUS
        assert snapshot.kind == "auto"
        assert snapshot.registered_balance is None
        assert Decimal(snapshot.calculated_balance) == Decimal("900")

    def test_inactive_accounts_skipped(self, seed):
        seed.account("Main")
        seed.account("Closed", is_active=False)

        generate_auto_snapshots(seed.db, seed.owner_id, TODAY)

        assert len(_snapshots(seed)) == 1

    def test_idempotent(self, seed):
        seed.account("Main")
        seed.account("Savings")

        generate_auto_snapshots(seed.db, seed.owner_id, TODAY)
        second = generate_auto_snapshots(seed.db, seed.owner_id, TODAY)

        assert second["skipped"] is True
        assert len(_snapshots(seed)) == 2

    def test_registered_balance_untouched(self, seed):
        main = seed.account("Main", initial_balance="500")
        register_balance(seed.db, seed.owner_id, SnapshotSchema(
            month=PREVIOUS, account_id=main.id, registered_balance="512.34",
        ))

        result = generate_auto_snapshots(seed.db, seed.owner_id, TODAY)

        assert result["updated"] == 1
        snapshot = _snapshots(seed)[0]
        assert snapshot.kind == "manual"
        assert Decimal(snapshot.registered_balance) == Decimal("512.34")
        assert Decimal(snapshot.calculated_balance) == Decimal("500")


class TestSessionGuard:

    def test_runs_once_per_session(self, seed):
        seed.account("Main")
        session = SessionState(user_id=seed.owner_id)

        first = run_once_per_session(seed.db, seed.owner_id, session, TODAY)
        second = run_once_per_session(seed.db, seed.owner_id, session, TODAY)

        assert first["created"] == 1
        assert second is None
        assert session.auto_snapshot_done is True

    def test_new_session_runs_again_without_duplicates(self, seed):
        seed.account("Main")
        run_once_per_session(seed.db, seed.owner_id, SessionState(user_id=seed.owner_id), TODAY)

        result = run_once_per_session(seed.db, seed.owner_id, SessionState(user_id=seed.owner_id), TODAY)

        assert result["skipped"] is True
        assert len(_snapshots(seed)) == 1


class TestScheduledRun:

    def test_all_onboarded_users(self, seed):
        seed.account("Main")
        result = run_snapshots_for_all_users(seed.db, TODAY)

        assert result == {"users": 1, "done": 1, "failed": 0}
        assert len(_snapshots(seed)) == 1


class TestRegisterBalance:

    def test_history_entry_written(self, seed):
        from pocketpal.modules.accounts.models import AccountBalanceHistory

        main = seed.account("Main", initial_balance="10")
        register_balance(seed.db, seed.owner_id, SnapshotSchema(
            month=PREVIOUS, account_id=main.id, registered_balance="20",
        ))
        seed.db.flush()

        history = seed.db.query(AccountBalanceHistory).all()
        assert len(history) == 1
        assert Decimal(history[0].new_balance) == Decimal("20")
