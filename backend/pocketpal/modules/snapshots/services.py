"""
Monthly net-worth snapshots.

Auto snapshots record, for every active account, the balance at the end of
the previous month (movements dated before the first day of the current
month). They never overwrite what the user registered by hand: an existing row
only gets its calculated_balance refreshed.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pocketpal.core.errors import NotFoundError
from pocketpal.core.session import SessionState
from pocketpal.core.timezone import month_start, previous_month, today_local
from pocketpal.modules.accounts.models import Account, AccountBalanceHistory
from pocketpal.modules.accounts.services import get_account, list_accounts
from pocketpal.modules.snapshots.models import NetWorthSnapshot
from pocketpal.shared.services.balances import account_balances, to_float
from pocketpal.shared.validations import SnapshotKind, SnapshotSchema

logger = logging.getLogger(__name__)


def _find(db: Session, owner_id: int, account_id: int, month: str) -> Optional[NetWorthSnapshot]:
    return db.query(NetWorthSnapshot).filter(
        NetWorthSnapshot.owner_id == owner_id,
        NetWorthSnapshot.account_id == account_id,
        NetWorthSnapshot.month == month,
    ).first()


def generate_auto_snapshots(db: Session, owner_id: int, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Record previous-month balances for the user's active accounts.

    Returns what happened: `skipped` when auto snapshots for that month
    already exist, otherwise the number of rows created and updated.
    Running it twice in a row is a no-op the second time.
    """
    today = today or today_local()
    month = previous_month(today)
    boundary = month_start(today)

    already = db.query(NetWorthSnapshot).filter(
        NetWorthSnapshot.owner_id == owner_id,
        NetWorthSnapshot.month == month,
        NetWorthSnapshot.kind == SnapshotKind.AUTO.value,
    ).first()
    if already is not None:
        return {"month": month, "skipped": True, "created": 0, "updated": 0}

    accounts = list_accounts(db, owner_id, active_only=True)
    balances = account_balances(db, owner_id, accounts, before=boundary)

    created = 0
    updated = 0
    for account in accounts:
        snapshot = _find(db, owner_id, account.id, month)
        if snapshot is not None:
            snapshot.calculated_balance = balances[account.id]
            updated += 1
        else:
            db.add(NetWorthSnapshot(
                owner_id=owner_id,
                month=month,
                account_id=account.id,
                registered_balance=None,
                calculated_balance=balances[account.id],
                kind=SnapshotKind.AUTO.value,
            ))
            created += 1
    db.flush()

    logger.info(f"Auto snapshots for {month}, user {owner_id}: {created} created, {updated} updated")
    return {"month": month, "skipped": False, "created": created, "updated": updated}


def run_once_per_session(
    db: Session,
    owner_id: int,
    session: SessionState,
    today: Optional[date] = None,
) -> Optional[Dict[str, Any]]:
    """
    Generate auto snapshots the first time a session loads.

    The session is marked before running, so a failure is logged and not
    retried until the next login.
    """
    if session.auto_snapshot_done:
        return None
    session.auto_snapshot_done = True

    try:
        result = generate_auto_snapshots(db, owner_id, today)
        db.commit()
        return result
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Auto snapshot generation failed for user {owner_id}: {e}", exc_info=True)
        return None


def list_snapshots(
    db: Session,
    owner_id: int,
    month: Optional[str] = None,
    account_id: Optional[int] = None,
) -> List[NetWorthSnapshot]:
    query = db.query(NetWorthSnapshot).filter(NetWorthSnapshot.owner_id == owner_id)
    if month:
        query = query.filter(NetWorthSnapshot.month == month)
    if account_id:
        query = query.filter(NetWorthSnapshot.account_id == account_id)
    return query.order_by(NetWorthSnapshot.month.desc(), NetWorthSnapshot.account_id).all()


def serialize_snapshot(snapshot: NetWorthSnapshot, account: Optional[Account] = None) -> Dict[str, Any]:
    difference = None
    if snapshot.registered_balance is not None and snapshot.calculated_balance is not None:
        difference = to_float(Decimal(snapshot.registered_balance) - Decimal(snapshot.calculated_balance))

    return {
        "id": snapshot.id,
        "month": snapshot.month,
        "account_id": snapshot.account_id,
        "account_name": account.name if account else None,
        "registered_balance": to_float(snapshot.registered_balance),
        "calculated_balance": to_float(snapshot.calculated_balance),
        "difference": difference,
        "exchange_rate": to_float(snapshot.exchange_rate),
        "kind": snapshot.kind,
        "notes": snapshot.notes,
    }


def register_balance(db: Session, owner_id: int, data: SnapshotSchema) -> NetWorthSnapshot:
    """
    Store the balance the user read on a statement for (account, month).
    An existing row keeps its kind and calculated_balance.
    """
    account = get_account(db, owner_id, data.account_id)
    snapshot = _find(db, owner_id, account.id, data.month)

    if snapshot is None:
        snapshot = NetWorthSnapshot(
            owner_id=owner_id,
            month=data.month,
            account_id=account.id,
            kind=SnapshotKind.MANUAL.value,
        )
        db.add(snapshot)

    previous = snapshot.registered_balance
    snapshot.registered_balance = data.registered_balance
    if data.exchange_rate is not None:
        snapshot.exchange_rate = data.exchange_rate
    if data.notes is not None:
        snapshot.notes = data.notes
    db.flush()

    if data.registered_balance is not None and previous != data.registered_balance:
        db.add(AccountBalanceHistory(
            owner_id=owner_id,
            account_id=account.id,
            snapshot_id=snapshot.id,
            previous_balance=previous if previous is not None else (snapshot.calculated_balance or 0),
            new_balance=data.registered_balance,
        ))
    return snapshot


def delete_snapshot(db: Session, owner_id: int, snapshot_id: int) -> None:
    snapshot = db.query(NetWorthSnapshot).filter(
        NetWorthSnapshot.id == snapshot_id,
        NetWorthSnapshot.owner_id == owner_id,
    ).first()
    if snapshot is None:
        raise NotFoundError(f"Snapshot {snapshot_id} not found")
    db.query(AccountBalanceHistory).filter(
        AccountBalanceHistory.snapshot_id == snapshot.id,
    ).update({AccountBalanceHistory.snapshot_id: None}, synchronize_session=False)
    db.delete(snapshot)
