"""
Net-worth snapshot API routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.modules.accounts.services import get_account, list_accounts
from pocketpal.modules.snapshots.services import (
    delete_snapshot,
    generate_auto_snapshots,
    list_snapshots,
    register_balance,
    serialize_snapshot,
)
from pocketpal.shared.services.balances import index_by_id
from pocketpal.shared.validations import MONTH_PATTERN, SnapshotSchema

router = APIRouter()


@router.get("")
async def list_all(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN),
    account_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    List snapshots, newest month first.
    `difference` is registered minus calculated when both are known.
    """
    snapshots = list_snapshots(db, user.id, month=month, account_id=account_id)
    accounts_by_id = index_by_id(list_accounts(db, user.id))
    return {
        "snapshots": [serialize_snapshot(s, accounts_by_id.get(s.account_id)) for s in snapshots],
        "count": len(snapshots),
    }


@router.put("")
async def register(
    snapshot: SnapshotSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """Record the balance read on a statement for an account and month."""
    result = register_balance(db, user.id, snapshot)
    commit_or_rollback(db)
    return serialize_snapshot(result, get_account(db, user.id, result.account_id))


@router.post("/generate")
async def generate(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """Run the previous-month auto snapshot now. Safe to repeat."""
    result = generate_auto_snapshots(db, user.id)
    commit_or_rollback(db)
    return result


@router.delete("/{snapshot_id}")
async def delete(
    snapshot_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    delete_snapshot(db, user.id, snapshot_id)
    commit_or_rollback(db)
    return {"deleted": snapshot_id}
