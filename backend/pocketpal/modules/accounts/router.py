"""
Accounts API routes.
Current accounts, investment accounts and wallets with derived balances.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from pocketpal.core.auth import CurrentUser, require_onboarded
from pocketpal.core.database import commit_or_rollback, get_db
from pocketpal.modules.accounts.services import (
    account_detail,
    create_account,
    delete_account,
    get_account,
    list_accounts_with_balance,
    reorder_account,
    set_default_account,
    toggle_active,
    update_account,
)
from pocketpal.shared.validations import AccountSchema

router = APIRouter()


@router.get("")
async def list_all(
    active_only: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    List accounts in display order.
    Each account carries its current balance; wallets add this month's
    spending, investment accounts their invested capital and returns.
    """
    accounts = list_accounts_with_balance(db, user.id, active_only=active_only)
    return {"accounts": accounts, "count": len(accounts)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create(
    account: AccountSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = create_account(db, user.id, account)
    commit_or_rollback(db)
    return account_detail(db, user.id, result)


@router.get("/{account_id}")
async def get_one(
    account_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    return account_detail(db, user.id, get_account(db, user.id, account_id))


@router.put("/{account_id}")
async def update(
    account_id: int,
    account: AccountSchema,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Replace the account fields. Send `current_balance` to override the balance;
    the difference is absorbed by the initial balance and logged.
    """
    result = update_account(db, user.id, account_id, account)
    commit_or_rollback(db)
    return account_detail(db, user.id, result)


@router.post("/{account_id}/toggle")
async def toggle(
    account_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    result = toggle_active(db, user.id, account_id)
    commit_or_rollback(db)
    return {"id": result.id, "is_active": result.is_active}


@router.post("/{account_id}/default")
async def make_default(
    account_id: int,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    profile = set_default_account(db, user.id, account_id)
    commit_or_rollback(db)
    return {"default_account_id": profile.default_account_id}


@router.post("/{account_id}/move")
async def move(
    account_id: int,
    direction: Literal["up", "down"] = Query(...),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """Swap the account with its neighbour in the display order."""
    accounts = reorder_account(db, user.id, account_id, direction)
    commit_or_rollback(db)
    return {"order": [a.id for a in accounts]}


@router.delete("/{account_id}")
async def delete(
    account_id: int,
    cascade: bool = False,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_onboarded),
):
    """
    Delete an account. Refused with 409 while movements or recurring templates
    use it, unless `cascade=true`.
    """
    removed = delete_account(db, user.id, account_id, cascade=cascade)
    commit_or_rollback(db)
    return {"deleted": account_id, "removed": removed}
