"""
Account management service.

Balances are derived on every read (shared.services.balances); the only
stored money figure is initial_balance. Overriding the current balance
back-solves initial_balance and leaves an entry in account_balance_history.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from pocketpal.core.errors import IntegrityGuardError, NotFoundError
from pocketpal.core.timezone import month_key, today_local
from pocketpal.modules.accounts.models import Account, WalletConfig, AccountBalanceHistory
from pocketpal.modules.movements.models import Movement
from pocketpal.modules.profiles.models import Profile
from pocketpal.modules.recurring.models import RecurringTemplate
from pocketpal.modules.snapshots.models import NetWorthSnapshot
from pocketpal.shared.services.balances import ZERO, account_balances, to_decimal, to_float
from pocketpal.shared.validations import AccountKind, AccountSchema

logger = logging.getLogger(__name__)

ACCOUNT_KINDS = [k.value for k in AccountKind]


def get_account(db: Session, owner_id: int, account_id: int) -> Account:
    account = db.query(Account).filter(
        Account.id == account_id,
        Account.owner_id == owner_id,
    ).first()
    if account is None:
        raise NotFoundError(f"Account {account_id} not found")
    return account


def list_accounts(db: Session, owner_id: int, active_only: bool = False) -> List[Account]:
    query = db.query(Account).filter(Account.owner_id == owner_id)
    if active_only:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.sort_order, Account.id).all()


def _wallet_spending(db: Session, owner_id: int, wallet_ids: List[int], month: str) -> Dict[int, Decimal]:
    """Money spent (absolute value of negative movements) per wallet this month."""
    if not wallet_ids:
        return {}

    spent: Dict[int, Decimal] = {wallet_id: ZERO for wallet_id in wallet_ids}
    rows = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.account_id.in_(wallet_ids),
        Movement.month == month,
        Movement.amount < 0,
    ).all()
    for m in rows:
        spent[m.account_id] += abs(to_decimal(m.amount))
    return spent


def serialize_account(
    account: Account,
    balance: Decimal,
    month_spent: Optional[Decimal] = None,
) -> Dict[str, Any]:
    data = {
        "id": account.id,
        "name": account.name,
        "kind": account.kind,
        "currency": account.currency,
        "initial_balance": to_float(account.initial_balance),
        "current_balance": to_float(balance),
        "color": account.color,
        "is_active": account.is_active,
        "sort_order": account.sort_order,
        "wallet_config": None,
    }

    if account.kind == AccountKind.WALLET.value:
        data["month_spent"] = to_float(month_spent or ZERO)
        if account.wallet_config is not None:
            data["wallet_config"] = {
                "id": account.wallet_config.id,
                "monthly_topup": to_float(account.wallet_config.monthly_topup),
                "topup_day": account.wallet_config.topup_day,
                "is_active": account.wallet_config.is_active,
            }

    if account.kind == AccountKind.INVESTMENT.value:
        invested = to_decimal(account.initial_invested_capital)
        data["invested"] = to_float(invested)
        data["returns"] = to_float(balance - invested)

    return data


def list_accounts_with_balance(
    db: Session,
    owner_id: int,
    active_only: bool = False,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Accounts in display order with their derived balances."""
    today = today or today_local()
    accounts = list_accounts(db, owner_id, active_only=active_only)
    balances = account_balances(db, owner_id, accounts)
    wallet_ids = [a.id for a in accounts if a.kind == AccountKind.WALLET.value]
    spent = _wallet_spending(db, owner_id, wallet_ids, month_key(today))

    return [
        serialize_account(a, balances[a.id], spent.get(a.id))
        for a in accounts
    ]


def account_detail(db: Session, owner_id: int, account: Account, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or today_local()
    balance = account_balances(db, owner_id, [account])[account.id]
    spent = None
    if account.kind == AccountKind.WALLET.value:
        spent = _wallet_spending(db, owner_id, [account.id], month_key(today)).get(account.id)
    return serialize_account(account, balance, spent)


def _sync_wallet_config(db: Session, account: Account, monthly_topup: Optional[Decimal]) -> None:
    """Create/update the wallet config for wallets with a top-up, drop it for other kinds."""
    config = account.wallet_config
    if account.kind == AccountKind.WALLET.value and monthly_topup:
        if config is not None:
            config.monthly_topup = monthly_topup
        else:
            account.wallet_config = WalletConfig(
                owner_id=account.owner_id,
                monthly_topup=monthly_topup,
                topup_day=1,
                is_active=True,
            )
    elif account.kind != AccountKind.WALLET.value and config is not None:
        db.delete(config)
        account.wallet_config = None


def create_account(db: Session, owner_id: int, data: AccountSchema) -> Account:
    position = db.query(Account).filter(Account.owner_id == owner_id).count()

    account = Account(
        owner_id=owner_id,
        name=data.name,
        kind=data.kind.value,
        currency=data.currency,
        initial_balance=data.initial_balance,
        initial_invested_capital=data.initial_invested_capital or ZERO,
        color=data.color,
        is_active=True,
        sort_order=position,
    )
    db.add(account)
    _sync_wallet_config(db, account, data.monthly_topup)
    db.flush()

    logger.info(f"Created account {account.id} ({account.kind}) for user {owner_id}")
    return account


def update_account(db: Session, owner_id: int, account_id: int, data: AccountSchema) -> Account:
    """
    Full-row update. When `current_balance` is given, initial_balance is
    recomputed so that the derived balance equals it.
    """
    account = get_account(db, owner_id, account_id)

    # Balance the user saw, before any field of the form is applied
    shown_balance = None
    if data.current_balance is not None:
        db.flush()
        shown_balance = account_balances(db, owner_id, [account])[account.id]

    account.name = data.name
    account.kind = data.kind.value
    account.currency = data.currency
    account.initial_balance = data.initial_balance
    account.color = data.color
    if data.initial_invested_capital is not None:
        account.initial_invested_capital = data.initial_invested_capital

    if data.current_balance is not None:
        override_balance(db, account, data.current_balance, shown_balance)

    _sync_wallet_config(db, account, data.monthly_topup)
    db.flush()
    return account


def override_balance(
    db: Session,
    account: Account,
    new_balance: Decimal,
    previous: Optional[Decimal] = None,
) -> Optional[AccountBalanceHistory]:
    """
    Set initial_balance so that the current balance becomes `new_balance`.
    `previous` is the balance shown to the user; defaults to the current one.
    """
    db.flush()
    current = account_balances(db, account.owner_id, [account])[account.id]
    if previous is None:
        previous = current
    if previous == new_balance:
        return None

    movements_total = current - to_decimal(account.initial_balance)
    account.initial_balance = new_balance - movements_total

    entry = AccountBalanceHistory(
        owner_id=account.owner_id,
        account_id=account.id,
        previous_balance=previous,
        new_balance=new_balance,
    )
    db.add(entry)
    logger.info(f"Balance override on account {account.id}: {previous} -> {new_balance}")
    return entry


def toggle_active(db: Session, owner_id: int, account_id: int) -> Account:
    account = get_account(db, owner_id, account_id)
    account.is_active = not account.is_active
    return account


def set_default_account(db: Session, owner_id: int, account_id: int) -> Profile:
    account = get_account(db, owner_id, account_id)
    profile = db.get(Profile, owner_id)
    profile.default_account_id = account.id
    return profile


def reorder_account(db: Session, owner_id: int, account_id: int, direction: str) -> List[Account]:
    """Swap an account with its neighbour ('up' or 'down'). No-op at the edges."""
    accounts = list_accounts(db, owner_id)
    current_index = next((i for i, a in enumerate(accounts) if a.id == account_id), None)
    if current_index is None:
        raise NotFoundError(f"Account {account_id} not found")

    new_index = current_index - 1 if direction == "up" else current_index + 1
    if new_index < 0 or new_index >= len(accounts):
        return accounts

    neighbour = accounts[new_index]
    accounts[current_index].sort_order = new_index
    neighbour.sort_order = current_index
    accounts[current_index], accounts[new_index] = accounts[new_index], accounts[current_index]
    return accounts


def delete_account(db: Session, owner_id: int, account_id: int, cascade: bool = False) -> Dict[str, int]:
    """
    Delete an account.

    Without `cascade`, the delete is refused while movements or recurring
    templates still point at the account. With `cascade`, those rows go too,
    together with its snapshots, balance history and wallet config.
    """
    account = get_account(db, owner_id, account_id)

    movements = db.query(Movement).filter(
        Movement.owner_id == owner_id,
        Movement.account_id == account_id,
    )
    templates = db.query(RecurringTemplate).filter(
        RecurringTemplate.owner_id == owner_id,
        or_(
            RecurringTemplate.account_id == account_id,
            RecurringTemplate.destination_account_id == account_id,
        ),
    )
    movement_count = movements.count()
    template_count = templates.count()

    if not cascade and (movement_count or template_count):
        logger.warning(f"Refused to delete account {account_id}: {movement_count} movements, {template_count} templates")
        raise IntegrityGuardError(
            f"This account has {movement_count} movements and {template_count} recurring templates"
        )

    template_ids = [t.id for t in templates.all()]
    if template_ids:
        db.query(Movement).filter(
            Movement.recurring_template_id.in_(template_ids)
        ).update({Movement.recurring_template_id: None}, synchronize_session=False)

    movements.delete(synchronize_session=False)
    templates.delete(synchronize_session=False)
    snapshot_count = db.query(NetWorthSnapshot).filter(
        NetWorthSnapshot.owner_id == owner_id,
        NetWorthSnapshot.account_id == account_id,
    ).delete(synchronize_session=False)
    db.query(AccountBalanceHistory).filter(
        AccountBalanceHistory.account_id == account_id,
    ).delete(synchronize_session=False)

    profile = db.get(Profile, owner_id)
    if profile is not None and profile.default_account_id == account_id:
        profile.default_account_id = None

    if account.wallet_config is not None:
        db.delete(account.wallet_config)
    db.delete(account)

    logger.info(f"Deleted account {account_id} (cascade={cascade}) for user {owner_id}")
    return {
        "movements": movement_count,
        "recurring_templates": template_count,
        "snapshots": snapshot_count,
    }
