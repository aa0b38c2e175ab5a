"""
Shared fixtures.

Tests run against an in-memory SQLite database (one shared connection through
StaticPool). Every test gets fresh tables.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["SCHEDULER_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pocketpal.core.database import Base, SessionLocal, engine, get_db
import pocketpal.models  # noqa: F401
from pocketpal.modules.accounts.models import Account, WalletConfig
from pocketpal.modules.categories.models import Category
from pocketpal.modules.profiles.models import Profile, User, UserRole


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from pocketpal.main import create_app

    app = create_app()

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def signup(client):
    """Register a user through the API and return its auth headers."""
    def _signup(email: str = "ana@example.com", password: str = "secret123") -> dict:
        response = client.post("/api/v1/auth/signup", json={
            "email": email,
            "password": password,
            "confirm_password": password,
        })
        assert response.status_code == 201, response.text
        return auth_headers(response.json()["access_token"])
    return _signup


@pytest.fixture
def onboarded(client, signup):
    """Signed-up user who finished onboarding with a current account and a wallet."""
    headers = signup()
    response = client.post("/api/v1/profiles/onboarding", headers=headers, json={
        "currency": "EUR",
        "accounts": [
            {"name": "Main", "kind": "current", "initial_balance": "1000.00", "is_default": True},
            {"name": "Cash", "kind": "wallet", "initial_balance": "50", "monthly_topup": "100"},
            {"name": "", "kind": "current"},
        ],
        "recurring": [{"concept": "Rent", "amount": "900"}],
    })
    assert response.status_code == 200, response.text
    return headers


class Seed:
    """Rows created directly in the database for service-level tests."""

    def __init__(self, db):
        self.db = db
        self.user = User(email="owner@example.com", password_hash="x" * 64)
        db.add(self.user)
        db.flush()
        db.add(Profile(id=self.user.id, primary_currency="EUR", preferences={}, onboarding_completed=True))
        db.add(UserRole(owner_id=self.user.id, role="user"))
        db.flush()
        self.owner_id = self.user.id

    def account(self, name="Main", kind="current", initial_balance="0", is_active=True, sort_order=None, **extra):
        account = Account(
            owner_id=self.owner_id,
            name=name,
            kind=kind,
            currency="EUR",
            initial_balance=Decimal(initial_balance),
            initial_invested_capital=Decimal(extra.pop("initial_invested_capital", "0")),
            color="#3B82F6",
            is_active=is_active,
            sort_order=sort_order if sort_order is not None else self.db.query(Account).count(),
        )
        if kind == "wallet" and extra.get("monthly_topup"):
            account.wallet_config = WalletConfig(
                owner_id=self.owner_id,
                monthly_topup=Decimal(extra["monthly_topup"]),
                topup_day=1,
                is_active=True,
            )
        self.db.add(account)
        self.db.flush()
        return account

    def category(self, name="Food", kind="expense", parent=None):
        category = Category(
            owner_id=self.owner_id,
            name=name,
            kind=parent.kind if parent else kind,
            parent_id=parent.id if parent else None,
            color="#6B7280",
            sort_order=0,
        )
        self.db.add(category)
        self.db.flush()
        return category


@pytest.fixture
def seed(db):
    return Seed(db)
