"""Test fixtures for the Trips app."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
REPO_ROOT = Path(__file__).resolve().parents[3]
for candidate in (PROJECT_ROOT, REPO_ROOT):
    if str(candidate) not in sys.path:
        sys.path.append(str(candidate))

from fleet_trips_web import AppConfig, create_app
from fleet_trips_web.repositories import AccountsRepository, TripsRepository
from fleet_trips_web.models import Account


@pytest.fixture()
def app(tmp_path: Path):
    """Return a Flask app configured for testing."""

    db_path = tmp_path / "test.db"
    config = AppConfig(
        database_url=f"sqlite:///{db_path}",
        secret_key="testing",
        ratelimit_enabled=False,
    )
    application = create_app(config)
    application.config.update(
        TESTING=True, WTF_CSRF_ENABLED=False
    )
    yield application


@pytest.fixture()
def client(app):
    """Return a Flask test client."""

    return app.test_client()


@pytest.fixture()
def repo(app):
    return TripsRepository(app.config["DB_ENGINE"])


@pytest.fixture()
def make_account(app):
    """Create accounts directly in the store."""

    accounts = AccountsRepository(app.config["DB_ENGINE"])

    def _make(email: str = "owner@example.com", password: str = "secret123"):
        return accounts.create_account(email, Account.hash_password(password))

    return _make


@pytest.fixture()
def signed_in(client, make_account):
    """Return an account whose session is active on ``client``."""

    account = make_account()
    response = client.post(
        "/auth",
        data={"action": "login", "email": account.email, "password": "secret123"},
    )
    assert response.status_code == 302
    return account
