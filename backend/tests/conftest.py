"""
Pytest fixtures for SmartTrack backend tests.

Provides a fresh in-memory database per test, staff/admin accounts,
a logged-in test client and the in-memory email outbox.
"""

import pytest

from smarttrack import create_app
from smarttrack.config import TestingConfig
from smarttrack.extensions import db
from smarttrack.models import Staff
from smarttrack.services import concurrency
from smarttrack.services.staff_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow by design; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def app():
    """Create application with an empty in-memory database."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    return db.session


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    """Skip backoff sleeps between optimistic-update retries."""
    monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)


@pytest.fixture(scope='function')
def transport(app):
    """The MemoryTransport configured by TestingConfig."""
    return app.extensions["notifier"].transport


@pytest.fixture(scope='function')
def outbox(transport):
    return transport.outbox


def make_staff(username: str, password_hash: str, *, is_admin: bool = False, **fields) -> Staff:
    staff = Staff(
        name=fields.pop("name", username.title()),
        email=fields.pop("email", f"{username}@smarttrack.test"),
        phone=fields.pop("phone", "0123456789"),
        username=username,
        password_hash=password_hash,
        is_admin=is_admin,
        **fields,
    )
    db.session.add(staff)
    db.session.commit()
    return staff


@pytest.fixture(scope='function')
def alice(db_session, password_hash):
    """Regular staff member."""
    return make_staff("alice", password_hash, name="Alice Smith")


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    """Admin account."""
    return make_staff("admin", password_hash, name="Site Admin", is_admin=True)


def login(client, username: str, password: str = PASSWORD):
    """Helper to start a cookie session for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    assert response.status_code == 200, response.get_json()
    return response


@pytest.fixture(scope='function')
def staff_client(client, alice):
    login(client, "alice")
    return client


@pytest.fixture(scope='function')
def admin_client(app, admin):
    client = app.test_client()
    login(client, "admin")
    return client
