"""Pytest configuration: in-memory SQLite sessions and shared fixtures."""

import os
from datetime import date

# Set test database URL BEFORE any imports from fintrack
# so the module-level engine never points at a real file
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402

from fintrack.models import Category, User  # noqa: E402
from fintrack.services.config import Settings, reset_settings  # noqa: E402
from fintrack.services.db import init_db, make_engine, make_session_factory  # noqa: E402
from fintrack.services.notification_service import NotificationService  # noqa: E402


class RecordingNotifier:
    """Notifier that remembers what it was asked to deliver."""

    def __init__(self):
        self.sent = []

    def notify(self, user_id, kind, payload):
        self.sent.append((user_id, kind, payload))

    def kinds(self):
        return [kind for _, kind, _ in self.sent]


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test reads settings from a clean environment."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def engine():
    engine = make_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create test database session."""
    session = make_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def users(db_session):
    """Create test users alice, bob and carol."""
    created = [User(name=name, username=name.lower()) for name in ("Alice", "Bob", "Carol")]
    db_session.add_all(created)
    db_session.commit()
    return created


@pytest.fixture
def alice(users):
    return users[0]


@pytest.fixture
def bob(users):
    return users[1]


@pytest.fixture
def carol(users):
    return users[2]


@pytest.fixture
def category(db_session):
    category = Category(name="Groceries", color="#00aa00")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def notifications(notifier):
    return NotificationService(notifier)


@pytest.fixture
def today():
    return date.today()
