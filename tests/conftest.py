"""
Shared pytest fixtures for the Tilawah Rotation Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - group: Pre-created Group entity (dict)
    - add_participants: factory enrolling N named participants into a group
"""

import pytest

from tilawah import create_app
from tilawah.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def group():
    """Create and return a test Group via the service layer."""
    from tilawah.services.group_service import create_group
    return create_group("Test Group")


@pytest.fixture()
def add_participants():
    """Enroll ``count`` participants (P01, P02, ...) and return their ids in creation order."""
    from tilawah.services.participant_service import enroll_bulk

    def _add(group_id, count, prefix="P"):
        result = enroll_bulk(
            group_id, [{"name": f"{prefix}{i:02d}"} for i in range(1, count + 1)],
        )
        return [item["participant"]["id"] for item in result["participants"]]

    return _add
