import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure backend/ is importable as the top-level "datadash" package even when pytest runs from repo root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Ensure the application runs in test/sqlite mode *before* importing any app modules
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test_secret")
os.environ.setdefault("JWT_ALG", "HS256")
os.environ.setdefault("JWT_ACCESS_MIN", "30")
os.environ.setdefault("JWT_REFRESH_DAYS", "7")

# --- One in-memory SQLite engine (StaticPool) shared by tests and app code ---
from datadash.db.session import get_db, get_engine, get_sessionmaker  # noqa: E402
from datadash.db.base import Base  # noqa: E402

ENGINE = get_engine()
SessionTesting = get_sessionmaker()

from datadash.core.security import create_access, get_current_user, hash_password  # noqa: E402
from datadash.main import app  # noqa: E402
from datadash.models import DataEntry, User  # noqa: E402

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "Demo123!"


def _reset_schema():
    Base.metadata.drop_all(bind=ENGINE)
    Base.metadata.create_all(bind=ENGINE)
    with SessionTesting() as s:
        s.add(User(email=DEMO_EMAIL, username="demo", password_hash=hash_password(DEMO_PASSWORD), is_active=True))
        s.commit()


# Ensure schema exists even for modules that instantiate TestClient at import time
_reset_schema()


def _override_get_current_user():
    return User(id=0, email="pytest@example.com", username="pytest", password_hash="", is_active=True)


@pytest.fixture(autouse=True)
def _toggle_auth_override(request):
    """Bypass JWT for most API tests while allowing auth-specific suites to exercise it."""
    test_path = str(getattr(request.node, "fspath", ""))
    needs_real_auth = "test_auth_api.py" in test_path
    if needs_real_auth:
        app.dependency_overrides.pop(get_current_user, None)
        yield
        app.dependency_overrides.pop(get_current_user, None)
    else:
        app.dependency_overrides[get_current_user] = _override_get_current_user
        try:
            yield
        finally:
            app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture(autouse=True)
def reset_db():
    _reset_schema()
    yield


@pytest.fixture(scope="function")
def db(reset_db):
    session = SessionTesting()

    def _override_get_db():
        yield session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
def client(db):
    token = create_access("pytest@example.com")
    with TestClient(app, headers={"Authorization": f"Bearer {token}"}) as c:
        yield c


@pytest.fixture(scope="function")
def sample_client():
    """Client with storage unconfigured: get_db yields None, so reads come from the bundled sample CSV."""

    def _no_db():
        yield None

    app.dependency_overrides[get_db] = _no_db
    token = create_access("pytest@example.com")
    try:
        with TestClient(app, headers={"Authorization": f"Bearer {token}"}) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
def make_entry(db):
    def _make(value, category="Sales", source="Web", timestamp=None):
        entry = DataEntry(
            value=value,
            category=category,
            source=source,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    return _make
