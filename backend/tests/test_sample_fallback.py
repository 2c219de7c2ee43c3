import io

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from _helpers import unwrap
from datadash.core.security import create_access
from datadash.db.session import UNREACHABLE_MESSAGE, get_db
from datadash.main import app


@pytest.fixture()
def unreachable_client(tmp_path):
    """Storage is configured but its file lives in a directory that does not exist."""
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'entries.db'}")
    BrokenSession = sessionmaker(bind=engine)

    def _broken_db():
        session = BrokenSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _broken_db
    token = create_access("pytest@example.com")
    try:
        with TestClient(app, headers={"Authorization": f"Bearer {token}"}) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_db, None)
        engine.dispose()


def test_reads_come_from_bundled_sample(sample_client):
    r = sample_client.get("/api/data", params={"limit": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["meta"]["storage"] == "sample"
    data = body["data"]
    assert data["pagination"]["total_count"] == 42
    assert len(data["entries"]) == 5
    assert data["entries"][0]["timestamp"] >= data["entries"][-1]["timestamp"]
    assert data["analytics"]["total_entries"] == 42
    assert len(data["analytics"]["forecast"]) == 7


def test_sample_filters_behave_like_database(sample_client):
    data = unwrap(sample_client.get("/api/data", params={"category": "Marketing"}).json())
    assert data["entries"]
    assert {e["category"] for e in data["entries"]} == {"Marketing"}


def test_sample_export(sample_client):
    r = sample_client.get("/api/data/export")
    assert r.status_code == 200
    assert len(r.text.strip().splitlines()) == 43


def test_writes_are_unavailable(sample_client):
    r = sample_client.post("/api/data", json={"value": 1, "category": "a", "source": "b"})
    assert r.status_code == 503
    assert r.json()["error"]["code"] == "NOT_CONFIGURED"

    assert sample_client.put("/api/data", json={"id": 1, "value": 2}).status_code == 503
    assert sample_client.delete("/api/data", params={"id": 1}).status_code == 503
    assert sample_client.post("/api/data/bulk-delete", json={"ids": [1]}).status_code == 503

    files = {"file": ("x.csv", io.BytesIO(b"value,category,source\n1,a,b\n"), "text/csv")}
    assert sample_client.post("/api/data/import", files=files).status_code == 503


def test_login_needs_storage(sample_client):
    r = sample_client.post("/api/auth/login", json={"email": "demo@example.com", "password": "Demo123!"})
    assert r.status_code == 503


def test_unreachable_database_serves_sample_reads(unreachable_client):
    r = unreachable_client.get("/api/data")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["meta"]["storage"] == "sample"
    assert body["data"]["pagination"]["total_count"] == 42

    r = unreachable_client.get("/api/data/export", params={"format": "json"})
    assert r.status_code == 200
    assert len(r.json()) == 42


def test_unreachable_database_refuses_writes(unreachable_client):
    r = unreachable_client.post("/api/data", json={"value": 1, "category": "a", "source": "b"})
    assert r.status_code == 503
    err = r.json()["error"]
    assert err["code"] == "NOT_CONFIGURED"
    assert err["message"] == UNREACHABLE_MESSAGE

    files = {"file": ("x.csv", io.BytesIO(b"value,category,source\n1,a,b\n"), "text/csv")}
    assert unreachable_client.post("/api/data/import", files=files).status_code == 503

    r = unreachable_client.post("/api/auth/login", json={"email": "demo@example.com", "password": "Demo123!"})
    assert r.status_code == 503
