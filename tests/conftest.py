"""
Shared pytest fixtures — in‑memory SQLite + FastAPI TestClient.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.client import TrackerClient
from app.database import Base, get_db
from app.models import CustomerModel, DeclarationModel  # noqa: F401  — register models
from app.main import app

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def api(client):
    """TrackerClient talking to the app through the TestClient transport."""
    return TrackerClient(http=TestClient(app, base_url="http://testserver/api"))


@pytest.fixture()
def make_customer(client):
    def _make(name="Acme", tax_no="1234", ledger_type="İşletme"):
        resp = client.post(
            "/api/customers",
            json={"name": name, "tax_no": tax_no, "ledger_type": ledger_type},
        )
        assert resp.status_code == 201
        return resp.json()["id"]

    return _make


@pytest.fixture()
def make_declaration(client):
    def _make(customer_id, type="KDV", month=1, year=2024, **extra):
        resp = client.post(
            "/api/declarations",
            json={"customer_id": customer_id, "type": type, "month": month, "year": year, **extra},
        )
        assert resp.status_code == 201
        return resp.json()["id"]

    return _make
