# tests/conftest.py

import os

# Settings are read at import time; point them at SQLite before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["WEBHOOK_SECRET"] = "whsec_dGVzdHNlY3JldHRlc3RzZWNyZXR0ZXN0c2VjcmV0"

from datetime import date, timedelta

import pytest
from sqlalchemy.orm import sessionmaker
from starlette.testclient import TestClient

from app.api.deps import get_db
from app.main import app
from app.schemas.company import CompanyCreate
from app.schemas.resource import ResourceCreate
from app.schemas.user import UserCreate
from app.services.change_feed_service import ChangeFeedService
from app.services.company_service import CompanyService
from app.services.resource_service import ResourceService
from app.services.user_service import UserService
from src.database.connection import build_engine
from src.database.models import Base


@pytest.fixture(scope="function")
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def reset_change_feed():
    ChangeFeedService.reset()
    yield
    ChangeFeedService.reset()


@pytest.fixture
def make_company(db):
    """Create a synced user plus their company; returns the company."""
    counter = {"n": 0}

    def _make(company_name: str = None, email: str = None, phone: str = "+47 900 00 000", address: str = "Storgata 1, Oslo"):
        counter["n"] += 1
        user_id = f"user_{counter['n']}"
        UserService.create_user(db, UserCreate(id=user_id, email=f"{user_id}@bedrift.no"))
        return CompanyService.create_company(
            db,
            CompanyCreate(
                company_name=company_name or f"Firma {counter['n']} AS",
                email=email or f"post{counter['n']}@firma.no",
                phone=phone,
                address=address,
            ),
            user_id,
        )

    return _make


@pytest.fixture
def make_resource(db):
    def _make(company, competence: str = "Electrician", price: float = 500, price_type: str = "hourly",
              period_from: date = None, period_to: date = None, amount: int = 1):
        today = date.today()
        return ResourceService.create_resource(
            db,
            company.id,
            ResourceCreate(
                competence=competence,
                amount=amount,
                price=price,
                price_type=price_type,
                period_from=period_from or today,
                period_to=period_to or today + timedelta(days=30),
            ),
        )

    return _make


@pytest.fixture
def client(session_factory):
    """TestClient wired to the per-test SQLite database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
