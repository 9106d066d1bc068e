"""Shared fixtures: isolated in-memory database, seeded demo data, API client."""
import json
import os
import random

# Point the app at a throwaway database before any upm module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEMO_DATA"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

# Import all models so SQLAlchemy mapper relationships resolve correctly
import upm.models.person  # noqa: F401, E402
import upm.models.record  # noqa: F401, E402
import upm.models.billing  # noqa: F401, E402
import upm.models.audit  # noqa: F401, E402
from upm.models.base import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from upm.seed_demo import seed_demo_data  # noqa: E402
from upm.services.insurance import InsuranceResponse, MockInsuranceGateway, get_insurance_gateway  # noqa: E402


class FixedInsuranceGateway:
    """Insurer stub with a preset answer; records every claim it receives."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.claims = []

    async def submit(self, endpoint, claim):
        self.claims.append((endpoint, claim))
        return InsuranceResponse(
            success=self.accept,
            status="accepted" if self.accept else "rejected",
            message="Claim submitted successfully" if self.accept else "Claim rejected: Invalid claim format",
            submission_id=f"TEST-{len(self.claims)}",
        )


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def seeded_db(db):
    seed_demo_data(db)
    return db


@pytest.fixture()
def gateway():
    return FixedInsuranceGateway(accept=True)


@pytest.fixture()
def client(session_factory, seeded_db, gateway):
    from upm.api.insurance import get_mock_insurer
    from upm.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_insurance_gateway] = lambda: gateway
    app.dependency_overrides[get_mock_insurer] = lambda: MockInsuranceGateway(
        rng=random.Random(7), min_delay=0, max_delay=0
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def user_headers(username: str, role: str) -> dict:
    return {"X-User-Data": json.dumps({"username": username, "role": role})}


@pytest.fixture()
def physician_headers():
    return user_headers("dr.smith", "physician")


@pytest.fixture()
def patient_headers():
    return user_headers("john.doe", "patient")


@pytest.fixture()
def nurse_headers():
    return user_headers("nurse.jane", "nurse")


@pytest.fixture()
def admin_headers():
    return user_headers("admin", "admin")
