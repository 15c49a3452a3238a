"""
Shared pytest fixtures.

The app is built through ``create_app`` with every external handle injected:
an in-memory SQLite database, a fake auth provider, a mocked AI service, a
payments service with test secrets and a connector runner over fakes.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

import govcontract.models  # noqa: F401
from govcontract.core.config import Settings
from govcontract.core.db import Database
from govcontract.main import create_app
from govcontract.models.profile import Profile, Role
from govcontract.services.accounts import setup_account
from govcontract.services.ai import ContractAI
from govcontract.services.connectors import ConnectorRunner
from govcontract.services.payments import PaymentService

from tests.fixtures.gov_fixtures import FakeAuthClient


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENV="test",
        DATABASE_URL="sqlite:///:memory:",
        REDIS_URL="redis://localhost:6379/15",
        STRIPE_SECRET_KEY="sk_test_123",
        STRIPE_WEBHOOK_SECRET="whsec_test",
        ADMIN_EMAILS="ops@govcontract.test",
    )


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine=engine)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def auth() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def ai() -> MagicMock:
    return MagicMock(spec=ContractAI)


@pytest.fixture
def connector_runner() -> ConnectorRunner:
    return ConnectorRunner({})


@pytest.fixture
def app(settings, database, auth, ai, connector_runner):
    return create_app(
        settings=settings,
        database=database,
        auth=auth,
        ai=ai,
        payments=PaymentService(settings),
        connectors=connector_runner,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def owner(auth, db_session):
    """A READY user: identity + profile + company."""
    identity = auth.add("tok-owner", "jane@acme.test")
    profile, company = setup_account(db_session, identity, "Jane Doe", "Acme Corp")
    return identity, profile, company


@pytest.fixture
def member(auth, db_session, owner):
    """A team member attached to the owner's company."""
    _, _, company = owner
    identity = auth.add("tok-member", "sam@acme.test")
    profile = Profile(
        id=identity.id,
        email=identity.email,
        full_name="Sam Lee",
        role=Role.TEAM_MEMBER,
        company_id=company.id,
        email_verified=True,
        onboarding_completed=True,
    )
    db_session.add(profile)
    db_session.commit()
    return identity, profile, company
