# tests/conftest.py
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flexstore.api.rate_limit import InMemoryRateLimiter, get_rate_limiter
from flexstore.auth.permissions import Role
from flexstore.auth.rbac import Principal
from flexstore.auth.tokens import create_access_token
from flexstore.config import Settings, get_settings
from flexstore.db.database import Base, get_db
from flexstore.main import app

# Import models so metadata knows about all tables
import flexstore.models  # noqa: F401
from flexstore.models.tenant import Tenant
from flexstore.models.user import User


@pytest.fixture(scope="session")
def engine():
    """Create an in-memory SQLite database shared across tests."""
    # StaticPool: one connection, so every session sees the same memory DB
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def clean_db(engine):
    """Reset all tables before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


@pytest.fixture()
def db(engine):
    """Return a new SQLAlchemy session for each test."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return Settings(jwt_secret_key="test-secret-key", rate_limit_enabled=False)


@pytest.fixture
def make_user(db):
    """Create a user (and a fresh tenant unless one is given)."""
    def _make(role=Role.ADMIN.value, tenant_id=None, username=None) -> User:
        if tenant_id is None:
            tenant = Tenant(name=f"workspace-{uuid.uuid4().hex[:8]}")
            db.add(tenant)
            db.flush()
            tenant_id = tenant.id

        username = username or f"user-{uuid.uuid4().hex[:8]}"
        user = User(
            tenant_id=tenant_id,
            username=username,
            email=f"{username}@example.com",
            # Not a usable hash; login tests go through signup
            password_hash="x",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def principal_for(user: User) -> Principal:
    return Principal(user_id=user.id, tenant_id=user.tenant_id, role=user.role)


@pytest.fixture
def admin(make_user):
    return principal_for(make_user(Role.ADMIN.value))


@pytest.fixture
def editor(make_user, admin):
    return principal_for(make_user(Role.EDITOR.value, tenant_id=admin.tenant_id))


@pytest.fixture
def viewer(make_user, admin):
    return principal_for(make_user(Role.VIEWER.value, tenant_id=admin.tenant_id))


@pytest.fixture
def other_admin(make_user):
    """Admin of a second, unrelated tenant."""
    return principal_for(make_user(Role.ADMIN.value))


@pytest.fixture
def auth_headers(settings):
    def _headers(principal: Principal) -> dict:
        token = create_access_token(
            user_id=principal.user_id,
            tenant_id=principal.tenant_id,
            role=principal.role,
            settings=settings,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def rate_limiter():
    return InMemoryRateLimiter()


@pytest.fixture
def client(db, settings, rate_limiter):
    """FastAPI test client that routes all DB deps to the test session."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def as_principal():
    return principal_for
