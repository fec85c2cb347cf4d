"""
Pytest configuration and fixtures.

Provides fixtures for:
- Database session (in-memory SQLite, rebuilt per test)
- Test client
- Users, a tenant and members with each role
- Auth headers
"""
import os

# Settings are read at import time, so the environment must be set first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from isoqms.database import Base, SessionLocal, engine
from isoqms.main import app
from isoqms import models  # noqa: F401
from isoqms.core.plan_limits import seed_default_plans
from isoqms.core.security import create_access_token, get_password_hash
from isoqms.core.tenancy import RequestContext, TenantScopedSession
from isoqms.models.membership import OrgRole, TenantMember
from isoqms.models.tenant import Tenant
from isoqms.models.user import User
from isoqms.services.tenants import create_tenant

TEST_PASSWORD = "correct-horse-battery"

# One hash for every fixture user; bcrypt is slow
_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Fresh schema with the default plans seeded."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_default_plans(session)

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """
    Test client on the same in-memory database.

    Requests get their own sessions through get_db, as in production; call
    db.expire_all() before reading state a request has changed.
    """
    return TestClient(app)


def _make_user(db: Session, email: str, name: str = "Test User", is_super_admin: bool = False) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=_PASSWORD_HASH,
        is_active=True,
        is_super_admin=is_super_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def _add_member(db: Session, tenant: Tenant, user: User, role: OrgRole) -> TenantMember:
    member = TenantMember(tenant_id=tenant.id, user_id=user.id, role=role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def _context_for(db: Session, tenant: Tenant, user: User, role: OrgRole = OrgRole.TENANT_ADMIN) -> RequestContext:
    """RequestContext for service-level tests, bypassing HTTP."""
    return RequestContext(
        tenant_id=tenant.id,
        user_id=user.id,
        role=role,
        db=TenantScopedSession(db, tenant.id),
        tenant_slug=tenant.slug,
    )


@pytest.fixture
def admin_user(db: Session) -> User:
    return _make_user(db, "admin@acme.com.br", "Ana Admin")


@pytest.fixture
def tenant(db: Session, admin_user: User) -> Tenant:
    """Acme tenant on the professional trial, admin_user is its tenant_admin."""
    return create_tenant(db, admin_user, "Acme Consultoria")


@pytest.fixture
def admin_headers(admin_user: User) -> Dict[str, str]:
    return auth_headers(admin_user)


@pytest.fixture
def other_tenant(db: Session) -> Tenant:
    owner = _make_user(db, "owner@globex.com", "Gus Globex")
    return create_tenant(db, owner, "Globex Qualidade")


@pytest.fixture
def outsider(db: Session) -> User:
    """Authenticated user with no membership anywhere."""
    return _make_user(db, "outsider@example.com", "Otto Outsider")


@pytest.fixture
def super_admin(db: Session) -> User:
    return _make_user(db, "root@platform.io", "Sam Super", is_super_admin=True)


@pytest.fixture
def member_headers(db: Session, tenant: Tenant):
    """Factory: headers for a new member of tenant with the given role."""
    created = {}

    def _factory(role: OrgRole) -> Dict[str, str]:
        role = OrgRole(role)
        user = _make_user(db, f"{role.value}@acme.com.br", role.value.replace("_", " ").title())
        _add_member(db, tenant, user, role)
        created[role] = user
        return auth_headers(user)

    _factory.users = created
    return _factory


@pytest.fixture
def project(client: TestClient, tenant: Tenant, admin_headers) -> dict:
    response = client.post(
        f"/api/v1/tenants/{tenant.slug}/projects",
        json={"name": "ISO 9001 Implementation", "start_date": "2026-01-05"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def make_user(db: Session):
    """Factory: make_user(email, name=..., is_super_admin=False) -> User."""
    def _factory(email: str, name: str = "Test User", is_super_admin: bool = False) -> User:
        return _make_user(db, email, name, is_super_admin)
    return _factory


@pytest.fixture
def add_member(db: Session):
    """Factory: add_member(tenant, user, role) -> TenantMember."""
    def _factory(tenant: Tenant, user: User, role: OrgRole) -> TenantMember:
        return _add_member(db, tenant, user, role)
    return _factory


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def context_for(db: Session):
    """Factory: context_for(tenant, user, role) -> RequestContext."""
    def _factory(tenant: Tenant, user: User, role: OrgRole = OrgRole.TENANT_ADMIN) -> RequestContext:
        return _context_for(db, tenant, user, role)
    return _factory


@pytest.fixture
def password() -> str:
    """Plain-text password of every fixture user."""
    return TEST_PASSWORD
