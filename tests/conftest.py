import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./agencydesk-test.db")

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from agencydesk.database import get_db
from agencydesk.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from agencydesk.models import Base, Admin, Client, Role, TeamMember, User
from agencydesk.models.team_member import TeamMemberStatus
from agencydesk.core.principal import OwnerPrincipal, TeamMemberPrincipal
# Import FastAPI app AFTER model imports
from agencydesk.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_test_token(sub: int | str, account_type: str = "user", expired: bool = False) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        sub: Account id to embed in 'sub' claim
        account_type: 'user' or 'admin'
        expired: If True, create expired token

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": str(sub), "type": account_type, "exp": exp, "iat": datetime.now(UTC)}

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def bearer(sub: int | str, account_type: str = "user") -> dict:
    """Authorization headers for an account"""
    return {"Authorization": f"Bearer {create_test_token(sub, account_type)}"}


def grant(*keys: str) -> dict:
    """Permission matrix granting ``keys``, grouped the way the catalog groups them"""
    matrix: dict[str, dict[str, bool]] = {}
    for key in keys:
        group = key.split("_", 1)[1]
        matrix.setdefault(group, {})[key] = True
    return matrix


def create_owner(db, email: str, name: str | None = None) -> User:
    owner = User(email=email, name=name, is_owner=True)
    db.add(owner)
    db.commit()
    db.refresh(owner)
    return owner


def create_role(db, owner_id: int | None, permissions: dict, name: str = "Manager", **kwargs) -> Role:
    role = Role(name=name, permissions=permissions, created_by=owner_id, **kwargs)
    db.add(role)
    db.commit()
    db.refresh(role)
    return role


def create_member(
    db,
    owner_id: int,
    role_id: int | None,
    email: str,
    status: TeamMemberStatus = TeamMemberStatus.ACTIVE,
) -> tuple[TeamMember, User]:
    """Team member plus the login account it authenticates with"""
    login = db.query(User).filter(User.email == email).first()
    if login is None:
        login = User(email=email, name=email.split("@")[0], is_owner=False)
        db.add(login)
    member = TeamMember(name=email.split("@")[0], email=email, managed_by=owner_id, role_id=role_id, status=status)
    db.add(member)
    db.commit()
    db.refresh(member)
    db.refresh(login)
    return member, login


def create_client(db, owner_id: int | None, business_name: str = "Acme Brands", **kwargs) -> Client:
    record = Client(business_name=business_name, added_by=owner_id, **kwargs)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def member_principal(member: TeamMember, user_id: int = 0) -> TeamMemberPrincipal:
    return TeamMemberPrincipal(
        id=member.id,
        user_id=user_id,
        managed_by=member.managed_by,
        role_id=member.role_id,
        status=member.status,
    )


@pytest.fixture
def admin(db_session):
    account = Admin(email="root@agencydesk.test", name="Root")
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def owner_a(db_session):
    return create_owner(db_session, "owner-a@agency.test", "Owner A")


@pytest.fixture
def owner_b(db_session):
    return create_owner(db_session, "owner-b@agency.test", "Owner B")


@pytest.fixture
def admin_headers(admin):
    return bearer(admin.id, "admin")


@pytest.fixture
def owner_a_headers(owner_a):
    return bearer(owner_a.id)


@pytest.fixture
def owner_b_headers(owner_b):
    return bearer(owner_b.id)


@pytest.fixture
def principal_a(owner_a):
    return OwnerPrincipal(id=owner_a.id)


@pytest.fixture
def principal_b(owner_b):
    return OwnerPrincipal(id=owner_b.id)
