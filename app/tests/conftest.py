import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SUBMISSION_RATE_LIMIT"] = "1000/minute"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE"] = ""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import hash_password, make_tokens
from app.models.user import User, UserRole

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_EMAIL = "admin@example.com"
CITIZEN_EMAIL = "citizen@example.com"
PASSWORD = "PasswordExample"


@pytest.fixture
def session() -> Generator[Session, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _create_user(session: Session, email: str, role: UserRole, is_active: bool = True) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(PASSWORD),
        name=email.split("@")[0],
        role=role,
        is_active=is_active,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def admin_user(session: Session) -> User:
    return _create_user(session, ADMIN_EMAIL, UserRole.admin)


@pytest.fixture
def citizen_user(session: Session) -> User:
    return _create_user(session, CITIZEN_EMAIL, UserRole.citizen)


@pytest.fixture
def inactive_admin(session: Session) -> User:
    return _create_user(session, "former@example.com", UserRole.admin, is_active=False)


def bearer(user: User) -> dict:
    tokens = make_tokens(user.email, user.role.value)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return bearer(admin_user)


@pytest.fixture
def citizen_headers(citizen_user: User) -> dict:
    return bearer(citizen_user)
