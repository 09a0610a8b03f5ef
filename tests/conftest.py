"""Shared fixtures: a fresh in-memory database per test and an API client."""
import os

# Must be set before any project module is imported
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

import main
import models
from database import Base, SessionLocal, engine
from security import issue_token

TEST_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    main.init_db()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    """Insert a user directly; the password hash is a placeholder."""
    def _make(username, role=models.ROLE_USER):
        user = models.UserModel(
            username=username,
            email=f"{username}@example.com",
            password_hash="not-a-hash",
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin(make_user):
    return make_user("alice", role=models.ROLE_ADMIN)


@pytest.fixture
def member(make_user):
    return make_user("bob")


def auth_headers(user):
    token, _ = issue_token(user.id, user.role, TEST_SECRET)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return auth_headers
