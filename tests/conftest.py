"""
Shared fixtures: an in-memory SQLite database per test, a TestClient wired
to it, and helpers for registering users and creating content.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import postboard.models  # noqa: F401
from postboard.database import Base, enable_sqlite_foreign_keys, get_db
from postboard.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Enforce foreign keys the way Postgres would
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client):
    """Register a user through the API; returns {"token", "user"}"""
    def _register(name="Jane", email="jane@x.com", password="secret1"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        body = response.json()
        return {"token": body["token"], "user": body["data"]}
    return _register


@pytest.fixture
def jane(register):
    return register()


@pytest.fixture
def bob(register):
    return register(name="Bob", email="bob@x.com", password="secret2")


@pytest.fixture
def category(client):
    response = client.post("/api/categories", json={"name": "Technology", "description": "Tech posts"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def make_post(client, category):
    """Create a post through the API as the given user"""
    def _make_post(owner, title="Test Post", content="This is test content", published=False, **extra):
        payload = {
            "title": title,
            "content": content,
            "category": category["id"],
            "isPublished": published,
            **extra,
        }
        response = client.post("/api/posts", json=payload, headers=auth(owner["token"]))
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _make_post
