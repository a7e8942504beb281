"""Shared test fixtures for Planboard backend tests."""

import os
import sys

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ANTHROPIC_API_KEY", "test")

from app.config import Settings
from app.db.database import create_db_and_tables, create_db_engine
from app.llm.mock_layer import MockLLMLayer
from app.main import create_app
from fastapi.testclient import TestClient

TEST_SECRET = "test-secret-key"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        anthropic_api_key="test",
        secret_key=TEST_SECRET,
        database_url="sqlite://",
        environment="development",
    )


@pytest.fixture
def mock_llm() -> MockLLMLayer:
    return MockLLMLayer()


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so concurrent requests get their own connections."""
    eng = create_db_engine(f"sqlite:///{tmp_path / 'planboard.db'}")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def app(test_settings, mock_llm, engine):
    return create_app(test_settings, llm=mock_llm, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register a user and return (user payload, auth headers)."""

    def _register(name: str = "Ada Lovelace", email: str = "ada@example.com", password: str = "secret1"):
        resp = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data, {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def make_project(client):
    """Create a project as the given caller and return its payload."""

    def _make_project(headers: dict, name: str = "Launch", **fields):
        resp = client.post("/api/projects", json={"name": name, **fields}, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make_project


@pytest.fixture
def make_task(client):
    """Create a task in a project and return its payload."""

    def _make_task(headers: dict, project_id: str, title: str = "Write plan", **fields):
        resp = client.post("/api/tasks", json={"title": title, "project": project_id, **fields}, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _make_task
