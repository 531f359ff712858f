import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from todo_backend.config import Settings, get_settings
from todo_backend.context import SessionContext
from todo_backend.database import get_session
from todo_backend.main import app


@pytest.fixture
def settings() -> Settings:
    """Settings with the artificial latency switched off."""
    return Settings(database_url="sqlite://", latency_ms=0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ctx(settings) -> SessionContext:
    return SessionContext(settings)


@pytest.fixture
def client(engine, settings):
    def get_session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register, verify and log in a user; return its auth headers."""

    def _signup(email: str = "alice@example.com", password: str = "secret1", name: str = "Alice") -> dict:
        registered = client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert registered.status_code == 201
        code = registered.json()["verificationCode"]
        verified = client.post("/auth/verify-email", json={"code": code, "email": email})
        assert verified.status_code == 200
        logged_in = client.post("/auth/login", json={"email": email, "password": password})
        assert logged_in.status_code == 200
        return {"Authorization": f"Bearer {logged_in.json()['token']}"}

    return _signup


@pytest.fixture
def auth_client(client, signup):
    client.headers.update(signup())
    return client
