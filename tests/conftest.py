import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from timehub.config import Settings
from timehub.database import Base, get_db
from timehub.main import app
from timehub.models import TimeEntry  # noqa: F401  registers the table on Base.metadata
from timehub.providers.registry import build_registry

# One in-memory database shared by every session of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db() -> Session:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Session:
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        toggl_api_token="toggl-token",
        tempo_api_token="tempo-token",
        jira_base_url="https://example.atlassian.net",
        cache_dir=str(tmp_path),
    )


@pytest.fixture
def registry(test_settings, session_factory):
    return build_registry(test_settings, session_factory)


@pytest.fixture
def client(registry) -> TestClient:
    previous = app.state.registry
    app.state.registry = registry
    yield TestClient(app)
    app.state.registry = previous
