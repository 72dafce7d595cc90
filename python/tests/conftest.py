"""Pytest configuration and fixtures for UpNext tests.

Test isolation strategy:
- Every test gets its own in-memory SQLite database (fresh engine + schema)
- db_session is a plain session on that database; services commit freely
- client is a TestClient whose get_db dependency yields the same session,
  so HTTP tests and direct service calls observe the same data
- Set DATABASE_URL to run against another database; the schema is then
  created and dropped around each test
"""

import os
import sys
from collections.abc import Generator
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("UPNEXT_ENV", "test")

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from upnext.api.deps import get_db
from upnext.app import add_request_id_middleware, create_app
from upnext.config import clear_settings_cache
from upnext.db.engine import create_db_engine
from upnext.db.models import Base
from upnext.db.session import create_session_factory


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create a database engine with the full schema for one test."""
    engine = create_db_engine(os.environ["DATABASE_URL"])
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    """Session factory bound to the per-test engine."""
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    """Provide a database session on the per-test database."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def app(db_session: Session):
    """FastAPI app whose get_db dependency yields the test session."""
    app = create_app()
    add_request_id_middleware(app, log_requests=False)

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client bound to the test session."""
    with TestClient(app) as client:
        yield client


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
