# tests/conftest.py

import os
import tempfile

# Settings are read at import time, so the test environment has to be in
# place before anything from campus_attendance is imported.
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "campus_attendance_test.db")
os.environ["ENV"] = "local"
os.environ["DATABASE_URL_LOCAL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["QR_SECRET"] = "test-qr-secret"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["SEND_CONFIRMATION_EMAILS"] = "false"
os.environ.pop("USER_SERVICE_URL", None)
os.environ.pop("RESEND_API_KEY", None)

import pytest
from starlette.testclient import TestClient
from sqlalchemy_utils import create_database, database_exists, drop_database
from unittest.mock import MagicMock

from campus_attendance.main import app
from campus_attendance.db.session import SessionLocal, engine, get_db
from campus_attendance.models import Base


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    if database_exists(engine.url):
        drop_database(engine.url)
    create_database(engine.url)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    drop_database(engine.url)


@pytest.fixture(autouse=True)
def clean_tables():
    yield
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture(scope="function")
def db():
    session = SessionLocal()
    yield session
    session.close()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client():
    """
    TestClient where the database session is a MagicMock and the services
    are expected to be monkeypatched. For INTEGRATION tests of the routes.
    """
    app.dependency_overrides[get_db] = lambda: MagicMock()

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_client_e2e():
    """TestClient backed by the live test database. For E2E tests."""
    with TestClient(app) as client:
        yield client
