import os

import pytest
from fastapi.testclient import TestClient
from dotenv import load_dotenv

# Load the test environment FIRST, before any chatform imports, so the
# module-level settings object is built from it.
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env.test"), override=True)

from chatform.main import app  # noqa: E402
from chatform.services.session_service import session_service  # noqa: E402


@pytest.fixture(autouse=True)
def clear_sessions():
    """Every test starts and ends with no live conversations."""
    session_service.close_all()
    yield
    session_service.close_all()


@pytest.fixture(scope="function")
def test_client():
    """
    Provides a TestClient for API integration tests.
    The app's lifespan (startup/shutdown events) is managed by the TestClient.
    """
    with TestClient(app) as client:
        yield client
