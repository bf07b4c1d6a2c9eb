import os

# Must be set before consultation_scheduler.core.config is imported
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from consultation_scheduler.core.security import create_access_token  # noqa: E402
from consultation_scheduler.main import app  # noqa: E402

@pytest.fixture
def client():
    # Entering the client runs startup, which builds a fresh in-memory engine
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def auth_headers():
    """Build bearer headers for a caller identity."""
    def _headers(identity: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}
    return _headers
