import pytest
from fastapi.testclient import TestClient

from tests.fixtures.fake_embedder import HashEmbedder
from vault_index.main import app


@pytest.fixture()
def embedder() -> HashEmbedder:
    """Provide a deterministic in-process embedder."""
    return HashEmbedder()


@pytest.fixture()
def client() -> TestClient:
    """Provide a FastAPI test client."""
    return TestClient(app)
