import pytest
from fastapi.testclient import TestClient

from bloomd.config import Settings
from bloomd.main import create_app


@pytest.fixture
def settings():
    return Settings(expected_elements=100_000, false_positive_rate=0.01)


@pytest.fixture
def client(settings):
    # entering the client runs the lifespan hook that allocates the filter
    with TestClient(create_app(settings)) as c:
        yield c
