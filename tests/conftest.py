import json

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app


class MockResponse:
    """Stand-in for requests.Response with just what PayPalService reads."""

    def __init__(self, status_code, json_data=None, text=None):
        self.status_code = status_code
        self._json_data = json_data
        if text is not None:
            self.content = text.encode()
        else:
            self.content = json.dumps(json_data).encode() if json_data is not None else b""
        self.text = self.content.decode()

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON body")
        return self._json_data


@pytest.fixture
def paypal_response():
    return MockResponse


@pytest.fixture
def token():
    return MockResponse(200, {"access_token": "token_123", "token_type": "Bearer"})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        paypal_client_id="client_id",
        paypal_client_secret="client_secret",
        database_url=f"sqlite:///{tmp_path / 'relay.db'}",
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture
def store(client):
    return client.app.state.store
