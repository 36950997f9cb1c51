from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from rizz_codes.main import create_app
from rizz_codes.openrouter_client import OpenRouterClient
from rizz_codes.storage import MemStorage

OPENROUTER_TEST_URL = "https://openrouter.test/api/v1"


class TickingClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


class EnvKey:
    """Stand-in for the OPENROUTER_API_KEY environment lookup."""

    def __init__(self, value=None):
        self.value = value

    def __call__(self):
        return self.value or None


class FakeOpenRouter:
    """Records outbound requests and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.body = {
            "id": "gen-1",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": "Hi!"}, "finish_reason": "stop"}],
        }
        self.error = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def env_key():
    return EnvKey()


@pytest.fixture
def storage(clock, env_key):
    return MemStorage(clock=clock, env_api_key=env_key)


@pytest.fixture
def upstream():
    return FakeOpenRouter()


@pytest.fixture
def openrouter(upstream):
    return OpenRouterClient(
        base_url=OPENROUTER_TEST_URL,
        referer="http://localhost:5000",
        title="Rizz Codes",
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def app(storage, openrouter):
    return create_app(storage=storage, openrouter=openrouter)


@pytest.fixture
def api_client(app):
    with TestClient(app) as client:
        yield client
