"""
Shared Test Fixtures for the Inputs Client Tests

This file contains:
- Settings that never touch the environment
- A fake recognition service on top of httpx.MockTransport
- Test data generators
"""
import inspect
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from inputs_client.config import Settings
from inputs_client.inputs import InputsClient

TEST_ENDPOINT = "https://api.test"


# ═══════════════════════════════════════════════════════════════
# FAKE SERVICE
# ═══════════════════════════════════════════════════════════════

class FakeService:
    """
    Records every request and answers from registered routes.

    A route handler receives the httpx.Request and returns an httpx.Response
    (or a coroutine resolving to one, to simulate slow requests).
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], Callable] = {}

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        handler: Optional[Callable] = None,
    ) -> None:
        if handler is None:
            body = {} if json is None else json

            def handler(request, _status=status, _body=body):
                return httpx.Response(_status, json=_body)

        self.routes[(method, path)] = handler

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"status": "no route"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


def request_json(request: httpx.Request) -> Any:
    """Decoded JSON body of a captured request."""
    return json.loads(request.content)


def echo_records(request: httpx.Request) -> httpx.Response:
    """Answer a create request with the records it sent."""
    return httpx.Response(200, json={"records": request_json(request)["records"]})


# ═══════════════════════════════════════════════════════════════
# CLIENT FIXTURES
# ═══════════════════════════════════════════════════════════════

@pytest.fixture
def settings() -> Settings:
    """API-key settings with instant retries."""
    return Settings(
        _env_file=None,
        api_endpoint=TEST_ENDPOINT,
        api_key="test-key",
        transport_retries=1,
        retry_wait_min=0,
        retry_wait_max=0,
    )


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService()


@pytest.fixture
def http_client(fake_service) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=TEST_ENDPOINT, transport=httpx.MockTransport(fake_service))


@pytest.fixture
def client(settings, http_client) -> InputsClient:
    """InputsClient wired to the fake service."""
    return InputsClient(settings=settings, http_client=http_client)


# ═══════════════════════════════════════════════════════════════
# TEST DATA FIXTURES
# ═══════════════════════════════════════════════════════════════

def make_records(count: int, prefix: str = "rec") -> List[Dict[str, Any]]:
    """Distinguishable records with image URLs."""
    return [
        {"id": f"{prefix}-{i}", "url": f"https://images.test/{prefix}-{i}.jpg"}
        for i in range(count)
    ]


@pytest.fixture
def sample_record() -> Dict[str, Any]:
    return {
        "id": "input-1",
        "url": "https://images.test/dog.jpg",
        "crop": [10, 20, 80, 90],
        "concepts": [{"id": "dog"}, {"id": "cat", "value": False}],
    }


@pytest.fixture
def sample_hit() -> Dict[str, Any]:
    """Search hit as returned by the service."""
    return {
        "score": 0.87,
        "input": {
            "id": "x",
            "data": {
                "image": {"url": "https://images.test/x.jpg"},
                "concepts": [{"id": "dog", "name": "dog", "value": 1}],
            },
            "created_at": "2026-01-28T00:00:00Z",
        },
    }
