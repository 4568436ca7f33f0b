from __future__ import annotations

import copy
import time
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from starlette.testclient import TestClient

from skillviewer.core.dependencies import get_api_client
from skillviewer.core.errors import ApiResponseError
from skillviewer.main import app
from skillviewer.services.api_client import ApiClient, api_client_factory

TEST_SECRET = "test-secret"
TEST_BASE_URL = "https://api.example.test"


def _make_token(
    *,
    sub: str = "1",
    email: str = "admin@example.com",
    role: str = "ADMIN",
    expired: bool = False,
) -> str:
    now = int(time.time())
    claims = {
        "sub": sub,
        "email": email,
        "role": role,
        "exp": now - 3600 if expired else now + 3600,
        "iat": now - 60,
    }
    return jwt.encode(claims, TEST_SECRET, algorithm="HS256")


class Replies:
    """Successive answers for one route; the last one repeats."""

    def __init__(self, *items: Any) -> None:
        self.items = list(items)

    def next(self) -> Any:
        if len(self.items) > 1:
            return self.items.pop(0)
        return self.items[0]


class FakeApiClient(ApiClient):
    """ApiClient whose transport is a route table keyed by (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None) -> None:
        super().__init__(TEST_BASE_URL)
        self.routes = routes or {}
        self.calls: list[tuple[str, str, Any, dict[str, Any] | None]] = []

    def calls_to(self, method: str, path: str) -> list[tuple[str, str, Any, dict[str, Any] | None]]:
        return [c for c in self.calls if c[0] == method and c[1] == path]

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        fallback: str = "通信中にエラーが発生しました",
        auth: bool = True,
    ) -> Any:
        self.calls.append((method, path, json_body, params))
        if (method, path) not in self.routes:
            raise ApiResponseError(fallback, 404, {"error": "Not found"})
        reply = self.routes[(method, path)]
        if isinstance(reply, Replies):
            reply = reply.next()
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(json_body, params)
        return copy.deepcopy(reply)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_api_client_factory():
    yield
    api_client_factory.initialized = False
    api_client_factory.base_url = ""


@pytest.fixture
def fake_api():
    def _build(routes: dict[tuple[str, str], Any] | None = None) -> FakeApiClient:
        return FakeApiClient(routes)

    return _build


@pytest.fixture
def replies():
    """Route value answering each call with the next of the given results."""
    return Replies


@pytest.fixture
def make_token():
    return _make_token


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {_make_token()}"}


@pytest.fixture
def api_backed_client(auth_headers):
    """TestClient whose remote API calls are answered by a FakeApiClient."""
    fake = FakeApiClient()
    app.dependency_overrides[get_api_client] = lambda: fake
    with TestClient(app, headers=auth_headers) as c:
        c.fake = fake
        yield c
    app.dependency_overrides.clear()
