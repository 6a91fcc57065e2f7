"""Shared fixtures: credentials and an in-memory stand-in for aiohttp.ClientSession."""

from __future__ import annotations

import json
from typing import Any

import pytest

from pve_session import Credentials, ProxmoxClient


class FakeResponse:
    def __init__(self, status: int = 200, body: Any = b"", headers: dict | None = None, reason: str = "OK") -> None:
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.status = status
        self.reason = reason
        self.headers = headers or {"Content-Type": "application/json"}
        self.body = body
        self.url = ""

    async def read(self) -> bytes:
        return self.body

    async def text(self) -> str:
        return self.body.decode("utf-8")

    async def json(self, content_type: str | None = "application/json") -> Any:
        text = self.body.decode("utf-8").strip()
        if not text:
            return None
        return json.loads(text)


class _Call:
    """Async context manager returned by FakeSession.request/post."""

    def __init__(self, result: Any, url: str) -> None:
        self._result = result
        self._url = url

    async def __aenter__(self) -> FakeResponse:
        if isinstance(self._result, BaseException):
            raise self._result
        self._result.url = self._url
        return self._result

    async def __aexit__(self, *args: object) -> None:
        return None


class FakeSession:
    def __init__(self, transport: FakeTransport, kwargs: dict[str, Any]) -> None:
        self.transport = transport
        self.kwargs = kwargs
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> _Call:
        self.transport.calls.append({"session": self, "method": method, "url": url, **kwargs})
        if url.endswith("api2/json/access/ticket"):
            result = self.transport.login_response
        else:
            result = self.transport.api_response
        return _Call(result, url)

    def post(self, url: str, **kwargs: Any) -> _Call:
        return self.request("POST", url, **kwargs)

    async def __aenter__(self) -> FakeSession:
        return self

    async def __aexit__(self, *args: object) -> None:
        self.closed = True


class FakeTransport:
    """Callable used as ProxmoxClient(session_factory=...)."""

    def __init__(self) -> None:
        self.login_response: Any = FakeResponse(
            body={"data": {"ticket": "PVE:root@pam:4EEC61E2::sig/+=", "CSRFPreventionToken": "4EEC61E2:token"}}
        )
        self.api_response: Any = FakeResponse(body={"data": None})
        self.sessions: list[FakeSession] = []
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> FakeSession:
        session = FakeSession(self, kwargs)
        self.sessions.append(session)
        return session

    @property
    def login_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["url"].endswith("api2/json/access/ticket")]

    @property
    def api_calls(self) -> list[dict[str, Any]]:
        return [c for c in self.calls if not c["url"].endswith("api2/json/access/ticket")]


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(user="root", password="secret", realm="pam", base_url="10.0.0.1", port="8006")


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(credentials: Credentials, transport: FakeTransport) -> ProxmoxClient:
    return ProxmoxClient(credentials, session_factory=transport)
