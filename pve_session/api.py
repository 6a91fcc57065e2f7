from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

import aiohttp
from yarl import URL

from .const import (
    AUTHENTICATION_PATH,
    CONF_CONNECT_TIMEOUT,
    CONF_REQUEST_TIMEOUT,
    CONF_VERIFY_SSL,
    CSRF_PREVENTION_TOKEN_HEADER,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_VERIFY_SSL,
    HTTP_METHOD_ERROR,
    PVE_AUTH_COOKIE,
)
from .credentials import Credentials, validate_options
from .diagnostics import mask_user
from .errors import ContractViolation, ProxmoxAuthenticationError, ProxmoxTransportError
from .session import SessionTicket, TicketCache, parse_login_response

_LOGGER = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


def build_url(base_url: str, port: str | int, path: str) -> str:
    return f"https://{base_url}:{port}/{path.lstrip('/')}"


def format_cookie(key: str, value: str) -> str:
    return f"{key}={value}"


def _coerce_method(method: HttpMethod | str) -> HttpMethod:
    if isinstance(method, HttpMethod):
        return method
    if isinstance(method, str):
        try:
            return HttpMethod(method.upper())
        except ValueError:
            pass
    raise ContractViolation(HTTP_METHOD_ERROR)


def _encode_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def encode_payload(payload: Any) -> dict[str, str] | list[tuple[str, str]] | None:
    """Flatten a payload into form/query pairs.

    Accepts a mapping, a dataclass, or any object with a ``to_form()`` method.
    None values are dropped, booleans become 1/0, list values repeat the key.
    """
    if payload is None:
        return None
    if hasattr(payload, "to_form"):
        payload = payload.to_form()
    elif dataclasses.is_dataclass(payload) and not isinstance(payload, type):
        payload = dataclasses.asdict(payload)
    if not isinstance(payload, Mapping):
        raise TypeError(f"payload must be a mapping, got {type(payload).__name__}")

    pairs: list[tuple[str, str]] = []
    repeated = False
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            repeated = True
            pairs.extend((str(key), _encode_value(v)) for v in value if v is not None)
        else:
            pairs.append((str(key), _encode_value(value)))

    return pairs if repeated else dict(pairs)


@dataclass
class ProxmoxResponse:
    """Undecoded HTTP response handed back to the caller."""

    status: int
    reason: str | None
    headers: Mapping[str, str]
    body: bytes
    url: str

    @property
    def ok(self) -> bool:
        return self.status < 400

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None

    @property
    def data(self) -> Any:
        """The ``data`` member of the API's JSON envelope."""
        payload = self.json()
        if isinstance(payload, dict):
            return payload.get("data")
        return None


class ProxmoxClient:
    """Ticket-authenticated client for the Proxmox VE REST API.

    Every request logs in first (POST api2/json/access/ticket), then sends the
    call with the PVEAuthCookie cookie and CSRFPreventionToken header. Pass a
    TicketCache to reuse tickets until they expire.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        verify_ssl: bool = DEFAULT_VERIFY_SSL,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        ticket_cache: TicketCache | None = None,
        session_factory: Callable[..., aiohttp.ClientSession] = aiohttp.ClientSession,
    ) -> None:
        credentials.validate()
        options = validate_options(
            {
                CONF_VERIFY_SSL: verify_ssl,
                CONF_CONNECT_TIMEOUT: connect_timeout,
                CONF_REQUEST_TIMEOUT: request_timeout,
            }
        )
        self.credentials = credentials
        self.verify_ssl: bool = options[CONF_VERIFY_SSL]
        self.connect_timeout: float = options[CONF_CONNECT_TIMEOUT]
        self.request_timeout: float = options[CONF_REQUEST_TIMEOUT]
        self.ticket_cache = ticket_cache
        self._session_factory = session_factory

    def __repr__(self) -> str:
        return f"<ProxmoxClient {mask_user(self.credentials.username)} {self.origin}>"

    @property
    def origin(self) -> str:
        return f"https://{self.credentials.base_url}:{self.credentials.port}"

    def url(self, path: str) -> str:
        return build_url(self.credentials.base_url, self.credentials.port, path)

    @property
    def _cache_key(self) -> str:
        return f"{self.credentials.username}@{self.credentials.base_url}:{self.credentials.port}"

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.request_timeout, connect=self.connect_timeout)

    async def login(self) -> SessionTicket:
        """Request a fresh ticket and CSRF token."""
        url = self.url(AUTHENTICATION_PATH)
        form = {"username": self.credentials.username, "password": self.credentials.password}

        _LOGGER.debug("Requesting ticket for %s at %s", mask_user(self.credentials.username), self.origin)
        try:
            async with self._session_factory(timeout=self._timeout()) as session:
                async with session.post(url, data=form, ssl=self.verify_ssl) as resp:
                    text = await resp.text()
                    if resp.status >= 400:
                        raise ProxmoxAuthenticationError(f"HTTP {resp.status} calling {AUTHENTICATION_PATH}: {text}")
                    payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProxmoxAuthenticationError(f"login to {self.origin} failed: {e!r}") from e
        except ValueError as e:
            raise ProxmoxAuthenticationError(f"login response is not valid JSON: {e}") from e

        return parse_login_response(payload)

    async def _ticket(self) -> SessionTicket:
        if self.ticket_cache is None:
            return await self.login()
        return await self.ticket_cache.get_or_login(self._cache_key, self.login)

    def _authenticated_session(self, ticket: SessionTicket) -> aiohttp.ClientSession:
        jar = aiohttp.CookieJar(unsafe=True, quote_cookie=False)
        jar.update_cookies({PVE_AUTH_COOKIE: ticket.ticket}, response_url=URL(self.origin))
        return self._session_factory(
            timeout=self._timeout(),
            headers={CSRF_PREVENTION_TOKEN_HEADER: ticket.csrf_prevention_token},
            cookie_jar=jar,
        )

    async def request(self, method: HttpMethod | str, path: str, payload: Any = None) -> ProxmoxResponse:
        """Log in and send one request.

        GET payloads go into the query string; POST, PUT and DELETE payloads
        are sent form-encoded. The response is returned undecoded.

        Raises:
            ContractViolation: method is not GET, POST, PUT or DELETE.
            ProxmoxAuthenticationError: no ticket could be obtained.
            ProxmoxTransportError: the request itself failed.
        """
        http_method = _coerce_method(method)
        encoded = encode_payload(payload)
        url = self.url(path)

        kwargs: dict[str, Any] = {"ssl": self.verify_ssl}
        if encoded is not None:
            if http_method is HttpMethod.GET:
                kwargs["params"] = encoded
            else:
                kwargs["data"] = encoded

        ticket = await self._ticket()

        _LOGGER.debug("%s %s", http_method.value, path)
        try:
            async with self._authenticated_session(ticket) as session:
                async with session.request(http_method.value, url, **kwargs) as resp:
                    body = await resp.read()
                    response = ProxmoxResponse(
                        status=resp.status,
                        reason=resp.reason,
                        headers=resp.headers,
                        body=body,
                        url=str(resp.url),
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProxmoxTransportError(f"{http_method.value} {path} failed: {e!r}") from e

        if response.status == 401 and self.ticket_cache is not None:
            self.ticket_cache.invalidate(self._cache_key)

        return response
