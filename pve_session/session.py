from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterator

from .const import CSRF_PREVENTION_TOKEN_HEADER, TICKET_LIFETIME
from .diagnostics import redact_secret
from .errors import ProxmoxAuthenticationError

_LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionTicket:
    """Ticket and CSRF token returned by /access/ticket."""

    ticket: str
    csrf_prevention_token: str
    obtained_at: datetime = field(default_factory=_utcnow)

    def __repr__(self) -> str:
        return (
            f"SessionTicket(ticket={redact_secret(self.ticket)!r}, "
            f"csrf_prevention_token={redact_secret(self.csrf_prevention_token)!r}, "
            f"obtained_at={self.obtained_at.isoformat()})"
        )


def parse_login_response(payload: Any) -> SessionTicket:
    """Build a SessionTicket from a decoded login response.

    Accepts the API envelope ({"data": {"ticket": ..., "CSRFPreventionToken": ...}})
    as well as a flat {"ticket": ..., "csrf_prevention_token": ...} object.
    """
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        raise ProxmoxAuthenticationError("login response is not a JSON object")

    ticket = payload.get("ticket")
    token = payload.get("csrf_prevention_token") or payload.get(CSRF_PREVENTION_TOKEN_HEADER)

    if not isinstance(ticket, str) or not ticket:
        raise ProxmoxAuthenticationError("login response has no ticket")
    if not isinstance(token, str) or not token:
        raise ProxmoxAuthenticationError("login response has no csrf_prevention_token")

    return SessionTicket(ticket=ticket, csrf_prevention_token=token)


class TicketCache:
    """Keeps one SessionTicket per credential identity until it expires or is invalidated.

    Refreshes are serialized per cache so concurrent callers share one login.
    """

    def __init__(self, lifetime: timedelta = TICKET_LIFETIME, clock: Callable[[], datetime] = _utcnow) -> None:
        self.lifetime = lifetime
        self._clock = clock
        self._tickets: dict[str, SessionTicket] = {}
        self._lock = asyncio.Lock()

    def is_expired(self, ticket: SessionTicket) -> bool:
        return self._clock() - ticket.obtained_at >= self.lifetime

    def get(self, key: str) -> SessionTicket | None:
        ticket = self._tickets.get(key)
        if ticket is None:
            return None
        if self.is_expired(ticket):
            _LOGGER.debug("Cached ticket expired, obtained at %s", ticket.obtained_at.isoformat())
            self._tickets.pop(key, None)
            return None
        return ticket

    def invalidate(self, key: str) -> None:
        if self._tickets.pop(key, None) is not None:
            _LOGGER.debug("Invalidated cached ticket")

    def items(self) -> Iterator[tuple[str, SessionTicket]]:
        return iter(list(self._tickets.items()))

    async def get_or_login(self, key: str, login: Callable[[], Awaitable[SessionTicket]]) -> SessionTicket:
        ticket = self.get(key)
        if ticket is not None:
            return ticket

        async with self._lock:
            # another caller may have logged in while we waited
            ticket = self.get(key)
            if ticket is not None:
                return ticket
            ticket = await login()
            self._tickets[key] = ticket
            return ticket
