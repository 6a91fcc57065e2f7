from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import TYPE_CHECKING, Any, Mapping

import voluptuous as vol

from .const import (
    CONF_BASE_URL,
    CONF_CONNECT_TIMEOUT,
    CONF_PASSWORD,
    CONF_PORT,
    CONF_REALM,
    CONF_REQUEST_TIMEOUT,
    CONF_TICKET_CACHE,
    CONF_USER,
    CONF_VERIFY_SSL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TICKET_CACHE,
    DEFAULT_VERIFY_SSL,
    ENV_BASE_URL,
    ENV_PASSWORD,
    ENV_PORT,
    ENV_REALM,
    ENV_USER,
    MISSING_FIELD_MESSAGES,
    REQUIRED_FIELDS,
)
from .errors import ProxmoxConfigurationError

if TYPE_CHECKING:
    from .api import ProxmoxClient

_LOGGER = logging.getLogger(__name__)

ENV_KEYS = {
    CONF_USER: ENV_USER,
    CONF_PASSWORD: ENV_PASSWORD,
    CONF_REALM: ENV_REALM,
    CONF_BASE_URL: ENV_BASE_URL,
    CONF_PORT: ENV_PORT,
}

_TIMEOUT = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_VERIFY_SSL, default=DEFAULT_VERIFY_SSL): bool,
        vol.Optional(CONF_CONNECT_TIMEOUT, default=DEFAULT_CONNECT_TIMEOUT): _TIMEOUT,
        vol.Optional(CONF_REQUEST_TIMEOUT, default=DEFAULT_REQUEST_TIMEOUT): _TIMEOUT,
        vol.Optional(CONF_TICKET_CACHE, default=DEFAULT_TICKET_CACHE): bool,
    }
)


def _none_if_empty(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    return value


def validate_options(options: Mapping[str, Any]) -> dict[str, Any]:
    """Apply defaults and validate transport options."""
    try:
        return OPTIONS_SCHEMA(dict(options))
    except vol.Invalid as err:
        raise ProxmoxConfigurationError(f"invalid client option: {err}", field=str(err.path[0]) if err.path else None) from err


@dataclass(frozen=True)
class Credentials:
    """Identity used to obtain a ticket. Empty strings are stored as unset (None)."""

    user: str | None = None
    password: str | None = field(default=None, repr=False)
    realm: str | None = None
    base_url: str | None = None
    port: str | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _none_if_empty(getattr(self, f.name)))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Credentials:
        env = os.environ if environ is None else environ
        return cls(**{name: env.get(key) for name, key in ENV_KEYS.items()})

    @property
    def username(self) -> str:
        return f"{self.user}@{self.realm}"

    def missing(self) -> str | None:
        """First unset field, checked as user, password, realm, base_url, port."""
        for name in REQUIRED_FIELDS:
            if getattr(self, name) is None:
                return name
        return None

    def validate(self) -> None:
        name = self.missing()
        if name is not None:
            raise ProxmoxConfigurationError(MISSING_FIELD_MESSAGES[name], field=name)

    def as_dict(self) -> dict[str, str | None]:
        return asdict(self)


class Builder:
    """Fluent builder for ProxmoxClient.

    Seeded from the PROXMOX_* environment keys (or the given mapping) when
    created and again after every successful build().
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ
        self._reset()

    def _reset(self) -> None:
        self._credentials = Credentials.from_env(self._environ)
        self._options: dict[str, Any] = {}

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def _set(self, name: str, value: str) -> Builder:
        self._credentials = replace(self._credentials, **{name: value})
        return self

    def set_user(self, user: str) -> Builder:
        return self._set(CONF_USER, user)

    def set_password(self, password: str) -> Builder:
        return self._set(CONF_PASSWORD, password)

    def set_realm(self, realm: str) -> Builder:
        return self._set(CONF_REALM, realm)

    def set_base_url(self, base_url: str) -> Builder:
        return self._set(CONF_BASE_URL, base_url)

    def set_port(self, port: str) -> Builder:
        return self._set(CONF_PORT, port)

    def set_verify_ssl(self, verify_ssl: bool) -> Builder:
        self._options[CONF_VERIFY_SSL] = verify_ssl
        return self

    def set_timeouts(self, connect: float, request: float) -> Builder:
        self._options[CONF_CONNECT_TIMEOUT] = connect
        self._options[CONF_REQUEST_TIMEOUT] = request
        return self

    def set_ticket_cache(self, enabled: bool) -> Builder:
        self._options[CONF_TICKET_CACHE] = enabled
        return self

    def build(self) -> ProxmoxClient:
        from .api import ProxmoxClient
        from .session import TicketCache

        self._credentials.validate()
        options = validate_options(self._options)

        client = ProxmoxClient(
            self._credentials,
            verify_ssl=options[CONF_VERIFY_SSL],
            connect_timeout=options[CONF_CONNECT_TIMEOUT],
            request_timeout=options[CONF_REQUEST_TIMEOUT],
            ticket_cache=TicketCache() if options[CONF_TICKET_CACHE] else None,
        )
        _LOGGER.debug("Built Proxmox client for %s", client)
        self._reset()
        return client
