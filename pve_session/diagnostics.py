from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .const import CONF_BASE_URL, CONF_PASSWORD, CONF_PORT, CONF_REALM, CONF_USER

if TYPE_CHECKING:
    from .api import ProxmoxClient


# ---------------------------
# Masking helpers
# ---------------------------

_IPV4_RE = re.compile(r"\b(?:(?:25[0-5]|2[0-4]\d|1?\d?\d)\.){3}(?:25[0-5]|2[0-4]\d|1?\d?\d)\b")


def mask_ipv4(ip: str) -> str:
    """Mask IPv4 addresses (keep first two octets). Example: 192.168.178.101 -> 192.168.xxx.xxx"""
    parts = ip.split(".")
    if len(parts) != 4:
        return ip
    return f"{parts[0]}.{parts[1]}.xxx.xxx"


def mask_ipv4_in_text(text: str) -> str:
    """Replace any IPv4 occurrences inside a string."""
    return _IPV4_RE.sub(lambda m: mask_ipv4(m.group(0)), text)


def mask_user(value: Any) -> Any:
    """Show only first 2 and last 2 chars of a user name."""
    if not isinstance(value, str):
        return value
    s = value.strip()
    if len(s) <= 4:
        return "*" * len(s) if s else s
    return f"{s[:2]}***{s[-2:]}"


def redact_secret(value: Any) -> Any:
    """Redact secrets (passwords, tickets, CSRF tokens) while keeping structure intact."""
    if value is None:
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return value
        if len(s) <= 6:
            return "***"
        return s[:3] + "***" + s[-3:]
    if isinstance(value, dict):
        return {k: redact_secret(v) for k, v in value.items()}
    if isinstance(value, list):
        return [redact_secret(v) for v in value]
    return value


def sanitize_public(value: Any) -> Any:
    """
    Public-safe sanitization:
    - Mask all IPv4 strings anywhere
    - Keep structure
    """
    if value is None:
        return None
    if isinstance(value, str):
        return mask_ipv4_in_text(value)
    if isinstance(value, dict):
        return {str(k): sanitize_public(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_public(v) for v in value]
    return value


def redact_credentials(fields: dict[str, str | None]) -> dict[str, Any]:
    """Credential fields with the password redacted and the host masked."""
    return {
        CONF_USER: mask_user(fields.get(CONF_USER)),
        CONF_PASSWORD: "***" if fields.get(CONF_PASSWORD) else None,
        CONF_REALM: fields.get(CONF_REALM),
        CONF_BASE_URL: sanitize_public(fields.get(CONF_BASE_URL)),
        CONF_PORT: fields.get(CONF_PORT),
    }


# ---------------------------
# Client snapshot
# ---------------------------

def client_diagnostics(client: ProxmoxClient) -> dict[str, Any]:
    """Return a sanitized snapshot of a client's configuration and ticket cache."""
    cache = client.ticket_cache
    cache_state: dict[str, Any] | None = None
    if cache is not None:
        cache_state = {
            "lifetime": str(cache.lifetime),
            "entries": [
                {
                    "key": sanitize_public(mask_user(key)),
                    "ticket": redact_secret(ticket.ticket),
                    "csrf_prevention_token": redact_secret(ticket.csrf_prevention_token),
                    "obtained_at": ticket.obtained_at.isoformat(),
                    "expired": cache.is_expired(ticket),
                }
                for key, ticket in cache.items()
            ],
        }

    return {
        "credentials": redact_credentials(client.credentials.as_dict()),
        "options": {
            "verify_ssl": client.verify_ssl,
            "connect_timeout": client.connect_timeout,
            "request_timeout": client.request_timeout,
        },
        "ticket_cache": cache_state,
    }
