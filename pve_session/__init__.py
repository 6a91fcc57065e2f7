"""Ticket-authenticated async client for the Proxmox VE API."""
from .api import HttpMethod, ProxmoxClient, ProxmoxResponse, build_url, format_cookie
from .credentials import Builder, Credentials
from .errors import (
    ContractViolation,
    ProxmoxApiError,
    ProxmoxAuthenticationError,
    ProxmoxConfigurationError,
    ProxmoxTransportError,
)
from .session import SessionTicket, TicketCache

__all__ = [
    "Builder",
    "ContractViolation",
    "Credentials",
    "HttpMethod",
    "ProxmoxApiError",
    "ProxmoxAuthenticationError",
    "ProxmoxClient",
    "ProxmoxConfigurationError",
    "ProxmoxResponse",
    "ProxmoxTransportError",
    "SessionTicket",
    "TicketCache",
    "build_url",
    "format_cookie",
]
