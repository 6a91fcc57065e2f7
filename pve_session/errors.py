"""Exception types for the Proxmox session client."""


class ProxmoxApiError(Exception):
    """Raised for Proxmox API errors."""


class ProxmoxConfigurationError(ProxmoxApiError):
    """Credentials or client options are incomplete or invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ProxmoxAuthenticationError(ProxmoxApiError):
    """The login exchange failed or returned no usable ticket."""


class ProxmoxTransportError(ProxmoxApiError):
    """An authenticated request could not be completed at the network layer."""


class ContractViolation(Exception):
    """The caller passed something the client never accepts, e.g. an HTTP method
    outside GET/POST/PUT/DELETE. Not a ProxmoxApiError."""
