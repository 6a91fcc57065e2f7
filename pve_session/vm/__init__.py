"""Typed contracts for the nodes/{node}/qemu/{vmid} endpoints."""
from __future__ import annotations

from typing import Any

from ..api import ProxmoxResponse
from ..const import REST_API_PATH
from ..errors import ProxmoxApiError

QEMU_PATH_FORMAT = REST_API_PATH + "/nodes/{node}/qemu/{vm_id}"


def qemu_path(node: str, vm_id: int, *suffix: str) -> str:
    path = QEMU_PATH_FORMAT.format(node=node, vm_id=vm_id)
    if suffix:
        path = "/".join((path, *suffix))
    return path


def response_data(response: ProxmoxResponse, path: str) -> Any:
    """Return the decoded ``data`` member, raising ProxmoxApiError for HTTP errors."""
    if response.status >= 400:
        raise ProxmoxApiError(f"HTTP {response.status} calling {path}: {response.text()}")
    try:
        return response.data
    except ValueError as e:
        raise ProxmoxApiError(f"invalid JSON from {path}: {e}") from e
