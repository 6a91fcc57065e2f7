from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import voluptuous as vol

from ..api import HttpMethod, ProxmoxClient, ProxmoxResponse
from . import qemu_path, response_data

_LOGGER = logging.getLogger(__name__)

VMID = vol.All(vol.Coerce(int), vol.Range(min=100, max=999999999))


class DiskFormat(str, Enum):
    RAW = "raw"
    QCOW2 = "qcow2"
    VMDK = "vmdk"


def _format_needs_full_clone(values: dict[str, Any]) -> dict[str, Any]:
    if values.get("format") is not None and not values.get("full"):
        raise vol.Invalid("format is only valid for a full clone", path=["format"])
    return values


CLONE_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required("new_id"): VMID,
            vol.Required("node"): vol.All(str, vol.Length(min=1)),
            vol.Required("vm_id"): VMID,
            vol.Optional("bw_limit"): vol.Any(None, vol.All(vol.Coerce(int), vol.Range(min=0))),
            vol.Optional("description"): vol.Any(None, str),
            vol.Optional("format"): vol.Any(None, vol.Coerce(DiskFormat)),
            vol.Optional("full"): vol.Any(None, bool),
            vol.Optional("name"): vol.Any(None, str),
            vol.Optional("pool"): vol.Any(None, str),
            vol.Optional("snap_name"): vol.Any(None, str),
            vol.Optional("storage"): vol.Any(None, str),
            vol.Optional("target"): vol.Any(None, str),
        }
    ),
    _format_needs_full_clone,
)

# dataclass field -> API parameter
_API_NAMES = {
    "new_id": "newid",
    "bw_limit": "bwlimit",
    "snap_name": "snapname",
}


@dataclass
class CloneRequest:
    """POST nodes/{node}/qemu/{vmid}/clone"""

    # Required
    new_id: int
    node: str
    vm_id: int

    # Optional
    bw_limit: int | None = None  # KiB/s
    description: str | None = None
    format: DiskFormat | None = None  # full clone only
    full: bool | None = None
    name: str | None = None
    pool: str | None = None
    snap_name: str | None = None
    storage: str | None = None
    target: str | None = None  # only if the source VM is on shared storage

    def validate(self) -> dict[str, Any]:
        return CLONE_SCHEMA(dict(self.__dict__))

    @property
    def path(self) -> str:
        return qemu_path(self.node, self.vm_id, "clone")

    def to_form(self) -> dict[str, Any]:
        """Form parameters; node and vm_id travel in the path."""
        values = self.validate()
        form: dict[str, Any] = {}
        for key, value in values.items():
            if key in ("node", "vm_id") or value is None:
                continue
            form[_API_NAMES.get(key, key)] = value
        return form


@dataclass
class CloneResponse:
    task_id: str | None
    response: ProxmoxResponse


async def post(client: ProxmoxClient, request: CloneRequest) -> CloneResponse:
    """Clone a VM; returns the UPID of the clone task."""
    form = request.to_form()
    _LOGGER.debug("Cloning %s/%s to %s", request.node, request.vm_id, request.new_id)
    response = await client.request(HttpMethod.POST, request.path, form)
    return CloneResponse(task_id=response_data(response, request.path), response=response)
