from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..api import HttpMethod, ProxmoxClient
from . import qemu_path, response_data


@dataclass
class PendingChange:
    """One configuration key with its current and pending values."""

    key: str
    value: Any = None
    pending: Any = None
    # non-zero: pending delete, 2: forced delete
    delete: int = 0

    @property
    def is_pending_delete(self) -> bool:
        return self.delete != 0

    @property
    def is_forced_delete(self) -> bool:
        return self.delete == 2

    @property
    def has_pending_value(self) -> bool:
        return self.pending is not None

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> PendingChange:
        return cls(
            key=str(item["key"]),
            value=item.get("value"),
            pending=item.get("pending"),
            delete=int(item.get("delete") or 0),
        )


async def get(client: ProxmoxClient, node: str, vm_id: int) -> list[PendingChange]:
    path = qemu_path(node, vm_id, "pending")
    response = await client.request(HttpMethod.GET, path)
    return [PendingChange.from_api(item) for item in response_data(response, path) or []]
