from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Type

from ..api import HttpMethod, ProxmoxClient
from . import qemu_path, response_data

_LOGGER = logging.getLogger(__name__)


class Bios(str, Enum):
    SEABIOS = "seabios"
    OVMF = "ovmf"


class CIType(str, Enum):
    CONFIGDRIVE2 = "configdrive2"
    NOCLOUD = "nocloud"
    OPENNEBULA = "opennebula"


class HugePageMemory(str, Enum):
    ANY = "any"
    MB_2 = "2"
    MB_1024 = "1024"


class OsType(str, Enum):
    OTHER = "other"
    WXP = "wxp"
    W2K = "w2k"
    W2K3 = "w2k3"
    W2K8 = "w2k8"
    WVISTA = "wvista"
    WIN7 = "win7"
    WIN8 = "win8"
    WIN10 = "win10"
    WIN11 = "win11"
    L24 = "l24"
    L26 = "l26"
    SOLARIS = "solaris"


class Lock(str, Enum):
    BACKUP = "backup"
    CLONE = "clone"
    CREATE = "create"
    MIGRATE = "migrate"
    ROLLBACK = "rollback"
    SNAPSHOT = "snapshot"
    SNAPSHOT_DELETE = "snapshot-delete"
    SUSPENDING = "suspending"
    SUSPENDED = "suspended"


class ScsiHw(str, Enum):
    LSI = "lsi"
    LSI53C810 = "lsi53c810"
    VIRTIO_SCSI_PCI = "virtio-scsi-pci"
    VIRTIO_SCSI_SINGLE = "virtio-scsi-single"
    MEGASAS = "megasas"
    PVSCSI = "pvscsi"


def _api(name: str) -> Any:
    return field(default=None, metadata={"api": name})


@dataclass
class VmConfig:
    """VM configuration as returned by GET nodes/{node}/qemu/{vmid}/config.

    Pending changes are applied unless the request asked for ``current``.
    Keys without a field here (disks beyond the first, extra NICs, ...) end
    up in ``extra``.
    """

    acpi: bool | None = None
    affinity: str | None = None  # host cores, e.g. 0,5,8-11
    agent: str | None = None
    arch: str | None = None
    args: str | None = None
    audio0: str | None = None
    autostart: bool | None = None
    balloon: int | None = None
    bios: Bios | str | None = None
    boot: str | None = None
    boot_disk: str | None = _api("bootdisk")
    cdrom: str | None = None
    ci_custom: str | None = _api("cicustom")
    ci_password: str | None = _api("cipassword")
    ci_type: CIType | str | None = _api("citype")
    ci_user: str | None = _api("ciuser")
    cores: int | None = None
    cpu: str | None = None
    cpu_limit: float | None = _api("cpulimit")
    cpu_units: int | None = _api("cpuunits")
    description: str | None = None
    digest: str | None = None
    efi_disk0: str | None = _api("efidisk0")
    freeze: bool | None = None
    hook_script: str | None = _api("hookscript")
    hot_plug: str | None = _api("hotplug")
    huge_pages: HugePageMemory | str | None = _api("hugepages")
    ide0: str | None = None
    ip_config0: str | None = _api("ipconfig0")
    inter_vm_shared_memory: str | None = _api("ivshmem")
    keep_huge_pages: bool | None = _api("keephugepages")
    kvm: bool | None = None
    localtime: bool | None = None
    lock: Lock | str | None = None
    machine: str | None = None
    memory: int | None = None
    migrate_downtime: float | None = None
    migrate_speed: int | None = None
    name: str | None = None
    nameserver: str | None = None
    net0: str | None = None
    numa: bool | None = None
    on_boot: bool | None = _api("onboot")
    os_type: OsType | str | None = _api("ostype")
    protection: bool | None = None
    reboot: bool | None = None
    rng0: str | None = None
    sata0: str | None = None
    scsi0: str | None = None
    scsihw: ScsiHw | str | None = None
    serial0: str | None = None
    shares: int | None = None
    smbios1: str | None = None
    smp: int | None = None
    sockets: int | None = None
    spice_enhancements: str | None = None
    ssh_keys: str | None = _api("sshkeys")
    startup: str | None = None
    tablet: bool | None = None
    tags: str | None = None
    tdf: bool | None = None
    template: bool | None = None
    tpmstate0: str | None = None
    unused0: str | None = None
    usb0: str | None = None
    vcpus: int | None = None
    vga: str | None = None
    virtio0: str | None = None
    vmgenid: str | None = None
    vm_state_storage: str | None = _api("vmstatestorage")
    watchdog: str | None = None

    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> VmConfig:
        remaining = dict(data or {})
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "extra":
                continue
            key = f.metadata.get("api", f.name)
            if key in remaining:
                values[f.name] = _convert(f.name, remaining.pop(key))
        return cls(**values, extra=remaining)


_ENUM_FIELDS: dict[str, Type[Enum]] = {
    "bios": Bios,
    "ci_type": CIType,
    "huge_pages": HugePageMemory,
    "lock": Lock,
    "os_type": OsType,
    "scsihw": ScsiHw,
}

_BOOL_FIELDS = {
    "acpi", "autostart", "freeze", "keep_huge_pages", "kvm", "localtime", "numa",
    "on_boot", "protection", "reboot", "tablet", "tdf", "template",
}

_INT_FIELDS = {
    "balloon", "cores", "cpu_units", "memory", "migrate_speed", "shares", "smp", "sockets", "vcpus",
}

_FLOAT_FIELDS = {"cpu_limit", "migrate_downtime"}


def _convert(name: str, value: Any) -> Any:
    if value is None:
        return None
    try:
        if name in _ENUM_FIELDS:
            return _ENUM_FIELDS[name](str(value))
        if name in _BOOL_FIELDS:
            return bool(int(value))
        if name in _INT_FIELDS:
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
    except (TypeError, ValueError):
        # newer PVE releases add enum values; keep the raw value
        _LOGGER.debug("Keeping unrecognized value for %s: %r", name, value)
        return value
    return value


async def get(client: ProxmoxClient, node: str, vm_id: int, current: bool = False) -> VmConfig:
    path = qemu_path(node, vm_id, "config")
    payload = {"current": True} if current else None
    response = await client.request(HttpMethod.GET, path, payload)
    return VmConfig.from_api(response_data(response, path) or {})
