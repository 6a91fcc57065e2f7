"""Tests for the qemu endpoint contracts."""

from __future__ import annotations

import asyncio

import pytest
import voluptuous as vol

from conftest import FakeResponse
from pve_session import ProxmoxApiError
from pve_session.vm import clone, config, pending, qemu_path


def test_qemu_path():
    assert qemu_path("pve1", 100) == "api2/json/nodes/pve1/qemu/100"
    assert qemu_path("pve1", 100, "agent", "ping") == "api2/json/nodes/pve1/qemu/100/agent/ping"


class TestClone:
    def test_to_form_uses_api_names(self):
        request = clone.CloneRequest(
            new_id=105,
            node="pve1",
            vm_id=100,
            bw_limit=1024,
            snap_name="base",
            full=True,
            format=clone.DiskFormat.QCOW2,
        )
        assert request.path == "api2/json/nodes/pve1/qemu/100/clone"
        assert request.to_form() == {
            "newid": 105,
            "bwlimit": 1024,
            "snapname": "base",
            "full": True,
            "format": clone.DiskFormat.QCOW2,
        }

    def test_format_requires_full_clone(self):
        request = clone.CloneRequest(new_id=105, node="pve1", vm_id=100, format=clone.DiskFormat.RAW)
        with pytest.raises(vol.Invalid):
            request.to_form()

    @pytest.mark.parametrize("new_id", [99, 1000000000])
    def test_vmid_range(self, new_id):
        with pytest.raises(vol.Invalid):
            clone.CloneRequest(new_id=new_id, node="pve1", vm_id=100).validate()

    def test_post(self, client, transport):
        transport.api_response = FakeResponse(body={"data": "UPID:pve1:0001:clone:100:root@pam:"})
        request = clone.CloneRequest(new_id=105, node="pve1", vm_id=100, name="web-2", full=True)

        result = asyncio.run(clone.post(client, request))

        assert result.task_id == "UPID:pve1:0001:clone:100:root@pam:"
        (call,) = transport.api_calls
        assert call["method"] == "POST"
        assert call["url"] == "https://10.0.0.1:8006/api2/json/nodes/pve1/qemu/100/clone"
        assert call["data"] == {"newid": "105", "name": "web-2", "full": "1"}

    def test_post_http_error(self, client, transport):
        transport.api_response = FakeResponse(status=500, body="VM 105 already exists")
        with pytest.raises(ProxmoxApiError, match="HTTP 500"):
            asyncio.run(clone.post(client, clone.CloneRequest(new_id=105, node="pve1", vm_id=100)))


class TestConfig:
    def test_from_api(self):
        cfg = config.VmConfig.from_api(
            {
                "name": "web-1",
                "cores": 4,
                "memory": "4096",
                "onboot": 1,
                "ostype": "l26",
                "scsihw": "virtio-scsi-single",
                "bios": "ovmf",
                "cpulimit": "1.5",
                "bootdisk": "scsi0",
                "net1": "virtio=AA:BB:CC:DD:EE:FF,bridge=vmbr0",
            }
        )
        assert cfg.name == "web-1"
        assert cfg.memory == 4096
        assert cfg.on_boot is True
        assert cfg.os_type is config.OsType.L26
        assert cfg.scsihw is config.ScsiHw.VIRTIO_SCSI_SINGLE
        assert cfg.bios is config.Bios.OVMF
        assert cfg.cpu_limit == 1.5
        assert cfg.boot_disk == "scsi0"
        assert cfg.extra == {"net1": "virtio=AA:BB:CC:DD:EE:FF,bridge=vmbr0"}

    def test_unknown_enum_value_kept(self):
        cfg = config.VmConfig.from_api({"ostype": "win12"})
        assert cfg.os_type == "win12"

    def test_get_current(self, client, transport):
        transport.api_response = FakeResponse(body={"data": {"name": "web-1", "lock": "backup"}})

        cfg = asyncio.run(config.get(client, "pve1", 100, current=True))

        assert cfg.lock is config.Lock.BACKUP
        (call,) = transport.api_calls
        assert call["method"] == "GET"
        assert call["url"].endswith("api2/json/nodes/pve1/qemu/100/config")
        assert call["params"] == {"current": "1"}


class TestPending:
    def test_get(self, client, transport):
        transport.api_response = FakeResponse(
            body={
                "data": [
                    {"key": "memory", "value": 2048, "pending": 4096},
                    {"key": "net1", "value": "virtio,bridge=vmbr1", "delete": 2},
                    {"key": "cores", "value": 2},
                ]
            }
        )

        changes = asyncio.run(pending.get(client, "pve1", 100))

        memory, net1, cores = changes
        assert memory.has_pending_value and not memory.is_pending_delete
        assert net1.is_pending_delete and net1.is_forced_delete
        assert not cores.has_pending_value
        (call,) = transport.api_calls
        assert "params" not in call
