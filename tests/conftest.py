"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest
import yaml

from vm_readiness.assess.context import VMContext
from vm_readiness.models.inventory import (
    DiskRecord,
    Inventory,
    NetworkRecord,
    PowerState,
    SnapshotRecord,
    ToolsRecord,
    VMRecord,
)

RHEL9 = "Red Hat Enterprise Linux 9 (64-bit)"


def make_vm(name: str = "web-01", vcpus: int = 2, memory_gib: float = 8, **kwargs) -> VMRecord:
    """Build a powered-on VM with a healthy default configuration."""
    fields = {
        "power_state": PowerState.ON,
        "guest_os": RHEL9,
        "hardware_version": "vmx-19",
        "cbt_enabled": True,
        "guest_hostname": f"{name}.example.com",
        "cluster": "cluster-a",
    }
    fields.update(kwargs)
    return VMRecord(name=name, vcpus=vcpus, memory_mib=int(memory_gib * 1024), **fields)


def make_disk(vm_name: str = "web-01", capacity_gib: float = 40, **kwargs) -> DiskRecord:
    return DiskRecord(vm_name=vm_name, capacity_mib=capacity_gib * 1024, **kwargs)


def make_context(vm_name: str = "web-01", **kwargs) -> VMContext:
    """Context with tools running, one NIC and one 40 GiB disk unless overridden."""
    fields = {
        "disks": (make_disk(vm_name, label="Hard disk 1", disk_key=2000),),
        "networks": (
            NetworkRecord(vm_name, "Network adapter 1", "vmxnet3", "VM Network", True, "10.0.0.10"),
        ),
        "tools": ToolsRecord(vm_name, "toolsOk", "12352"),
    }
    fields.update(kwargs)
    return VMContext(vm_name=vm_name, **fields)


def healthy_records(name: str, ip: str = "10.0.0.10", port_group: str = "VM Network") -> dict:
    """Associated records for a VM that passes every check."""
    return {
        "disks": [make_disk(name, label="Hard disk 1", disk_key=2000)],
        "networks": [NetworkRecord(name, "Network adapter 1", "vmxnet3", port_group, True, ip)],
        "tools": [ToolsRecord(name, "toolsOk", "12352")],
    }


def build_inventory(vms: list[VMRecord], **records) -> Inventory:
    return Inventory(vms=tuple(vms), **{k: tuple(v) for k, v in records.items()})


@pytest.fixture
def vm_factory():
    """Return the VM record factory."""
    return make_vm


@pytest.fixture
def context_factory():
    """Return the VM context factory."""
    return make_context


@pytest.fixture
def sample_inventory():
    """
    Mixed inventory: two healthy VMs, one blocked legacy VM, one powered-off VM
    and one template.
    """
    healthy_a = healthy_records("web-01", "10.0.0.10")
    healthy_b = healthy_records("web-02", "10.0.0.11")
    return build_inventory(
        [
            make_vm("web-01"),
            make_vm("web-02", vcpus=4, memory_gib=16),
            make_vm("legacy-app", guest_os="Microsoft Windows Server 2008 R2 (64-bit)"),
            make_vm("old-box", power_state=PowerState.OFF),
            make_vm("rhel-template", template=True),
        ],
        disks=[
            *healthy_a["disks"],
            *healthy_b["disks"],
            make_disk("legacy-app", 60, label="Hard disk 1", disk_key=2000, raw=True),
        ],
        networks=[
            *healthy_a["networks"],
            *healthy_b["networks"],
            NetworkRecord("legacy-app", "Network adapter 1", "e1000", "Legacy", True, "10.1.0.5"),
        ],
        snapshots=[SnapshotRecord("legacy-app", 45, "before-patch")],
        tools=[
            *healthy_a["tools"],
            *healthy_b["tools"],
            ToolsRecord("legacy-app", "toolsNotInstalled"),
        ],
    )


@pytest.fixture
def sample_inventory_dict():
    """Plain-dict inventory using exporter (camelCase) field names."""
    return {
        "vInfo": [
            {
                "vmName": "app-01",
                "cpus": 2,
                "memory": 8192,
                "powerState": "poweredOn",
                "guestOS": RHEL9,
                "hardwareVersion": "vmx-19",
                "cbtEnabled": True,
                "guestHostname": "app-01.example.com",
                "cluster": "cluster-a",
            },
            {
                "vmName": "db-01",
                "cpus": 8,
                "memory": 65536,
                "powerState": "poweredOn",
                "guestOS": "Microsoft Windows Server 2019 (64-bit)",
                "hardwareVersion": "vmx-14",
                "cbtEnabled": False,
                "guestHostname": "db-01.example.com",
                "cluster": "cluster-b",
            },
            {
                "vmName": "retired",
                "cpus": 1,
                "memory": 1024,
                "powerState": "poweredOff",
            },
        ],
        "vDisk": [
            {"vmName": "app-01", "capacityMiB": 40960, "diskKey": 2000},
            {"vmName": "db-01", "capacityMiB": 102400, "diskKey": 2000},
            {"vmName": "db-01", "capacityMiB": 512000, "diskKey": 2001},
        ],
        "vNetwork": [
            {"vmName": "app-01", "networkName": "VM Network", "ipv4Address": "10.0.0.20"},
            {"vmName": "db-01", "networkName": "DB Network", "ipv4Address": "10.0.1.20"},
        ],
        "vTools": [
            {"vmName": "app-01", "toolsStatus": "toolsOk"},
            {"vmName": "DB-01", "toolsStatus": "toolsOk"},
        ],
    }


@pytest.fixture
def inventory_file(tmp_path, sample_inventory_dict) -> Path:
    """Write the plain-dict inventory to a YAML file."""
    path = tmp_path / "inventory.yaml"
    path.write_text(yaml.safe_dump(sample_inventory_dict, sort_keys=False))
    return path
