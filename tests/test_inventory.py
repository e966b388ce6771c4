"""
Tests for inventory record parsing.
"""

import pytest

from vm_readiness.exceptions import InvalidRecordError
from vm_readiness.models.inventory import (
    DiskRecord,
    Inventory,
    PowerState,
    SnapshotRecord,
    VMRecord,
)


class TestPowerState:
    """Tests for power state parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("poweredOn", PowerState.ON),
            ("Powered Off", PowerState.OFF),
            ("suspended", PowerState.SUSPENDED),
            ("on", PowerState.ON),
            ("powered_off", PowerState.OFF),
        ],
    )
    def test_parse_exporter_spellings(self, raw, expected):
        """Test that exporter spellings map to power states."""
        assert PowerState.parse(raw) is expected

    def test_parse_unknown(self):
        """Test that unknown states are rejected."""
        with pytest.raises(ValueError, match="unknown power state"):
            PowerState.parse("rebooting")


class TestVMRecord:
    """Tests for VMRecord.from_dict."""

    def test_snake_case_fields(self):
        """Test parsing snake_case fields."""
        vm = VMRecord.from_dict(
            {
                "name": "web-01",
                "vcpus": 2,
                "memory_mib": 8192,
                "power_state": "on",
                "guest_os": "Ubuntu Linux (64-bit)",
                "cpu_hot_add": "yes",
            }
        )

        assert vm.name == "web-01"
        assert vm.memory_gib == 8
        assert vm.cpu_hot_add is True
        assert vm.is_candidate

    def test_camel_case_fields(self):
        """Test parsing exporter camelCase fields."""
        vm = VMRecord.from_dict(
            {
                "vmName": "db-01",
                "cpus": 8,
                "memory": 65536,
                "powerState": "poweredOn",
                "hardwareVersion": "vmx-19",
                "inUseMiB": 10240,
            }
        )

        assert vm.vcpus == 8
        assert vm.hardware_version == "vmx-19"
        assert vm.in_use_mib == 10240

    def test_template_is_not_candidate(self):
        """Test that templates are excluded from assessment."""
        vm = VMRecord.from_dict(
            {"name": "tpl", "vcpus": 1, "memory_mib": 1024, "power_state": "on", "template": True}
        )

        assert not vm.is_candidate

    def test_missing_name(self):
        """Test that a missing name names the record index."""
        with pytest.raises(InvalidRecordError) as exc_info:
            VMRecord.from_dict({"vcpus": 2, "memory_mib": 1024, "power_state": "on"}, index=3)

        assert exc_info.value.index == 3
        assert exc_info.value.field == "name"
        assert "vm record #3" in str(exc_info.value)

    def test_zero_vcpus(self):
        """Test that zero vCPUs is rejected with the VM name in the message."""
        with pytest.raises(InvalidRecordError, match=r"web-01.*vcpus"):
            VMRecord.from_dict(
                {"name": "web-01", "vcpus": 0, "memory_mib": 1024, "power_state": "on"}
            )

    def test_missing_memory(self):
        """Test that a missing memory size is rejected."""
        with pytest.raises(InvalidRecordError, match="memory_mib"):
            VMRecord.from_dict({"name": "web-01", "vcpus": 2, "power_state": "on"})

    def test_non_numeric_vcpus(self):
        """Test that non-numeric values are rejected."""
        with pytest.raises(InvalidRecordError, match="must be a number"):
            VMRecord.from_dict(
                {"name": "web-01", "vcpus": "two", "memory_mib": 1024, "power_state": "on"}
            )

    def test_boolean_is_not_a_number(self):
        """Test that booleans are not accepted as numbers."""
        with pytest.raises(InvalidRecordError, match="boolean"):
            VMRecord.from_dict(
                {"name": "web-01", "vcpus": True, "memory_mib": 1024, "power_state": "on"}
            )

    def test_invalid_power_state(self):
        """Test that unknown power states are rejected."""
        with pytest.raises(InvalidRecordError, match="power_state"):
            VMRecord.from_dict(
                {"name": "web-01", "vcpus": 2, "memory_mib": 1024, "power_state": "exploded"}
            )


class TestAssociatedRecords:
    """Tests for associated record parsing."""

    def test_disk_defaults(self):
        """Test disk defaults when optional fields are absent."""
        disk = DiskRecord.from_dict({"vmName": "web-01", "capacityMiB": 40960})

        assert disk.capacity_gib == 40
        assert disk.raw is False
        assert disk.is_shared is False
        assert disk.disk_key is None

    @pytest.mark.parametrize(
        "mode,shared",
        [
            ("sharingNone", False),
            ("none", False),
            ("", False),
            ("sharingMultiWriter", True),
            ("multi-writer", True),
        ],
    )
    def test_disk_sharing_modes(self, mode, shared):
        """Test which sharing modes count as shared."""
        disk = DiskRecord(vm_name="web-01", sharing_mode=mode)

        assert disk.is_shared is shared

    def test_disk_requires_vm_name(self):
        """Test that associated records need an owning VM."""
        with pytest.raises(InvalidRecordError, match="disk record #0"):
            DiskRecord.from_dict({"capacityMiB": 1024})

    def test_snapshot_requires_age(self):
        """Test that snapshots need an age."""
        with pytest.raises(InvalidRecordError, match="age_in_days"):
            SnapshotRecord.from_dict({"vmName": "web-01"})


class TestInventory:
    """Tests for Inventory.from_dict."""

    def test_aliases(self, sample_inventory_dict):
        """Test that exporter sheet names are accepted as collection keys."""
        inventory = Inventory.from_dict(sample_inventory_dict)

        assert [vm.name for vm in inventory.vms] == ["app-01", "db-01", "retired"]
        assert len(inventory.disks) == 3
        assert len(inventory.networks) == 2
        assert len(inventory.tools) == 2
        assert [vm.name for vm in inventory.vms if vm.is_candidate] == ["app-01", "db-01"]

    def test_empty(self):
        """Test that an empty mapping is an empty inventory."""
        inventory = Inventory.from_dict({})

        assert inventory.vms == ()

    def test_collection_must_be_list(self):
        """Test that a non-list collection is rejected."""
        with pytest.raises(InvalidRecordError, match="must be a list"):
            Inventory.from_dict({"vms": {"name": "web-01"}})

    def test_record_must_be_mapping(self):
        """Test that non-mapping records are rejected."""
        with pytest.raises(InvalidRecordError, match="must be a mapping"):
            Inventory.from_dict({"vms": ["web-01"]})
