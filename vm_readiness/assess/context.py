"""
Record context builder.

Groups the flat per-entity inventory records by owning VM name into one
``VMContext`` per VM. This is the validation boundary of the pipeline: VM
records with missing identity or resource fields are rejected here with an
error naming the offending record, so nothing downstream has to cope with a
half-formed VM.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from vm_readiness.exceptions import InvalidRecordError
from vm_readiness.models.inventory import (
    CDRomRecord,
    DiskRecord,
    HotAddConfig,
    Inventory,
    NetworkRecord,
    SnapshotRecord,
    ToolsRecord,
    VMRecord,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VMContext:
    """
    Associated records for one VM.

    Attributes:
        vm_name: Owning VM name
        disks: Disk records in inventory order
        networks: Network adapter records
        snapshots: Snapshot records
        tools: Tooling status record, None when the VM has no tooling data
        cpu: CPU hot-add configuration, None when absent
        memory: Memory hot-add configuration, None when absent
        cdroms: CD/DVD drive records
    """

    vm_name: str
    disks: tuple[DiskRecord, ...] = ()
    networks: tuple[NetworkRecord, ...] = ()
    snapshots: tuple[SnapshotRecord, ...] = ()
    tools: ToolsRecord | None = None
    cpu: HotAddConfig | None = None
    memory: HotAddConfig | None = None
    cdroms: tuple[CDRomRecord, ...] = ()

    def disks_by_key(self) -> list[DiskRecord]:
        """Disks sorted ascending by integer disk key (a missing key sorts as 0)."""
        return sorted(self.disks, key=lambda d: d.disk_key or 0)

    @property
    def boot_disk(self) -> DiskRecord | None:
        """The disk at position 0 after sorting by disk key."""
        ordered = self.disks_by_key()
        return ordered[0] if ordered else None

    def nic_count(self, vm: VMRecord) -> int:
        """Adapter records when present, otherwise the count carried on the VM record."""
        if self.networks:
            return len(self.networks)
        return vm.nic_count or 0

    def disk_count(self, vm: VMRecord) -> int:
        """Disk records when present, otherwise the count carried on the VM record."""
        if self.disks:
            return len(self.disks)
        return vm.disk_count or 0

    def storage_gib(self, vm: VMRecord) -> float:
        """In-use storage when recorded on the VM, otherwise summed disk capacity."""
        if vm.in_use_mib is not None:
            return vm.in_use_mib / 1024
        return sum(d.capacity_gib for d in self.disks)

    @property
    def cpu_hot_add(self) -> bool:
        return bool(self.cpu and self.cpu.hot_add_enabled)

    @property
    def memory_hot_add(self) -> bool:
        return bool(self.memory and self.memory.hot_add_enabled)


def validate_vm_records(vms: tuple[VMRecord, ...] | list[VMRecord]) -> None:
    """
    Fail fast on VM records missing identity or resource fields.

    Raises:
        InvalidRecordError: Naming the first offending record
    """
    seen: set[str] = set()
    for index, vm in enumerate(vms):
        name = vm.name if isinstance(vm.name, str) else None
        if not name or not name.strip():
            raise InvalidRecordError("vm", index, "name", "is required")
        if not isinstance(vm.vcpus, int) or isinstance(vm.vcpus, bool) or vm.vcpus < 1:
            raise InvalidRecordError("vm", index, "vcpus", f"must be >= 1, got {vm.vcpus!r}", name)
        if (
            not isinstance(vm.memory_mib, (int, float))
            or isinstance(vm.memory_mib, bool)
            or vm.memory_mib <= 0
        ):
            raise InvalidRecordError(
                "vm", index, "memory_mib", f"must be > 0, got {vm.memory_mib!r}", name
            )
        if name in seen:
            raise InvalidRecordError("vm", index, "name", "duplicates an earlier VM record", name)
        seen.add(name)


def _group(records, vm_names: set[str], entity: str) -> dict[str, list]:
    grouped: dict[str, list] = defaultdict(list)
    orphans = 0
    for record in records:
        grouped[record.vm_name].append(record)
        if record.vm_name not in vm_names:
            orphans += 1
    if orphans:
        logger.warning(f"{orphans} {entity} record(s) reference VMs not in the inventory")
    return grouped


def build_contexts(inventory: Inventory) -> dict[str, VMContext]:
    """
    Build the VM name -> VMContext lookup for every VM in the inventory.

    Associated records are joined on exact VM name. Tooling records are the
    exception: exporters have been seen writing them with different name casing,
    so an exact match is tried first and a lowercased match second before the VM
    is treated as having no tooling data.

    Args:
        inventory: Normalized record set

    Returns:
        Mapping of VM name to its context, in inventory order

    Raises:
        InvalidRecordError: If a VM record is malformed or duplicated
    """
    validate_vm_records(inventory.vms)
    vm_names = {vm.name for vm in inventory.vms}

    disks = _group(inventory.disks, vm_names, "disk")
    networks = _group(inventory.networks, vm_names, "network")
    snapshots = _group(inventory.snapshots, vm_names, "snapshot")
    cdroms = _group(inventory.cdroms, vm_names, "cdrom")

    tools_exact = {t.vm_name: t for t in inventory.tools}
    tools_lower = {t.vm_name.lower(): t for t in inventory.tools}
    cpu_by_vm = {c.vm_name: c for c in inventory.cpus}
    mem_by_vm = {m.vm_name: m for m in inventory.memory}

    contexts: dict[str, VMContext] = {}
    for vm in inventory.vms:
        tools = tools_exact.get(vm.name)
        if tools is None:
            tools = tools_lower.get(vm.name.lower())
            if tools is not None:
                logger.warning(f"Matched tooling record for {vm.name} case-insensitively")

        contexts[vm.name] = VMContext(
            vm_name=vm.name,
            disks=tuple(disks.get(vm.name, ())),
            networks=tuple(networks.get(vm.name, ())),
            snapshots=tuple(snapshots.get(vm.name, ())),
            tools=tools,
            cpu=cpu_by_vm.get(vm.name),
            memory=mem_by_vm.get(vm.name),
            cdroms=tuple(cdroms.get(vm.name, ())),
        )

    logger.debug(f"Built contexts for {len(contexts)} VM(s)")
    return contexts
