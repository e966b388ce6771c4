"""Inventory record dataclasses.

The inventory is the normalized, in-memory form of a virtualization snapshot:
one flat list per entity type, every associated record carrying the name of the
VM that owns it. Records are immutable once loaded and live for a single
assessment run.

Both snake_case and the camelCase spellings produced by upstream exporters are
accepted when parsing plain dicts (``vm_name`` / ``vmName``).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from vm_readiness.exceptions import InvalidRecordError

MIB_PER_GIB = 1024


class PowerState(Enum):
    """Lifecycle state of a VM at snapshot time."""

    ON = "on"
    OFF = "off"
    SUSPENDED = "suspended"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: Any) -> "PowerState":
        """
        Parse exporter spellings ("poweredOn", "Powered Off", "on", ...).

        Raises:
            ValueError: If the value is not a recognised power state
        """
        if isinstance(raw, PowerState):
            return raw
        text = str(raw or "").strip().lower().replace(" ", "").replace("_", "")
        text = text.removeprefix("powered")
        for state in cls:
            if text == state.value:
                return state
        raise ValueError(f"unknown power state {raw!r}")


@dataclass(frozen=True)
class VMRecord:
    """Primary VM record: identity, resource shape and guest metadata."""

    name: str
    vcpus: int
    memory_mib: int
    power_state: PowerState = PowerState.ON
    template: bool = False
    guest_os: str = ""
    hardware_version: str = ""
    nic_count: int | None = None
    disk_count: int | None = None
    cpu_hot_add: bool = False
    memory_hot_add: bool = False
    cbt_enabled: bool = False
    guest_hostname: str = ""
    dns_name: str = ""
    cluster: str = ""
    host: str = ""
    in_use_mib: float | None = None

    @property
    def memory_gib(self) -> float:
        return self.memory_mib / MIB_PER_GIB

    @property
    def is_candidate(self) -> bool:
        """Powered-on, non-template VMs are the only ones assessed."""
        return self.power_state is PowerState.ON and not self.template

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "VMRecord":
        p = _RecordParser("vm", index, raw)
        name = p.required_str("name", "vmName", "vm_name")
        p.name = name
        return cls(
            name=name,
            vcpus=p.required_int("vcpus", "cpus", minimum=1),
            memory_mib=p.required_int("memory_mib", "memoryMiB", "memory", minimum=1),
            power_state=p.power_state("power_state", "powerState"),
            template=p.optional_bool("template"),
            guest_os=p.optional_str("guest_os", "guestOS"),
            hardware_version=p.optional_str(
                "hardware_version", "hardwareVersion", "hardwareVersionString"
            ),
            nic_count=p.optional_int("nic_count", "nicCount"),
            disk_count=p.optional_int("disk_count", "diskCount"),
            cpu_hot_add=p.optional_bool("cpu_hot_add", "cpuHotAddEnabled"),
            memory_hot_add=p.optional_bool("memory_hot_add", "memoryHotAddEnabled"),
            cbt_enabled=p.optional_bool("cbt_enabled", "cbtEnabled"),
            guest_hostname=p.optional_str("guest_hostname", "guestHostname"),
            dns_name=p.optional_str("dns_name", "dnsName"),
            cluster=p.optional_str("cluster"),
            host=p.optional_str("host"),
            in_use_mib=p.optional_float("in_use_mib", "inUseMiB"),
        )


@dataclass(frozen=True)
class DiskRecord:
    """Virtual disk attached to a VM."""

    vm_name: str
    label: str = ""
    capacity_mib: float = 0
    raw: bool = False
    sharing_mode: str = "sharingNone"
    disk_mode: str = "persistent"
    disk_key: int | None = None

    @property
    def capacity_gib(self) -> float:
        return self.capacity_mib / MIB_PER_GIB

    @property
    def is_shared(self) -> bool:
        mode = (self.sharing_mode or "").strip().lower()
        return mode not in ("", "sharingnone", "none")

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "DiskRecord":
        p = _RecordParser("disk", index, raw)
        return cls(
            vm_name=p.vm_name(),
            label=p.optional_str("label", "diskLabel"),
            capacity_mib=p.optional_float("capacity_mib", "capacityMiB") or 0,
            raw=p.optional_bool("raw"),
            sharing_mode=p.optional_str("sharing_mode", "sharingMode", default="sharingNone"),
            disk_mode=p.optional_str("disk_mode", "diskMode", default="persistent"),
            disk_key=p.optional_int("disk_key", "diskKey"),
        )


@dataclass(frozen=True)
class NetworkRecord:
    """Network adapter attached to a VM."""

    vm_name: str
    label: str = ""
    adapter_type: str = ""
    port_group: str = ""
    connected: bool = True
    ipv4_address: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "NetworkRecord":
        p = _RecordParser("network", index, raw)
        return cls(
            vm_name=p.vm_name(),
            label=p.optional_str("label", "nicLabel"),
            adapter_type=p.optional_str("adapter_type", "adapterType"),
            port_group=p.optional_str("port_group", "networkName", "network_name"),
            connected=p.optional_bool("connected", default=True),
            ipv4_address=p.optional_str("ipv4_address", "ipv4Address"),
        )


@dataclass(frozen=True)
class SnapshotRecord:
    """VM snapshot with its age at export time."""

    vm_name: str
    age_in_days: float
    name: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "SnapshotRecord":
        p = _RecordParser("snapshot", index, raw)
        age = p.optional_float("age_in_days", "ageInDays")
        if age is None:
            raise InvalidRecordError("snapshot", index, "age_in_days", "is required")
        return cls(vm_name=p.vm_name(), age_in_days=age, name=p.optional_str("name"))


@dataclass(frozen=True)
class ToolsRecord:
    """Guest tooling status for a VM (e.g. ``toolsOk``, ``toolsNotInstalled``)."""

    vm_name: str
    status: str = ""
    version: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "ToolsRecord":
        p = _RecordParser("tools", index, raw)
        return cls(
            vm_name=p.vm_name(),
            status=p.optional_str("status", "toolsStatus"),
            version=p.optional_str("version", "toolsVersion"),
        )


@dataclass(frozen=True)
class HotAddConfig:
    """CPU or memory hot-add configuration record."""

    vm_name: str
    hot_add_enabled: bool = False

    @classmethod
    def from_dict(
        cls, raw: dict[str, Any], index: int = 0, entity: str = "cpu"
    ) -> "HotAddConfig":
        p = _RecordParser(entity, index, raw)
        return cls(
            vm_name=p.vm_name(),
            hot_add_enabled=p.optional_bool("hot_add_enabled", "hotAddEnabled", "hotAdd"),
        )


@dataclass(frozen=True)
class CDRomRecord:
    """CD/DVD drive attached to a VM."""

    vm_name: str
    connected: bool = False

    @classmethod
    def from_dict(cls, raw: dict[str, Any], index: int = 0) -> "CDRomRecord":
        p = _RecordParser("cdrom", index, raw)
        return cls(vm_name=p.vm_name(), connected=p.optional_bool("connected"))


@dataclass(frozen=True)
class Inventory:
    """
    Normalized record set for one assessment run, keyed by entity type.

    Example:
        >>> inventory = Inventory.from_dict({"vms": [{"name": "web-01", "vcpus": 2,
        ...     "memory_mib": 4096, "power_state": "poweredOn"}]})
        >>> inventory.vms[0].memory_gib
        4.0
    """

    vms: tuple[VMRecord, ...] = ()
    disks: tuple[DiskRecord, ...] = ()
    networks: tuple[NetworkRecord, ...] = ()
    snapshots: tuple[SnapshotRecord, ...] = ()
    tools: tuple[ToolsRecord, ...] = ()
    cpus: tuple[HotAddConfig, ...] = ()
    memory: tuple[HotAddConfig, ...] = ()
    cdroms: tuple[CDRomRecord, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Inventory":
        """
        Build an inventory from a mapping of record lists.

        Args:
            data: Mapping with any of the keys vms, disks, networks, snapshots,
                tools, cpus, memory, cdroms (each a list of dicts)

        Returns:
            Inventory instance

        Raises:
            InvalidRecordError: If a record is malformed
        """

        def collection(key: str, *aliases: str) -> list:
            for k in (key, *aliases):
                if data.get(k) is not None:
                    value = data[k]
                    if not isinstance(value, list):
                        raise InvalidRecordError(key, 0, key, "must be a list of records")
                    return value
            return []

        return cls(
            vms=tuple(
                VMRecord.from_dict(r, i) for i, r in enumerate(collection("vms", "vInfo"))
            ),
            disks=tuple(
                DiskRecord.from_dict(r, i) for i, r in enumerate(collection("disks", "vDisk"))
            ),
            networks=tuple(
                NetworkRecord.from_dict(r, i)
                for i, r in enumerate(collection("networks", "vNetwork"))
            ),
            snapshots=tuple(
                SnapshotRecord.from_dict(r, i)
                for i, r in enumerate(collection("snapshots", "vSnapshot"))
            ),
            tools=tuple(
                ToolsRecord.from_dict(r, i) for i, r in enumerate(collection("tools", "vTools"))
            ),
            cpus=tuple(
                HotAddConfig.from_dict(r, i, "cpu")
                for i, r in enumerate(collection("cpus", "vCPU"))
            ),
            memory=tuple(
                HotAddConfig.from_dict(r, i, "memory")
                for i, r in enumerate(collection("memory", "vMemory"))
            ),
            cdroms=tuple(
                CDRomRecord.from_dict(r, i) for i, r in enumerate(collection("cdroms", "vCD"))
            ),
        )


_TRUE_STRINGS = {"true", "yes", "y", "1", "on", "enabled"}
_FALSE_STRINGS = {"false", "no", "n", "0", "off", "disabled", ""}


class _RecordParser:
    """Field accessors that raise InvalidRecordError naming the offending record."""

    def __init__(self, entity: str, index: int, raw: Any):
        if not isinstance(raw, dict):
            raise InvalidRecordError(
                entity, index, "*", f"must be a mapping, got {type(raw).__name__}"
            )
        self.entity = entity
        self.index = index
        self.raw = raw
        self.name: str | None = None

    def _error(self, field_name: str, detail: str) -> InvalidRecordError:
        return InvalidRecordError(self.entity, self.index, field_name, detail, name=self.name)

    def _lookup(self, keys: tuple[str, ...]) -> tuple[str, Any]:
        for key in keys:
            if key in self.raw and self.raw[key] is not None:
                return key, self.raw[key]
        return keys[0], None

    def required_str(self, *keys: str) -> str:
        key, value = self._lookup(keys)
        if value is None or not str(value).strip():
            raise self._error(keys[0], "is required")
        return str(value).strip()

    def vm_name(self) -> str:
        return self.required_str("vm_name", "vmName", "vm")

    def optional_str(self, *keys: str, default: str = "") -> str:
        _, value = self._lookup(keys)
        return default if value is None else str(value)

    def required_int(self, *keys: str, minimum: int = 0) -> int:
        value = self.optional_int(*keys)
        if value is None:
            raise self._error(keys[0], "is required")
        if value < minimum:
            raise self._error(keys[0], f"must be >= {minimum}, got {value}")
        return value

    def optional_int(self, *keys: str) -> int | None:
        number = self.optional_float(*keys)
        if number is None:
            return None
        if number != int(number):
            raise self._error(keys[0], f"must be a whole number, got {number}")
        return int(number)

    def optional_float(self, *keys: str) -> float | None:
        key, value = self._lookup(keys)
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise self._error(key, "must be a number, got a boolean")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise self._error(key, f"must be a number, got {value!r}") from None
        if number < 0:
            raise self._error(key, f"must not be negative, got {value}")
        return number

    def optional_bool(self, *keys: str, default: bool = False) -> bool:
        key, value = self._lookup(keys)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        text = str(value).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise self._error(key, f"must be a boolean, got {value!r}")

    def power_state(self, *keys: str) -> PowerState:
        key, value = self._lookup(keys)
        if value is None:
            raise self._error(keys[0], "is required")
        try:
            return PowerState.parse(value)
        except ValueError as e:
            raise self._error(key, str(e)) from None
