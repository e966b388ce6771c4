"""
Pre-flight check catalog, registry and evaluators.

Every ``CheckDefinition`` in ``CHECK_DEFINITIONS`` is backed by exactly one
pure evaluator ``(vm, context, env) -> CheckResult``. Evaluators are total:
they return ``not-applicable`` instead of raising when data genuinely does not
apply, and they treat absent tooling data as a failure rather than skipping it.

The catalog is the single source of truth for which checks run under which
target mode; ``CheckRegistry.for_mode`` filters it.
"""

import logging
import re
from collections.abc import Callable, Iterable
from typing import NamedTuple

from vm_readiness.assess.context import VMContext
from vm_readiness.assess.os_compat import (
    OSCompatibilityTable,
    OSStatus,
    VPCSupport,
    default_os_table,
)
from vm_readiness.assess.thresholds import DEFAULT_THRESHOLDS, Thresholds
from vm_readiness.assess.types import (
    CheckCategory,
    CheckDefinition,
    CheckResult,
    CheckStatus,
    Severity,
    TargetMode,
)
from vm_readiness.models.inventory import VMRecord
from vm_readiness.util.numbers import round_half_up

logger = logging.getLogger(__name__)

BOTH = frozenset({TargetMode.OPENSHIFT, TargetMode.VPC})
OPENSHIFT = frozenset({TargetMode.OPENSHIFT})
VPC = frozenset({TargetMode.VPC})

INVALID_HOSTNAMES = {"", "localhost", "localhost.localdomain", "localhost.local"}
RFC1123_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")


class CheckEnv(NamedTuple):
    """Run-wide inputs shared by every evaluator (thresholds and lookup tables)."""

    thresholds: Thresholds = DEFAULT_THRESHOLDS
    os_table: OSCompatibilityTable | None = None

    def os_entry(self, guest_os: str):
        return (self.os_table or default_os_table()).lookup(guest_os)


Evaluator = Callable[[VMRecord, VMContext, CheckEnv], CheckResult]


# ===== CHECK DEFINITIONS =====

CHECK_DEFINITIONS: tuple[CheckDefinition, ...] = (
    CheckDefinition(
        "tools-installed",
        "Guest Tools Installed",
        "Tools",
        CheckCategory.TOOLS,
        Severity.BLOCKER,
        "Guest tools must be installed for migration",
        OPENSHIFT,
        "Install guest tools so the import can quiesce the guest and read its network identity.",
    ),
    CheckDefinition(
        "tools-running",
        "Guest Tools Running",
        "Tools Run",
        CheckCategory.TOOLS,
        Severity.WARNING,
        "Guest tools should be running for best results",
        OPENSHIFT,
        "Start the guest tools service and set it to start automatically.",
    ),
    CheckDefinition(
        "old-snapshots",
        "Old Snapshots",
        "Snapshots",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Snapshots older than the age limit must be consolidated",
        BOTH,
        "Delete or consolidate old snapshots before migration.",
    ),
    CheckDefinition(
        "rdm-disks",
        "Raw Device Mappings",
        "RDM",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Raw/physical disk mappings cannot be migrated",
        BOTH,
        "Convert raw device mappings to virtual disks before migration.",
    ),
    CheckDefinition(
        "shared-disks",
        "Shared Disks",
        "Shared",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Shared/multi-writer disks are not supported",
        BOTH,
        "Move shared data to file storage or re-architect the clustered workload.",
    ),
    CheckDefinition(
        "independent-disks",
        "Independent Disk Mode",
        "Indep Disk",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Independent disks are excluded from snapshots used by the import",
        OPENSHIFT,
        "Switch independent disks to dependent mode.",
    ),
    CheckDefinition(
        "cd-connected",
        "CD-ROM Connected",
        "CD-ROM",
        CheckCategory.HARDWARE,
        Severity.WARNING,
        "CD-ROM drives should be disconnected before migration",
        OPENSHIFT,
        "Disconnect mounted ISO images and CD-ROM devices.",
    ),
    CheckDefinition(
        "hw-version",
        "Hardware Version",
        "HW Ver",
        CheckCategory.HARDWARE,
        Severity.WARNING,
        "Virtual hardware version should meet the supported minimum",
        OPENSHIFT,
        "Upgrade the virtual hardware version during a maintenance window.",
    ),
    CheckDefinition(
        "cbt-enabled",
        "Changed Block Tracking",
        "CBT",
        CheckCategory.CONFIG,
        Severity.WARNING,
        "Changed block tracking is required for warm migration",
        OPENSHIFT,
        "Enable changed block tracking, or plan a cold migration.",
    ),
    CheckDefinition(
        "rfc1123-name",
        "RFC 1123 Name",
        "Name",
        CheckCategory.CONFIG,
        Severity.WARNING,
        "VM name should be a valid RFC 1123 label (lowercase, alphanumeric, hyphens)",
        OPENSHIFT,
        "Rename the VM or provide a compliant target name in the migration plan.",
    ),
    CheckDefinition(
        "cpu-hotplug",
        "CPU Hot Add",
        "CPU HP",
        CheckCategory.CONFIG,
        Severity.BLOCKER,
        "CPU hot add cannot be preserved across the migration",
        OPENSHIFT,
        "Disable CPU hot add and size the VM for its peak vCPU demand.",
    ),
    CheckDefinition(
        "mem-hotplug",
        "Memory Hot Add",
        "Mem HP",
        CheckCategory.CONFIG,
        Severity.BLOCKER,
        "Memory hot add cannot be preserved across the migration",
        OPENSHIFT,
        "Disable memory hot add and size the VM for its peak memory demand.",
    ),
    CheckDefinition(
        "hostname-valid",
        "Valid Hostname",
        "Hostname",
        CheckCategory.CONFIG,
        Severity.WARNING,
        "Guest hostname should be configured (not localhost)",
        OPENSHIFT,
        "Configure a real hostname inside the guest.",
    ),
    CheckDefinition(
        "os-compatible",
        "OS Compatible",
        "OS",
        CheckCategory.OS,
        Severity.WARNING,
        "Guest operating system support on OpenShift Virtualization",
        OPENSHIFT,
        "Upgrade the guest OS to a supported release.",
    ),
    CheckDefinition(
        "boot-disk-size",
        "Boot Disk Size",
        "Boot Disk",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Boot volume must not exceed the instance boot volume limit",
        VPC,
        "Move data off the boot disk onto secondary data volumes.",
    ),
    CheckDefinition(
        "disk-count",
        "Disk Count",
        "Disk Cnt",
        CheckCategory.STORAGE,
        Severity.BLOCKER,
        "Instances support a limited number of attached volumes",
        VPC,
        "Consolidate disks or move some data to file storage.",
    ),
    CheckDefinition(
        "memory-1tb",
        "Memory Ceiling",
        "Mem 1TB",
        CheckCategory.HARDWARE,
        Severity.BLOCKER,
        "Memory must not exceed the largest instance profile",
        VPC,
        "Right-size the workload or split it across instances.",
    ),
    CheckDefinition(
        "memory-512gb",
        "High Memory",
        "Mem 512G",
        CheckCategory.HARDWARE,
        Severity.WARNING,
        "Large memory footprints need high-memory profiles with limited availability",
        VPC,
        "Confirm high-memory profile availability in the target region.",
    ),
    CheckDefinition(
        "large-disks",
        "Large Disks",
        "Disk 2TB",
        CheckCategory.STORAGE,
        Severity.WARNING,
        "Disks above the volume size limit may require splitting",
        VPC,
        "Split large volumes or move bulk data to file/object storage.",
    ),
    CheckDefinition(
        "vpc-os",
        "VPC OS Supported",
        "VPC OS",
        CheckCategory.OS,
        Severity.BLOCKER,
        "Guest operating system must have a supported VPC image",
        VPC,
        "Upgrade or replatform onto a supported stock image.",
    ),
    CheckDefinition(
        "vpc-tools",
        "Guest Tools",
        "Tools",
        CheckCategory.TOOLS,
        Severity.WARNING,
        "Guest tools are needed for a clean export",
        VPC,
        "Install guest tools before exporting the VM.",
    ),
)


# ===== HELPER FUNCTIONS =====


def hardware_version_number(version: str | None) -> int:
    """
    Extract the numeric hardware version ("vmx-19" -> 19); 0 when absent.

    Example:
        >>> hardware_version_number("vmx-19")
        19
    """
    match = re.search(r"(\d+)", version or "")
    return int(match.group(1)) if match else 0


def is_rfc1123_compliant(name: str) -> bool:
    if not name or len(name) > 63:
        return False
    return bool(RFC1123_LABEL.match(name.lower()))


def _normalize_tools_status(status: str | None) -> str:
    return re.sub(r"[^a-z]", "", (status or "").lower())


def tools_not_installed(context: VMContext) -> bool:
    """No tooling record, an empty status or a not-installed status."""
    if context.tools is None:
        return True
    status = _normalize_tools_status(context.tools.status)
    return not status or "notinstalled" in status


def tools_not_running(context: VMContext) -> bool:
    """Installed but stopped (``toolsNotRunning`` / ``guestToolsNotRunning``)."""
    if tools_not_installed(context):
        return False
    return "notrunning" in _normalize_tools_status(context.tools.status)


def old_snapshots(context: VMContext, thresholds: Thresholds) -> list:
    return [s for s in context.snapshots if s.age_in_days > thresholds.snapshot_blocker_age_days]


def _fmt_number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else round(value, 1)


def _truncate(text: str, length: int = 30) -> str:
    return text[:length]


# ===== EVALUATORS =====


def check_tools_installed(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    if context.tools is None:
        return CheckResult(
            CheckStatus.FAIL,
            value="No data",
            message="No guest tools info found for this VM",
        )
    if tools_not_installed(context):
        return CheckResult(
            CheckStatus.FAIL,
            value=context.tools.status or "Unknown",
            message="Guest tools not installed",
        )
    return CheckResult.passed(context.tools.status)


def check_tools_running(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    if tools_not_installed(context):
        return CheckResult.not_applicable("Tools not installed")
    if tools_not_running(context):
        return CheckResult(
            CheckStatus.FAIL,
            value=context.tools.status,
            message="Guest tools installed but not running",
        )
    return CheckResult.passed(context.tools.status)


def check_old_snapshots(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    limit = env.thresholds.snapshot_blocker_age_days
    old = old_snapshots(context, env.thresholds)
    if old:
        oldest = max(s.age_in_days for s in old)
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(old)} snapshot(s)",
            threshold=f">{_fmt_number(limit)} days",
            message=f"Oldest snapshot: {_fmt_number(oldest)} days",
        )
    if context.snapshots:
        return CheckResult.passed(
            f"{len(context.snapshots)} snapshot(s)", "All snapshots within age limit"
        )
    return CheckResult.passed("No snapshots")


def check_rdm_disks(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    raw_disks = [d for d in context.disks if d.raw]
    if raw_disks:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(raw_disks)} RDM disk(s)",
            message=", ".join(d.label or "unlabelled" for d in raw_disks),
        )
    return CheckResult.passed("No RDM disks")


def check_shared_disks(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    shared = [d for d in context.disks if d.is_shared]
    if shared:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(shared)} shared disk(s)",
            message=", ".join(f"{d.label or 'unlabelled'}: {d.sharing_mode}" for d in shared),
        )
    return CheckResult.passed("No shared disks")


def check_independent_disks(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    independent = [d for d in context.disks if "independent" in (d.disk_mode or "").lower()]
    if independent:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(independent)} independent disk(s)",
            message=", ".join(f"{d.label or 'unlabelled'}: {d.disk_mode}" for d in independent),
        )
    return CheckResult.passed("No independent disks")


def check_cd_connected(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    connected = [cd for cd in context.cdroms if cd.connected]
    if connected:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(connected)} CD(s) connected",
            message="Disconnect CD-ROM before migration",
        )
    return CheckResult.passed("No CD connected")


def check_hw_version(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    minimum = env.thresholds.hw_version_minimum
    version = hardware_version_number(vm.hardware_version)
    if version < minimum:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"v{version}",
            threshold=f"v{minimum}+",
            message="Hardware version too old",
        )
    return CheckResult.passed(f"v{version}")


def check_cbt_enabled(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    if not vm.cbt_enabled:
        return CheckResult(
            CheckStatus.FAIL, value="Disabled", message="Enable CBT for warm migration"
        )
    return CheckResult.passed("Enabled")


def check_rfc1123_name(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    if is_rfc1123_compliant(vm.name):
        return CheckResult.passed("Compliant")
    issues = []
    if len(vm.name) > 63:
        issues.append("too long")
    if vm.name != vm.name.lower():
        issues.append("uppercase")
    if re.search(r"[^a-z0-9-]", vm.name.lower()):
        issues.append("invalid chars")
    if vm.name[:1] == "-" or vm.name[-1:] == "-":
        issues.append("leading/trailing hyphen")
    return CheckResult(
        CheckStatus.FAIL,
        value=vm.name[:20] + ("..." if len(vm.name) > 20 else ""),
        message=", ".join(issues),
    )


def _hot_add_result(enabled: bool) -> CheckResult:
    if enabled:
        return CheckResult(
            CheckStatus.FAIL,
            value="Enabled",
            message="Hot add cannot be preserved after migration",
        )
    return CheckResult.passed("Disabled")


def check_cpu_hotplug(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    enabled = context.cpu_hot_add if context.cpu is not None else vm.cpu_hot_add
    return _hot_add_result(enabled)


def check_mem_hotplug(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    enabled = context.memory_hot_add if context.memory is not None else vm.memory_hot_add
    return _hot_add_result(enabled)


def check_hostname_valid(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    hostname = (vm.guest_hostname or vm.dns_name or "").strip().lower()
    if hostname in INVALID_HOSTNAMES:
        return CheckResult(
            CheckStatus.FAIL,
            value=hostname or "Not set",
            message="Configure valid hostname",
        )
    return CheckResult.passed(_truncate(hostname))


def check_os_compatible(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    entry = env.os_entry(vm.guest_os)
    value = _truncate(vm.guest_os) or "Unknown"
    if entry.status is OSStatus.UNSUPPORTED:
        return CheckResult(
            CheckStatus.FAIL,
            value=value,
            message="Not supported by OpenShift Virtualization",
        )
    if entry.status is OSStatus.SUPPORTED_WITH_CAVEATS:
        return CheckResult(CheckStatus.WARN, value=value, message="Supported with caveats")
    return CheckResult.passed(value)


def check_boot_disk_size(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    limit = env.thresholds.boot_disk_max_gib
    boot_disk = context.boot_disk
    if boot_disk is None:
        return CheckResult.not_applicable("No disk info available")
    size_gib = round_half_up(boot_disk.capacity_gib)
    if size_gib > limit:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{size_gib} GB",
            threshold=f"{_fmt_number(limit)} GB",
            message="Boot disk exceeds instance boot volume limit",
        )
    return CheckResult.passed(f"{size_gib} GB")


def check_disk_count(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    limit = env.thresholds.max_disks_per_vm
    count = context.disk_count(vm)
    if count > limit:
        return CheckResult(
            CheckStatus.FAIL,
            value=count,
            threshold=limit,
            message="Exceeds instance volume limit",
        )
    return CheckResult.passed(count)


def check_memory_ceiling(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    limit = env.thresholds.memory_max_gib
    memory_gib = vm.memory_gib
    if memory_gib > limit:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{round_half_up(memory_gib)} GB",
            threshold=f"{_fmt_number(limit)} GB",
            message="Exceeds largest instance memory",
        )
    return CheckResult.passed(f"{round_half_up(memory_gib)} GB")


def check_memory_high(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    memory_gib = vm.memory_gib
    # memory-1tb already fails these VMs; don't penalise twice
    if memory_gib > env.thresholds.memory_max_gib:
        return CheckResult.not_applicable("Checked by memory-1tb")
    limit = env.thresholds.memory_high_gib
    if memory_gib > limit:
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{round_half_up(memory_gib)} GB",
            threshold=f"{_fmt_number(limit)} GB",
            message="Requires high-memory profile",
        )
    return CheckResult.passed(f"{round_half_up(memory_gib)} GB")


def check_large_disks(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    limit = env.thresholds.large_disk_gib
    large = [d for d in context.disks if d.capacity_gib > limit]
    if large:
        largest = round_half_up(max(d.capacity_gib for d in large))
        return CheckResult(
            CheckStatus.FAIL,
            value=f"{len(large)} disk(s) > {_fmt_number(limit)} GB",
            threshold=f"{_fmt_number(limit)} GB",
            message=f"Largest: {largest} GB",
        )
    return CheckResult.passed(f"All disks <= {_fmt_number(limit)} GB")


def check_vpc_os(vm: VMRecord, context: VMContext, env: CheckEnv) -> CheckResult:
    entry = env.os_entry(vm.guest_os)
    value = _truncate(vm.guest_os) or "Unknown"
    if entry.vpc_status is VPCSupport.UNSUPPORTED:
        return CheckResult(
            CheckStatus.FAIL, value=value, message=entry.notes or "Not validated for VPC"
        )
    return CheckResult.passed(value, entry.notes or None)


# ===== REGISTRY =====

DEFAULT_EVALUATORS: dict[str, Evaluator] = {
    "tools-installed": check_tools_installed,
    "tools-running": check_tools_running,
    "old-snapshots": check_old_snapshots,
    "rdm-disks": check_rdm_disks,
    "shared-disks": check_shared_disks,
    "independent-disks": check_independent_disks,
    "cd-connected": check_cd_connected,
    "hw-version": check_hw_version,
    "cbt-enabled": check_cbt_enabled,
    "rfc1123-name": check_rfc1123_name,
    "cpu-hotplug": check_cpu_hotplug,
    "mem-hotplug": check_mem_hotplug,
    "hostname-valid": check_hostname_valid,
    "os-compatible": check_os_compatible,
    "boot-disk-size": check_boot_disk_size,
    "disk-count": check_disk_count,
    "memory-1tb": check_memory_ceiling,
    "memory-512gb": check_memory_high,
    "large-disks": check_large_disks,
    "vpc-os": check_vpc_os,
    "vpc-tools": check_tools_installed,
}


class CheckRegistry:
    """
    Pairs each check definition with its evaluator.

    Alternate catalogs can be injected for tests; every definition must have an
    evaluator and ids must be unique.

    Example:
        >>> registry = CheckRegistry.default()
        >>> [c.id for c in registry.for_mode(TargetMode.VPC)][:2]
        ['old-snapshots', 'rdm-disks']
    """

    def __init__(
        self,
        definitions: Iterable[CheckDefinition],
        evaluators: dict[str, Evaluator],
    ):
        self.definitions = tuple(definitions)
        ids = [d.id for d in self.definitions]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate check id(s): {', '.join(duplicates)}")
        missing = [i for i in ids if i not in evaluators]
        if missing:
            raise ValueError(f"No evaluator registered for check(s): {', '.join(missing)}")
        self._evaluators = {i: evaluators[i] for i in ids}

    @classmethod
    def default(cls) -> "CheckRegistry":
        return cls(CHECK_DEFINITIONS, DEFAULT_EVALUATORS)

    def for_mode(self, mode: TargetMode) -> list[CheckDefinition]:
        return [d for d in self.definitions if d.applies_to(mode)]

    def get(self, check_id: str) -> CheckDefinition | None:
        for definition in self.definitions:
            if definition.id == check_id:
                return definition
        return None

    def evaluate(
        self, check_id: str, vm: VMRecord, context: VMContext, env: CheckEnv
    ) -> CheckResult:
        """Run one check; unknown ids yield not-applicable rather than raising."""
        evaluator = self._evaluators.get(check_id)
        if evaluator is None:
            logger.warning(f"Check not implemented: {check_id}")
            return CheckResult.not_applicable("Check not implemented")
        return evaluator(vm, context, env)

    def __len__(self) -> int:
        return len(self.definitions)
