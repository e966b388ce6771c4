"""
Wave planner.

Partitions candidate VMs into ordered migration waves with an explicit
first-match-wins rule list (``WAVE_RULES``). The final rule is unconditional,
so every VM lands in exactly one wave. Waves with no members are omitted.

A second, network-oriented plan groups the same VMs by primary port group or
cluster for teams that migrate a network segment at a time.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple

from vm_readiness.assess.checks import old_snapshots, tools_not_installed
from vm_readiness.assess.context import VMContext
from vm_readiness.assess.os_compat import OSCompatibilityTable, lookup_os
from vm_readiness.assess.rules import Rule, first_match
from vm_readiness.assess.scoring import VMAssessment
from vm_readiness.assess.thresholds import DEFAULT_THRESHOLDS, Thresholds
from vm_readiness.assess.types import TargetMode
from vm_readiness.models.inventory import VMRecord
from vm_readiness.util.numbers import round_half_up

logger = logging.getLogger(__name__)

NO_NETWORK = "No Network"
NO_CLUSTER = "No Cluster"

PILOT_MAX_COMPLEXITY = 15
QUICK_WIN_MAX_COMPLEXITY = 30
STANDARD_MAX_COMPLEXITY = 55


class WaveTemplate(NamedTuple):
    ordinal: int
    name: str
    description: str


PILOT = WaveTemplate(1, "Wave 1: Pilot", "Simple VMs with supported OS for initial validation")
QUICK_WINS = WaveTemplate(2, "Wave 2: Quick Wins", "Low complexity VMs ready for migration")
STANDARD = WaveTemplate(3, "Wave 3: Standard", "Moderate complexity VMs")
COMPLEX = WaveTemplate(4, "Wave 4: Complex", "High complexity VMs requiring careful planning")
REMEDIATION = WaveTemplate(
    5, "Wave 5: Remediation", "VMs with blockers requiring fixes before migration"
)

WAVE_TEMPLATES = (PILOT, QUICK_WINS, STANDARD, COMPLEX, REMEDIATION)


@dataclass(frozen=True)
class WaveEntry:
    """
    Per-VM wave planning input.

    Memory and storage are rounded per VM so that wave totals are sums of the
    same whole numbers shown for each VM.
    """

    vm_name: str
    complexity: float
    pilot_os: bool
    has_blocker: bool
    vcpus: int
    memory_gib: int
    storage_gib: int
    port_group: str = NO_NETWORK
    ip_address: str = ""
    cluster: str = NO_CLUSTER


# Evaluated top to bottom; the first match decides the wave.
WAVE_RULES: tuple[Rule, ...] = (
    Rule("blocker", lambda e: e.has_blocker, REMEDIATION),
    Rule(
        "pilot",
        lambda e: e.complexity <= PILOT_MAX_COMPLEXITY and e.pilot_os,
        PILOT,
    ),
    Rule("quick-wins", lambda e: e.complexity <= QUICK_WIN_MAX_COMPLEXITY, QUICK_WINS),
    Rule("standard", lambda e: e.complexity <= STANDARD_MAX_COMPLEXITY, STANDARD),
    Rule("complex", lambda e: True, COMPLEX),
)


@dataclass(frozen=True)
class Wave:
    """An ordered migration batch with aggregate resource totals."""

    ordinal: int
    name: str
    description: str
    vm_names: tuple[str, ...]
    vcpus: int
    memory_gib: int
    storage_gib: int
    has_blockers: bool
    avg_complexity: float | None = None

    @property
    def vm_count(self) -> int:
        return len(self.vm_names)

    def to_dict(self) -> dict[str, Any]:
        result = {
            "ordinal": self.ordinal,
            "name": self.name,
            "description": self.description,
            "vm_count": self.vm_count,
            "vcpus": self.vcpus,
            "memory_gib": self.memory_gib,
            "storage_gib": self.storage_gib,
            "has_blockers": self.has_blockers,
            "vms": list(self.vm_names),
        }
        if self.avg_complexity is not None:
            result["avg_complexity"] = self.avg_complexity
        return result


class NetworkGroupBy(Enum):
    PORT_GROUP = "port-group"
    CLUSTER = "cluster"

    def __str__(self) -> str:
        return self.value


def has_disqualifying_blocker(
    vm: VMRecord,
    context: VMContext,
    mode: TargetMode,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """
    Blockers that route a VM straight to remediation.

    Raw or shared disks, a snapshot past the age limit and missing guest tools
    apply in every mode; memory above the largest instance applies to VPC.
    """
    if any(d.raw or d.is_shared for d in context.disks):
        return True
    if old_snapshots(context, thresholds):
        return True
    if tools_not_installed(context):
        return True
    return mode is TargetMode.VPC and vm.memory_gib > thresholds.memory_max_gib


def build_wave_entries(
    vms: Iterable[VMRecord],
    assessments: Mapping[str, VMAssessment],
    contexts: Mapping[str, VMContext],
    mode: TargetMode,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
    os_table: OSCompatibilityTable | None = None,
) -> list[WaveEntry]:
    """Build one WaveEntry per assessed VM, in input order."""
    entries = []
    for vm in vms:
        assessment = assessments[vm.name]
        context = contexts.get(vm.name) or VMContext(vm_name=vm.name)
        primary = context.networks[0] if context.networks else None
        entries.append(
            WaveEntry(
                vm_name=vm.name,
                complexity=assessment.complexity_score,
                pilot_os=lookup_os(vm.guest_os, os_table).fully_supported_for(mode),
                has_blocker=has_disqualifying_blocker(vm, context, mode, thresholds),
                vcpus=vm.vcpus,
                memory_gib=round_half_up(vm.memory_gib),
                storage_gib=round_half_up(context.storage_gib(vm)),
                port_group=(primary.port_group if primary else "") or NO_NETWORK,
                ip_address=(primary.ipv4_address if primary else "") or "",
                cluster=vm.cluster or NO_CLUSTER,
            )
        )
    return entries


def assign_wave(entry: WaveEntry) -> WaveTemplate:
    return first_match(WAVE_RULES, entry, default=COMPLEX)


def _totals(entries: list[WaveEntry]) -> dict[str, Any]:
    return {
        "vm_names": tuple(e.vm_name for e in entries),
        "vcpus": sum(e.vcpus for e in entries),
        "memory_gib": sum(e.memory_gib for e in entries),
        "storage_gib": sum(e.storage_gib for e in entries),
        "has_blockers": any(e.has_blocker for e in entries),
    }


def plan_waves(entries: Iterable[WaveEntry]) -> list[Wave]:
    """
    Assign every entry to a complexity wave.

    Returns:
        Non-empty waves in ordinal order; members keep input order
    """
    members: dict[int, list[WaveEntry]] = {t.ordinal: [] for t in WAVE_TEMPLATES}
    for entry in entries:
        members[assign_wave(entry).ordinal].append(entry)

    waves = [
        Wave(
            ordinal=template.ordinal,
            name=template.name,
            description=template.description,
            **_totals(members[template.ordinal]),
        )
        for template in WAVE_TEMPLATES
        if members[template.ordinal]
    ]
    logger.debug(f"Planned {len(waves)} wave(s) for {sum(w.vm_count for w in waves)} VM(s)")
    return waves


def _more(items: list[str], limit: int = 3) -> str:
    text = ", ".join(items[:limit])
    if len(items) > limit:
        text += f" +{len(items) - limit} more"
    return text


def plan_network_waves(
    entries: Iterable[WaveEntry], group_by: NetworkGroupBy = NetworkGroupBy.PORT_GROUP
) -> list[Wave]:
    """
    Group entries by primary port group or by cluster.

    Groups without blockers come first, then smaller groups; ties keep the
    order in which groups were first seen. Ordinals follow the sorted order.
    """
    groups: dict[str, list[WaveEntry]] = {}
    for entry in entries:
        key = entry.cluster if group_by is NetworkGroupBy.CLUSTER else entry.port_group
        groups.setdefault(key, []).append(entry)

    ranked = sorted(
        groups.items(),
        key=lambda item: (any(e.has_blocker for e in item[1]), len(item[1])),
    )

    waves = []
    for ordinal, (name, members) in enumerate(ranked, start=1):
        if group_by is NetworkGroupBy.PORT_GROUP:
            ips = list(dict.fromkeys(e.ip_address for e in members if e.ip_address))
            description = f"IPs: {_more(ips)}" if ips else "No IP addresses detected"
        else:
            port_groups = list(
                dict.fromkeys(e.port_group for e in members if e.port_group != NO_NETWORK)
            )
            description = (
                f"Port Group: {_more(port_groups)}" if port_groups else "No port group info"
            )
        avg = sum(e.complexity for e in members) / len(members)
        waves.append(
            Wave(
                ordinal=ordinal,
                name=name,
                description=description,
                avg_complexity=round(avg, 1),
                **_totals(members),
            )
        )
    return waves
