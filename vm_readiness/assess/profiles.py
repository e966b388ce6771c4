"""
Profile mapper.

Selects the smallest target instance profile that satisfies each VM's vCPU and
memory requirement, classifies burstable suitability and applies user
overrides. The mapper never fails to return a profile: a VM larger than every
profile in its family gets that family's largest profile.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple

import yaml

from vm_readiness.assess.context import VMContext
from vm_readiness.assess.os_compat import OSCompatibility, OSCompatibilityTable, lookup_os
from vm_readiness.models.inventory import VMRecord
from vm_readiness.models.profile import (
    InstanceProfile,
    ProfileCatalog,
    ProfileFamily,
    ProfileOverride,
)
from vm_readiness.util.numbers import round_half_up

logger = logging.getLogger(__name__)

PROFILE_DATA_FILE = Path(__file__).parent.parent / "data" / "instance_profiles.yaml"

# memory:vCPU ratio boundaries for family selection
COMPUTE_MAX_RATIO = 2.5
MEMORY_MIN_RATIO = 6

STANDARD_FAMILIES = (ProfileFamily.BALANCED, ProfileFamily.COMPUTE, ProfileFamily.MEMORY)


class BurstableRules(NamedTuple):
    """Heuristics that rule a VM out of burstable shapes."""

    enterprise_name_patterns: tuple[str, ...] = ()
    excluded_os_patterns: tuple[str, ...] = ()
    excluded_os_ids: tuple[str, ...] = ()


class Recommendation(Enum):
    STANDARD = "standard"
    BURSTABLE = "burstable"

    def __str__(self) -> str:
        return self.value


class BurstableClassification(NamedTuple):
    """
    Burstable vs. standard recommendation.

    Attributes:
        recommendation: STANDARD or BURSTABLE
        reasons: Why burstable was rejected (empty when recommended)
        suggested_profile: Smallest fitting burstable profile when recommended
    """

    recommendation: Recommendation
    reasons: tuple[str, ...] = ()
    suggested_profile: InstanceProfile | None = None

    @property
    def is_burstable(self) -> bool:
        return self.recommendation is Recommendation.BURSTABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "recommendation": self.recommendation.value,
            "reasons": list(self.reasons),
            "suggested_profile": self.suggested_profile.name if self.suggested_profile else None,
        }


@dataclass(frozen=True)
class ProfileMapping:
    """Profile selection for one VM."""

    vm_name: str
    vcpus: int
    memory_gib: float
    auto_profile: InstanceProfile
    effective_profile: InstanceProfile
    is_overridden: bool
    classification: BurstableClassification
    override_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "vm_name": self.vm_name,
            "vcpus": self.vcpus,
            "memory_gib": self.memory_gib,
            "auto_profile": self.auto_profile.name,
            "effective_profile": self.effective_profile.name,
            "effective_family": self.effective_profile.family.value,
            "is_overridden": self.is_overridden,
            "override_reason": self.override_reason,
            "classification": self.classification.to_dict(),
        }


# ===== CATALOG LOADING =====


def _parse_profile(raw: dict[str, Any], family: ProfileFamily) -> InstanceProfile:
    return InstanceProfile(
        name=str(raw["name"]),
        family=family,
        vcpus=int(raw["vcpus"]),
        memory_gib=float(raw["memory_gib"]),
        bandwidth_gbps=float(raw.get("bandwidth_gbps", 0)),
        hourly_rate=float(raw.get("hourly_rate", 0)),
        monthly_rate=float(raw.get("monthly_rate", 0)),
    )


def load_profile_data(path: Path | None = None) -> tuple[ProfileCatalog, BurstableRules]:
    """
    Load the instance profile catalog and burstable rules from YAML.

    Raises:
        ValueError: If a standard family is missing/empty or a family is unsorted
    """
    path = Path(path) if path else PROFILE_DATA_FILE
    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or not isinstance(data.get("families"), dict):
        raise ValueError(f"Invalid instance profile catalog: {path}")

    families: dict[ProfileFamily, tuple[InstanceProfile, ...]] = {}
    for key, entries in data["families"].items():
        family = ProfileFamily(key)
        profiles = tuple(_parse_profile(raw, family) for raw in entries or [])
        capacities = [(p.vcpus, p.memory_gib) for p in profiles]
        if capacities != sorted(capacities):
            raise ValueError(f"Profile family '{key}' must be sorted ascending by capacity")
        families[family] = profiles

    for family in STANDARD_FAMILIES:
        if not families.get(family):
            raise ValueError(f"Instance profile catalog has no '{family}' profiles: {path}")

    raw_rules = data.get("burstable_rules") or {}
    rules = BurstableRules(
        enterprise_name_patterns=tuple(
            str(p).lower() for p in raw_rules.get("enterprise_name_patterns", [])
        ),
        excluded_os_patterns=tuple(
            str(p).lower() for p in raw_rules.get("excluded_os_patterns", [])
        ),
        excluded_os_ids=tuple(str(p) for p in raw_rules.get("excluded_os_ids", [])),
    )

    logger.debug(f"Loaded {sum(len(p) for p in families.values())} instance profiles from {path}")
    return ProfileCatalog(families=families), rules


@lru_cache(maxsize=1)
def _default_profile_data() -> tuple[ProfileCatalog, BurstableRules]:
    return load_profile_data()


def default_catalog() -> ProfileCatalog:
    return _default_profile_data()[0]


def default_burstable_rules() -> BurstableRules:
    return _default_profile_data()[1]


def custom_profile(
    name: str, vcpus: int, memory_gib: float, bandwidth_gbps: float | None = None
) -> InstanceProfile:
    """Build a user-defined profile (no pricing; 16 Gbps bandwidth when unspecified)."""
    return InstanceProfile(
        name=name,
        family=ProfileFamily.CUSTOM,
        vcpus=vcpus,
        memory_gib=memory_gib,
        bandwidth_gbps=16 if bandwidth_gbps is None else bandwidth_gbps,
    )


# ===== SELECTION =====


def determine_profile_family(vcpus: float, memory_gib: float) -> ProfileFamily:
    """
    Pick the family from the memory:vCPU ratio.

    Example:
        >>> determine_profile_family(4, 8).value
        'compute'
        >>> determine_profile_family(2, 8).value
        'balanced'
    """
    ratio = memory_gib / (vcpus or 1)
    if ratio <= COMPUTE_MAX_RATIO:
        return ProfileFamily.COMPUTE
    if ratio >= MEMORY_MIN_RATIO:
        return ProfileFamily.MEMORY
    return ProfileFamily.BALANCED


def first_fit(profiles: Iterable[InstanceProfile], vcpus: float, memory_gib: float):
    for profile in profiles:
        if profile.fits(vcpus, memory_gib):
            return profile
    return None


def select_profile(catalog: ProfileCatalog, vcpus: float, memory_gib: float) -> InstanceProfile:
    """Smallest profile in the ratio-chosen family that fits, else the family's largest."""
    family = determine_profile_family(vcpus, memory_gib)
    profiles = catalog.profiles(family)
    if not profiles:
        logger.warning(f"Catalog has no {family} profiles, falling back to balanced")
        profiles = catalog.profiles(ProfileFamily.BALANCED)
    return first_fit(profiles, vcpus, memory_gib) or profiles[-1]


def classify_burstable(
    vm: VMRecord,
    context: VMContext,
    os_entry: OSCompatibility,
    catalog: ProfileCatalog,
    rules: BurstableRules,
) -> BurstableClassification:
    """
    Decide whether a VM suits a burstable shape.

    Burstable requires a single NIC, a name that matches no enterprise or
    appliance pattern, a guest OS that is not excluded and a burstable profile
    that fits. Every failed condition is kept as a reason.
    """
    reasons: list[str] = []

    nic_count = context.nic_count(vm)
    if nic_count == 0:
        reasons.append("No network adapters recorded")
    elif nic_count > 1:
        reasons.append(f"Multiple NICs ({nic_count})")

    name_lower = vm.name.lower()
    for pattern in rules.enterprise_name_patterns:
        if pattern in name_lower:
            reasons.append(f"Enterprise workload name ('{pattern}')")
            break

    guest_os_lower = (vm.guest_os or "").lower()
    if os_entry.id in rules.excluded_os_ids or any(
        pattern in guest_os_lower for pattern in rules.excluded_os_patterns
    ):
        reasons.append(f"Guest OS excluded ({os_entry.display_name})")

    suggested = first_fit(catalog.profiles(ProfileFamily.BURSTABLE), vm.vcpus, vm.memory_gib)
    if suggested is None:
        memory_gib = round_half_up(vm.memory_gib)
        reasons.append(f"No burstable profile fits {vm.vcpus} vCPU / {memory_gib} GiB")

    if reasons:
        return BurstableClassification(Recommendation.STANDARD, tuple(reasons))
    return BurstableClassification(Recommendation.BURSTABLE, (), suggested)


def map_profiles(
    vms: Iterable[VMRecord],
    contexts: Mapping[str, VMContext],
    *,
    catalog: ProfileCatalog | None = None,
    overrides: Mapping[str, ProfileOverride] | None = None,
    rules: BurstableRules | None = None,
    os_table: OSCompatibilityTable | None = None,
) -> list[ProfileMapping]:
    """
    Map every VM to its auto and effective profile.

    An override replaces the effective profile only. When it names a profile
    missing from the catalog (e.g. a deleted custom profile) the auto profile
    is used and the mapping is reported as not overridden.

    Args:
        vms: VMs to map, usually the assessment candidates
        contexts: VM name -> VMContext
        catalog: Instance catalog incl. custom profiles (defaults to packaged)
        overrides: VM name -> ProfileOverride
        rules: Burstable heuristics (defaults to packaged)
        os_table: OS table used for the burstable OS exclusion

    Returns:
        One ProfileMapping per VM, in input order
    """
    catalog = catalog or default_catalog()
    rules = rules or default_burstable_rules()
    overrides = overrides or {}

    mappings = []
    for vm in vms:
        context = contexts.get(vm.name) or VMContext(vm_name=vm.name)
        memory_gib = vm.memory_gib
        auto_profile = select_profile(catalog, vm.vcpus, memory_gib)
        classification = classify_burstable(
            vm, context, lookup_os(vm.guest_os, os_table), catalog, rules
        )

        effective = auto_profile
        is_overridden = False
        reason = None
        override = overrides.get(vm.name)
        if override is not None:
            target = catalog.find(override.profile_name)
            if target is None:
                logger.warning(
                    f"Override for {vm.name} references unknown profile "
                    f"'{override.profile_name}', using {auto_profile.name}"
                )
            else:
                effective = target
                is_overridden = True
                reason = override.reason

        mappings.append(
            ProfileMapping(
                vm_name=vm.name,
                vcpus=vm.vcpus,
                memory_gib=round(memory_gib, 1),
                auto_profile=auto_profile,
                effective_profile=effective,
                is_overridden=is_overridden,
                classification=classification,
                override_reason=reason,
            )
        )

    logger.debug(f"Mapped {len(mappings)} VM(s) to instance profiles")
    return mappings


# ===== SUMMARIES =====


def count_by_profile(mappings: list[ProfileMapping]) -> dict[str, int]:
    """Effective profile name -> VM count, most used first."""
    counts = Counter(m.effective_profile.name for m in mappings)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def count_by_family(mappings: list[ProfileMapping]) -> dict[str, int]:
    counts = Counter(m.effective_profile.family.value for m in mappings)
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def profile_totals(mappings: list[ProfileMapping]) -> dict[str, Any]:
    return {
        "total_instances": len(mappings),
        "unique_profiles": len({m.effective_profile.name for m in mappings}),
        "total_vcpus": sum(m.effective_profile.vcpus for m in mappings),
        "total_memory_gib": sum(m.effective_profile.memory_gib for m in mappings),
        "overridden": sum(1 for m in mappings if m.is_overridden),
        "burstable_candidates": sum(1 for m in mappings if m.classification.is_burstable),
    }
