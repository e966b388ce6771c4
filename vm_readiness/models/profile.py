"""Instance profile dataclasses for target-shape mapping.

This module defines the target instance catalog used by the profile mapper.
Profiles are grouped into families; every family list is kept sorted ascending
by capacity so that the first profile that fits is also the smallest one.
Pricing fields are carried as opaque payload for downstream cost layers.
"""

from dataclasses import dataclass, field
from enum import Enum


class ProfileFamily(Enum):
    """
    Target instance families.

    Families:
    - balanced: ~4 GiB memory per vCPU (general purpose)
    - compute: ~2 GiB memory per vCPU (CPU heavy)
    - memory: ~8 GiB memory per vCPU (memory heavy)
    - burstable: shared-core variant with variable CPU performance
    - custom: user-defined profiles added through configuration
    """

    BALANCED = "balanced"
    COMPUTE = "compute"
    MEMORY = "memory"
    BURSTABLE = "burstable"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class InstanceProfile:
    """A single target instance shape."""

    name: str
    family: ProfileFamily
    vcpus: int
    memory_gib: float
    bandwidth_gbps: float = 0
    hourly_rate: float = 0
    monthly_rate: float = 0

    def fits(self, vcpus: float, memory_gib: float) -> bool:
        """Return True if this profile satisfies the vCPU and memory requirement."""
        return self.vcpus >= vcpus and self.memory_gib >= memory_gib

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "family": self.family.value,
            "vcpus": self.vcpus,
            "memory_gib": self.memory_gib,
            "bandwidth_gbps": self.bandwidth_gbps,
            "hourly_rate": self.hourly_rate,
            "monthly_rate": self.monthly_rate,
        }


@dataclass(frozen=True)
class ProfileCatalog:
    """Immutable catalog of instance profiles keyed by family.

    ``families`` maps each family to a tuple sorted ascending by capacity.
    """

    families: dict[ProfileFamily, tuple[InstanceProfile, ...]] = field(default_factory=dict)

    def profiles(self, family: ProfileFamily) -> tuple[InstanceProfile, ...]:
        return self.families.get(family, ())

    def all_profiles(self) -> list[InstanceProfile]:
        return [p for family in ProfileFamily for p in self.profiles(family)]

    def find(self, name: str) -> InstanceProfile | None:
        """Find a profile by name across all families (custom profiles included)."""
        for profile in self.all_profiles():
            if profile.name == name:
                return profile
        return None

    def with_custom_profiles(self, custom: list[InstanceProfile]) -> "ProfileCatalog":
        """Return a new catalog with ``custom`` appended to the custom family."""
        if not custom:
            return self
        families = dict(self.families)
        existing = families.get(ProfileFamily.CUSTOM, ())
        ordered = sorted((*existing, *custom), key=lambda p: (p.vcpus, p.memory_gib, p.name))
        families[ProfileFamily.CUSTOM] = tuple(ordered)
        return ProfileCatalog(families=families)


@dataclass(frozen=True)
class ProfileOverride:
    """User override replacing the auto-selected profile for one VM."""

    vm_name: str
    profile_name: str
    reason: str | None = None
