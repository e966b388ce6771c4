"""
Named threshold constants used by check evaluators and the wave planner.

Evaluators never hard-code limits; they read them from a ``Thresholds``
instance so the values can be tuned from configuration without touching rule
logic.
"""

from dataclasses import dataclass, fields, replace
from typing import Any


@dataclass(frozen=True)
class Thresholds:
    """Tunable limits (reference configuration shown as defaults)."""

    # Snapshots older than this block migration
    snapshot_blocker_age_days: float = 30
    # Hardware version floors (numeric part of e.g. "vmx-19")
    hw_version_minimum: int = 10
    hw_version_recommended: int = 14
    # VPC instance constraints
    boot_disk_max_gib: float = 250
    max_disks_per_vm: int = 12
    large_disk_gib: float = 2000
    memory_max_gib: float = 1024
    memory_high_gib: float = 512

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Thresholds":
        """
        Build thresholds from a (possibly partial) mapping.

        Unknown keys raise ValueError; missing keys keep their defaults.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown threshold(s): {', '.join(unknown)}")
        return replace(cls(), **data)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_THRESHOLDS = Thresholds()
