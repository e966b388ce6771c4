"""
Guest OS compatibility lookup.

A single ordered pattern table backs every OS decision in the pipeline: the
``os-compatible`` and ``vpc-os`` checks, the complexity score OS term, the
readiness unsupported-OS count, the pilot-wave predicate and the burstable OS
exclusion. Callers must go through ``lookup_os`` so they always observe the
same classification for the same guest OS string.
"""

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, NamedTuple

import yaml

from vm_readiness.assess.rules import Rule, first_match
from vm_readiness.assess.types import TargetMode

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent.parent / "data"
OS_TABLE_FILE = DATA_DIR / "os_compatibility.yaml"


class OSStatus(Enum):
    """OpenShift Virtualization support level for a guest OS."""

    FULLY_SUPPORTED = "fully-supported"
    SUPPORTED_WITH_CAVEATS = "supported-with-caveats"
    UNSUPPORTED = "unsupported"

    def __str__(self) -> str:
        return self.value


class VPCSupport(Enum):
    """VPC virtual server image support level for a guest OS."""

    SUPPORTED = "supported"
    COMMUNITY = "community"
    UNSUPPORTED = "unsupported"

    def __str__(self) -> str:
        return self.value


class OSCompatibility(NamedTuple):
    """One row of the OS compatibility table."""

    id: str
    display_name: str
    patterns: tuple[str, ...]
    status: OSStatus
    score: int
    vpc_status: VPCSupport
    notes: str = ""
    recommended_upgrade: str | None = None

    def matches(self, guest_os_lower: str) -> bool:
        return any(pattern in guest_os_lower for pattern in self.patterns)

    def fully_supported_for(self, mode: TargetMode) -> bool:
        """True when the OS is first-class on the given target (pilot wave eligible)."""
        if mode is TargetMode.VPC:
            return self.vpc_status is VPCSupport.SUPPORTED
        return self.status is OSStatus.FULLY_SUPPORTED

    def unsupported_for(self, mode: TargetMode) -> bool:
        if mode is TargetMode.VPC:
            return self.vpc_status is VPCSupport.UNSUPPORTED
        return self.status is OSStatus.UNSUPPORTED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "status": self.status.value,
            "score": self.score,
            "vpc_status": self.vpc_status.value,
            "notes": self.notes,
            "recommended_upgrade": self.recommended_upgrade,
        }


class OSCompatibilityTable:
    """
    Ordered, immutable OS pattern table.

    The entries become an ordered ``Rule`` list; the first entry with a pattern
    contained in the lowercased guest OS string wins and the default entry
    covers everything else.

    Example:
        >>> table = default_os_table()
        >>> table.lookup("Red Hat Enterprise Linux 9 (64-bit)").status.value
        'fully-supported'
    """

    def __init__(self, entries: list[OSCompatibility], default: OSCompatibility):
        self.entries = tuple(entries)
        self.default = default
        self.rules = tuple(
            Rule(entry.id, lambda os_lower, e=entry: e.matches(os_lower), entry)
            for entry in self.entries
        )

    def lookup(self, guest_os: str | None) -> OSCompatibility:
        return first_match(self.rules, (guest_os or "").lower(), default=self.default)

    def __len__(self) -> int:
        return len(self.entries)


def _parse_entry(raw: dict[str, Any], patterns_required: bool = True) -> OSCompatibility:
    patterns = tuple(str(p).lower() for p in raw.get("patterns", []))
    if patterns_required and not patterns:
        raise ValueError(f"OS table entry '{raw.get('id')}' has no patterns")
    return OSCompatibility(
        id=str(raw["id"]),
        display_name=str(raw.get("display_name", raw["id"])),
        patterns=patterns,
        status=OSStatus(raw["status"]),
        score=int(raw["score"]),
        vpc_status=VPCSupport(raw.get("vpc_status", "unsupported")),
        notes=str(raw.get("notes", "")),
        recommended_upgrade=raw.get("recommended_upgrade"),
    )


def load_os_table(path: Path | None = None) -> OSCompatibilityTable:
    """
    Load an OS compatibility table from YAML.

    Args:
        path: Table file (defaults to the packaged table)

    Returns:
        OSCompatibilityTable

    Raises:
        ValueError: If the file is malformed
    """
    path = Path(path) if path else OS_TABLE_FILE
    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "entries" not in data or "default" not in data:
        raise ValueError(f"Invalid OS compatibility table: {path}")

    try:
        entries = [_parse_entry(raw) for raw in data["entries"]]
        default = _parse_entry(data["default"], patterns_required=False)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid OS compatibility entry in {path}: {e}") from e

    logger.debug(f"Loaded {len(entries)} OS compatibility entries from {path}")
    return OSCompatibilityTable(entries, default)


@lru_cache(maxsize=1)
def default_os_table() -> OSCompatibilityTable:
    """Return the packaged OS table (loaded once per process)."""
    return load_os_table()


def lookup_os(guest_os: str | None, table: OSCompatibilityTable | None = None) -> OSCompatibility:
    """Classify a free-text guest OS string; unmatched strings are unsupported."""
    return (table or default_os_table()).lookup(guest_os)
