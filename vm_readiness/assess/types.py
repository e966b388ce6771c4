"""
Core assessment types.

Defines the target platform modes, check status/severity/category levels, the
static ``CheckDefinition`` catalog entry and the per-(VM, check)
``CheckResult``. All types are immutable and serialise to plain dicts.
"""

from enum import Enum
from typing import Any, NamedTuple


class TargetMode(Enum):
    """
    Target platform whose constraint set filters the check catalog.

    Modes:
        OPENSHIFT: OpenShift Virtualization (VM import operator); checks guest
            configuration in depth, looser instance constraints
        VPC: VPC virtual server instances; strict boot disk, disk count and
            memory ceilings

    Examples:
        >>> TargetMode("vpc").label
        'VPC Virtual Server'
    """

    OPENSHIFT = "openshift"
    VPC = "vpc"

    def __str__(self) -> str:
        """Return the string value for display."""
        return self.value

    @property
    def label(self) -> str:
        return {
            "openshift": "OpenShift Virtualization",
            "vpc": "VPC Virtual Server",
        }[self.value]


class CheckStatus(Enum):
    """
    Outcome of evaluating one check against one VM.

    Statuses:
        PASS: Requirement met
        FAIL: Requirement not met; counted by the definition's severity
        WARN: Met with caveats; always counted as a warning
        NOT_APPLICABLE: Check does not apply to this VM
    """

    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    NOT_APPLICABLE = "not-applicable"

    def __str__(self) -> str:
        return self.value


class Severity(Enum):
    """How much a failing check matters."""

    BLOCKER = "blocker"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """
        Return numeric rank for sorting (lower = more severe).

        Returns:
            0 for BLOCKER, 1 for WARNING, 2 for INFO
        """
        return {"blocker": 0, "warning": 1, "info": 2}[self.value]


class CheckCategory(Enum):
    TOOLS = "tools"
    STORAGE = "storage"
    HARDWARE = "hardware"
    CONFIG = "config"
    OS = "os"

    def __str__(self) -> str:
        return self.value


class CheckDefinition(NamedTuple):
    """
    Static catalog entry for one pre-flight check.

    Attributes:
        id: Unique key (e.g. "old-snapshots")
        name: Human-readable name
        short_name: Column header for tabular output
        category: Check category
        severity: Severity applied when the check fails
        description: What the check verifies
        modes: Target modes the check runs under
        remediation: Suggested fix, shown in remediation guidance
    """

    id: str
    name: str
    short_name: str
    category: CheckCategory
    severity: Severity
    description: str
    modes: frozenset[TargetMode]
    remediation: str = ""

    def applies_to(self, mode: TargetMode) -> bool:
        return mode in self.modes

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "category": self.category.value,
            "severity": self.severity.value,
            "description": self.description,
            "modes": sorted(m.value for m in self.modes),
            "remediation": self.remediation,
        }


class CheckResult(NamedTuple):
    """
    Outcome of one check for one VM.

    Example:
        >>> CheckResult(CheckStatus.FAIL, value="45 days", threshold=">30 days").to_dict()["status"]
        'fail'
    """

    status: CheckStatus
    value: str | int | float | None = None
    threshold: str | int | float | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with the status converted to its string value; unset
            optional fields are omitted
        """
        result: dict[str, Any] = {"status": self.status.value}
        if self.value is not None:
            result["value"] = self.value
        if self.threshold is not None:
            result["threshold"] = self.threshold
        if self.message is not None:
            result["message"] = self.message
        return result

    @classmethod
    def passed(cls, value=None, message: str | None = None) -> "CheckResult":
        return cls(CheckStatus.PASS, value=value, message=message)

    @classmethod
    def not_applicable(cls, message: str) -> "CheckResult":
        return cls(CheckStatus.NOT_APPLICABLE, message=message)


class ComplexityBucket(Enum):
    """
    Complexity classification derived from the 0-100 complexity score.

    Boundaries are inclusive on the lower bucket: Simple <= 25,
    Moderate <= 50, Complex <= 75, Blocker > 75.
    """

    SIMPLE = "Simple"
    MODERATE = "Moderate"
    COMPLEX = "Complex"
    BLOCKER = "Blocker"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_score(cls, score: float) -> "ComplexityBucket":
        if score <= 25:
            return cls.SIMPLE
        if score <= 50:
            return cls.MODERATE
        if score <= 75:
            return cls.COMPLEX
        return cls.BLOCKER

    @property
    def range_label(self) -> str:
        return {
            "Simple": "0-25",
            "Moderate": "26-50",
            "Complex": "51-75",
            "Blocker": "76-100",
        }[self.value]
