"""
Aggregation and scoring.

Turns per-VM check results into ``VMAssessment`` rollups, computes the
additive per-VM complexity score and its bucket, and the run-level readiness
score. Summary helpers feed the report and console output.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from vm_readiness.assess.checks import hardware_version_number
from vm_readiness.assess.context import VMContext
from vm_readiness.assess.evaluator import VMCheckResults
from vm_readiness.assess.os_compat import OSCompatibility, OSStatus
from vm_readiness.assess.thresholds import DEFAULT_THRESHOLDS, Thresholds
from vm_readiness.assess.types import CheckResult, ComplexityBucket, TargetMode
from vm_readiness.models.inventory import VMRecord
from vm_readiness.util.numbers import round_half_up

logger = logging.getLogger(__name__)

# Complexity weights
OS_WEIGHT = 0.3
NIC_MANY_POINTS = 30
NIC_SOME_POINTS = 15
NIC_MANY_ABOVE = 3
NIC_SOME_MINIMUM = 2
DISK_MANY_POINTS = 30
DISK_SOME_POINTS = 15
DISK_MANY_ABOVE = 5
DISK_SOME_MINIMUM = 3
HW_BELOW_MINIMUM_POINTS = 25
HW_BELOW_RECOMMENDED_POINTS = 10
OVERSIZED_POINTS = 20
OVERSIZED_VCPUS = 16
OVERSIZED_MEMORY_GIB = 128

# Readiness penalties (fraction of candidates x weight)
BLOCKER_PENALTY = 50
WARNING_PENALTY = 30
UNSUPPORTED_OS_PENALTY = 20


@dataclass(frozen=True)
class ComplexityScore:
    """Complexity score with the factors that contributed to it."""

    score: float
    factors: tuple[str, ...] = ()

    @property
    def bucket(self) -> ComplexityBucket:
        return ComplexityBucket.from_score(self.score)

    def describe(self) -> str:
        return ", ".join(self.factors) if self.factors else "No complexity factors"


@dataclass(frozen=True)
class VMAssessment:
    """
    Per-VM rollup of checks, counts, complexity and OS status.

    Attributes:
        vm_name: VM name
        checks: Check id -> CheckResult, in catalog order
        blocker_count: Failing blocker-severity checks
        warning_count: Failing warning-severity checks plus warn results
        complexity_score: 0-100, one decimal
        complexity_bucket: Bucket derived from the score
        complexity_factors: Human-readable contributing factors
        os_status: OS table status for the guest OS
        os_id: Matching OS table entry id
    """

    vm_name: str
    checks: dict[str, CheckResult]
    blocker_count: int
    warning_count: int
    complexity_score: float
    complexity_bucket: ComplexityBucket
    complexity_factors: tuple[str, ...] = ()
    os_status: OSStatus = OSStatus.UNSUPPORTED
    os_id: str = "unknown"
    os_unsupported: bool = field(default=False, compare=False)

    @property
    def has_blockers(self) -> bool:
        return self.blocker_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "vm_name": self.vm_name,
            "blocker_count": self.blocker_count,
            "warning_count": self.warning_count,
            "complexity_score": self.complexity_score,
            "complexity_bucket": self.complexity_bucket.value,
            "complexity_factors": list(self.complexity_factors),
            "os_status": self.os_status.value,
            "os_id": self.os_id,
            "checks": {check_id: r.to_dict() for check_id, r in self.checks.items()},
        }


def calculate_complexity(
    vm: VMRecord,
    context: VMContext,
    os_entry: OSCompatibility,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> ComplexityScore:
    """
    Additive complexity score for one VM, clamped once to [0, 100].

    Terms:
        OS: (100 - OS score) x 0.3
        NICs: 30 when more than 3, 15 when 2 or 3
        Disks: 30 when more than 5, 15 when 3 to 5
        Hardware version: 25 below the minimum, 10 below the recommended
        Oversized: 20 when vCPUs > 16 or memory > 128 GiB
    """
    score = 0.0
    factors: list[str] = []

    os_points = (100 - os_entry.score) * OS_WEIGHT
    if os_points > 0:
        score += os_points
        factors.append(f"OS compatibility (+{round(os_points, 1):g})")

    nic_count = context.nic_count(vm)
    if nic_count > NIC_MANY_ABOVE:
        score += NIC_MANY_POINTS
        factors.append(f"{nic_count} NICs (+{NIC_MANY_POINTS})")
    elif nic_count >= NIC_SOME_MINIMUM:
        score += NIC_SOME_POINTS
        factors.append(f"{nic_count} NICs (+{NIC_SOME_POINTS})")

    disk_count = context.disk_count(vm)
    if disk_count > DISK_MANY_ABOVE:
        score += DISK_MANY_POINTS
        factors.append(f"{disk_count} disks (+{DISK_MANY_POINTS})")
    elif disk_count >= DISK_SOME_MINIMUM:
        score += DISK_SOME_POINTS
        factors.append(f"{disk_count} disks (+{DISK_SOME_POINTS})")

    hw_version = hardware_version_number(vm.hardware_version)
    if hw_version < thresholds.hw_version_minimum:
        score += HW_BELOW_MINIMUM_POINTS
        factors.append(f"HW v{hw_version} < min (+{HW_BELOW_MINIMUM_POINTS})")
    elif hw_version < thresholds.hw_version_recommended:
        score += HW_BELOW_RECOMMENDED_POINTS
        factors.append(f"HW v{hw_version} < recommended (+{HW_BELOW_RECOMMENDED_POINTS})")

    memory_gib = vm.memory_gib
    if vm.vcpus > OVERSIZED_VCPUS or memory_gib > OVERSIZED_MEMORY_GIB:
        score += OVERSIZED_POINTS
        shown_gib = round_half_up(memory_gib)
        if vm.vcpus > OVERSIZED_VCPUS and memory_gib > OVERSIZED_MEMORY_GIB:
            factors.append(f"{vm.vcpus} vCPUs & {shown_gib} GiB (+{OVERSIZED_POINTS})")
        elif vm.vcpus > OVERSIZED_VCPUS:
            factors.append(f"{vm.vcpus} vCPUs (+{OVERSIZED_POINTS})")
        else:
            factors.append(f"{shown_gib} GiB memory (+{OVERSIZED_POINTS})")

    return ComplexityScore(round(min(100.0, max(0.0, score)), 1), tuple(factors))


def build_assessment(
    vm: VMRecord,
    context: VMContext,
    results: VMCheckResults,
    os_entry: OSCompatibility,
    mode: TargetMode,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> VMAssessment:
    complexity = calculate_complexity(vm, context, os_entry, thresholds)
    return VMAssessment(
        vm_name=vm.name,
        checks=results.checks,
        blocker_count=results.blocker_count,
        warning_count=results.warning_count,
        complexity_score=complexity.score,
        complexity_bucket=complexity.bucket,
        complexity_factors=complexity.factors,
        os_status=os_entry.status,
        os_id=os_entry.id,
        os_unsupported=os_entry.unsupported_for(mode),
    )


def calculate_readiness_score(
    blocker_vms: int, warning_vms: int, unsupported_os_vms: int, total_vms: int
) -> int:
    """
    Run-level readiness score in [0, 100].

    An empty candidate set is scored against a divisor of 1, which makes it
    vacuously ready (100).

    Example:
        >>> calculate_readiness_score(1, 1, 0, 4)
        80
    """
    vm_count = total_vms or 1
    score = (
        100
        - (blocker_vms / vm_count) * BLOCKER_PENALTY
        - (warning_vms / vm_count) * WARNING_PENALTY
        - (unsupported_os_vms / vm_count) * UNSUPPORTED_OS_PENALTY
    )
    return round_half_up(min(100.0, max(0.0, score)))


def readiness_score(assessments: list[VMAssessment]) -> int:
    """
    Readiness score for a set of assessments.

    VMs are counted once: a VM with blockers is a blocker VM, a VM with only
    warnings is a warning VM. The unsupported-OS count is independent of both.
    """
    blocker_vms = sum(1 for a in assessments if a.has_blockers)
    warning_vms = sum(1 for a in assessments if a.has_warnings and not a.has_blockers)
    unsupported = sum(1 for a in assessments if a.os_unsupported)
    return calculate_readiness_score(blocker_vms, warning_vms, unsupported, len(assessments))


# ===== SUMMARIES =====


def complexity_distribution(assessments: list[VMAssessment]) -> dict[str, int]:
    """Bucket name -> VM count, every bucket present."""
    distribution = {bucket.value: 0 for bucket in ComplexityBucket}
    for assessment in assessments:
        distribution[assessment.complexity_bucket.value] += 1
    return distribution


def assessment_summary(assessments: list[VMAssessment]) -> dict[str, Any]:
    distribution = complexity_distribution(assessments)
    total_score = sum(a.complexity_score for a in assessments)
    return {
        "total_vms": len(assessments),
        "simple": distribution[ComplexityBucket.SIMPLE.value],
        "moderate": distribution[ComplexityBucket.MODERATE.value],
        "complex": distribution[ComplexityBucket.COMPLEX.value],
        "blocker": distribution[ComplexityBucket.BLOCKER.value],
        "average_score": round(total_score / len(assessments), 1) if assessments else 0,
        "vms_with_blockers": sum(1 for a in assessments if a.has_blockers),
        "vms_with_warnings": sum(1 for a in assessments if a.has_warnings and not a.has_blockers),
        "vms_ready": sum(1 for a in assessments if not a.has_blockers and not a.has_warnings),
    }


def top_complex_vms(assessments: list[VMAssessment], count: int = 10) -> list[tuple[str, float]]:
    """Highest complexity first; ties keep inventory order."""
    ranked = sorted(assessments, key=lambda a: -a.complexity_score)
    return [(a.vm_name, a.complexity_score) for a in ranked[:count]]


def count_by_os_status(assessments: list[VMAssessment]) -> dict[str, int]:
    counts = {status.value: 0 for status in OSStatus}
    for assessment in assessments:
        counts[assessment.os_status.value] += 1
    return counts
