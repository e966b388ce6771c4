"""
End-to-end assessment pipeline.

Composes the context builder, evaluator, scoring, profile mapper, wave planner
and remediation builder into a single ``run_assessment`` call. The run is
synchronous and deterministic: the same inventory and settings always yield an
identical ``AssessmentReport``.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from vm_readiness.assess.checks import CheckEnv, CheckRegistry
from vm_readiness.assess.context import VMContext, build_contexts
from vm_readiness.assess.evaluator import evaluate_candidates, select_candidates
from vm_readiness.assess.os_compat import OSCompatibilityTable, lookup_os
from vm_readiness.assess.profiles import (
    BurstableRules,
    ProfileMapping,
    count_by_family,
    count_by_profile,
    map_profiles,
    profile_totals,
)
from vm_readiness.assess.remediation import RemediationItem, build_remediation_items
from vm_readiness.assess.scoring import (
    VMAssessment,
    assessment_summary,
    build_assessment,
    complexity_distribution,
    count_by_os_status,
    readiness_score,
    top_complex_vms,
)
from vm_readiness.assess.thresholds import DEFAULT_THRESHOLDS, Thresholds
from vm_readiness.assess.types import TargetMode
from vm_readiness.assess.waves import (
    NetworkGroupBy,
    Wave,
    build_wave_entries,
    plan_network_waves,
    plan_waves,
)
from vm_readiness.exceptions import InvalidGroupByError, InvalidModeError
from vm_readiness.models.inventory import Inventory
from vm_readiness.models.profile import ProfileCatalog, ProfileOverride

logger = logging.getLogger(__name__)


def parse_mode(mode: TargetMode | str) -> TargetMode:
    """Accept a TargetMode or its string value."""
    if isinstance(mode, TargetMode):
        return mode
    try:
        return TargetMode(str(mode).strip().lower())
    except ValueError:
        raise InvalidModeError(str(mode)) from None


def parse_group_by(group_by: NetworkGroupBy | str) -> NetworkGroupBy:
    """Accept a NetworkGroupBy or its string value."""
    if isinstance(group_by, NetworkGroupBy):
        return group_by
    try:
        return NetworkGroupBy(str(group_by).strip().lower())
    except ValueError:
        raise InvalidGroupByError(str(group_by)) from None


@dataclass(frozen=True)
class AssessmentReport:
    """
    Structured result of one assessment run.

    Attributes:
        mode: Target mode the catalog was filtered by
        readiness_score: Run-level score in [0, 100]
        assessments: VM name -> VMAssessment, in inventory order
        profile_mappings: One ProfileMapping per candidate
        waves: Non-empty complexity waves in ordinal order
        remediation: Remediation items, blockers first
        network_group_by: Grouping used for network_waves, if any
        network_waves: Waves grouped by port group or cluster (empty unless requested)
        summary: Aggregate counts for display
    """

    mode: TargetMode
    readiness_score: int
    assessments: dict[str, VMAssessment]
    profile_mappings: list[ProfileMapping]
    waves: list[Wave]
    remediation: list[RemediationItem]
    summary: dict[str, Any] = field(default_factory=dict)
    network_group_by: NetworkGroupBy | None = None
    network_waves: list[Wave] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-serialisable structure with deterministic ordering."""
        return {
            "mode": self.mode.value,
            "readiness_score": self.readiness_score,
            "summary": self.summary,
            "assessments": [a.to_dict() for a in self.assessments.values()],
            "profile_mappings": [m.to_dict() for m in self.profile_mappings],
            "waves": [w.to_dict() for w in self.waves],
            "network_group_by": str(self.network_group_by) if self.network_group_by else None,
            "network_waves": [w.to_dict() for w in self.network_waves],
            "remediation": [r.to_dict() for r in self.remediation],
        }


def run_assessment(
    inventory: Inventory,
    mode: TargetMode | str = TargetMode.OPENSHIFT,
    *,
    thresholds: Thresholds | None = None,
    registry: CheckRegistry | None = None,
    os_table: OSCompatibilityTable | None = None,
    catalog: ProfileCatalog | None = None,
    overrides: Mapping[str, ProfileOverride] | None = None,
    burstable_rules: BurstableRules | None = None,
    group_by: NetworkGroupBy | str | None = None,
) -> AssessmentReport:
    """
    Assess an inventory for migration to the given target.

    Args:
        inventory: Normalized record set
        mode: Target mode (``openshift`` or ``vpc``)
        thresholds: Tunable limits (defaults to the reference configuration)
        registry: Check catalog and evaluators
        os_table: OS compatibility table
        catalog: Instance profile catalog incl. custom profiles
        overrides: VM name -> ProfileOverride
        burstable_rules: Burstable heuristics
        group_by: Also plan network waves by ``port-group`` or ``cluster``

    Returns:
        AssessmentReport

    Raises:
        InvalidModeError: If mode is not a known target
        InvalidGroupByError: If group_by is not a known grouping
        InvalidRecordError: If a VM record is malformed or duplicated
    """
    mode = parse_mode(mode)
    network_group_by = parse_group_by(group_by) if group_by else None
    thresholds = thresholds or DEFAULT_THRESHOLDS
    registry = registry or CheckRegistry.default()
    env = CheckEnv(thresholds=thresholds, os_table=os_table)

    contexts = build_contexts(inventory)
    candidates = select_candidates(inventory.vms)
    logger.debug(
        f"{len(candidates)} of {len(inventory.vms)} VM(s) are candidates for {mode} assessment"
    )

    check_results = evaluate_candidates(candidates, contexts, mode, registry, env)

    assessments: dict[str, VMAssessment] = {}
    for vm, results in zip(candidates, check_results):
        context = contexts.get(vm.name) or VMContext(vm_name=vm.name)
        assessments[vm.name] = build_assessment(
            vm, context, results, lookup_os(vm.guest_os, os_table), mode, thresholds
        )
    assessment_list = list(assessments.values())
    score = readiness_score(assessment_list)

    mappings = map_profiles(
        candidates,
        contexts,
        catalog=catalog,
        overrides=overrides,
        rules=burstable_rules,
        os_table=os_table,
    )
    wave_entries = build_wave_entries(candidates, assessments, contexts, mode, thresholds, os_table)
    waves = plan_waves(wave_entries)
    network_waves = (
        plan_network_waves(wave_entries, network_group_by) if network_group_by else []
    )
    remediation = build_remediation_items(assessment_list, registry)

    summary = {
        "total_vms": len(inventory.vms),
        "candidate_vms": len(candidates),
        "excluded_vms": len(inventory.vms) - len(candidates),
        "checks_run": len(registry.for_mode(mode)),
        "assessment": assessment_summary(assessment_list),
        "complexity_distribution": complexity_distribution(assessment_list),
        "os_status": count_by_os_status(assessment_list),
        "top_complex_vms": [
            {"vm_name": name, "score": value} for name, value in top_complex_vms(assessment_list)
        ],
        "profiles": {
            "by_profile": count_by_profile(mappings),
            "by_family": count_by_family(mappings),
            "totals": profile_totals(mappings),
        },
        "thresholds": thresholds.to_dict(),
    }

    logger.info(f"Assessed {len(candidates)} VM(s) for {mode}: readiness {score}")
    return AssessmentReport(
        mode=mode,
        readiness_score=score,
        assessments=assessments,
        profile_mappings=mappings,
        waves=waves,
        remediation=remediation,
        summary=summary,
        network_group_by=network_group_by,
        network_waves=network_waves,
    )
