"""
Run the mode-filtered check catalog against every candidate VM.

Candidates are powered-on, non-template VMs; everything else is out of scope
for the assessment entirely (it is never reported as a failing check). Each
VM is evaluated independently of every other VM.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from vm_readiness.assess.checks import CheckEnv, CheckRegistry
from vm_readiness.assess.context import VMContext
from vm_readiness.assess.types import (
    CheckDefinition,
    CheckResult,
    CheckStatus,
    Severity,
    TargetMode,
)
from vm_readiness.models.inventory import VMRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VMCheckResults:
    """All check outcomes for one VM, keyed by check id in catalog order."""

    vm_name: str
    checks: dict[str, CheckResult] = field(default_factory=dict)
    blocker_count: int = 0
    warning_count: int = 0

    @property
    def has_blockers(self) -> bool:
        return self.blocker_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    def failing(self) -> list[str]:
        """Ids of checks that failed or warned."""
        return [
            check_id
            for check_id, result in self.checks.items()
            if result.status in (CheckStatus.FAIL, CheckStatus.WARN)
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "vm_name": self.vm_name,
            "blocker_count": self.blocker_count,
            "warning_count": self.warning_count,
            "checks": {check_id: r.to_dict() for check_id, r in self.checks.items()},
        }


def select_candidates(vms) -> list[VMRecord]:
    """Powered-on, non-template VMs in inventory order."""
    return [vm for vm in vms if vm.is_candidate]


def count_issues(
    checks: dict[str, CheckResult], definitions: dict[str, CheckDefinition]
) -> tuple[int, int]:
    """
    Count blockers and warnings for one VM.

    A failing check counts under its definition's severity; a ``warn`` result
    is always a warning. Info-severity failures are not counted.

    Returns:
        Tuple of (blocker_count, warning_count)
    """
    blockers = 0
    warnings = 0
    for check_id, result in checks.items():
        if result.status is CheckStatus.WARN:
            warnings += 1
        elif result.status is CheckStatus.FAIL:
            severity = definitions[check_id].severity
            if severity is Severity.BLOCKER:
                blockers += 1
            elif severity is Severity.WARNING:
                warnings += 1
    return blockers, warnings


def evaluate_vm(
    vm: VMRecord,
    context: VMContext,
    definitions: list[CheckDefinition],
    registry: CheckRegistry,
    env: CheckEnv,
) -> VMCheckResults:
    checks = {d.id: registry.evaluate(d.id, vm, context, env) for d in definitions}
    blockers, warnings = count_issues(checks, {d.id: d for d in definitions})
    return VMCheckResults(vm.name, checks, blockers, warnings)


def evaluate_candidates(
    vms,
    contexts: dict[str, VMContext],
    mode: TargetMode,
    registry: CheckRegistry | None = None,
    env: CheckEnv | None = None,
) -> list[VMCheckResults]:
    """
    Evaluate every candidate VM against the checks that apply to ``mode``.

    Args:
        vms: VM records (non-candidates are skipped)
        contexts: VM name -> VMContext from ``build_contexts``
        mode: Target mode used to filter the catalog
        registry: Check registry (defaults to the packaged catalog)
        env: Thresholds and OS table

    Returns:
        One VMCheckResults per candidate, in inventory order
    """
    registry = registry or CheckRegistry.default()
    env = env or CheckEnv()
    definitions = registry.for_mode(mode)

    candidates = select_candidates(vms)
    results = []
    for vm in candidates:
        context = contexts.get(vm.name) or VMContext(vm_name=vm.name)
        results.append(evaluate_vm(vm, context, definitions, registry, env))

    logger.debug(
        f"Evaluated {len(definitions)} {mode} check(s) against {len(candidates)} candidate VM(s)"
    )
    return results
