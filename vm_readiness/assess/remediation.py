"""
Remediation guidance built from failing checks.
"""

from collections.abc import Iterable
from typing import Any, NamedTuple

from vm_readiness.assess.checks import CheckRegistry
from vm_readiness.assess.types import CheckStatus, Severity


class RemediationItem(NamedTuple):
    """One remediation action and the VMs it applies to."""

    check_id: str
    name: str
    severity: Severity
    description: str
    remediation: str
    affected_vms: tuple[str, ...]

    @property
    def affected_count(self) -> int:
        return len(self.affected_vms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "check_id": self.check_id,
            "name": self.name,
            "severity": self.severity.value,
            "description": self.description,
            "remediation": self.remediation,
            "affected_count": self.affected_count,
            "affected_vms": list(self.affected_vms),
        }


def build_remediation_items(
    vm_results: Iterable, registry: CheckRegistry | None = None
) -> list[RemediationItem]:
    """
    Collect one item per check that failed or warned on at least one VM.

    Args:
        vm_results: Objects with ``vm_name`` and ``checks`` (check id -> CheckResult),
            e.g. VMAssessment or VMCheckResults
        registry: Registry holding the definitions (defaults to the packaged catalog)

    Returns:
        Items sorted blockers first, then warnings, then by check id
    """
    registry = registry or CheckRegistry.default()

    affected: dict[str, list[str]] = {}
    for result in vm_results:
        for check_id, check in result.checks.items():
            if check.status in (CheckStatus.FAIL, CheckStatus.WARN):
                affected.setdefault(check_id, []).append(result.vm_name)

    items = []
    for check_id, vm_names in affected.items():
        definition = registry.get(check_id)
        if definition is None:
            continue
        items.append(
            RemediationItem(
                check_id=check_id,
                name=definition.name,
                severity=definition.severity,
                description=definition.description,
                remediation=definition.remediation,
                affected_vms=tuple(vm_names),
            )
        )

    return sorted(items, key=lambda item: (item.severity.rank, item.check_id))
