"""
Migration readiness assessment pipeline.

Modules (leaf-first):
- context: groups per-entity records by owning VM
- checks: check catalog, registry and evaluators
- evaluator: runs the mode-filtered catalog over candidate VMs
- scoring: complexity and readiness scores
- profiles: instance profile mapping and burstable classification
- waves: migration wave planning
- remediation: remediation items for failing checks
- pipeline: ``run_assessment`` composing all of the above
"""

from vm_readiness.assess.pipeline import AssessmentReport, run_assessment
from vm_readiness.assess.types import TargetMode

__all__ = ["AssessmentReport", "TargetMode", "run_assessment"]
