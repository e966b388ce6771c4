"""
vm-readiness: migration-readiness assessment for virtualized workloads.

Takes a normalized inventory snapshot of VMs (plus their disks, network
adapters, snapshots, tooling status and CPU/memory configuration) and produces:

- Per-VM pre-flight check results scoped to a target platform mode
- A run-level readiness score and per-VM complexity scores/buckets
- Best-fit target instance profiles with burstable recommendations
- An ordered migration wave plan and remediation guidance
"""

__version__ = "0.3.0"
