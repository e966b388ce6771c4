"""
Data models.

This package contains the immutable record types consumed by the assessment
pipeline and the target instance profile types produced by it.

Modules:
- inventory: VM, disk, network, snapshot, tooling and hot-add records
- profile: InstanceProfile, ProfileCatalog and user overrides
"""
