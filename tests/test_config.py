"""
Tests for configuration loading and validation.
"""

import pytest
import yaml

from vm_readiness.assess.types import TargetMode
from vm_readiness.config import CONFIG_FILENAME, AssessmentConfig
from vm_readiness.exceptions import InvalidConfigError
from vm_readiness.models.profile import ProfileFamily


def write_config(directory, content) -> AssessmentConfig:
    path = directory / CONFIG_FILENAME
    path.write_text(content if isinstance(content, str) else yaml.safe_dump(content))
    return AssessmentConfig(directory)


class TestAssessmentConfig:
    """Tests for AssessmentConfig."""

    def test_missing_file_uses_defaults(self, tmp_path):
        """Test that a missing configuration yields default settings."""
        config = AssessmentConfig(tmp_path)

        assert not config.exists
        assert config.load() == {}
        assert config.mode is TargetMode.OPENSHIFT
        assert config.thresholds.snapshot_blocker_age_days == 30
        assert config.overrides == {}

    def test_initialize_writes_valid_defaults(self, tmp_path):
        """Test that the generated configuration passes validation."""
        config = AssessmentConfig.initialize(tmp_path / "project")

        assert config.exists
        assert config.load()["mode"] == "openshift"
        assert config.thresholds.max_disks_per_vm == 12

    def test_accepts_file_path(self, tmp_path):
        """Test that a direct file path is accepted."""
        path = tmp_path / "custom.yaml"
        path.write_text("mode: vpc\n")

        assert AssessmentConfig(path).mode is TargetMode.VPC

    def test_partial_thresholds(self, tmp_path):
        """Test that unspecified thresholds keep their defaults."""
        config = write_config(tmp_path, {"thresholds": {"snapshot_blocker_age_days": 14}})

        thresholds = config.thresholds
        assert thresholds.snapshot_blocker_age_days == 14
        assert thresholds.boot_disk_max_gib == 250

    def test_overrides(self, tmp_path):
        """Test override parsing."""
        config = write_config(
            tmp_path,
            {"overrides": {"db-01": {"profile": "mx2-16x128", "reason": "month-end batch"}}},
        )

        override = config.overrides["db-01"]
        assert override.profile_name == "mx2-16x128"
        assert override.reason == "month-end batch"

    def test_custom_profiles(self, tmp_path):
        """Test that custom profiles join the catalog."""
        config = write_config(
            tmp_path, {"custom_profiles": [{"name": "gpu-8x64", "vcpus": 8, "memory_gib": 64}]}
        )

        profile = config.catalog().find("gpu-8x64")
        assert profile.family is ProfileFamily.CUSTOM
        assert profile.bandwidth_gbps == 16

    def test_custom_profile_name_clash(self, tmp_path):
        """Test that custom profiles may not shadow catalog profiles."""
        config = write_config(
            tmp_path, {"custom_profiles": [{"name": "bx2-2x8", "vcpus": 2, "memory_gib": 8}]}
        )

        with pytest.raises(InvalidConfigError, match="clash"):
            config.catalog()

    def test_load_is_cached(self, tmp_path):
        """Test that the file is read once."""
        config = write_config(tmp_path, "mode: vpc\n")
        config.load()
        config.config_file.write_text("mode: openshift\n")

        assert config.mode is TargetMode.VPC


class TestValidation:
    """Tests for configuration validation errors."""

    def test_empty_file(self, tmp_path):
        """Test that an empty file is rejected."""
        with pytest.raises(InvalidConfigError, match="empty"):
            write_config(tmp_path, "").load()

    def test_not_a_mapping(self, tmp_path):
        """Test that a non-mapping document is rejected."""
        with pytest.raises(InvalidConfigError, match="expected mapping"):
            write_config(tmp_path, "- a\n- b\n").load()

    def test_invalid_yaml(self, tmp_path):
        """Test that YAML syntax errors are reported."""
        with pytest.raises(InvalidConfigError, match="not valid YAML"):
            write_config(tmp_path, "mode: [unclosed\n").load()

    def test_unknown_mode(self, tmp_path):
        """Test that the schema rejects unknown modes."""
        with pytest.raises(InvalidConfigError, match="validation failed"):
            write_config(tmp_path, {"mode": "azure"}).load()

    def test_unknown_threshold(self, tmp_path):
        """Test that unknown threshold keys are rejected with their path."""
        with pytest.raises(InvalidConfigError, match="Path: thresholds"):
            write_config(tmp_path, {"thresholds": {"snapshot_age": 10}}).load()

    def test_unknown_top_level_key(self, tmp_path):
        """Test that unknown top-level keys are rejected."""
        with pytest.raises(InvalidConfigError):
            write_config(tmp_path, {"tresholds": {}}).load()

    def test_override_requires_profile(self, tmp_path):
        """Test that overrides must name a profile."""
        with pytest.raises(InvalidConfigError, match="profile"):
            write_config(tmp_path, {"overrides": {"db-01": {"reason": "x"}}}).load()

    def test_custom_profile_needs_positive_vcpus(self, tmp_path):
        """Test custom profile field validation."""
        config = write_config(
            tmp_path, {"custom_profiles": [{"name": "zero", "vcpus": 0, "memory_gib": 8}]}
        )

        with pytest.raises(InvalidConfigError, match="custom_profiles.0.vcpus"):
            config.load()
