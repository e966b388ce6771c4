"""
Assessment configuration for vm-readiness.

The configuration lives in ``vm-readiness.yaml`` next to the inventory. It
selects the default target mode, tunes thresholds, pins profile overrides and
adds custom instance profiles. The file is optional: without it every setting
takes its default.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from vm_readiness.assess.profiles import custom_profile, default_catalog
from vm_readiness.assess.thresholds import Thresholds
from vm_readiness.assess.types import TargetMode
from vm_readiness.exceptions import InvalidConfigError
from vm_readiness.models.profile import ProfileCatalog, ProfileOverride
from vm_readiness.util.files import ensure_dir

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema" / "config.schema.json"
CONFIG_FILENAME = "vm-readiness.yaml"


class AssessmentConfig:
    """Loads, validates and interprets the vm-readiness configuration file."""

    DEFAULT_CONFIG = {
        "mode": "openshift",
        "thresholds": Thresholds().to_dict(),
        "overrides": {},
        "custom_profiles": [],
    }

    def __init__(self, path: Path):
        path = Path(path)
        self.config_file = path / CONFIG_FILENAME if path.is_dir() else path
        self._config_cache: dict[str, Any] | None = None

    @classmethod
    def initialize(cls, directory: Path) -> "AssessmentConfig":
        """Write the default configuration into ``directory``."""
        config = cls(ensure_dir(directory) / CONFIG_FILENAME)
        with open(config.config_file, "w") as f:
            yaml.dump(cls.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
        return config

    @property
    def exists(self) -> bool:
        return self.config_file.exists()

    def load(self) -> dict[str, Any]:
        """
        Load and validate the configuration (cached after the first call).

        Returns:
            The configuration dict, or an empty dict when the file does not exist

        Raises:
            InvalidConfigError: If the file is empty, not a mapping or fails the schema
        """
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_file.exists():
            logger.debug(f"No configuration file at {self.config_file}, using defaults")
            self._config_cache = {}
            return self._config_cache

        try:
            with open(self.config_file) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidConfigError(f"{self.config_file} is not valid YAML: {e}") from e

        if config is None:
            raise InvalidConfigError(f"Config file is empty: {self.config_file}")

        if not isinstance(config, dict):
            raise InvalidConfigError(
                f"{self.config_file}: expected mapping, got {type(config).__name__}"
            )

        self._validate_schema(config)

        self._config_cache = config
        logger.info(f"Loaded configuration from {self.config_file}")
        return config

    def _validate_schema(self, config: dict) -> None:
        schema = json.loads(SCHEMA_FILE.read_text())
        try:
            validate(instance=config, schema=schema)
        except ValidationError as e:
            raise InvalidConfigError(
                f"Configuration validation failed:\n"
                f"  {e.message}\n"
                f"  Path: {'.'.join(str(p) for p in e.path)}"
            ) from e

    @property
    def mode(self) -> TargetMode:
        return TargetMode(self.load().get("mode", "openshift"))

    @property
    def thresholds(self) -> Thresholds:
        try:
            return Thresholds.from_dict(self.load().get("thresholds"))
        except ValueError as e:
            raise InvalidConfigError(str(e)) from e

    @property
    def overrides(self) -> dict[str, ProfileOverride]:
        raw = self.load().get("overrides") or {}
        return {
            vm_name: ProfileOverride(vm_name, entry["profile"], entry.get("reason"))
            for vm_name, entry in raw.items()
        }

    def catalog(self, base: ProfileCatalog | None = None) -> ProfileCatalog:
        """Instance catalog with any configured custom profiles added."""
        base = base or default_catalog()
        custom = [
            custom_profile(
                entry["name"], entry["vcpus"], entry["memory_gib"], entry.get("bandwidth_gbps")
            )
            for entry in self.load().get("custom_profiles") or []
        ]
        clashes = [p.name for p in custom if base.find(p.name) is not None]
        if clashes:
            raise InvalidConfigError(
                f"Custom profile name(s) clash with the catalog: {', '.join(clashes)}"
            )
        return base.with_custom_profiles(custom)
