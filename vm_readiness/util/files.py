"""
File utility functions.
"""

import json
from pathlib import Path
from typing import Any

import yaml

JSON_SUFFIXES = {".json"}
YAML_SUFFIXES = {".yaml", ".yml"}


def ensure_dir(path: str | Path) -> Path:
    """Ensure directory exists, creating if necessary."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def write_text(path: str | Path, content: str) -> None:
    """Write text to file, creating parent directories if needed."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)


def write_json(path: str | Path, data: Any) -> None:
    """Write data as indented JSON with a trailing newline."""
    write_text(path, json.dumps(data, indent=2) + "\n")


def read_structured(path: str | Path) -> Any:
    """
    Parse a JSON or YAML document.

    ``.json`` files are parsed as JSON, everything else as YAML (which also
    accepts JSON).

    Raises:
        json.JSONDecodeError: If a .json file is malformed
        yaml.YAMLError: If a YAML file is malformed
    """
    p = Path(path)
    text = p.read_text()
    if p.suffix.lower() in JSON_SUFFIXES:
        return json.loads(text)
    return yaml.safe_load(text)
