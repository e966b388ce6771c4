"""
Inventory loading.

Reads a normalized inventory document (YAML or JSON mapping of record lists)
from disk and turns it into an ``Inventory``. Spreadsheet exports are expected
to be normalized upstream.
"""

import json
import logging
from pathlib import Path

import yaml

from vm_readiness.exceptions import InventoryFormatError, InventoryNotFoundError
from vm_readiness.models.inventory import Inventory
from vm_readiness.util.files import read_structured

logger = logging.getLogger(__name__)


def load_inventory(path: str | Path) -> Inventory:
    """
    Load an inventory file.

    Args:
        path: YAML or JSON document

    Returns:
        Inventory

    Raises:
        InventoryNotFoundError: If the file does not exist
        InventoryFormatError: If the file cannot be parsed or is not a mapping
        InvalidRecordError: If a record is malformed
    """
    path = Path(path)
    if not path.is_file():
        raise InventoryNotFoundError(str(path))

    try:
        data = read_structured(path)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise InventoryFormatError(str(path), f"parse error: {e}") from e

    if data is None:
        raise InventoryFormatError(str(path), "file is empty")
    if not isinstance(data, dict):
        raise InventoryFormatError(str(path), f"expected mapping, got {type(data).__name__}")

    inventory = Inventory.from_dict(data)
    logger.info(f"Loaded {len(inventory.vms)} VM record(s) from {path}")
    return inventory
