"""Entity configuration for the back office.

Handles loading and validation of the YAML file that tunes approvable entity
kinds. Example::

    entities:
      product_class:
        pending_status: NEW_RECORD
      stock:
        label: Inventory stock
        merge: replace
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


VALID_PENDING_STATUSES = {"NEW_RECORD", "FOR_APPROVAL"}
VALID_MERGE_STRATEGIES = {"overlay", "replace"}


@dataclass
class EntityConfig:
    """Overrides for a single entity kind."""

    label: Optional[str] = None
    pending_status: Optional[str] = None
    merge: Optional[str] = None


@dataclass
class BackOfficeConfig:
    """Top-level YAML configuration."""

    entities: Dict[str, EntityConfig] = field(default_factory=dict)


def parse_entity_config(name: str, entity_dict: Optional[Dict[str, Any]]) -> EntityConfig:
    """Parse an entity configuration dictionary.

    Args:
        name: Entity kind key
        entity_dict: Entity configuration dictionary

    Returns:
        EntityConfig instance

    Raises:
        ValueError: If a value is not recognised
    """
    entity_dict = entity_dict or {}
    if not isinstance(entity_dict, dict):
        raise ValueError(f"Entity configuration for {name} must be a mapping")

    pending_status = entity_dict.get("pending_status")
    if pending_status is not None:
        pending_status = str(pending_status).upper()
        if pending_status not in VALID_PENDING_STATUSES:
            raise ValueError(
                f"Invalid pending_status for {name}: {pending_status}. "
                f"Must be one of: {', '.join(sorted(VALID_PENDING_STATUSES))}"
            )

    merge = entity_dict.get("merge")
    if merge is not None and merge not in VALID_MERGE_STRATEGIES:
        raise ValueError(
            f"Invalid merge strategy for {name}: {merge}. "
            f"Must be one of: {', '.join(sorted(VALID_MERGE_STRATEGIES))}"
        )

    return EntityConfig(
        label=entity_dict.get("label"),
        pending_status=pending_status,
        merge=merge,
    )


def parse_config(config_dict: Optional[Dict[str, Any]]) -> BackOfficeConfig:
    """Parse the full configuration dictionary."""
    config_dict = config_dict or {}
    entities = {
        name: parse_entity_config(name, entity_dict)
        for name, entity_dict in (config_dict.get("entities") or {}).items()
    }
    return BackOfficeConfig(entities=entities)


def load_config(config_path: Optional[str] = None) -> BackOfficeConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML file. Falls back to the
            ``ENTITIES_CONFIG_PATH`` environment variable; an unset path yields
            the defaults.

    Returns:
        BackOfficeConfig instance

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or has invalid values
    """
    config_path = config_path or os.environ.get("ENTITIES_CONFIG_PATH")
    if not config_path:
        return BackOfficeConfig()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r") as f:
        try:
            config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if config_dict is not None and not isinstance(config_dict, dict):
        raise ValueError(f"Configuration root must be a mapping: {config_path}")

    return parse_config(config_dict)
