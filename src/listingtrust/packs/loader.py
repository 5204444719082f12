"""
ListingTrust Configuration Pack Loader

Loads and validates configuration packs from YAML or JSON files and
converts them into the initial ConfigurationSnapshot for the store.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationLoadError
from ..models import ConfigurationSnapshot
from .schema import (
    SCHEMA_VERSION,
    ConfigurationPackSchema,
    check_schema_version,
    validate_configuration_pack,
)

logger = logging.getLogger(__name__)

DEFAULT_PACK_PATH = Path(__file__).parent / "default_configuration.yaml"


class ConfigurationPackLoader:
    """
    Loads configuration packs from YAML or JSON files.

    Usage:
        loader = ConfigurationPackLoader()
        snapshot = loader.load("path/to/configuration.yaml")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version
        self._packs: dict[str, ConfigurationPackSchema] = {}

    def load(self, path: Union[str, Path]) -> ConfigurationSnapshot:
        """
        Load a configuration pack from a file.

        Raises:
            ConfigurationLoadError: If the file cannot be read, has an
                incompatible schema version, or fails validation
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationLoadError(
                message=f"Failed to load configuration pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationLoadError(
                message="Configuration pack must be a mapping",
                details={"path": str(path)},
            )
        return self.load_data(data, source=str(path))

    def load_data(self, data: dict[str, Any], source: str = "<memory>") -> ConfigurationSnapshot:
        """Validate an already-parsed pack mapping."""
        pack_version = str(data.get("schema_version", "unknown"))
        if self.strict_version and not check_schema_version(pack_version):
            raise ConfigurationLoadError(
                message=(
                    f"Schema version mismatch: pack has {pack_version}, "
                    f"expected {SCHEMA_VERSION}"
                ),
                details={"pack_version": pack_version, "expected_version": SCHEMA_VERSION},
            )

        try:
            schema = validate_configuration_pack(data)
        except ValidationError as e:
            raise ConfigurationLoadError(
                message=f"Configuration pack validation failed: {e.error_count()} errors",
                details={"errors": e.errors(include_url=False), "path": source},
            ) from e

        self._packs[schema.pack_id] = schema
        logger.info("Loaded configuration pack %s v%s from %s", schema.pack_id, schema.version, source)

        return ConfigurationSnapshot(
            values=schema.configuration.to_values(),
            version=schema.version,
            modified_by="system",
        )

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    def get_pack(self, pack_id: str) -> Optional[ConfigurationPackSchema]:
        return self._packs.get(pack_id)

    def list_packs(self) -> list[str]:
        return list(self._packs.keys())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_configuration_pack(path: Union[str, Path, None] = None) -> ConfigurationSnapshot:
    """Load a pack (the bundled default when no path is given)."""
    return ConfigurationPackLoader().load(path or DEFAULT_PACK_PATH)


def load_configuration_pack_from_string(content: str) -> ConfigurationSnapshot:
    """Load a pack from a YAML (or JSON) string."""
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationLoadError(
            message=f"Failed to parse configuration pack: {e}",
            details={"error": str(e)},
        ) from e
    if not isinstance(data, dict):
        raise ConfigurationLoadError(message="Configuration pack must be a mapping")
    return ConfigurationPackLoader().load_data(data)
