"""
ListingTrust Configuration Packs

YAML configuration packs, their pydantic schemas, and the loader that
turns a pack into the store's initial snapshot.
"""
from __future__ import annotations

from .loader import (
    DEFAULT_PACK_PATH,
    ConfigurationPackLoader,
    load_configuration_pack,
    load_configuration_pack_from_string,
)
from .schema import (
    SCHEMA_VERSION,
    ConfigurationPackSchema,
    ConfigurationSchema,
    check_schema_version,
    validate_configuration_pack,
    validate_configuration_values,
)

__all__ = [
    "DEFAULT_PACK_PATH",
    "SCHEMA_VERSION",
    "ConfigurationPackLoader",
    "ConfigurationPackSchema",
    "ConfigurationSchema",
    "check_schema_version",
    "load_configuration_pack",
    "load_configuration_pack_from_string",
    "validate_configuration_pack",
    "validate_configuration_values",
]
