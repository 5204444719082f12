"""
ListingTrust Configuration Models

Immutable configuration snapshots and change records.

A ConfigurationSnapshot wraps the nested configuration values (camelCase
keys, as stored in configuration packs) plus version metadata. Values are
never mutated in place: every update produces a new snapshot and an
explicit list of FieldChange entries.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4


@dataclass(frozen=True)
class FieldChange:
    """One leaf-level difference between two configurations."""
    field: str
    old_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }


@dataclass(frozen=True, eq=False)
class ConfigurationSnapshot:
    """
    The configuration in force at one version.

    Access nested values with dotted paths:

        snapshot.get("businessVerification.confidenceThresholds.autoApprove")
    """
    values: dict[str, Any]
    version: str = "1.0.0"
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    modified_by: str = "system"
    applied_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", copy.deepcopy(self.values))

    def get(self, path: str, default: Any = None) -> Any:
        node: Any = self.values
        for key in path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return copy.deepcopy(node)

    def section(self, path: str) -> dict[str, Any]:
        value = self.get(path, {})
        return value if isinstance(value, dict) else {}

    def as_dict(self) -> dict[str, Any]:
        """Return a detached deep copy of the configuration values."""
        return copy.deepcopy(self.values)

    def metadata(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "last_modified": self.last_modified.isoformat(),
            "modified_by": self.modified_by,
            "applied_at": self.applied_at.isoformat(),
        }

    def to_dict(self) -> dict[str, Any]:
        result = self.as_dict()
        result.update(self.metadata())
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigurationSnapshot):
            return NotImplemented
        return self.version == other.version and self.values == other.values

    def __hash__(self) -> int:
        return hash(self.version)


@dataclass(frozen=True)
class ConfigurationChange:
    """
    Immutable record of one configuration update.

    Applied updates land in the change history; test-mode evaluations are
    kept in a separate trial log with `test_mode=True` and never carry
    a rollback.
    """
    actor: str
    changes: tuple[FieldChange, ...]
    reason: str
    version: str
    previous_version: Optional[str] = None
    applied_successfully: bool = True
    rollback_available: bool = True
    test_mode: bool = False
    id: str = field(default_factory=lambda: f"CFG-{uuid4().hex[:12].upper()}")
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "modified_by": self.actor,
            "changes": [c.to_dict() for c in self.changes],
            "reason": self.reason,
            "applied_successfully": self.applied_successfully,
            "rollback_available": self.rollback_available,
            "version": self.version,
            "previous_version": self.previous_version,
            "test_mode": self.test_mode,
        }


@dataclass(frozen=True)
class ProposalResult:
    """Outcome of a configuration update (applied or test mode)."""
    snapshot: ConfigurationSnapshot
    changes: tuple[FieldChange, ...]
    test_mode: bool = False
    applied: bool = False
    record: Optional[ConfigurationChange] = None

    @property
    def message(self) -> str:
        if not self.changes:
            return "No changes detected"
        if self.test_mode:
            return (
                f"Configuration validated successfully. "
                f"{len(self.changes)} changes would be applied."
            )
        return f"Configuration updated successfully. Applied {len(self.changes)} changes."

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "configuration": self.snapshot.to_dict(),
            "version": self.snapshot.version,
            "changes": [c.to_dict() for c in self.changes],
            "test_mode": self.test_mode,
            "applied": self.applied,
        }
