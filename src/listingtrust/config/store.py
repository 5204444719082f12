"""
Configuration Store

Holds the single current configuration and its immutable change history.

Operations:
- get(): current snapshot, no side effects
- propose(proposal): ordered leaf-level diff against the current snapshot
- validate(values): invariant + schema validation
- apply(proposal, actor, reason, expected_version): optimistic write
- evaluate_test_mode(proposal, actor, reason): diff + validate only
- rollback(change_id, actor, reason): apply the inverse of a recorded change

Concurrency:
    Snapshots are immutable, so readers take a reference and never lock.
    Writers compute against the snapshot they read, then commit under a
    lock only if the version is unchanged; otherwise
    ConcurrencyConflictError is raised and the caller re-fetches.
    Test-mode evaluation never takes the write lock.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from ..exceptions import ConcurrencyConflictError, NotFoundError, ValidationError
from ..models import (
    ConfigurationChange,
    ConfigurationSnapshot,
    FieldChange,
    ProposalResult,
)
from ..packs.schema import ConfigurationSchema
from .diff import apply_changes, diff_configuration, remove_paths, removed_leaves
from .validation import validate_configuration

logger = logging.getLogger(__name__)

# Test-mode trial log keeps only the most recent evaluations
MAX_TRIALS = 200


def increment_version(version: str) -> str:
    """Increment the patch component of a MAJOR.MINOR.PATCH version."""
    parts = version.split(".")
    while len(parts) < 3:
        parts.append("0")
    try:
        patch = int(parts[2]) + 1
    except ValueError:
        patch = 1
    return f"{parts[0]}.{parts[1]}.{patch}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfigurationStore:
    """
    Versioned configuration with diff / validate / apply.

    Usage:
        store = ConfigurationStore(load_configuration_pack())
        snapshot = store.get()
        result = store.apply(
            {"systemSettings": {"globalConfidenceThreshold": 80}},
            actor="admin-1",
            reason="Tighten auto-approval",
            expected_version=snapshot.version,
        )
    """

    def __init__(
        self,
        initial: ConfigurationSnapshot,
        clock: Callable[[], datetime] = _utcnow,
    ):
        validate_configuration(initial.values)
        self._current = initial
        self._clock = clock
        self._write_lock = threading.RLock()
        self._trial_lock = threading.Lock()
        self._history: list[ConfigurationChange] = []
        self._trials: deque[ConfigurationChange] = deque(maxlen=MAX_TRIALS)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self) -> ConfigurationSnapshot:
        return self._current

    @property
    def version(self) -> str:
        return self._current.version

    def history(self) -> tuple[ConfigurationChange, ...]:
        """Applied changes, oldest first."""
        with self._write_lock:
            return tuple(self._history)

    def trials(self) -> tuple[ConfigurationChange, ...]:
        """Test-mode evaluations, oldest first. Never part of history."""
        with self._trial_lock:
            return tuple(self._trials)

    def get_change(self, change_id: str) -> ConfigurationChange:
        for record in self.history():
            if record.id == change_id:
                return record
        raise NotFoundError(
            message=f"Configuration change '{change_id}' not found",
            details={"change_id": change_id},
        )

    # =========================================================================
    # Propose / Validate
    # =========================================================================

    def propose(
        self,
        proposal: Mapping[str, Any],
        base: Optional[ConfigurationSnapshot] = None,
    ) -> list[FieldChange]:
        """Diff a full or partial proposal against `base` (default: current)."""
        if not isinstance(proposal, Mapping):
            raise ValidationError(
                message="Configuration proposal must be a mapping",
                details={"type": type(proposal).__name__},
            )
        snapshot = base or self._current
        return diff_configuration(snapshot.values, proposal)

    def validate(self, values: Mapping[str, Any]) -> ConfigurationSchema:
        return validate_configuration(values)

    def _evaluate(
        self,
        snapshot: ConfigurationSnapshot,
        proposal: Mapping[str, Any],
    ) -> tuple[list[FieldChange], Optional[dict[str, Any]]]:
        proposed = self.propose(proposal, base=snapshot)
        if not proposed:
            return proposed, None
        values = self.validate(apply_changes(snapshot.values, proposed)).to_values()
        return self._stored_changes(snapshot, values, proposed)

    @staticmethod
    def _stored_changes(
        snapshot: ConfigurationSnapshot,
        values: dict[str, Any],
        proposed: list[FieldChange],
    ) -> tuple[list[FieldChange], Optional[dict[str, Any]]]:
        """
        Diff the validated values against the snapshot.

        Schema validation normalizes (lower-cased keywords, filled-in
        defaults), so the recorded changes come from what will be stored,
        not from the raw proposal. Proposal key order is kept; leaves the
        proposal never named follow in schema order.
        """
        changes = diff_configuration(snapshot.values, values)
        changes.extend(removed_leaves(snapshot.values, values))
        if not changes:
            return changes, None
        order = {c.field: i for i, c in enumerate(proposed)}
        changes.sort(key=lambda c: order.get(c.field, len(order)))
        return changes, values

    # =========================================================================
    # Writes
    # =========================================================================

    def apply(
        self,
        proposal: Mapping[str, Any],
        actor: str,
        reason: str,
        expected_version: Optional[str] = None,
    ) -> ProposalResult:
        """
        Validate and persist a proposal as a new patch version.

        Raises:
            ConcurrencyConflictError: expected_version is stale, or another
                writer committed while this proposal was being evaluated
            ConfigurationInvariantError: the merged configuration is invalid
        """
        base = self._current
        if expected_version is not None and expected_version != base.version:
            raise self._conflict(expected_version, base.version)

        changes, new_values = self._evaluate(base, proposal)
        return self._commit(base, changes, new_values, actor, reason)

    def _commit(
        self,
        base: ConfigurationSnapshot,
        changes: list[FieldChange],
        new_values: Optional[dict[str, Any]],
        actor: str,
        reason: str,
    ) -> ProposalResult:
        if new_values is None:
            logger.info("Configuration update by %s: no changes detected", actor)
            return ProposalResult(snapshot=base, changes=())

        now = self._clock()
        snapshot = ConfigurationSnapshot(
            values=new_values,
            version=increment_version(base.version),
            last_modified=now,
            modified_by=actor,
            applied_at=now,
        )
        record = ConfigurationChange(
            actor=actor,
            changes=tuple(changes),
            reason=reason,
            version=snapshot.version,
            previous_version=base.version,
            timestamp=now,
        )

        with self._write_lock:
            if self._current.version != base.version:
                raise self._conflict(base.version, self._current.version)
            self._current = snapshot
            self._history.append(record)

        logger.info(
            "Configuration %s -> %s applied by %s (%d changes)",
            base.version, snapshot.version, actor, len(changes),
            extra={"config_version": snapshot.version},
        )
        return ProposalResult(
            snapshot=snapshot,
            changes=tuple(changes),
            applied=True,
            record=record,
        )

    def evaluate_test_mode(
        self,
        proposal: Mapping[str, Any],
        actor: str,
        reason: str,
    ) -> ProposalResult:
        """
        Diff and validate without persisting.

        Returns the hypothetical configuration, versioned "<current>-test".
        The current version and change history are untouched.
        """
        base = self._current
        changes, new_values = self._evaluate(base, proposal)
        if new_values is None:
            return ProposalResult(snapshot=base, changes=(), test_mode=True)

        now = self._clock()
        snapshot = ConfigurationSnapshot(
            values=new_values,
            version=f"{base.version}-test",
            last_modified=now,
            modified_by=actor,
            applied_at=now,
        )
        trial = ConfigurationChange(
            actor=actor,
            changes=tuple(changes),
            reason=reason,
            version=snapshot.version,
            previous_version=base.version,
            applied_successfully=False,
            rollback_available=False,
            test_mode=True,
            timestamp=now,
        )
        with self._trial_lock:
            self._trials.append(trial)

        logger.info("Configuration test-mode evaluation by %s (%d changes)", actor, len(changes))
        return ProposalResult(snapshot=snapshot, changes=tuple(changes), test_mode=True, record=trial)

    def update(
        self,
        proposal: Mapping[str, Any],
        actor: str,
        reason: str,
        test_mode: bool = False,
        expected_version: Optional[str] = None,
    ) -> ProposalResult:
        """Entry point for the configuration update action."""
        if not reason or not reason.strip():
            raise ValidationError(message="A reason is required for configuration changes")
        if test_mode:
            return self.evaluate_test_mode(proposal, actor, reason)
        return self.apply(proposal, actor, reason, expected_version=expected_version)

    def rollback(
        self,
        change_id: str,
        actor: str,
        reason: str,
        expected_version: Optional[str] = None,
    ) -> ProposalResult:
        """
        Apply the inverse of a recorded change as a new version.

        Leaves the change added (old_value None) are removed again rather
        than set to None; stored values never hold None.
        """
        record = self.get_change(change_id)
        if not record.rollback_available:
            raise ValidationError(
                message=f"Configuration change '{change_id}' cannot be rolled back",
                details={"change_id": change_id},
            )
        base = self._current
        if expected_version is not None and expected_version != base.version:
            raise self._conflict(expected_version, base.version)

        restored = [
            FieldChange(field=c.field, old_value=c.new_value, new_value=c.old_value)
            for c in record.changes
            if c.old_value is not None
        ]
        added = [c.field for c in record.changes if c.old_value is None]
        target = remove_paths(apply_changes(base.values, restored), added)
        values = self.validate(target).to_values()
        changes, new_values = self._stored_changes(base, values, restored)
        return self._commit(base, changes, new_values, actor, reason)

    def _conflict(self, expected: str, current: str) -> ConcurrencyConflictError:
        logger.warning("Configuration version conflict: expected %s, current %s", expected, current)
        return ConcurrencyConflictError(
            message=(
                f"Configuration version changed (expected {expected}, "
                f"current {current}). Re-fetch and retry."
            ),
            expected_version=expected,
            current_version=current,
        )
