"""
ListingTrust Collaborator Ports

The engine reads and writes listings and audit events only through
these two protocols:

- RecordStore: get_business, find_matching, update_business_fields
- EventRecorder: record_event

In-memory implementations back the HTTP service and the test suite.
A deployment plugs in its own database-backed implementations.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol, runtime_checkable
from uuid import uuid4

from .exceptions import NotFoundError, ValidationError
from .models import ApprovalStatus, BusinessRecord


logger = logging.getLogger(__name__)


# Fields find_matching accepts
MATCHABLE_FIELDS = frozenset({"name", "suburb", "phone", "email", "website", "abn"})


@runtime_checkable
class RecordStore(Protocol):
    """Read/write access to business listings."""

    def get_business(self, business_id: str) -> Optional[BusinessRecord]:
        """Return the record, or None when the id is unknown."""
        ...

    def find_matching(
        self,
        criteria: dict[str, str],
        *,
        exclude_id: Optional[str] = None,
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.APPROVED,
        case_insensitive: Iterable[str] = (),
        limit: int = 10,
    ) -> list[BusinessRecord]:
        """
        Return records whose fields equal every value in `criteria`.

        Args:
            criteria: field name -> value; all must match
            exclude_id: record id to leave out (the subject)
            approval_status: restrict to this status, or None for any
            case_insensitive: fields compared ignoring case
            limit: maximum number of records returned
        """
        ...

    def update_business_fields(self, business_id: str, fields: dict[str, Any]) -> BusinessRecord:
        """Persist field updates and return the updated record."""
        ...


@runtime_checkable
class EventRecorder(Protocol):
    """Append-only audit sink."""

    def record_event(
        self,
        event_type: str,
        target_id: str,
        actor_id: Optional[str],
        payload: dict[str, Any],
    ) -> None:
        ...


# =============================================================================
# In-memory implementations
# =============================================================================

class InMemoryRecordStore:
    """Thread-safe dict-backed RecordStore."""

    def __init__(self, records: Iterable[BusinessRecord] = ()):
        self._lock = threading.RLock()
        self._records: dict[str, BusinessRecord] = {r.id: r for r in records}

    def add(self, record: BusinessRecord) -> BusinessRecord:
        with self._lock:
            self._records[record.id] = record
        return record

    def all(self) -> list[BusinessRecord]:
        with self._lock:
            return list(self._records.values())

    def get_business(self, business_id: str) -> Optional[BusinessRecord]:
        with self._lock:
            return self._records.get(business_id)

    def find_matching(
        self,
        criteria: dict[str, str],
        *,
        exclude_id: Optional[str] = None,
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.APPROVED,
        case_insensitive: Iterable[str] = (),
        limit: int = 10,
    ) -> list[BusinessRecord]:
        unknown = set(criteria) - MATCHABLE_FIELDS
        if unknown:
            raise ValidationError(
                message=f"Cannot match on fields: {sorted(unknown)}",
                details={"fields": sorted(unknown)},
            )
        folded = set(case_insensitive)

        def _matches(record: BusinessRecord) -> bool:
            for name, wanted in criteria.items():
                actual = record.value_of(name)
                if actual is None:
                    return False
                if name in folded:
                    if actual.lower() != wanted.strip().lower():
                        return False
                elif actual != wanted.strip():
                    return False
            return True

        with self._lock:
            snapshot = sorted(self._records.values(), key=lambda r: r.id)

        matches = [
            r for r in snapshot
            if r.id != exclude_id
            and (approval_status is None or r.approval_status == approval_status)
            and _matches(r)
        ]
        return matches[:limit]

    def update_business_fields(self, business_id: str, fields: dict[str, Any]) -> BusinessRecord:
        with self._lock:
            record = self._records.get(business_id)
            if record is None:
                raise NotFoundError(
                    message=f"Business not found: {business_id}",
                    business_id=business_id,
                )
            updated = record.with_updates(fields)
            self._records[business_id] = updated
        logger.debug("Updated business %s fields %s", business_id, sorted(fields))
        return updated


@dataclass(frozen=True)
class RecordedEvent:
    event_type: str
    target_id: str
    actor_id: Optional[str]
    payload: dict[str, Any]
    id: str = field(default_factory=lambda: f"EVT-{uuid4().hex[:12].upper()}")
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "target_id": self.target_id,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "recorded_at": self.recorded_at.isoformat(),
        }


class InMemoryEventRecorder:
    """EventRecorder that keeps events in a list."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[RecordedEvent] = []

    def record_event(
        self,
        event_type: str,
        target_id: str,
        actor_id: Optional[str],
        payload: dict[str, Any],
    ) -> None:
        event = RecordedEvent(
            event_type=event_type,
            target_id=target_id,
            actor_id=actor_id,
            payload=dict(payload),
        )
        with self._lock:
            self._events.append(event)

    def events(self, event_type: Optional[str] = None) -> list[RecordedEvent]:
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [e for e in events if e.event_type == event_type]


__all__ = [
    "MATCHABLE_FIELDS",
    "RecordStore",
    "EventRecorder",
    "InMemoryRecordStore",
    "InMemoryEventRecorder",
    "RecordedEvent",
]
