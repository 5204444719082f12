"""
Configuration History Queries

Filtering, sorting, pagination and summary statistics over the store's
change history (and, on request, its test-mode trial log).
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Optional

from ..exceptions import ValidationError
from ..models import ChangeType, ConfigurationChange, HistorySortField, SortOrder


MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 25

CRITICAL_FIELDS = (
    "systemSettings.enableAIAutomation",
    "businessVerification.confidenceThresholds.autoApprove",
    "businessVerification.confidenceThresholds.autoReject",
    "duplicateDetection.enabled",
    "rateLimiting.enabled",
)

# Lower-cased path fragment -> display category
CATEGORY_MARKERS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("systemsettings",), "System"),
    (("confidencethresholds", "riskassessment"), "Thresholds"),
    (("duplicatedetection",), "Duplicates"),
    (("contentmoderation",), "Moderation"),
    (("ratelimiting",), "Rate Limiting"),
    (("notifications",), "Notifications"),
    (("performance",), "Performance"),
    (("categoryrules",), "Category Rules"),
    (("auditsettings",), "Audit"),
)


# =============================================================================
# Per-entry Analysis
# =============================================================================

def count_critical_changes(record: ConfigurationChange) -> int:
    return sum(
        1 for change in record.changes
        if any(critical in change.field for critical in CRITICAL_FIELDS)
    )


def change_categories(record: ConfigurationChange) -> list[str]:
    categories: list[str] = []
    for change in record.changes:
        lowered = change.field.lower()
        for markers, label in CATEGORY_MARKERS:
            if label not in categories and any(m in lowered for m in markers):
                categories.append(label)
    return categories


def _matches_change_type(record: ConfigurationChange, change_type: ChangeType) -> bool:
    if change_type == ChangeType.CRITICAL:
        return count_critical_changes(record) > 0
    if change_type == ChangeType.CONFIGURATION:
        return any(
            "systemSettings" in c.field or "performance" in c.field
            for c in record.changes
        )
    if change_type == ChangeType.THRESHOLDS:
        return any(
            "confidenceThresholds" in c.field or "riskAssessment" in c.field
            for c in record.changes
        )
    return True


def history_entry(record: ConfigurationChange) -> dict[str, Any]:
    entry = record.to_dict()
    entry["summary"] = {
        "total_changes": len(record.changes),
        "critical_changes": count_critical_changes(record),
        "categories": change_categories(record),
    }
    return entry


# =============================================================================
# Query
# =============================================================================

@dataclass(frozen=True)
class HistoryQuery:
    """Filters for a history request. `to_date` is inclusive to end of day."""
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    modified_by: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    change_type: ChangeType = ChangeType.ALL
    include_test_mode: bool = False
    sort_by: HistorySortField = HistorySortField.TIMESTAMP
    sort_order: SortOrder = SortOrder.DESC

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError(message="page must be >= 1", details={"page": self.page})
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValidationError(
                message=f"limit must be between 1 and {MAX_PAGE_SIZE}",
                details={"limit": self.limit},
            )
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValidationError(
                message="from_date must not be after to_date",
                details={"from_date": str(self.from_date), "to_date": str(self.to_date)},
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "modified_by": self.modified_by,
            "from_date": self.from_date.isoformat() if self.from_date else None,
            "to_date": self.to_date.isoformat() if self.to_date else None,
            "change_type": self.change_type.value,
            "include_test_mode": self.include_test_mode,
            "sort_by": self.sort_by.value,
            "sort_order": self.sort_order.value,
        }


@dataclass(frozen=True)
class HistoryPage:
    items: list[dict[str, Any]]
    page: int
    limit: int
    total: int
    filtered: int
    summary: dict[str, Any] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return math.ceil(self.filtered / self.limit) if self.filtered else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "history": self.items,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "filtered": self.filtered,
                "pages": self.pages,
            },
            "summary": self.summary,
        }


def summarize_history(
    records: Iterable[ConfigurationChange],
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Aggregate counts across the given records."""
    now = now or datetime.now(timezone.utc)
    records = list(records)
    windows = {
        "last_24h": now - timedelta(hours=24),
        "last_7d": now - timedelta(days=7),
        "last_30d": now - timedelta(days=30),
    }
    return {
        "total_changes": sum(len(r.changes) for r in records),
        "unique_users": len({r.actor for r in records}),
        "critical_changes": sum(count_critical_changes(r) for r in records),
        "test_mode_changes": sum(1 for r in records if r.test_mode),
        "recent_activity": {
            label: sum(1 for r in records if r.timestamp >= since)
            for label, since in windows.items()
        },
    }


def _start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _end_of(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


def _sort_key(sort_by: HistorySortField):
    if sort_by == HistorySortField.CHANGES:
        return lambda r: (len(r.changes), r.timestamp)
    if sort_by == HistorySortField.USER:
        return lambda r: (r.actor, r.timestamp)
    return lambda r: r.timestamp


def query_history(
    history: Iterable[ConfigurationChange],
    query: HistoryQuery,
    trials: Iterable[ConfigurationChange] = (),
    now: Optional[datetime] = None,
) -> HistoryPage:
    """
    Apply filters, sort, and paginate.

    `total` counts records matching actor/date/test-mode filters;
    `filtered` additionally applies the change-type filter and drives
    the page count. The summary covers the `total` set.
    """
    records = list(history)
    if query.include_test_mode:
        records.extend(trials)

    if query.modified_by:
        records = [r for r in records if r.actor == query.modified_by]
    if query.from_date:
        start = _start_of(query.from_date)
        records = [r for r in records if r.timestamp >= start]
    if query.to_date:
        end = _end_of(query.to_date)
        records = [r for r in records if r.timestamp <= end]

    total = len(records)
    summary = summarize_history(records, now=now)

    filtered = [r for r in records if _matches_change_type(r, query.change_type)]
    filtered.sort(key=_sort_key(query.sort_by), reverse=query.sort_order == SortOrder.DESC)

    offset = (query.page - 1) * query.limit
    page_items = filtered[offset:offset + query.limit]

    return HistoryPage(
        items=[history_entry(r) for r in page_items],
        page=query.page,
        limit=query.limit,
        total=total,
        filtered=len(filtered),
        summary=summary,
    )
