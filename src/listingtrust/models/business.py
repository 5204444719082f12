"""
ListingTrust Business Record

Immutable snapshot of a business listing as read from the record store.
The engine never mutates a record; updates go back through the store.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import Any, Optional

from .enums import ApprovalStatus


# Public content items attached to a record are bounded per evaluation
MAX_CONTENT_ITEMS = 10


@dataclass(frozen=True)
class ContentItem:
    """A public post or content block published by a business."""
    id: str
    text: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text}


@dataclass(frozen=True)
class BusinessRecord:
    """
    A business listing.

    Contact fields are optional strings; `abn` is the Australian Business
    Number (tax id). `recent_inquiries` and `recent_leads` count activity
    in the trailing 90 days.
    """
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    suburb: Optional[str] = None
    category: Optional[str] = None
    bio: Optional[str] = None
    abn: Optional[str] = None
    abn_status: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Provenance
    source: Optional[str] = None
    owner_id: Optional[str] = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duplicate_of_id: Optional[str] = None
    quality_score: Optional[int] = None

    # Activity
    recent_inquiries: int = 0
    recent_leads: int = 0
    content_items: tuple[ContentItem, ...] = ()

    def __post_init__(self) -> None:
        if len(self.content_items) > MAX_CONTENT_ITEMS:
            object.__setattr__(
                self, "content_items", tuple(self.content_items[:MAX_CONTENT_ITEMS])
            )

    @property
    def has_geocode(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def recent_activity(self) -> int:
        return self.recent_inquiries + self.recent_leads

    def value_of(self, field_name: str) -> Optional[str]:
        """Return a contact field stripped of whitespace, or None when blank."""
        value = getattr(self, field_name, None)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def with_updates(self, updates: dict[str, Any]) -> "BusinessRecord":
        """Return a copy with the given fields replaced."""
        return replace(self, **updates)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, ApprovalStatus):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif f.name == "content_items":
                value = [item.to_dict() for item in value]
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BusinessRecord":
        """Build a record from a plain mapping (fixtures, seed data, API)."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}

        created_at = kwargs.get("created_at")
        if isinstance(created_at, str):
            parsed = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            kwargs["created_at"] = parsed

        status = kwargs.get("approval_status")
        if isinstance(status, str):
            kwargs["approval_status"] = ApprovalStatus(status.upper())

        items = kwargs.get("content_items")
        if items is not None:
            kwargs["content_items"] = tuple(
                item if isinstance(item, ContentItem) else ContentItem(**item)
                for item in items
            )
        return cls(**kwargs)
