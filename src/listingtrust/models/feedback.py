"""
ListingTrust Feedback Record

Admin feedback on an automated recommendation. Consumed only by
calibration processes outside the engine.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from .enums import AccuracyRating, Decision, ReviewAction


@dataclass(frozen=True)
class FeedbackRecord:
    business_id: str
    original_recommendation: Decision
    original_confidence: int
    admin_decision: ReviewAction
    agreed_with_recommendation: bool
    accuracy_rating: AccuracyRating
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    missed_issues: tuple[str, ...] = ()
    false_positives: tuple[str, ...] = ()
    improvement_suggestions: tuple[str, ...] = ()
    notes: Optional[str] = None
    actor_id: Optional[str] = None
    id: str = field(default_factory=lambda: f"FB-{uuid4().hex[:12].upper()}")
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "original_recommendation": self.original_recommendation.value,
            "original_confidence": self.original_confidence,
            "admin_decision": self.admin_decision.value,
            "agreed_with_recommendation": self.agreed_with_recommendation,
            "accuracy_rating": self.accuracy_rating.value,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "missed_issues": list(self.missed_issues),
            "false_positives": list(self.false_positives),
            "improvement_suggestions": list(self.improvement_suggestions),
            "notes": self.notes,
            "actor_id": self.actor_id,
            "recorded_at": self.recorded_at.isoformat(),
        }
