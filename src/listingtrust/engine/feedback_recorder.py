"""
Feedback Recorder

Append-only log of admin feedback on automated recommendations. Records
are consumed by calibration processes outside the engine; recording
feedback never changes scores or configuration.
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from ..exceptions import ValidationError
from ..models import AccuracyRating, Decision, FeedbackRecord, ReviewAction


logger = logging.getLogger(__name__)


class FeedbackRecorder:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[FeedbackRecord] = []

    def record(
        self,
        business_id: str,
        original_recommendation: Decision,
        original_confidence: int,
        admin_decision: ReviewAction,
        agreed_with_recommendation: bool,
        accuracy_rating: AccuracyRating,
        strengths: Iterable[str] = (),
        weaknesses: Iterable[str] = (),
        missed_issues: Iterable[str] = (),
        false_positives: Iterable[str] = (),
        improvement_suggestions: Iterable[str] = (),
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> FeedbackRecord:
        if not business_id:
            raise ValidationError(message="Feedback requires a business ID")
        if not 0 <= original_confidence <= 100:
            raise ValidationError(
                message="Original confidence must be between 0 and 100",
                details={"original_confidence": original_confidence},
                business_id=business_id,
            )

        record = FeedbackRecord(
            business_id=business_id,
            original_recommendation=original_recommendation,
            original_confidence=original_confidence,
            admin_decision=admin_decision,
            agreed_with_recommendation=agreed_with_recommendation,
            accuracy_rating=accuracy_rating,
            strengths=tuple(strengths),
            weaknesses=tuple(weaknesses),
            missed_issues=tuple(missed_issues),
            false_positives=tuple(false_positives),
            improvement_suggestions=tuple(improvement_suggestions),
            notes=notes,
            actor_id=actor_id,
        )
        with self._lock:
            self._records.append(record)

        logger.info(
            "Feedback %s recorded for %s (%s, agreed=%s)",
            record.id, business_id, accuracy_rating.value, agreed_with_recommendation,
            extra={"business_id": business_id},
        )
        return record

    def records(self, business_id: Optional[str] = None) -> tuple[FeedbackRecord, ...]:
        """All records, oldest first, optionally for one business."""
        with self._lock:
            records = tuple(self._records)
        if business_id is None:
            return records
        return tuple(r for r in records if r.business_id == business_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
