"""
Admin Review

Applies an admin's decision on a listing and captures feedback on the
automated recommendation it overrode or confirmed.

A review:
- updates the listing (approval status, quality score, ABN status)
  through RecordStore.update_business_fields
- optionally adjusts the global confidence threshold through the
  ConfigurationStore (optimistic apply, versioned like any other change)
- optionally resolves duplicates (merge / mark_duplicate / keep_separate)
- always records a FeedbackRecord against the last verification result
- returns next steps for the admin

Audit failures are logged and surfaced as audit_recorded=False.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from ..config.store import ConfigurationStore
from ..exceptions import NotFoundError, ValidationError
from ..models import (
    AbnStatus,
    AccuracyRating,
    ApprovalStatus,
    BusinessRecord,
    Decision,
    DuplicateStrategy,
    FeedbackRecord,
    ReviewAction,
)
from ..ports import EventRecorder, RecordStore
from .feedback_recorder import FeedbackRecorder
from .verification import VerificationEngine


logger = logging.getLogger(__name__)


REVIEW_EVENT = "admin_review_decision"
DUPLICATE_RESOLUTION_EVENT = "duplicate_resolution"
THRESHOLD_FIELD = "systemSettings.globalConfidenceThreshold"

# Used when a business is reviewed without a prior verification
FALLBACK_RECOMMENDATION = Decision.MANUAL_REVIEW
FALLBACK_CONFIDENCE = 75

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500
DEFAULT_FOLLOW_UP_DAYS = 30
DEFAULT_MONITORING_DAYS = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Request / Outcome
# =============================================================================

@dataclass(frozen=True)
class ReviewRequest:
    """An admin decision plus feedback and optional side effects."""
    action: ReviewAction
    reason: str
    agreed_with_recommendation: bool
    accuracy_rating: AccuracyRating
    detailed_notes: Optional[str] = None
    conditions_for_approval: tuple[str, ...] = ()

    # Feedback
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    missed_issues: tuple[str, ...] = ()
    false_positives: tuple[str, ...] = ()
    improvement_suggestions: tuple[str, ...] = ()

    # System adjustment
    new_confidence_threshold: Optional[float] = None

    # Listing overrides
    new_quality_score: Optional[int] = None
    new_abn_status: Optional[AbnStatus] = None
    apply_flags: tuple[str, ...] = ()

    # Duplicates
    duplicate_strategy: Optional[DuplicateStrategy] = None
    duplicate_business_ids: tuple[str, ...] = ()

    # Follow-up
    notify_business_owner: bool = False
    escalate_to_senior_admin: bool = False
    schedule_follow_up: bool = False
    follow_up_days: Optional[int] = None
    enable_enhanced_monitoring: bool = False
    monitoring_duration: Optional[int] = None

    def validate(self) -> None:
        errors: list[str] = []
        reason = (self.reason or "").strip()
        if not REASON_MIN_LENGTH <= len(reason) <= REASON_MAX_LENGTH:
            errors.append(
                f"reason must be {REASON_MIN_LENGTH}-{REASON_MAX_LENGTH} characters"
            )
        if self.new_confidence_threshold is not None and not 0 <= self.new_confidence_threshold <= 100:
            errors.append("new_confidence_threshold must be between 0 and 100")
        if self.new_quality_score is not None and not 0 <= self.new_quality_score <= 100:
            errors.append("new_quality_score must be between 0 and 100")
        if self.follow_up_days is not None and not 1 <= self.follow_up_days <= 90:
            errors.append("follow_up_days must be between 1 and 90")
        if self.monitoring_duration is not None and not 7 <= self.monitoring_duration <= 180:
            errors.append("monitoring_duration must be between 7 and 180")
        if self.duplicate_business_ids and self.duplicate_strategy is None:
            errors.append("duplicate_strategy is required when duplicate_business_ids are given")
        if errors:
            raise ValidationError(
                message="Invalid review request",
                details={"errors": errors},
            )

    @property
    def resolves_duplicates(self) -> bool:
        return self.duplicate_strategy is not None and bool(self.duplicate_business_ids)


@dataclass(frozen=True)
class BusinessUpdates:
    approval_status_changed: bool = False
    new_approval_status: Optional[ApprovalStatus] = None
    quality_score_updated: bool = False
    new_quality_score: Optional[int] = None
    abn_status_updated: bool = False
    new_abn_status: Optional[AbnStatus] = None
    flags_applied: tuple[str, ...] = ()
    notifications_triggered: tuple[str, ...] = ()

    def record_fields(self) -> dict[str, Any]:
        """Fields to write back to the listing."""
        fields: dict[str, Any] = {}
        if self.new_approval_status is not None:
            fields["approval_status"] = self.new_approval_status
        if self.new_quality_score is not None:
            fields["quality_score"] = self.new_quality_score
        if self.new_abn_status is not None:
            fields["abn_status"] = self.new_abn_status.value
        return fields

    def to_dict(self) -> dict[str, Any]:
        return {
            "approval_status_changed": self.approval_status_changed,
            "new_approval_status": self.new_approval_status.value if self.new_approval_status else None,
            "quality_score_updated": self.quality_score_updated,
            "new_quality_score": self.new_quality_score,
            "abn_status_updated": self.abn_status_updated,
            "new_abn_status": self.new_abn_status.value if self.new_abn_status else None,
            "flags_applied": list(self.flags_applied),
            "notifications_triggered": list(self.notifications_triggered),
        }


@dataclass(frozen=True)
class SystemImpact:
    confidence_threshold_adjusted: bool = False
    new_confidence_threshold: Optional[float] = None
    configuration_version: Optional[str] = None
    feedback_recorded: bool = False
    duplicate_resolution_applied: bool = False
    related_businesses_affected: int = 0
    audit_recorded: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence_threshold_adjusted": self.confidence_threshold_adjusted,
            "new_confidence_threshold": self.new_confidence_threshold,
            "configuration_version": self.configuration_version,
            "feedback_recorded": self.feedback_recorded,
            "duplicate_resolution_applied": self.duplicate_resolution_applied,
            "related_businesses_affected": self.related_businesses_affected,
            "audit_recorded": self.audit_recorded,
        }


@dataclass(frozen=True)
class NextSteps:
    immediate: tuple[str, ...] = ()
    follow_up: tuple[str, ...] = ()
    monitoring: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "immediate": list(self.immediate),
            "follow_up": list(self.follow_up),
            "monitoring": list(self.monitoring),
        }


@dataclass(frozen=True)
class ReviewOutcome:
    business_id: str
    business_name: str
    admin_id: Optional[str]
    request: ReviewRequest
    feedback: FeedbackRecord
    business_updates: BusinessUpdates
    system_impact: SystemImpact
    next_steps: NextSteps
    reviewed_at: datetime = field(default_factory=_utcnow)

    @property
    def message(self) -> str:
        return f"Admin review completed for {self.business_name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_id": self.business_id,
            "business_name": self.business_name,
            "review_timestamp": self.reviewed_at.isoformat(),
            "admin_id": self.admin_id,
            "decision": {
                "action": self.request.action.value,
                "reason": self.request.reason,
                "detailed_notes": self.request.detailed_notes,
                "conditions_for_approval": list(self.request.conditions_for_approval),
                "confidence_adjustment": self.request.new_confidence_threshold,
            },
            "recommendation_review": {
                "agreed_with_recommendation": self.feedback.agreed_with_recommendation,
                "original_recommendation": self.feedback.original_recommendation.value,
                "original_confidence_score": self.feedback.original_confidence,
                "accuracy_feedback": self.feedback.accuracy_rating.value,
                "feedback_id": self.feedback.id,
            },
            "business_updates": self.business_updates.to_dict(),
            "system_impact": self.system_impact.to_dict(),
            "next_steps": self.next_steps.to_dict(),
        }


# =============================================================================
# Step builders
# =============================================================================

def plan_business_updates(request: ReviewRequest) -> BusinessUpdates:
    new_status: Optional[ApprovalStatus] = None
    flags: list[str] = []
    notifications: list[str] = []

    if request.action == ReviewAction.APPROVE:
        new_status = ApprovalStatus.APPROVED
        notifications.append("business_approved")
    elif request.action == ReviewAction.REJECT:
        new_status = ApprovalStatus.REJECTED
        notifications.append("business_rejected")
    elif request.action == ReviewAction.REQUEST_CHANGES:
        flags.append("changes_requested")
        notifications.append("changes_requested")

    if request.new_abn_status == AbnStatus.VERIFIED:
        flags.append("abn_verified")
        notifications.append("abn_verified")
    flags.extend(request.apply_flags)

    return BusinessUpdates(
        approval_status_changed=new_status is not None,
        new_approval_status=new_status,
        quality_score_updated=request.new_quality_score is not None,
        new_quality_score=request.new_quality_score,
        abn_status_updated=request.new_abn_status is not None,
        new_abn_status=request.new_abn_status,
        flags_applied=tuple(flags),
        notifications_triggered=tuple(notifications),
    )


def duplicate_resolution_fields(strategy: DuplicateStrategy, primary_id: str) -> dict[str, Any]:
    if strategy == DuplicateStrategy.MERGE:
        return {"duplicate_of_id": primary_id, "approval_status": ApprovalStatus.REJECTED}
    if strategy == DuplicateStrategy.MARK_DUPLICATE:
        return {"duplicate_of_id": primary_id}
    return {"duplicate_of_id": None}


def plan_next_steps(request: ReviewRequest, updates: BusinessUpdates, today: datetime) -> NextSteps:
    immediate: list[str] = []
    if updates.approval_status_changed:
        immediate.append("Update business directory listing status")
        immediate.append("Trigger status change notifications")
    if updates.flags_applied:
        immediate.append("Apply business flags and restrictions")
    if request.notify_business_owner:
        immediate.append("Send notification to business owner")

    follow_up: list[str] = []
    if request.schedule_follow_up:
        days = request.follow_up_days or DEFAULT_FOLLOW_UP_DAYS
        follow_up.append(f"Review business status on {(today + timedelta(days=days)).date().isoformat()}")
    if request.action == ReviewAction.REQUEST_CHANGES:
        follow_up.append("Monitor for business profile updates")
        follow_up.append("Re-review when changes are submitted")
    if request.escalate_to_senior_admin:
        follow_up.append("Escalate to senior admin for additional review")

    monitoring: list[str] = []
    if request.enable_enhanced_monitoring:
        monitoring.append("Enable enhanced monitoring for unusual activity")
        monitoring.append(
            f"Monitor business for {request.monitoring_duration or DEFAULT_MONITORING_DAYS} days"
        )
    if updates.new_approval_status == ApprovalStatus.APPROVED:
        monitoring.append("Monitor new customer interactions and feedback")
        monitoring.append("Track quality metrics and lead generation")
    if updates.abn_status_updated:
        monitoring.append("Monitor ABN verification status changes")

    return NextSteps(
        immediate=tuple(immediate),
        follow_up=tuple(follow_up),
        monitoring=tuple(monitoring),
    )


# =============================================================================
# Service
# =============================================================================

class ReviewService:
    """
    Usage:
        service = ReviewService(records, config_store, engine, feedback, events)
        outcome = service.review("biz-1", ReviewRequest(...), actor_id="admin-1")
    """

    def __init__(
        self,
        records: RecordStore,
        config_store: ConfigurationStore,
        engine: VerificationEngine,
        feedback: FeedbackRecorder,
        events: Optional[EventRecorder] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.records = records
        self.config_store = config_store
        self.engine = engine
        self.feedback = feedback
        self.events = events
        self._clock = clock

    def review(
        self,
        business_id: str,
        request: ReviewRequest,
        actor_id: Optional[str] = None,
    ) -> ReviewOutcome:
        """
        Apply an admin review.

        Raises:
            ValidationError: malformed request (nothing is changed)
            NotFoundError: unknown business or duplicate id (nothing is changed)
            ConcurrencyConflictError: configuration changed during the
                threshold adjustment (nothing is changed)
            ConfigurationInvariantError: the adjusted threshold is invalid
        """
        request.validate()
        business = self._require(business_id)
        duplicates = self._resolve_duplicate_targets(business, request)
        updates = plan_business_updates(request)

        # Everything that can raise runs before the first record write
        threshold_adjusted, config_version = self._adjust_threshold(request, actor_id)

        fields = updates.record_fields()
        if fields:
            self.records.update_business_fields(business.id, fields)

        last = self.engine.last_result(business.id)
        feedback = self.feedback.record(
            business_id=business.id,
            original_recommendation=last.decision if last else FALLBACK_RECOMMENDATION,
            original_confidence=last.confidence_score if last else FALLBACK_CONFIDENCE,
            admin_decision=request.action,
            agreed_with_recommendation=request.agreed_with_recommendation,
            accuracy_rating=request.accuracy_rating,
            strengths=request.strengths,
            weaknesses=request.weaknesses,
            missed_issues=request.missed_issues,
            false_positives=request.false_positives,
            improvement_suggestions=request.improvement_suggestions,
            notes=request.detailed_notes,
            actor_id=actor_id,
        )

        audit_ok = True
        if request.resolves_duplicates:
            change = duplicate_resolution_fields(request.duplicate_strategy, business.id)
            for duplicate in duplicates:
                self.records.update_business_fields(duplicate.id, change)
                audit_ok = self._audit(
                    DUPLICATE_RESOLUTION_EVENT, duplicate.id, actor_id,
                    {"strategy": request.duplicate_strategy.value, "primary_business_id": business.id},
                ) and audit_ok

        now = self._clock()
        impact = SystemImpact(
            confidence_threshold_adjusted=threshold_adjusted,
            new_confidence_threshold=request.new_confidence_threshold if threshold_adjusted else None,
            configuration_version=config_version,
            feedback_recorded=True,
            duplicate_resolution_applied=request.resolves_duplicates,
            related_businesses_affected=len(duplicates),
        )
        audit_ok = self._audit(
            REVIEW_EVENT, business.id, actor_id,
            {
                "action": request.action.value,
                "reason": request.reason,
                "feedback_id": feedback.id,
                "business_updates": updates.to_dict(),
                "system_impact": impact.to_dict(),
            },
        ) and audit_ok

        outcome = ReviewOutcome(
            business_id=business.id,
            business_name=business.name,
            admin_id=actor_id,
            request=request,
            feedback=feedback,
            business_updates=updates,
            system_impact=replace(impact, audit_recorded=audit_ok),
            next_steps=plan_next_steps(request, updates, now),
            reviewed_at=now,
        )
        logger.info(
            "Review %s applied to %s by %s", request.action.value, business.id, actor_id,
            extra={"business_id": business.id},
        )
        return outcome

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, business_id: str) -> BusinessRecord:
        business = self.records.get_business(business_id)
        if business is None:
            raise NotFoundError(message=f"Business not found: {business_id}", business_id=business_id)
        return business

    def _resolve_duplicate_targets(
        self,
        business: BusinessRecord,
        request: ReviewRequest,
    ) -> list[BusinessRecord]:
        if not request.resolves_duplicates:
            return []
        targets = []
        for duplicate_id in dict.fromkeys(request.duplicate_business_ids):
            if duplicate_id == business.id:
                raise ValidationError(
                    message="A business cannot be resolved as a duplicate of itself",
                    business_id=business.id,
                )
            targets.append(self._require(duplicate_id))
        return targets

    def _adjust_threshold(
        self,
        request: ReviewRequest,
        actor_id: Optional[str],
    ) -> tuple[bool, Optional[str]]:
        if request.new_confidence_threshold is None:
            return False, None
        section, key = THRESHOLD_FIELD.split(".")
        snapshot = self.config_store.get()
        result = self.config_store.apply(
            {section: {key: request.new_confidence_threshold}},
            actor=actor_id or "system",
            reason=request.reason,
            expected_version=snapshot.version,
        )
        return result.applied, result.snapshot.version

    def _audit(
        self,
        event_type: str,
        target_id: str,
        actor_id: Optional[str],
        payload: dict[str, Any],
    ) -> bool:
        if self.events is None:
            return False
        try:
            self.events.record_event(event_type, target_id, actor_id, payload)
        except Exception:
            logger.warning(
                "Failed to record %s audit event for %s", event_type, target_id,
                exc_info=True,
                extra={"business_id": target_id},
            )
            return False
        return True
