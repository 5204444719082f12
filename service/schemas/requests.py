"""
Request bodies for the ListingTrust HTTP API.

Pydantic handles shape and range validation (422 on failure); the
engine re-checks domain rules and raises coded errors (400).
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from listingtrust.engine import ReviewRequest
from listingtrust.models import (
    AbnStatus,
    AccuracyRating,
    DuplicateStrategy,
    ReviewAction,
    VerificationOptions,
)


class VerifyBody(BaseModel):
    """Options for POST /businesses/{id}/verify."""
    model_config = ConfigDict(extra="forbid")

    force_recompute: bool = False
    confidence_threshold: Optional[float] = Field(default=None, ge=0, le=100)
    include_duplicate_analysis: bool = True
    include_content_moderation: bool = True

    def to_options(self) -> VerificationOptions:
        return VerificationOptions(
            force_recompute=self.force_recompute,
            confidence_threshold=self.confidence_threshold,
            include_duplicate_analysis=self.include_duplicate_analysis,
            include_content_moderation=self.include_content_moderation,
        )


class ReviewBody(BaseModel):
    """Admin decision for POST /businesses/{id}/review."""
    model_config = ConfigDict(extra="forbid")

    action: ReviewAction
    reason: str = Field(min_length=10, max_length=500)
    detailed_notes: Optional[str] = None
    conditions_for_approval: list[str] = Field(default_factory=list)

    agreed_with_recommendation: bool
    accuracy_feedback: AccuracyRating
    strengths_confirmed: list[str] = Field(default_factory=list)
    weaknesses_identified: list[str] = Field(default_factory=list)
    missed_issues: list[str] = Field(default_factory=list)
    false_positives: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)

    adjust_confidence_threshold: bool = False
    new_confidence_threshold: Optional[float] = Field(default=None, ge=0, le=100)

    update_quality_score: bool = False
    new_quality_score: Optional[int] = Field(default=None, ge=0, le=100)
    update_abn_status: bool = False
    new_abn_status: Optional[AbnStatus] = None
    apply_flags: list[str] = Field(default_factory=list)

    resolve_duplicates: bool = False
    duplicate_resolution_strategy: Optional[DuplicateStrategy] = None
    duplicate_business_ids: list[str] = Field(default_factory=list)

    notify_business_owner: bool = False
    escalate_to_senior_admin: bool = False
    schedule_follow_up: bool = False
    follow_up_days: Optional[int] = Field(default=None, ge=1, le=90)
    enable_enhanced_monitoring: bool = False
    monitoring_duration: Optional[int] = Field(default=None, ge=7, le=180)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v

    @model_validator(mode="after")
    def check_toggles(self) -> "ReviewBody":
        if self.adjust_confidence_threshold and self.new_confidence_threshold is None:
            raise ValueError("new_confidence_threshold is required to adjust the threshold")
        if self.resolve_duplicates and self.duplicate_resolution_strategy is None:
            raise ValueError("duplicate_resolution_strategy is required to resolve duplicates")
        return self

    def to_request(self) -> ReviewRequest:
        """Toggles gate the optional values, as in the admin form."""
        return ReviewRequest(
            action=self.action,
            reason=self.reason,
            agreed_with_recommendation=self.agreed_with_recommendation,
            accuracy_rating=self.accuracy_feedback,
            detailed_notes=self.detailed_notes,
            conditions_for_approval=tuple(self.conditions_for_approval),
            strengths=tuple(self.strengths_confirmed),
            weaknesses=tuple(self.weaknesses_identified),
            missed_issues=tuple(self.missed_issues),
            false_positives=tuple(self.false_positives),
            improvement_suggestions=tuple(self.improvement_suggestions),
            new_confidence_threshold=(
                self.new_confidence_threshold if self.adjust_confidence_threshold else None
            ),
            new_quality_score=self.new_quality_score if self.update_quality_score else None,
            new_abn_status=self.new_abn_status if self.update_abn_status else None,
            apply_flags=tuple(self.apply_flags),
            duplicate_strategy=(
                self.duplicate_resolution_strategy if self.resolve_duplicates else None
            ),
            duplicate_business_ids=(
                tuple(self.duplicate_business_ids) if self.resolve_duplicates else ()
            ),
            notify_business_owner=self.notify_business_owner,
            escalate_to_senior_admin=self.escalate_to_senior_admin,
            schedule_follow_up=self.schedule_follow_up,
            follow_up_days=self.follow_up_days,
            enable_enhanced_monitoring=self.enable_enhanced_monitoring,
            monitoring_duration=self.monitoring_duration,
        )


class ConfigurationUpdateBody(BaseModel):
    """Partial configuration for PUT /configuration."""
    model_config = ConfigDict(extra="forbid")

    configuration: dict[str, Any]
    reason: str = Field(min_length=1, max_length=500)
    test_mode: bool = False
    expected_version: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v.strip()
