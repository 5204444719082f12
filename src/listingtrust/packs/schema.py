"""
ListingTrust Configuration Pack Schemas

Pydantic models for validating configuration packs (YAML/JSON) and
merged configuration proposals.

Configuration keys are camelCase in packs and in field paths
(e.g. "businessVerification.confidenceThresholds.autoApprove"); the
models expose snake_case attributes through an alias generator.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders should check version compatibility
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


class _PackModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# =============================================================================
# System Settings
# =============================================================================

class SystemSettingsSchema(_PackModel):
    enable_ai_automation: bool = Field(True, alias="enableAIAutomation")
    global_confidence_threshold: float = Field(75, ge=0, le=100)
    fallback_to_manual_review: bool = True
    enable_performance_optimization: bool = True
    enable_advanced_analytics: bool = True


# =============================================================================
# Business Verification
# =============================================================================

class ConfidenceThresholdsSchema(_PackModel):
    """Ordering (autoApprove > manualReview > autoReject) is checked separately."""
    auto_approve: float = Field(85, ge=0, le=100)
    manual_review: float = Field(60, ge=0, le=100)
    auto_reject: float = Field(40, ge=0, le=100)


class ConfidenceWeightsSchema(_PackModel):
    """Percentage partition over the aggregated confidence terms."""
    completeness: float = Field(25, ge=0, le=100)
    data_quality: float = Field(25, ge=0, le=100)
    legitimacy: float = Field(30, ge=0, le=100)
    content_moderation: float = Field(15, ge=0, le=100)
    duplicates: float = Field(5, ge=0, le=100)


class RiskFactorWeightsSchema(_PackModel):
    missing_contact: float = Field(25, ge=0, le=100)
    duplicate_detection: float = Field(20, ge=0, le=100)
    quality_score: float = Field(20, ge=0, le=100)
    abn_verification: float = Field(20, ge=0, le=100)
    aging_factor: float = Field(15, ge=0, le=100)


class RiskAssessmentSchema(_PackModel):
    enable_risk_scoring: bool = True
    high_risk_threshold: float = Field(70, ge=0, le=100)
    medium_risk_threshold: float = Field(40, ge=0, le=100)
    risk_factor_weights: RiskFactorWeightsSchema = Field(default_factory=RiskFactorWeightsSchema)


class QualityWeightsSchema(_PackModel):
    completeness: float = Field(40, ge=0, le=100)
    recency: float = Field(20, ge=0, le=100)
    reviews: float = Field(20, ge=0, le=100)
    verification: float = Field(15, ge=0, le=100)
    consistency: float = Field(5, ge=0, le=100)


class ProcessingRulesSchema(_PackModel):
    enable_batch_processing: bool = True
    max_batch_size: int = Field(50, ge=1, le=1000)
    processing_timeout: int = Field(60, ge=10, le=300)
    retry_attempts: int = Field(3, ge=1, le=10)
    enable_parallel_processing: bool = True


class BusinessVerificationSchema(_PackModel):
    confidence_thresholds: ConfidenceThresholdsSchema = Field(default_factory=ConfidenceThresholdsSchema)
    confidence_weights: ConfidenceWeightsSchema = Field(default_factory=ConfidenceWeightsSchema)
    risk_assessment: RiskAssessmentSchema = Field(default_factory=RiskAssessmentSchema)
    quality_weights: QualityWeightsSchema = Field(default_factory=QualityWeightsSchema)
    processing_rules: ProcessingRulesSchema = Field(default_factory=ProcessingRulesSchema)


# =============================================================================
# Duplicate Detection
# =============================================================================

class MatchCriteriaSchema(_PackModel):
    """Points added to a candidate's confidence per matching field."""
    name_weight: float = Field(30, ge=0, le=100)
    suburb_weight: float = Field(10, ge=0, le=100)
    phone_weight: float = Field(25, ge=0, le=100)
    email_weight: float = Field(25, ge=0, le=100)
    website_weight: float = Field(20, ge=0, le=100)
    abn_weight: float = Field(35, ge=0, le=100)


class TierThresholdsSchema(_PackModel):
    merge: float = Field(80, ge=0, le=100)
    mark_duplicate: float = Field(60, ge=0, le=100)


class AutoMergeRulesSchema(_PackModel):
    enable_auto_merge: bool = False
    high_confidence_merge_threshold: float = Field(95, ge=0, le=100)
    require_manual_confirmation: bool = True


class DuplicateDetectionSchema(_PackModel):
    enabled: bool = True
    strict_matching_enabled: bool = True
    loose_matching_enabled: bool = True
    loose_match_threshold: float = Field(80, ge=0, le=100)
    candidate_limit: int = Field(10, ge=1, le=50)
    match_criteria: MatchCriteriaSchema = Field(default_factory=MatchCriteriaSchema)
    tier_thresholds: TierThresholdsSchema = Field(default_factory=TierThresholdsSchema)
    auto_merge_rules: AutoMergeRulesSchema = Field(default_factory=AutoMergeRulesSchema)


# =============================================================================
# Content Moderation
# =============================================================================

class SpamDetectionSchema(_PackModel):
    enabled: bool = True
    aggressiveness: Literal["low", "medium", "high"] = "medium"
    custom_keywords: list[str] = Field(default_factory=list)

    @field_validator("custom_keywords")
    @classmethod
    def normalize_keywords(cls, v: list[str]) -> list[str]:
        return [k.strip().lower() for k in v if k and k.strip()]


class ProfanityFilteringSchema(_PackModel):
    enabled: bool = True
    severity: Literal["strict", "moderate", "lenient"] = "moderate"


class DisposableEmailBlockingSchema(_PackModel):
    enabled: bool = True
    domains: list[str] = Field(default_factory=list)
    blocklist_updated: str | None = None


class ContentModerationSchema(_PackModel):
    enabled: bool = True
    spam_detection: SpamDetectionSchema = Field(default_factory=SpamDetectionSchema)
    profanity_filtering: ProfanityFilteringSchema = Field(default_factory=ProfanityFilteringSchema)
    disposable_email_blocking: DisposableEmailBlockingSchema = Field(
        default_factory=DisposableEmailBlockingSchema
    )


# =============================================================================
# Rate Limiting, Notifications, Performance, Audit
# =============================================================================

class WindowLimitSchema(_PackModel):
    per_minute: int | None = Field(None, ge=0)
    per_hour: int | None = Field(None, ge=0)
    per_day: int | None = Field(None, ge=0)


class RateLimitingSchema(_PackModel):
    enabled: bool = True
    limits: dict[str, WindowLimitSchema] = Field(default_factory=dict)


class EscalationThresholdsSchema(_PackModel):
    queue_size: int = Field(100, ge=0)
    oldest_pending_days: int = Field(7, ge=0)
    low_confidence_count: int = Field(50, ge=0)


class EmailTemplateSchema(_PackModel):
    enabled: bool = True
    template: str = "default"


class NotificationsSchema(_PackModel):
    admin_alerts: bool = True
    business_owner_notifications: bool = True
    escalation_thresholds: EscalationThresholdsSchema = Field(default_factory=EscalationThresholdsSchema)
    email_templates: dict[str, EmailTemplateSchema] = Field(default_factory=dict)


class PerformanceSchema(_PackModel):
    enable_caching: bool = True
    cache_expiry_minutes: int = Field(15, ge=0)
    enable_preprocessing: bool = True
    parallel_processing_enabled: bool = True
    max_concurrent_processing: int = Field(10, ge=1, le=100)


class AuditSettingsSchema(_PackModel):
    log_all_decisions: bool = True
    retain_logs_months: int = Field(12, ge=1)
    enable_performance_metrics: bool = True
    enable_accuracy_tracking: bool = True


# =============================================================================
# Category Rules
# =============================================================================

class CategoryRuleSchema(_PackModel):
    enabled: bool = True
    confidence_adjustment: float = Field(0, ge=-20, le=20)
    priority_adjustment: float = Field(0, ge=-20, le=20)
    special_requirements: list[str] = Field(default_factory=list)
    auto_processing_enabled: bool = True


# =============================================================================
# Root
# =============================================================================

class ConfigurationSchema(_PackModel):
    """Root schema for a complete configuration."""
    system_settings: SystemSettingsSchema = Field(default_factory=SystemSettingsSchema)
    business_verification: BusinessVerificationSchema = Field(default_factory=BusinessVerificationSchema)
    duplicate_detection: DuplicateDetectionSchema = Field(default_factory=DuplicateDetectionSchema)
    content_moderation: ContentModerationSchema = Field(default_factory=ContentModerationSchema)
    rate_limiting: RateLimitingSchema = Field(default_factory=RateLimitingSchema)
    category_rules: dict[str, CategoryRuleSchema] = Field(default_factory=dict)
    notifications: NotificationsSchema = Field(default_factory=NotificationsSchema)
    performance: PerformanceSchema = Field(default_factory=PerformanceSchema)
    audit_settings: AuditSettingsSchema = Field(default_factory=AuditSettingsSchema)

    def to_values(self) -> dict[str, Any]:
        """Dump to the camelCase nested mapping used by the store."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ConfigurationPackSchema(_PackModel):
    """A configuration pack file: metadata plus the configuration body."""
    schema_version: str = SCHEMA_VERSION
    pack_id: str
    version: str = "1.0.0"
    description: str | None = None
    configuration: ConfigurationSchema = Field(default_factory=ConfigurationSchema)

    @field_validator("version")
    @classmethod
    def validate_semver(cls, v: str) -> str:
        parts = v.split(".")
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            raise ValueError(f"version must be MAJOR.MINOR.PATCH, got '{v}'")
        return v


# =============================================================================
# Validation Helpers
# =============================================================================

def check_schema_version(pack_version: str) -> bool:
    """Check whether a pack schema version is compatible (same major)."""
    return pack_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]


def validate_configuration_values(values: dict[str, Any]) -> ConfigurationSchema:
    """Validate a nested configuration mapping; raises pydantic.ValidationError."""
    return ConfigurationSchema.model_validate(values)


def validate_configuration_pack(data: dict[str, Any]) -> ConfigurationPackSchema:
    """Validate a raw pack mapping; raises pydantic.ValidationError."""
    return ConfigurationPackSchema.model_validate(data)
