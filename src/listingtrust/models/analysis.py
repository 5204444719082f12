"""
ListingTrust Analysis Results

One immutable result type per analyzer plus the duplicate analysis.
Every score is an integer in [0, 100].
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import (
    AbnVerification,
    ContactVerification,
    DuplicateTier,
    FlagType,
    IssueCategory,
    LocationVerification,
    Severity,
    WebsiteVerification,
)


# =============================================================================
# Findings
# =============================================================================

@dataclass(frozen=True)
class QualityIssue:
    """A single data quality finding."""
    field: str
    category: IssueCategory
    severity: Severity
    description: str
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "issue": self.category.value,
            "severity": self.severity.value,
            "description": self.description,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class LegitimacyFlag:
    type: FlagType
    severity: Severity
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
        }


# =============================================================================
# Analyzer Results
# =============================================================================

@dataclass(frozen=True)
class CompletenessResult:
    score: int
    missing_fields: tuple[str, ...]
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    recommendation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "missing_fields": list(self.missing_fields),
            "required_fields": list(self.required_fields),
            "optional_fields": list(self.optional_fields),
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class DataQualityResult:
    score: int
    issues: tuple[QualityIssue, ...]
    recommendation: str

    @property
    def high_severity_issues(self) -> list[QualityIssue]:
        return [i for i in self.issues if i.severity == Severity.HIGH]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class LegitimacyFactors:
    """Categorical verification states for a listing."""
    abn_verification: AbnVerification = AbnVerification.NOT_PROVIDED
    contact_verification: ContactVerification = ContactVerification.NOT_ATTEMPTED
    website_verification: WebsiteVerification = WebsiteVerification.NOT_PROVIDED
    location_verification: LocationVerification = LocationVerification.NOT_PROVIDED

    def to_dict(self) -> dict[str, str]:
        return {
            "abn_verification": self.abn_verification.value,
            "contact_verification": self.contact_verification.value,
            "website_verification": self.website_verification.value,
            "location_verification": self.location_verification.value,
        }


@dataclass(frozen=True)
class LegitimacyResult:
    score: int
    factors: LegitimacyFactors
    flags: tuple[LegitimacyFlag, ...]
    recommendation: str

    @property
    def has_high_severity_flag(self) -> bool:
        return any(f.severity == Severity.HIGH for f in self.flags)

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "factors": self.factors.to_dict(),
            "flags": [f.to_dict() for f in self.flags],
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class ContentModerationResult:
    score: int
    spam_indicators: int
    profanity_detected: bool
    flags: tuple[str, ...]
    recommendation: str
    inappropriate_content: bool = False
    duplicate_content: bool = False
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "spam_indicators": self.spam_indicators,
            "profanity_detected": self.profanity_detected,
            "inappropriate_content": self.inappropriate_content,
            "duplicate_content": self.duplicate_content,
            "flags": list(self.flags),
            "recommendation": self.recommendation,
            "skipped": self.skipped,
        }


# =============================================================================
# Duplicates
# =============================================================================

@dataclass(frozen=True)
class DuplicateCandidate:
    candidate_id: str
    candidate_name: str
    matching_fields: frozenset[str]
    confidence: int
    tier: DuplicateTier

    def to_dict(self) -> dict[str, Any]:
        return {
            "duplicate_business_id": self.candidate_id,
            "duplicate_business_name": self.candidate_name,
            "confidence": self.confidence,
            "matching_fields": sorted(self.matching_fields),
            "recommendation": self.tier.value,
        }


@dataclass(frozen=True)
class DuplicateAnalysis:
    candidates: tuple[DuplicateCandidate, ...] = ()
    recommendation: str = "No duplicates detected. Safe to approve."
    skipped: bool = False

    def count(self, tier: DuplicateTier) -> int:
        return sum(1 for c in self.candidates if c.tier == tier)

    @property
    def duplicates_found(self) -> int:
        return len(self.candidates)

    @property
    def high_confidence_duplicates(self) -> int:
        return self.count(DuplicateTier.MERGE)

    @property
    def medium_confidence_duplicates(self) -> int:
        return self.count(DuplicateTier.MARK_DUPLICATE)

    @property
    def low_confidence_duplicates(self) -> int:
        return self.count(DuplicateTier.INVESTIGATE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "duplicates_found": self.duplicates_found,
            "high_confidence_duplicates": self.high_confidence_duplicates,
            "medium_confidence_duplicates": self.medium_confidence_duplicates,
            "low_confidence_duplicates": self.low_confidence_duplicates,
            "duplicate_details": [c.to_dict() for c in self.candidates],
            "recommendation": self.recommendation,
            "skipped": self.skipped,
        }


@dataclass(frozen=True)
class AnalysisBundle:
    """The joined output of the fan-out stage."""
    completeness: CompletenessResult
    data_quality: DataQualityResult
    legitimacy: LegitimacyResult
    content_moderation: ContentModerationResult
    duplicates: DuplicateAnalysis = field(default_factory=DuplicateAnalysis)

    def to_dict(self) -> dict[str, Any]:
        return {
            "completeness": self.completeness.to_dict(),
            "data_quality": self.data_quality.to_dict(),
            "business_legitimacy": self.legitimacy.to_dict(),
            "content_moderation": self.content_moderation.to_dict(),
            "duplicate_analysis": self.duplicates.to_dict(),
        }
