"""
ListingTrust Models

Domain models for listing verification:
- Enumerations (decisions, severities, verification states)
- BusinessRecord snapshot
- Analyzer results and duplicate analysis
- VerificationResult aggregate
- Configuration snapshots and change records
- Feedback records
"""
from __future__ import annotations

from .analysis import (
    AnalysisBundle,
    CompletenessResult,
    ContentModerationResult,
    DataQualityResult,
    DuplicateAnalysis,
    DuplicateCandidate,
    LegitimacyFactors,
    LegitimacyFlag,
    LegitimacyResult,
    QualityIssue,
)
from .business import MAX_CONTENT_ITEMS, BusinessRecord, ContentItem
from .configuration import (
    ConfigurationChange,
    ConfigurationSnapshot,
    FieldChange,
    ProposalResult,
)
from .enums import (
    AbnStatus,
    AbnVerification,
    AccuracyRating,
    ApprovalStatus,
    ChangeType,
    ContactVerification,
    Decision,
    DecisionRule,
    DuplicateStrategy,
    DuplicateTier,
    FlagType,
    HistorySortField,
    IssueCategory,
    LocationVerification,
    ReviewAction,
    Severity,
    SortOrder,
    WebsiteVerification,
)
from .feedback import FeedbackRecord
from .verification import (
    ManualOverride,
    Rationale,
    RecommendedActions,
    VerificationOptions,
    VerificationResult,
)

__all__ = [
    # Enums
    "AbnStatus",
    "AbnVerification",
    "AccuracyRating",
    "ApprovalStatus",
    "ChangeType",
    "ContactVerification",
    "Decision",
    "DecisionRule",
    "DuplicateStrategy",
    "DuplicateTier",
    "FlagType",
    "HistorySortField",
    "IssueCategory",
    "LocationVerification",
    "ReviewAction",
    "Severity",
    "SortOrder",
    "WebsiteVerification",
    # Business
    "MAX_CONTENT_ITEMS",
    "BusinessRecord",
    "ContentItem",
    # Analysis
    "AnalysisBundle",
    "CompletenessResult",
    "ContentModerationResult",
    "DataQualityResult",
    "DuplicateAnalysis",
    "DuplicateCandidate",
    "LegitimacyFactors",
    "LegitimacyFlag",
    "LegitimacyResult",
    "QualityIssue",
    # Verification
    "ManualOverride",
    "Rationale",
    "RecommendedActions",
    "VerificationOptions",
    "VerificationResult",
    # Configuration
    "ConfigurationChange",
    "ConfigurationSnapshot",
    "FieldChange",
    "ProposalResult",
    # Feedback
    "FeedbackRecord",
]
