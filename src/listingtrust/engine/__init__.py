"""
ListingTrust Engine

The trust evaluation pipeline:
- Field analyzers: completeness, data quality, legitimacy, content moderation
- DuplicateMatcher: candidate search and match confidence
- ConfidenceCalculator: weighted aggregation
- classify: ordered decision rules
- Rationale and recommended actions
- VerificationEngine: fan-out / join orchestration
- ReviewService and FeedbackRecorder: admin decisions and feedback
"""
from __future__ import annotations

from .aggregator import (
    ConfidenceCalculator,
    ConfidenceConfig,
    ConfidenceFactor,
    ConfidenceResult,
    ConfidenceWeights,
    duplicate_penalty,
)
from .classifier import (
    ClassificationResult,
    apply_automation_policy,
    category_rule,
    classify,
    resolve_threshold,
)
from .completeness import analyze_completeness
from .content_moderation import (
    ModerationSettings,
    analyze_content_moderation,
    skipped_content_moderation,
)
from .data_quality import DataQualitySettings, analyze_data_quality
from .duplicate_matcher import (
    DuplicateMatcher,
    DuplicateSettings,
    MatchWeights,
    score_candidate,
    skipped_duplicate_analysis,
)
from .feedback_recorder import FeedbackRecorder
from .legitimacy import analyze_legitimacy
from .rationale import build_actions, build_manual_override, build_rationale
from .review import ReviewOutcome, ReviewRequest, ReviewService
from .scoring import Contribution, combine, round_half_up
from .verification import VerificationEngine

__all__ = [
    # Scoring
    "Contribution",
    "combine",
    "round_half_up",
    # Analyzers
    "analyze_completeness",
    "analyze_data_quality",
    "DataQualitySettings",
    "analyze_legitimacy",
    "analyze_content_moderation",
    "ModerationSettings",
    "skipped_content_moderation",
    # Duplicates
    "DuplicateMatcher",
    "DuplicateSettings",
    "MatchWeights",
    "score_candidate",
    "skipped_duplicate_analysis",
    # Aggregation / classification
    "ConfidenceCalculator",
    "ConfidenceConfig",
    "ConfidenceFactor",
    "ConfidenceResult",
    "ConfidenceWeights",
    "duplicate_penalty",
    "ClassificationResult",
    "apply_automation_policy",
    "category_rule",
    "classify",
    "resolve_threshold",
    # Rationale
    "build_actions",
    "build_manual_override",
    "build_rationale",
    # Orchestration
    "VerificationEngine",
    "ReviewOutcome",
    "ReviewRequest",
    "ReviewService",
    "FeedbackRecorder",
]
