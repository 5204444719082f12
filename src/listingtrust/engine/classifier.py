"""
Decision Classifier

Ordered rules, first match wins:

1. hard reject: legitimacy < 40, content moderation < 40, or any
   merge-tier duplicate
2. manual review: confidence below threshold, completeness < 60,
   data quality < 60, any mark_duplicate-tier duplicate, or any
   high-severity legitimacy flag
3. approve: confidence >= threshold, completeness >= 75,
   data quality >= 75, legitimacy >= 70
4. default: manual review

When AI automation is disabled and fallback to manual review is on,
an approve or reject outcome is downgraded to manual review and the
rule is reported as automation_disabled.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..models import (
    AnalysisBundle,
    ConfigurationSnapshot,
    Decision,
    DecisionRule,
    DuplicateTier,
)
from .scoring import clamp


HARD_REJECT_FLOOR = 40
REVIEW_FLOOR = 60
APPROVE_QUALITY_FLOOR = 75
APPROVE_LEGITIMACY_FLOOR = 70
DEFAULT_THRESHOLD = 75


@dataclass(frozen=True)
class ClassificationResult:
    decision: Decision
    rule: DecisionRule
    threshold: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "rule": self.rule.value,
            "threshold": self.threshold,
        }


def category_rule(snapshot: ConfigurationSnapshot, category: Optional[str]) -> dict[str, Any]:
    """The enabled category rule for a listing category, or an empty dict."""
    if not category:
        return {}
    rule = snapshot.section("categoryRules").get(category.strip())
    if not isinstance(rule, dict) or not rule.get("enabled", True):
        return {}
    return rule


def resolve_threshold(
    snapshot: ConfigurationSnapshot,
    category: Optional[str] = None,
    override: Optional[float] = None,
) -> float:
    """Request override if given, else global threshold plus category adjustment."""
    if override is not None:
        return clamp(override)
    base = snapshot.get("systemSettings.globalConfidenceThreshold", DEFAULT_THRESHOLD)
    adjustment = category_rule(snapshot, category).get("confidenceAdjustment", 0)
    return clamp(base + adjustment)


def classify(bundle: AnalysisBundle, confidence: float, threshold: float) -> ClassificationResult:
    completeness = bundle.completeness.score
    quality = bundle.data_quality.score
    legitimacy = bundle.legitimacy.score
    moderation = bundle.content_moderation.score
    duplicates = bundle.duplicates

    if (
        legitimacy < HARD_REJECT_FLOOR
        or moderation < HARD_REJECT_FLOOR
        or duplicates.count(DuplicateTier.MERGE) > 0
    ):
        return ClassificationResult(Decision.REJECT, DecisionRule.HARD_REJECT, threshold)

    if (
        confidence < threshold
        or completeness < REVIEW_FLOOR
        or quality < REVIEW_FLOOR
        or duplicates.count(DuplicateTier.MARK_DUPLICATE) > 0
        or bundle.legitimacy.has_high_severity_flag
    ):
        return ClassificationResult(Decision.MANUAL_REVIEW, DecisionRule.MANUAL_REVIEW, threshold)

    if (
        confidence >= threshold
        and completeness >= APPROVE_QUALITY_FLOOR
        and quality >= APPROVE_QUALITY_FLOOR
        and legitimacy >= APPROVE_LEGITIMACY_FLOOR
    ):
        return ClassificationResult(Decision.APPROVE, DecisionRule.APPROVE, threshold)

    return ClassificationResult(Decision.MANUAL_REVIEW, DecisionRule.DEFAULT, threshold)


def apply_automation_policy(
    result: ClassificationResult,
    snapshot: ConfigurationSnapshot,
) -> ClassificationResult:
    automation = snapshot.get("systemSettings.enableAIAutomation", True)
    fallback = snapshot.get("systemSettings.fallbackToManualReview", True)
    if automation or not fallback or result.decision == Decision.MANUAL_REVIEW:
        return result
    return ClassificationResult(
        Decision.MANUAL_REVIEW, DecisionRule.AUTOMATION_DISABLED, result.threshold
    )
