"""
Tests for confidence aggregation, classification and rationale.

Bundles are built directly from analyzer result values so each rule
can be pinned down without crafting listings.
"""
import pytest
from decimal import Decimal

from listingtrust.engine.aggregator import (
    ConfidenceCalculator,
    ConfidenceConfig,
    ConfidenceWeights,
    duplicate_penalty,
)
from listingtrust.engine.classifier import (
    apply_automation_policy,
    category_rule,
    classify,
    resolve_threshold,
)
from listingtrust.engine.completeness import OPTIONAL_FIELDS, REQUIRED_FIELDS
from listingtrust.engine.rationale import (
    build_actions,
    build_manual_override,
    build_rationale,
    special_requirements_for,
)
from listingtrust.models import (
    AbnVerification,
    AnalysisBundle,
    CompletenessResult,
    ContentModerationResult,
    DataQualityResult,
    Decision,
    DecisionRule,
    DuplicateAnalysis,
    DuplicateCandidate,
    DuplicateTier,
    FlagType,
    IssueCategory,
    LegitimacyFactors,
    LegitimacyFlag,
    LegitimacyResult,
    QualityIssue,
    Severity,
    WebsiteVerification,
)
from tests.conftest import make_snapshot


# =============================================================================
# Helpers
# =============================================================================

VERIFIED_FACTORS = LegitimacyFactors(
    abn_verification=AbnVerification.VERIFIED,
    website_verification=WebsiteVerification.VERIFIED,
)


def candidate(tier: DuplicateTier, candidate_id: str = "dup-1") -> DuplicateCandidate:
    confidence = {DuplicateTier.MERGE: 85, DuplicateTier.MARK_DUPLICATE: 65}.get(tier, 30)
    return DuplicateCandidate(
        candidate_id=candidate_id,
        candidate_name="Existing Listing",
        matching_fields=frozenset({"phone"}),
        confidence=confidence,
        tier=tier,
    )


def make_bundle(
    completeness: int = 100,
    quality: int = 100,
    legitimacy: int = 100,
    moderation: int = 100,
    missing=(),
    issues=(),
    flags=(),
    factors: LegitimacyFactors = VERIFIED_FACTORS,
    spam_indicators: int = 0,
    duplicates=(),
) -> AnalysisBundle:
    return AnalysisBundle(
        completeness=CompletenessResult(
            score=completeness,
            missing_fields=tuple(missing),
            required_fields=REQUIRED_FIELDS,
            optional_fields=OPTIONAL_FIELDS,
            recommendation="",
        ),
        data_quality=DataQualityResult(score=quality, issues=tuple(issues), recommendation=""),
        legitimacy=LegitimacyResult(
            score=legitimacy, factors=factors, flags=tuple(flags), recommendation=""
        ),
        content_moderation=ContentModerationResult(
            score=moderation,
            spam_indicators=spam_indicators,
            profanity_detected=False,
            flags=(),
            recommendation="",
        ),
        duplicates=DuplicateAnalysis(candidates=tuple(duplicates)),
    )


# =============================================================================
# Confidence Aggregation
# =============================================================================

class TestConfidenceCalculator:

    def test_all_perfect(self):
        result = ConfidenceCalculator().compute(make_bundle())
        assert result.confidence == 100
        assert result.duplicate_penalty == 0

    def test_half_rounds_up(self):
        # 0.25 * 94 + 25 + 30 + 15 + 5 = 98.5
        result = ConfidenceCalculator().compute(make_bundle(completeness=94))
        assert result.confidence == 99

    @pytest.mark.parametrize("tier,penalty,expected", [
        (DuplicateTier.MERGE, 30, 97),           # 96.5
        (DuplicateTier.MARK_DUPLICATE, 15, 99),  # 99.25
        (DuplicateTier.INVESTIGATE, 5, 100),     # 99.75
    ])
    def test_duplicate_penalty(self, tier, penalty, expected):
        result = ConfidenceCalculator().compute(make_bundle(duplicates=[candidate(tier)]))
        assert result.duplicate_penalty == penalty
        assert result.confidence == expected

    def test_most_severe_tier_wins(self):
        analysis = DuplicateAnalysis(candidates=(
            candidate(DuplicateTier.INVESTIGATE, "a"),
            candidate(DuplicateTier.MERGE, "b"),
        ))
        assert duplicate_penalty(analysis) == 30

    def test_factors_reported(self):
        result = ConfidenceCalculator().compute(make_bundle(legitimacy=50))
        factors = {f.name: f for f in result.factors}
        assert list(factors) == [
            "completeness", "data_quality", "legitimacy", "content_moderation", "duplicates",
        ]
        assert factors["legitimacy"].weight == Decimal("0.3")
        assert factors["legitimacy"].weighted_value == Decimal("15.0")
        assert factors["legitimacy"].to_dict() == {
            "name": "legitimacy", "score": 50, "weight": 0.3, "weighted_value": 15.0,
        }
        assert result.confidence == 85

    def test_raising_one_score_never_lowers_confidence(self):
        calculator = ConfidenceCalculator()
        previous = -1
        for score in range(0, 101, 5):
            confidence = calculator.compute(make_bundle(quality=score)).confidence
            assert confidence >= previous
            previous = confidence

    def test_custom_weights_from_configuration(self):
        snapshot = make_snapshot(businessVerification={
            "confidenceWeights": {
                "completeness": 50,
                "dataQuality": 50,
                "legitimacy": 0,
                "contentModeration": 0,
                "duplicates": 0,
            },
        })
        calculator = ConfidenceCalculator(ConfidenceConfig.from_configuration(snapshot))
        result = calculator.compute(make_bundle(completeness=80, quality=60, legitimacy=0))
        assert result.confidence == 70

    def test_default_weights(self, default_snapshot):
        assert ConfidenceWeights.from_configuration(default_snapshot) == ConfidenceWeights()


# =============================================================================
# Classification
# =============================================================================

class TestClassify:

    def test_approve(self):
        result = classify(make_bundle(), 100, 75)
        assert result.decision == Decision.APPROVE
        assert result.rule == DecisionRule.APPROVE
        assert result.threshold == 75

    def test_confidence_equal_to_threshold_approves(self):
        assert classify(make_bundle(), 75, 75).decision == Decision.APPROVE

    @pytest.mark.parametrize("overrides", [
        {"legitimacy": 39},
        {"moderation": 39},
        {"duplicates": [candidate(DuplicateTier.MERGE)]},
    ])
    def test_hard_reject(self, overrides):
        result = classify(make_bundle(**overrides), 100, 75)
        assert result.decision == Decision.REJECT
        assert result.rule == DecisionRule.HARD_REJECT

    def test_hard_reject_precedes_manual_review(self):
        result = classify(make_bundle(legitimacy=10, completeness=10), 10, 75)
        assert result.rule == DecisionRule.HARD_REJECT

    def test_legitimacy_40_is_not_rejected(self):
        assert classify(make_bundle(legitimacy=40), 100, 75).decision != Decision.REJECT

    @pytest.mark.parametrize("overrides,confidence", [
        ({}, 74),
        ({"completeness": 59}, 100),
        ({"quality": 59}, 100),
        ({"duplicates": [candidate(DuplicateTier.MARK_DUPLICATE)]}, 100),
        ({"flags": [LegitimacyFlag(FlagType.FAKE_WEBSITE, Severity.HIGH, "x")]}, 100),
    ])
    def test_manual_review(self, overrides, confidence):
        result = classify(make_bundle(**overrides), confidence, 75)
        assert result.decision == Decision.MANUAL_REVIEW
        assert result.rule == DecisionRule.MANUAL_REVIEW

    @pytest.mark.parametrize("overrides", [
        {"completeness": 74},
        {"quality": 60},
        {"legitimacy": 69},
    ])
    def test_default_rule(self, overrides):
        result = classify(make_bundle(**overrides), 90, 75)
        assert result.decision == Decision.MANUAL_REVIEW
        assert result.rule == DecisionRule.DEFAULT

    def test_investigate_tier_does_not_block_approval(self):
        bundle = make_bundle(duplicates=[candidate(DuplicateTier.INVESTIGATE)])
        assert classify(bundle, 100, 75).decision == Decision.APPROVE


class TestThresholdResolution:

    def test_global_threshold(self, default_snapshot):
        assert resolve_threshold(default_snapshot, "Food & Drink") == 75

    @pytest.mark.parametrize("category,expected", [
        ("Medical", 85),
        ("Legal", 80),
        (" Medical ", 85),
        (None, 75),
        ("", 75),
    ])
    def test_category_adjustment(self, default_snapshot, category, expected):
        assert resolve_threshold(default_snapshot, category) == expected

    def test_override_replaces_category_adjustment(self, default_snapshot):
        assert resolve_threshold(default_snapshot, "Medical", override=50) == 50

    def test_override_is_clamped(self, default_snapshot):
        assert resolve_threshold(default_snapshot, override=150) == 100
        assert resolve_threshold(default_snapshot, override=-5) == 0

    def test_adjusted_threshold_is_clamped(self):
        snapshot = make_snapshot(systemSettings={"globalConfidenceThreshold": 95})
        assert resolve_threshold(snapshot, "Medical") == 100

    def test_disabled_category_rule_ignored(self):
        snapshot = make_snapshot(categoryRules={
            "Medical": {"enabled": False, "confidenceAdjustment": 10},
        })
        assert category_rule(snapshot, "Medical") == {}
        assert resolve_threshold(snapshot, "Medical") == 75


class TestAutomationPolicy:

    def test_enabled_leaves_decision(self, default_snapshot):
        result = classify(make_bundle(), 100, 75)
        assert apply_automation_policy(result, default_snapshot) == result

    @pytest.mark.parametrize("bundle", [make_bundle(), make_bundle(legitimacy=10)])
    def test_disabled_downgrades_to_manual_review(self, bundle):
        snapshot = make_snapshot(systemSettings={"enableAIAutomation": False})
        result = apply_automation_policy(classify(bundle, 100, 75), snapshot)
        assert result.decision == Decision.MANUAL_REVIEW
        assert result.rule == DecisionRule.AUTOMATION_DISABLED

    def test_disabled_keeps_manual_review_rule(self):
        snapshot = make_snapshot(systemSettings={"enableAIAutomation": False})
        original = classify(make_bundle(completeness=50), 100, 75)
        assert apply_automation_policy(original, snapshot).rule == DecisionRule.MANUAL_REVIEW

    def test_disabled_without_fallback(self):
        snapshot = make_snapshot(systemSettings={
            "enableAIAutomation": False,
            "fallbackToManualReview": False,
        })
        result = apply_automation_policy(classify(make_bundle(), 100, 75), snapshot)
        assert result.decision == Decision.APPROVE


# =============================================================================
# Rationale and Actions
# =============================================================================

class TestRationale:

    def test_approve_rationale(self):
        rationale = build_rationale(Decision.APPROVE, make_bundle())
        assert rationale.primary_reasons == (
            "High confidence score indicates legitimate business",
            "Excellent profile completeness",
            "Strong legitimacy indicators",
        )
        assert rationale.supporting_factors == (
            "All required fields completed",
            "No data quality issues found",
            "No legitimacy flags raised",
            "Clean content with no spam indicators",
        )
        assert rationale.risk_factors == ()
        assert rationale.mitigating_factors == (
            "ABN verified",
            "Website appears legitimate",
            "High profile completeness",
        )

    def test_reject_rationale(self):
        bundle = make_bundle(
            legitimacy=20,
            moderation=30,
            duplicates=[candidate(DuplicateTier.MERGE)],
        )
        rationale = build_rationale(Decision.REJECT, bundle)
        assert rationale.primary_reasons == (
            "Significant legitimacy concerns identified",
            "Content moderation flags detected",
            "High-confidence duplicates found",
        )
        assert "1 potential duplicate(s) detected" in rationale.risk_factors

    def test_manual_review_rationale_risks(self):
        issue = QualityIssue("email", IssueCategory.FORMAT, Severity.HIGH, "Invalid email")
        flag = LegitimacyFlag(FlagType.FAKE_WEBSITE, Severity.MEDIUM, "Website mismatch")
        bundle = make_bundle(
            completeness=45, quality=55, missing=["phone"], issues=[issue], flags=[flag],
        )
        rationale = build_rationale(Decision.MANUAL_REVIEW, bundle)
        assert rationale.primary_reasons == (
            "Requires human review due to moderate confidence",
            "Profile completeness below threshold",
            "Data quality issues detected",
        )
        assert rationale.risk_factors == (
            "Missing required field: phone",
            "High severity format in email",
            "Website mismatch",
        )


class TestActions:

    def test_approve_actions(self):
        actions = build_actions(Decision.APPROVE, make_bundle())
        assert actions.immediate == ()
        assert actions.before_approval == ()
        assert actions.post_approval == (
            "Welcome email with onboarding information",
            "Set up quality score monitoring",
        )
        assert actions.monitoring == (
            "Monitor for customer complaints or negative feedback",
            "Track engagement metrics and lead generation",
        )

    def test_reject_with_merge_duplicate(self):
        bundle = make_bundle(duplicates=[candidate(DuplicateTier.MERGE)])
        actions = build_actions(Decision.REJECT, bundle)
        assert actions.immediate == (
            "Reject business listing due to significant issues",
            "Send detailed feedback to business owner",
            "Merge with existing duplicate listing",
        )

    def test_before_approval_items(self):
        issue = QualityIssue("name", IssueCategory.VALIDITY, Severity.HIGH, "Placeholder name")
        bundle = make_bundle(
            legitimacy=60,
            missing=["email"],
            issues=[issue],
            factors=LegitimacyFactors(),
            duplicates=[candidate(DuplicateTier.MARK_DUPLICATE)],
        )
        actions = build_actions(
            Decision.MANUAL_REVIEW, bundle, special_requirements=["ABN verification required"]
        )
        assert actions.immediate[0] == "Queue for manual admin review"
        assert actions.before_approval == (
            "Request completion of email field",
            "Address validity in name: Placeholder name",
            "Request ABN verification for additional legitimacy",
            "Investigate potential duplicate listings before approval",
            "ABN verification required",
        )

    def test_approve_with_missing_abn_and_partial_profile(self):
        bundle = make_bundle(completeness=81, factors=LegitimacyFactors())
        actions = build_actions(Decision.APPROVE, bundle)
        assert "Encourage completion of optional profile fields" in actions.post_approval
        assert "Offer ABN verification as premium feature" in actions.post_approval

    def test_monitoring_extras(self):
        bundle = make_bundle(
            spam_indicators=2, duplicates=[candidate(DuplicateTier.INVESTIGATE)]
        )
        actions = build_actions(Decision.MANUAL_REVIEW, bundle)
        assert actions.monitoring[-2:] == (
            "Monitor content updates for spam patterns",
            "Watch for additional duplicate indicators",
        )

    def test_special_requirements_for_rule(self, default_snapshot):
        rule = category_rule(default_snapshot, "Medical")
        assert special_requirements_for(rule) == (
            "ABN verification required",
            "Manual contact verification",
        )
        assert special_requirements_for({}) == ()


class TestManualOverride:

    def test_manual_review_override(self):
        override = build_manual_override(Decision.MANUAL_REVIEW, make_bundle())
        assert override.allowed
        assert override.required_actions == (
            "Document override reason",
            "Set enhanced monitoring",
        )

    def test_soft_reject_override(self):
        bundle = make_bundle(legitimacy=35, duplicates=[candidate(DuplicateTier.MERGE)])
        override = build_manual_override(Decision.REJECT, bundle)
        assert override.allowed
        assert override.reasons[0] == "Soft rejection - issues may be addressable"
        assert override.required_actions[-1] == "Resolve duplicate business conflicts"

    def test_hard_reject_has_no_override(self):
        assert build_manual_override(Decision.REJECT, make_bundle(legitimacy=30)) is None

    def test_approve_has_no_override(self):
        assert build_manual_override(Decision.APPROVE, make_bundle()) is None
