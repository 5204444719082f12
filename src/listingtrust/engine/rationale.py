"""
Rationale & Recommendation Generator

Explains a decision and lists follow-up actions. Everything here is
derived from outputs the pipeline already computed; nothing is
re-scored.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from ..models import (
    AbnVerification,
    AnalysisBundle,
    Decision,
    ManualOverride,
    Rationale,
    RecommendedActions,
    WebsiteVerification,
)


SOFT_REJECT_LEGITIMACY_FLOOR = 30


def build_rationale(decision: Decision, bundle: AnalysisBundle) -> Rationale:
    completeness = bundle.completeness
    quality = bundle.data_quality
    legitimacy = bundle.legitimacy
    moderation = bundle.content_moderation
    duplicates = bundle.duplicates

    primary: list[str] = []
    if decision == Decision.APPROVE:
        primary.append("High confidence score indicates legitimate business")
        if completeness.score >= 90:
            primary.append("Excellent profile completeness")
        if legitimacy.score >= 80:
            primary.append("Strong legitimacy indicators")
    elif decision == Decision.REJECT:
        if legitimacy.score < 40:
            primary.append("Significant legitimacy concerns identified")
        if moderation.score < 40:
            primary.append("Content moderation flags detected")
        if duplicates.high_confidence_duplicates > 0:
            primary.append("High-confidence duplicates found")
    else:
        primary.append("Requires human review due to moderate confidence")
        if completeness.score < 60:
            primary.append("Profile completeness below threshold")
        if quality.score < 60:
            primary.append("Data quality issues detected")

    supporting: list[str] = []
    if not completeness.missing_fields:
        supporting.append("All required fields completed")
    if not quality.issues:
        supporting.append("No data quality issues found")
    if not legitimacy.flags:
        supporting.append("No legitimacy flags raised")
    if moderation.spam_indicators == 0:
        supporting.append("Clean content with no spam indicators")

    risks = [f"Missing required field: {f}" for f in completeness.missing_fields]
    risks.extend(
        f"High severity {issue.category.value} in {issue.field}"
        for issue in quality.high_severity_issues
    )
    risks.extend(flag.description for flag in legitimacy.flags)
    if duplicates.duplicates_found > 0:
        risks.append(f"{duplicates.duplicates_found} potential duplicate(s) detected")

    mitigating: list[str] = []
    if legitimacy.factors.abn_verification == AbnVerification.VERIFIED:
        mitigating.append("ABN verified")
    if legitimacy.factors.website_verification == WebsiteVerification.VERIFIED:
        mitigating.append("Website appears legitimate")
    if completeness.score >= 80:
        mitigating.append("High profile completeness")

    return Rationale(
        primary_reasons=tuple(primary),
        supporting_factors=tuple(supporting),
        risk_factors=tuple(risks),
        mitigating_factors=tuple(mitigating),
    )


def build_actions(
    decision: Decision,
    bundle: AnalysisBundle,
    special_requirements: Iterable[str] = (),
) -> RecommendedActions:
    """Action lists; category special requirements go before approval."""
    completeness = bundle.completeness
    legitimacy = bundle.legitimacy
    duplicates = bundle.duplicates
    abn_missing = legitimacy.factors.abn_verification == AbnVerification.NOT_PROVIDED

    immediate: list[str] = []
    if decision == Decision.REJECT:
        immediate.append("Reject business listing due to significant issues")
        immediate.append("Send detailed feedback to business owner")
        if duplicates.high_confidence_duplicates > 0:
            immediate.append("Merge with existing duplicate listing")
    elif decision == Decision.MANUAL_REVIEW:
        immediate.append("Queue for manual admin review")
        immediate.append("Flag for priority review if high-value business")

    before = [f"Request completion of {f} field" for f in completeness.missing_fields]
    before.extend(
        f"Address {issue.category.value} in {issue.field}: {issue.description}"
        for issue in bundle.data_quality.high_severity_issues
    )
    if abn_missing and legitimacy.score < 70:
        before.append("Request ABN verification for additional legitimacy")
    if duplicates.medium_confidence_duplicates > 0:
        before.append("Investigate potential duplicate listings before approval")
    before.extend(special_requirements)

    post: list[str] = []
    if decision == Decision.APPROVE:
        post.append("Welcome email with onboarding information")
        post.append("Set up quality score monitoring")
        if completeness.score < 90:
            post.append("Encourage completion of optional profile fields")
        if abn_missing:
            post.append("Offer ABN verification as premium feature")

    monitoring = [
        "Monitor for customer complaints or negative feedback",
        "Track engagement metrics and lead generation",
    ]
    if bundle.content_moderation.spam_indicators > 0:
        monitoring.append("Monitor content updates for spam patterns")
    if duplicates.low_confidence_duplicates > 0:
        monitoring.append("Watch for additional duplicate indicators")

    return RecommendedActions(
        immediate=tuple(immediate),
        before_approval=tuple(before),
        post_approval=tuple(post),
        monitoring=tuple(monitoring),
    )


def build_manual_override(decision: Decision, bundle: AnalysisBundle) -> Optional[ManualOverride]:
    """Override options, or None when the decision cannot be overridden."""
    if decision == Decision.MANUAL_REVIEW:
        return ManualOverride(
            allowed=True,
            reasons=(
                "Confidence score below automatic threshold",
                "Admin discretion can override based on business value",
            ),
            required_actions=("Document override reason", "Set enhanced monitoring"),
        )

    if decision == Decision.REJECT and bundle.legitimacy.score > SOFT_REJECT_LEGITIMACY_FLOOR:
        required = [
            "Document detailed override justification",
            "Require business owner corrections",
            "Set strict monitoring and review schedule",
        ]
        if bundle.duplicates.high_confidence_duplicates > 0:
            required.append("Resolve duplicate business conflicts")
        return ManualOverride(
            allowed=True,
            reasons=(
                "Soft rejection - issues may be addressable",
                "Business may have high strategic value",
            ),
            required_actions=tuple(required),
        )

    return None


def special_requirements_for(category_rule: dict[str, Any]) -> tuple[str, ...]:
    return tuple(category_rule.get("specialRequirements") or ())
