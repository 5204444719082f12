"""
ListingTrust Verification Result

The aggregate produced by one verification request. Created per request
and never returned partially.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .analysis import AnalysisBundle
from .enums import Decision, DecisionRule


@dataclass(frozen=True)
class VerificationOptions:
    """Request-time options for a verification run."""
    force_recompute: bool = False
    confidence_threshold: Optional[float] = None
    include_duplicate_analysis: bool = True
    include_content_moderation: bool = True

    def cache_key(self) -> tuple:
        return (
            self.confidence_threshold,
            self.include_duplicate_analysis,
            self.include_content_moderation,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "force_recompute": self.force_recompute,
            "confidence_threshold": self.confidence_threshold,
            "include_duplicate_analysis": self.include_duplicate_analysis,
            "include_content_moderation": self.include_content_moderation,
        }


@dataclass(frozen=True)
class Rationale:
    primary_reasons: tuple[str, ...] = ()
    supporting_factors: tuple[str, ...] = ()
    risk_factors: tuple[str, ...] = ()
    mitigating_factors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "primary_reasons": list(self.primary_reasons),
            "supporting_factors": list(self.supporting_factors),
            "risk_factors": list(self.risk_factors),
            "mitigating_factors": list(self.mitigating_factors),
        }


@dataclass(frozen=True)
class RecommendedActions:
    immediate: tuple[str, ...] = ()
    before_approval: tuple[str, ...] = ()
    post_approval: tuple[str, ...] = ()
    monitoring: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "immediate": list(self.immediate),
            "before_approval": list(self.before_approval),
            "post_approval": list(self.post_approval),
            "monitoring": list(self.monitoring),
        }


@dataclass(frozen=True)
class ManualOverride:
    """Options offered to an admin who wants to override the decision."""
    allowed: bool
    reasons: tuple[str, ...] = ()
    required_actions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "allowed": self.allowed,
            "reasons": list(self.reasons),
            "required_actions": list(self.required_actions),
        }


@dataclass(frozen=True)
class VerificationResult:
    """
    Full output of the trust evaluation pipeline for one business.

    `configuration_version` records which configuration snapshot was
    used; every stage of the pipeline saw the same one.
    """
    business_id: str
    business_name: str
    verified_at: datetime
    decision: Decision
    decision_rule: DecisionRule
    confidence_score: int
    confidence_threshold: float
    analysis: AnalysisBundle
    confidence_factors: tuple[dict[str, Any], ...]
    rationale: Rationale
    recommendations: RecommendedActions
    configuration_version: str
    configuration_hash: str
    options: VerificationOptions = field(default_factory=VerificationOptions)
    manual_override: Optional[ManualOverride] = None
    audit_recorded: bool = True
    cached: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "business_id": self.business_id,
            "business_name": self.business_name,
            "verification_timestamp": self.verified_at.isoformat(),
            "overall_recommendation": self.decision.value,
            "decision_rule": self.decision_rule.value,
            "confidence_score": self.confidence_score,
            "confidence_threshold": self.confidence_threshold,
            "confidence_factors": [dict(f) for f in self.confidence_factors],
            "analysis": self.analysis.to_dict(),
            "rationale": self.rationale.to_dict(),
            "recommendations": self.recommendations.to_dict(),
            "manual_override": self.manual_override.to_dict() if self.manual_override else None,
            "configuration_version": self.configuration_version,
            "configuration_hash": self.configuration_hash,
            "options": self.options.to_dict(),
            "audit_recorded": self.audit_recorded,
            "cached": self.cached,
        }
