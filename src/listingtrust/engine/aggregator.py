"""
Confidence Aggregator

Combines the four analyzer scores and a duplicate term into one
confidence score:

    confidence = round_half_up(clamp(sum(weight_i * score_i), 0, 100))

Weights come from `businessVerification.confidenceWeights` as
percentages (default 25/25/30/15/5). The duplicate term is
100 - penalty, where the penalty is taken from the most severe tier
present: merge 30, mark_duplicate 15, investigate 5, none 0.

USAGE:
    calculator = ConfidenceCalculator(ConfidenceConfig.from_configuration(snapshot))
    result = calculator.compute(bundle)
    print(result.confidence, [f.to_dict() for f in result.factors])
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ..models import AnalysisBundle, ConfigurationSnapshot, DuplicateAnalysis, DuplicateTier
from .scoring import clamp, round_half_up


HUNDRED = Decimal("100")

DUPLICATE_PENALTIES: tuple[tuple[DuplicateTier, int], ...] = (
    (DuplicateTier.MERGE, 30),
    (DuplicateTier.MARK_DUPLICATE, 15),
    (DuplicateTier.INVESTIGATE, 5),
)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class ConfidenceWeights:
    """Percentage weights. Validated elsewhere to sum to 100."""
    completeness: Decimal = Decimal("25")
    data_quality: Decimal = Decimal("25")
    legitimacy: Decimal = Decimal("30")
    content_moderation: Decimal = Decimal("15")
    duplicates: Decimal = Decimal("5")

    @classmethod
    def from_configuration(cls, snapshot: ConfigurationSnapshot) -> "ConfidenceWeights":
        data = snapshot.section("businessVerification.confidenceWeights")
        defaults = cls()

        def _pct(key: str, fallback: Decimal) -> Decimal:
            return Decimal(str(data[key])) if key in data else fallback

        return cls(
            completeness=_pct("completeness", defaults.completeness),
            data_quality=_pct("dataQuality", defaults.data_quality),
            legitimacy=_pct("legitimacy", defaults.legitimacy),
            content_moderation=_pct("contentModeration", defaults.content_moderation),
            duplicates=_pct("duplicates", defaults.duplicates),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "completeness": str(self.completeness),
            "data_quality": str(self.data_quality),
            "legitimacy": str(self.legitimacy),
            "content_moderation": str(self.content_moderation),
            "duplicates": str(self.duplicates),
        }


@dataclass(frozen=True)
class ConfidenceConfig:
    weights: ConfidenceWeights = field(default_factory=ConfidenceWeights)

    @classmethod
    def from_configuration(cls, snapshot: ConfigurationSnapshot) -> "ConfidenceConfig":
        return cls(weights=ConfidenceWeights.from_configuration(snapshot))


# =============================================================================
# RESULT
# =============================================================================

@dataclass(frozen=True)
class ConfidenceFactor:
    """One weighted input to the confidence score."""
    name: str
    score: int
    weight: Decimal             # fraction, 0.25 for 25%
    weighted_value: Decimal     # score * weight

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "weight": float(self.weight),
            "weighted_value": float(self.weighted_value),
        }


@dataclass(frozen=True)
class ConfidenceResult:
    confidence: int
    factors: tuple[ConfidenceFactor, ...]
    duplicate_penalty: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence": self.confidence,
            "factors": [f.to_dict() for f in self.factors],
            "duplicate_penalty": self.duplicate_penalty,
        }


# =============================================================================
# CALCULATOR
# =============================================================================

def duplicate_penalty(duplicates: DuplicateAnalysis) -> int:
    for tier, penalty in DUPLICATE_PENALTIES:
        if duplicates.count(tier):
            return penalty
    return 0


class ConfidenceCalculator:
    """Weighted sum of analyzer scores."""

    def __init__(self, config: ConfidenceConfig | None = None):
        self.config = config or ConfidenceConfig()

    def compute(self, bundle: AnalysisBundle) -> ConfidenceResult:
        weights = self.config.weights
        penalty = duplicate_penalty(bundle.duplicates)

        inputs = (
            ("completeness", bundle.completeness.score, weights.completeness),
            ("data_quality", bundle.data_quality.score, weights.data_quality),
            ("legitimacy", bundle.legitimacy.score, weights.legitimacy),
            ("content_moderation", bundle.content_moderation.score, weights.content_moderation),
            ("duplicates", 100 - penalty, weights.duplicates),
        )

        factors = []
        for name, score, pct in inputs:
            weight = pct / HUNDRED
            factors.append(ConfidenceFactor(
                name=name,
                score=score,
                weight=weight,
                weighted_value=Decimal(score) * weight,
            ))

        total = sum((f.weighted_value for f in factors), Decimal("0"))
        confidence = round_half_up(clamp(total, Decimal("0"), HUNDRED))

        return ConfidenceResult(
            confidence=confidence,
            factors=tuple(factors),
            duplicate_penalty=penalty,
        )
