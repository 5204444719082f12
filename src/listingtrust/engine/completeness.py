"""
Completeness Analyzer

Scores how much of a listing profile is filled in.

Each present required field contributes REQUIRED_FIELD_POINTS (all five
required fields = 75); each present optional field contributes
OPTIONAL_FIELD_POINTS (all four optional fields = 25). A field counts as
present when it is non-blank after stripping whitespace.
"""
from __future__ import annotations

from ..models import BusinessRecord, CompletenessResult
from .scoring import Contribution, combine, tiered_text


REQUIRED_FIELDS: tuple[str, ...] = ("name", "phone", "email", "suburb", "category")
OPTIONAL_FIELDS: tuple[str, ...] = ("website", "address", "bio", "abn")

REQUIRED_FIELD_POINTS = 75 / len(REQUIRED_FIELDS)
OPTIONAL_FIELD_POINTS = 25 / len(OPTIONAL_FIELDS)

RECOMMENDATION_TIERS = (
    (90, "Excellent profile completeness. Ready for approval."),
    (75, "Good profile completeness. Minor improvements recommended."),
    (60, "Moderate profile completeness. Several fields missing."),
)
RECOMMENDATION_FALLBACK = "Poor profile completeness. Major improvements required before approval."


def analyze_completeness(business: BusinessRecord) -> CompletenessResult:
    contributions: list[Contribution] = []
    missing: list[str] = []

    for name in REQUIRED_FIELDS:
        if business.value_of(name) is None:
            missing.append(name)
        else:
            contributions.append(Contribution(REQUIRED_FIELD_POINTS, f"required:{name}"))

    for name in OPTIONAL_FIELDS:
        if business.value_of(name) is not None:
            contributions.append(Contribution(OPTIONAL_FIELD_POINTS, f"optional:{name}"))

    score = combine(0, contributions)
    return CompletenessResult(
        score=score,
        missing_fields=tuple(missing),
        required_fields=REQUIRED_FIELDS,
        optional_fields=OPTIONAL_FIELDS,
        recommendation=tiered_text(score, RECOMMENDATION_TIERS, RECOMMENDATION_FALLBACK),
    )
