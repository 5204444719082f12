"""
Duplicate Matcher

Finds approved listings that may describe the same business.

Candidates come from independent predicates, each a single record store
query that excludes the subject:

    name_suburb   same name (case-insensitive) in the same suburb
    phone         same phone
    email         same email
    website       same website
    abn           same ABN

A predicate whose subject field is blank is not evaluated. Results are
unioned by record id and bounded by the candidate limit.

Every candidate is then scored on all fields at once: the configured
weight of each matching field is summed and capped at 100. The tier is
taken from inclusive lower bounds (merge >= 80, mark_duplicate >= 60,
investigate otherwise).

Note: a single shared field (say, a franchise head office phone) is
enough to surface a candidate. That candidate usually lands in the
investigate tier.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..models import (
    BusinessRecord,
    ConfigurationSnapshot,
    DuplicateAnalysis,
    DuplicateCandidate,
    DuplicateTier,
)
from ..ports import RecordStore
from .scoring import Contribution, combine


logger = logging.getLogger(__name__)


SKIPPED_RECOMMENDATION = "Duplicate analysis skipped."
NO_DUPLICATES_RECOMMENDATION = "No duplicates detected. Safe to approve."


@dataclass(frozen=True)
class MatchWeights:
    name: float = 30
    suburb: float = 10
    phone: float = 25
    email: float = 25
    website: float = 20
    abn: float = 35

    def for_field(self, field_name: str) -> float:
        return getattr(self, field_name)


@dataclass(frozen=True)
class DuplicateSettings:
    """Weights, tier boundaries and limits for duplicate matching."""
    enabled: bool = True
    weights: MatchWeights = MatchWeights()
    merge_threshold: float = 80
    mark_duplicate_threshold: float = 60
    candidate_limit: int = 10

    @classmethod
    def from_configuration(cls, snapshot: ConfigurationSnapshot) -> "DuplicateSettings":
        section = snapshot.section("duplicateDetection")
        criteria = section.get("matchCriteria", {})
        tiers = section.get("tierThresholds", {})
        defaults = MatchWeights()
        weights = MatchWeights(
            name=criteria.get("nameWeight", defaults.name),
            suburb=criteria.get("suburbWeight", defaults.suburb),
            phone=criteria.get("phoneWeight", defaults.phone),
            email=criteria.get("emailWeight", defaults.email),
            website=criteria.get("websiteWeight", defaults.website),
            abn=criteria.get("abnWeight", defaults.abn),
        )
        return cls(
            enabled=bool(section.get("enabled", True)),
            weights=weights,
            merge_threshold=tiers.get("merge", cls.merge_threshold),
            mark_duplicate_threshold=tiers.get("markDuplicate", cls.mark_duplicate_threshold),
            candidate_limit=int(section.get("candidateLimit", cls.candidate_limit)),
        )

    def tier_for(self, confidence: float) -> DuplicateTier:
        if confidence >= self.merge_threshold:
            return DuplicateTier.MERGE
        if confidence >= self.mark_duplicate_threshold:
            return DuplicateTier.MARK_DUPLICATE
        return DuplicateTier.INVESTIGATE


# =============================================================================
# Predicates
# =============================================================================

@dataclass(frozen=True)
class MatchPredicate:
    """One candidate query: all listed fields must be equal."""
    name: str
    fields: tuple[str, ...]
    case_insensitive: tuple[str, ...] = ()

    def criteria(self, business: BusinessRecord) -> Optional[dict[str, str]]:
        """Query criteria for the subject, or None if a field is blank."""
        values = {f: business.value_of(f) for f in self.fields}
        if any(v is None for v in values.values()):
            return None
        return values


PREDICATES: tuple[MatchPredicate, ...] = (
    MatchPredicate("name_suburb", ("name", "suburb"), case_insensitive=("name",)),
    MatchPredicate("phone", ("phone",)),
    MatchPredicate("email", ("email",)),
    MatchPredicate("website", ("website",)),
    MatchPredicate("abn", ("abn",)),
)

SCORED_FIELDS: tuple[str, ...] = ("name", "suburb", "phone", "email", "website", "abn")


def matching_fields(subject: BusinessRecord, candidate: BusinessRecord) -> frozenset[str]:
    """Fields with equal non-blank values on both records. Names compare case-insensitively."""
    matched = set()
    for field_name in SCORED_FIELDS:
        ours = subject.value_of(field_name)
        theirs = candidate.value_of(field_name)
        if ours is None or theirs is None:
            continue
        if field_name == "name":
            if ours.lower() == theirs.lower():
                matched.add(field_name)
        elif ours == theirs:
            matched.add(field_name)
    return frozenset(matched)


def score_candidate(
    subject: BusinessRecord,
    candidate: BusinessRecord,
    settings: DuplicateSettings,
) -> DuplicateCandidate:
    fields = matching_fields(subject, candidate)
    confidence = combine(
        0, (Contribution(settings.weights.for_field(f), f) for f in sorted(fields))
    )
    return DuplicateCandidate(
        candidate_id=candidate.id,
        candidate_name=candidate.name,
        matching_fields=fields,
        confidence=confidence,
        tier=settings.tier_for(confidence),
    )


def duplicate_recommendation(analysis: DuplicateAnalysis) -> str:
    if analysis.high_confidence_duplicates:
        return (
            f"{analysis.high_confidence_duplicates} high-confidence duplicate(s) found. "
            "Review required before approval."
        )
    if analysis.medium_confidence_duplicates:
        return (
            f"{analysis.medium_confidence_duplicates} potential duplicate(s) found. "
            "Investigation recommended."
        )
    if analysis.low_confidence_duplicates:
        return (
            f"{analysis.low_confidence_duplicates} low-confidence match(es) found. "
            "May proceed with caution."
        )
    return NO_DUPLICATES_RECOMMENDATION


def skipped_duplicate_analysis() -> DuplicateAnalysis:
    return DuplicateAnalysis(recommendation=SKIPPED_RECOMMENDATION, skipped=True)


# =============================================================================
# Matcher
# =============================================================================

class DuplicateMatcher:
    """Runs the predicates against a record store and scores the union."""

    def __init__(self, store: RecordStore, predicates: tuple[MatchPredicate, ...] = PREDICATES):
        self.store = store
        self.predicates = predicates

    def find_candidates(
        self,
        business: BusinessRecord,
        settings: DuplicateSettings,
    ) -> list[BusinessRecord]:
        found: dict[str, BusinessRecord] = {}
        for predicate in self.predicates:
            criteria = predicate.criteria(business)
            if criteria is None:
                continue
            for record in self.store.find_matching(
                criteria,
                exclude_id=business.id,
                case_insensitive=predicate.case_insensitive,
                limit=settings.candidate_limit,
            ):
                found.setdefault(record.id, record)
        return list(found.values())

    def analyze(
        self,
        business: BusinessRecord,
        settings: Optional[DuplicateSettings] = None,
    ) -> DuplicateAnalysis:
        settings = settings or DuplicateSettings()
        if not settings.enabled:
            return skipped_duplicate_analysis()

        scored = [
            score_candidate(business, record, settings)
            for record in self.find_candidates(business, settings)
        ]
        scored.sort(key=lambda c: (-c.confidence, c.candidate_id))
        candidates = tuple(scored[: settings.candidate_limit])

        analysis = DuplicateAnalysis(candidates=candidates)
        if candidates:
            logger.debug(
                "Business %s has %d duplicate candidate(s)", business.id, len(candidates)
            )
        return DuplicateAnalysis(
            candidates=candidates,
            recommendation=duplicate_recommendation(analysis),
        )
