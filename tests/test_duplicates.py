"""
Tests for the duplicate matcher.

Covers:
- Candidate discovery through per-field predicates
- Weighted scoring and inclusive tier boundaries
- Exclusion of the subject and non-approved listings
- Candidate limit and ordering
"""
import pytest

from listingtrust.engine.duplicate_matcher import (
    DuplicateMatcher,
    DuplicateSettings,
    MatchWeights,
    matching_fields,
)
from listingtrust.models import ApprovalStatus, DuplicateTier
from listingtrust.ports import InMemoryRecordStore
from tests.conftest import make_approved, make_bare_business, make_business, make_snapshot


def analyze(subject, *others, settings=None):
    store = InMemoryRecordStore([subject, *others])
    return DuplicateMatcher(store).analyze(subject, settings or DuplicateSettings())


class RecordingStore(InMemoryRecordStore):
    """Records the criteria of every find_matching call."""

    def __init__(self, records=()):
        super().__init__(records)
        self.queries = []

    def find_matching(self, criteria, **kwargs):
        self.queries.append(dict(criteria))
        return super().find_matching(criteria, **kwargs)


# =============================================================================
# Scoring and Tiers
# =============================================================================

class TestDuplicateScoring:
    """Confidence and tier of individual candidates."""

    def test_no_candidates(self):
        analysis = analyze(make_business(), make_approved("other-1"))
        assert analysis.candidates == ()
        assert analysis.recommendation == "No duplicates detected. Safe to approve."
        assert not analysis.skipped

    def test_abn_and_phone_is_mark_duplicate(self):
        other = make_approved("dup-1", abn="51824753556", phone="0298765432")
        (candidate,) = analyze(make_business(), other).candidates
        assert candidate.confidence == 60
        assert candidate.tier == DuplicateTier.MARK_DUPLICATE
        assert candidate.matching_fields == frozenset({"abn", "phone"})

    def test_name_case_insensitive_with_suburb(self):
        other = make_approved("dup-2", name="HARBOUR BAKERY", suburb="Balmain")
        (candidate,) = analyze(make_business(), other).candidates
        assert candidate.confidence == 40
        assert candidate.tier == DuplicateTier.INVESTIGATE
        assert candidate.candidate_name == "HARBOUR BAKERY"

    def test_merge_boundary_is_inclusive(self):
        other = make_approved(
            "dup-3",
            abn="51824753556",
            phone="0298765432",
            website="https://harbourbakery.com.au",
        )
        analysis = analyze(make_business(), other)
        (candidate,) = analysis.candidates
        assert candidate.confidence == 80
        assert candidate.tier == DuplicateTier.MERGE
        assert analysis.high_confidence_duplicates == 1
        assert analysis.recommendation == (
            "1 high-confidence duplicate(s) found. Review required before approval."
        )

    def test_confidence_capped_at_100(self):
        twin = make_business("dup-4", approval_status=ApprovalStatus.APPROVED)
        (candidate,) = analyze(make_business(), twin).candidates
        assert candidate.confidence == 100
        assert candidate.matching_fields == frozenset(
            {"name", "suburb", "phone", "email", "website", "abn"}
        )

    def test_single_shared_phone_surfaces_candidate(self):
        other = make_approved("dup-5", phone="0298765432")
        analysis = analyze(make_business(), other)
        (candidate,) = analysis.candidates
        assert candidate.confidence == 25
        assert candidate.tier == DuplicateTier.INVESTIGATE
        assert analysis.recommendation.startswith("1 low-confidence match(es) found")

    def test_more_matching_fields_never_lowers_confidence(self):
        subject = make_business()
        fewer = make_approved("dup-6", abn="51824753556")
        more = make_approved("dup-7", abn="51824753556", email="hello@harbourbakery.com.au")
        scores = {c.candidate_id: c.confidence for c in analyze(subject, fewer, more).candidates}
        assert scores["dup-7"] >= scores["dup-6"]
        assert scores == {"dup-6": 35, "dup-7": 60}

    def test_custom_weights_and_tiers(self):
        settings = DuplicateSettings(
            weights=MatchWeights(phone=50),
            merge_threshold=90,
            mark_duplicate_threshold=50,
        )
        other = make_approved("dup-8", phone="0298765432")
        (candidate,) = analyze(make_business(), other, settings=settings).candidates
        assert candidate.confidence == 50
        assert candidate.tier == DuplicateTier.MARK_DUPLICATE

    @pytest.mark.parametrize("confidence,tier", [
        (100, DuplicateTier.MERGE),
        (80, DuplicateTier.MERGE),
        (79, DuplicateTier.MARK_DUPLICATE),
        (60, DuplicateTier.MARK_DUPLICATE),
        (59, DuplicateTier.INVESTIGATE),
        (10, DuplicateTier.INVESTIGATE),
    ])
    def test_tier_boundaries(self, confidence, tier):
        assert DuplicateSettings().tier_for(confidence) == tier

    def test_blank_fields_never_match(self):
        subject = make_business(email=None)
        other = make_approved("dup-9", email=None)
        assert "email" not in matching_fields(subject, other)


# =============================================================================
# Candidate Selection
# =============================================================================

class TestCandidateSelection:
    """Which records are considered and how many are returned."""

    def test_pending_and_rejected_listings_excluded(self):
        pending = make_business("dup-pending")
        rejected = make_business("dup-rejected", approval_status=ApprovalStatus.REJECTED)
        analysis = analyze(make_business(), pending, rejected)
        assert analysis.candidates == ()

    def test_subject_never_its_own_candidate(self):
        subject = make_business(approval_status=ApprovalStatus.APPROVED)
        assert analyze(subject).candidates == ()

    def test_candidate_limit(self):
        others = [make_approved(f"dup-{i:02d}", phone="0298765432") for i in range(12)]
        analysis = analyze(make_business(), *others)
        assert len(analysis.candidates) == 10
        assert [c.candidate_id for c in analysis.candidates] == [f"dup-{i:02d}" for i in range(10)]

    def test_sorted_by_confidence_then_id(self):
        low = make_approved("a-low", phone="0298765432")
        high = make_approved("z-high", abn="51824753556", phone="0298765432")
        tied = make_approved("b-tied", email="hello@harbourbakery.com.au")
        analysis = analyze(make_business(), low, high, tied)
        assert [c.candidate_id for c in analysis.candidates] == ["z-high", "a-low", "b-tied"]

    def test_record_found_by_several_predicates_listed_once(self):
        other = make_approved("dup-1", abn="51824753556", phone="0298765432")
        assert len(analyze(make_business(), other).candidates) == 1

    def test_blank_predicates_not_queried(self):
        subject = make_business(website=None, abn=None)
        store = RecordingStore([subject])
        DuplicateMatcher(store).analyze(subject, DuplicateSettings())
        assert store.queries == [
            {"name": "Harbour Bakery", "suburb": "Balmain"},
            {"phone": "0298765432"},
            {"email": "hello@harbourbakery.com.au"},
        ]

    def test_bare_listing_issues_no_queries(self):
        subject = make_bare_business()
        store = RecordingStore([subject])
        analysis = DuplicateMatcher(store).analyze(subject, DuplicateSettings())
        assert store.queries == []
        assert analysis.candidates == ()

    def test_disabled_returns_skipped(self):
        store = RecordingStore([make_business()])
        analysis = DuplicateMatcher(store).analyze(
            make_business(), DuplicateSettings(enabled=False)
        )
        assert analysis.skipped
        assert analysis.recommendation == "Duplicate analysis skipped."
        assert store.queries == []


# =============================================================================
# Settings
# =============================================================================

class TestDuplicateSettings:

    def test_from_default_configuration(self, default_snapshot):
        settings = DuplicateSettings.from_configuration(default_snapshot)
        assert settings.enabled
        assert settings.weights == MatchWeights()
        assert settings.merge_threshold == 80
        assert settings.mark_duplicate_threshold == 60
        assert settings.candidate_limit == 10

    def test_from_overridden_configuration(self):
        snapshot = make_snapshot(duplicateDetection={
            "enabled": False,
            "candidateLimit": 3,
            "matchCriteria": {"abnWeight": 50},
        })
        settings = DuplicateSettings.from_configuration(snapshot)
        assert not settings.enabled
        assert settings.candidate_limit == 3
        assert settings.weights.abn == 50
        assert settings.weights.phone == 25
