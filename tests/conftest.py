"""
Pytest configuration and fixtures for ListingTrust tests.

Provides factory helpers for business records, configuration snapshots
and fully wired engines.
"""
import pytest
from datetime import datetime, timedelta, timezone

from listingtrust.config import ConfigurationStore
from listingtrust.engine import FeedbackRecorder, ReviewService, VerificationEngine
from listingtrust.models import ApprovalStatus, BusinessRecord, ConfigurationSnapshot
from listingtrust.packs import load_configuration_pack
from listingtrust.ports import InMemoryEventRecorder, InMemoryRecordStore


FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Factory Helpers
# =============================================================================

def make_business(business_id: str = "biz-1", **overrides) -> BusinessRecord:
    """
    A complete, well-formed, ABN-verified listing with recent activity.

    Every analyzer scores it at 100; override fields to degrade it.
    """
    fields = dict(
        id=business_id,
        name="Harbour Bakery",
        phone="0298765432",
        email="hello@harbourbakery.com.au",
        website="https://harbourbakery.com.au",
        address="12 Wharf St",
        suburb="Balmain",
        category="Food & Drink",
        bio="Family bakery serving sourdough and pastries since 1998.",
        abn="51824753556",
        abn_status="VERIFIED",
        latitude=-33.857,
        longitude=151.179,
        source="MANUAL",
        owner_id="owner-1",
        created_at=FIXED_NOW - timedelta(days=30),
        recent_inquiries=3,
        recent_leads=1,
    )
    fields.update(overrides)
    return BusinessRecord(**fields)


def make_bare_business(business_id: str = "bare-1", **overrides) -> BusinessRecord:
    """A listing with only a name; everything else is blank."""
    fields = dict(id=business_id, name="Bare Listing", created_at=FIXED_NOW - timedelta(days=1))
    fields.update(overrides)
    return BusinessRecord(**fields)


def make_approved(business_id: str, **overrides) -> BusinessRecord:
    """An approved listing with no fields in common with make_business()."""
    fields = dict(
        name=f"Other Business {business_id}",
        phone="0733334444",
        email=f"{business_id}@other.com.au",
        website=f"https://{business_id}.other.com.au",
        suburb="Fortitude Valley",
        abn="98765432109",
        approval_status=ApprovalStatus.APPROVED,
    )
    fields.update(overrides)
    return make_business(business_id, **fields)


def make_snapshot(**section_overrides) -> ConfigurationSnapshot:
    """
    The bundled default configuration with top-level sections merged.

    make_snapshot(systemSettings={"enableAIAutomation": False})
    """
    base = load_configuration_pack()
    values = base.as_dict()
    for section, override in section_overrides.items():
        merged = dict(values.get(section, {}))
        merged.update(override)
        values[section] = merged
    return ConfigurationSnapshot(values=values, version=base.version)


def make_engine(*records: BusinessRecord, snapshot: ConfigurationSnapshot = None, events=None):
    store = InMemoryRecordStore(records)
    config_store = ConfigurationStore(snapshot or load_configuration_pack())
    events = events if events is not None else InMemoryEventRecorder()
    engine = VerificationEngine(store, config_store, events, clock=lambda: FIXED_NOW)
    return engine, store, config_store, events


def make_review_service(*records: BusinessRecord, events=None):
    engine, store, config_store, events = make_engine(*records, events=events)
    feedback = FeedbackRecorder()
    service = ReviewService(store, config_store, engine, feedback, events, clock=lambda: FIXED_NOW)
    return service, engine, store, config_store, feedback, events


class FailingEventRecorder:
    """EventRecorder whose sink is down."""

    def __init__(self):
        self.attempts = 0

    def record_event(self, event_type, target_id, actor_id, payload):
        self.attempts += 1
        raise ConnectionError("audit sink unavailable")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def default_snapshot() -> ConfigurationSnapshot:
    return load_configuration_pack()


@pytest.fixture
def config_store(default_snapshot) -> ConfigurationStore:
    return ConfigurationStore(default_snapshot)


@pytest.fixture
def complete_business() -> BusinessRecord:
    return make_business()
