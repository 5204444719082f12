"""
Service wiring.

One ServiceContext per process holds the record store, event recorder,
configuration store, verification engine, feedback recorder and review
service. main.py builds it at startup and registers it with
set_context(); routers resolve it through get_context().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

from fastapi import HTTPException

from listingtrust.config import ConfigurationStore
from listingtrust.engine import FeedbackRecorder, ReviewService, VerificationEngine
from listingtrust.models import ApprovalStatus, BusinessRecord, ContentItem
from listingtrust.packs import load_configuration_pack
from listingtrust.ports import InMemoryEventRecorder, InMemoryRecordStore


logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    records: InMemoryRecordStore
    events: InMemoryEventRecorder
    config_store: ConfigurationStore
    engine: VerificationEngine
    feedback: FeedbackRecorder
    reviews: ReviewService


def build_context(
    pack_path: Union[str, Path, None] = None,
    max_workers: int = 5,
    seed_demo_data: bool = False,
    records: Optional[InMemoryRecordStore] = None,
) -> ServiceContext:
    """Load the configuration pack and wire the engine around it."""
    records = records or InMemoryRecordStore()
    if seed_demo_data:
        for record in demo_businesses():
            records.add(record)

    events = InMemoryEventRecorder()
    config_store = ConfigurationStore(load_configuration_pack(pack_path))
    engine = VerificationEngine(records, config_store, events, max_workers=max_workers)
    feedback = FeedbackRecorder()
    reviews = ReviewService(records, config_store, engine, feedback, events)

    logger.info(
        "Service context ready (configuration %s, %d businesses)",
        config_store.version, len(records.all()),
        extra={"config_version": config_store.version},
    )
    return ServiceContext(
        records=records,
        events=events,
        config_store=config_store,
        engine=engine,
        feedback=feedback,
        reviews=reviews,
    )


_context: Optional[ServiceContext] = None


def set_context(context: Optional[ServiceContext]) -> None:
    global _context
    _context = context


def current_context() -> Optional[ServiceContext]:
    return _context


def get_context() -> ServiceContext:
    """FastAPI dependency."""
    if _context is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return _context


# =============================================================================
# Demo data
# =============================================================================

def demo_businesses() -> list[BusinessRecord]:
    """A handful of listings covering the main decision paths."""
    now = datetime.now(timezone.utc)
    return [
        BusinessRecord(
            id="demo-approved-bakery",
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
            approval_status=ApprovalStatus.APPROVED,
            created_at=now - timedelta(days=400),
            recent_inquiries=6,
        ),
        BusinessRecord(
            id="demo-complete-plumber",
            name="Coastline Plumbing",
            phone="0412345678",
            email="jobs@coastlineplumbing.com.au",
            website="https://coastlineplumbing.com.au",
            address="4 Beach Rd",
            suburb="Manly",
            category="Trades",
            bio="Licensed plumbers for residential and commercial work.",
            abn="53004085616",
            abn_status="VERIFIED",
            latitude=-33.797,
            longitude=151.288,
            source="MANUAL",
            owner_id="owner-2",
            created_at=now - timedelta(days=10),
            recent_leads=2,
        ),
        BusinessRecord(
            id="demo-placeholder-cafe",
            name="Test Cafe 123",
            phone="0400000000",
            email="owner@mailinator.com",
            suburb="Newtown",
            category="Food & Drink",
            bio="Best cafe!!!",
            source="CSV",
            created_at=now - timedelta(days=5),
        ),
        BusinessRecord(
            id="demo-spam-listing",
            name="Cheap Deals Now",
            phone="0411111111",
            email="deals@cheapdeals.com",
            suburb="Parramatta",
            category="Retail",
            bio="CLICK HERE TO BUY NOW!!! GUARANTEED FREE MONEY, ACT FAST, URGENT!! DAMN GOOD DEALS",
            source="CSV",
            created_at=now - timedelta(days=200),
            content_items=(ContentItem(id="post-1", text="Limited time: click here"),),
        ),
    ]
