"""
ListingTrust - Trust Evaluation Engine for Business Listings

Scores business listing submissions and recommends approve, reject or
manual review. It produces RECOMMENDATIONS: an admin makes the final
call through the review action, and that call is fed back as
calibration feedback.

Key Features:
- Rule-based field analyzers (completeness, data quality, legitimacy,
  content moderation)
- Duplicate matching against approved listings
- Weighted confidence aggregation and ordered decision rules
- Rationale and recommended actions derived from computed outputs
- Versioned, diffable, validated configuration with test mode and
  optimistic concurrency

Quick Start:
    from listingtrust import (
        ConfigurationStore, InMemoryRecordStore, VerificationEngine,
        load_configuration_pack,
    )

    store = ConfigurationStore(load_configuration_pack())
    records = InMemoryRecordStore([...])
    engine = VerificationEngine(records, store)
    result = engine.verify("biz-1")
    print(result.decision, result.confidence_score)

Version: 1.0.0
"""
from __future__ import annotations

__version__ = "1.0.0"

from .config import ConfigurationStore
from .engine import (
    FeedbackRecorder,
    ReviewRequest,
    ReviewService,
    VerificationEngine,
)
from .exceptions import (
    ComputationError,
    ConcurrencyConflictError,
    ConfigurationInvariantError,
    ConfigurationLoadError,
    ListingTrustError,
    NotFoundError,
    ValidationError,
)
from .models import (
    BusinessRecord,
    ConfigurationSnapshot,
    Decision,
    VerificationOptions,
    VerificationResult,
)
from .packs import load_configuration_pack
from .ports import (
    EventRecorder,
    InMemoryEventRecorder,
    InMemoryRecordStore,
    RecordStore,
)

__all__ = [
    "__version__",
    # Exceptions
    "ListingTrustError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationInvariantError",
    "ConcurrencyConflictError",
    "ConfigurationLoadError",
    "ComputationError",
    # Models
    "BusinessRecord",
    "ConfigurationSnapshot",
    "Decision",
    "VerificationOptions",
    "VerificationResult",
    # Configuration
    "ConfigurationStore",
    "load_configuration_pack",
    # Engine
    "VerificationEngine",
    "ReviewRequest",
    "ReviewService",
    "FeedbackRecorder",
    # Ports
    "RecordStore",
    "EventRecorder",
    "InMemoryRecordStore",
    "InMemoryEventRecorder",
]
