"""
Verification Pipeline

One verification is one synchronous pipeline:

    record -> [completeness || data quality || legitimacy ||
               content moderation || duplicates]
           -> aggregator -> classifier -> rationale -> VerificationResult

The configuration snapshot is read once at the start and handed to
every stage. Analyzers run on a ThreadPoolExecutor and are joined before
aggregation; none of them sees another's output. If any analyzer raises,
the verification fails as a whole with ComputationError.

Completed results are cached per business, keyed by configuration
version, record content and request options, and expire after
performance.cacheExpiryMinutes (legitimacy depends on the evaluation
time). performance.enableCaching = false or force_recompute bypasses
the cache. The most recent result per business is kept for the review
action.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from ..canon import content_hash
from ..config.store import ConfigurationStore
from ..exceptions import ComputationError, NotFoundError, ValidationError
from ..models import (
    AnalysisBundle,
    BusinessRecord,
    ConfigurationSnapshot,
    VerificationOptions,
    VerificationResult,
)
from ..ports import EventRecorder, RecordStore
from .aggregator import ConfidenceCalculator, ConfidenceConfig
from .classifier import apply_automation_policy, category_rule, classify, resolve_threshold
from .completeness import analyze_completeness
from .content_moderation import (
    ModerationSettings,
    analyze_content_moderation,
    skipped_content_moderation,
)
from .data_quality import DataQualitySettings, analyze_data_quality
from .duplicate_matcher import DuplicateMatcher, DuplicateSettings, skipped_duplicate_analysis
from .legitimacy import analyze_legitimacy
from .rationale import (
    build_actions,
    build_manual_override,
    build_rationale,
    special_requirements_for,
)


logger = logging.getLogger(__name__)


DEFAULT_MAX_WORKERS = 5
DEFAULT_CACHE_EXPIRY_MINUTES = 15
VERIFICATION_EVENT = "business_verification"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _CacheEntry:
    key: tuple
    result: VerificationResult


class VerificationEngine:
    """
    Runs the trust evaluation pipeline for a business.

    Usage:
        engine = VerificationEngine(records, config_store, events)
        result = engine.verify("biz-1")
        print(result.decision, result.confidence_score)
    """

    def __init__(
        self,
        records: RecordStore,
        config_store: ConfigurationStore,
        events: Optional[EventRecorder] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if max_workers < 1:
            raise ValidationError(
                message="max_workers must be at least 1",
                details={"max_workers": max_workers},
            )
        self.records = records
        self.config_store = config_store
        self.events = events
        self.max_workers = max_workers
        self._clock = clock
        self._matcher = DuplicateMatcher(records)
        self._cache_lock = threading.Lock()
        self._cache: dict[str, _CacheEntry] = {}

    # =========================================================================
    # Public API
    # =========================================================================

    def verify(
        self,
        business_id: str,
        options: Optional[VerificationOptions] = None,
        actor_id: Optional[str] = None,
    ) -> VerificationResult:
        """
        Verify a business and return the full result.

        Raises:
            ValidationError: blank business id or out-of-range threshold
            NotFoundError: unknown business id (before any analyzer runs)
            ComputationError: an analyzer failed
        """
        options = options or VerificationOptions()
        self._check_request(business_id, options)

        business = self.records.get_business(business_id)
        if business is None:
            raise NotFoundError(
                message=f"Business not found: {business_id}",
                business_id=business_id,
            )

        snapshot = self.config_store.get()
        key = self._cache_key(business, snapshot, options)

        if not options.force_recompute:
            cached = self._cached(business_id, key, snapshot)
            if cached is not None:
                logger.debug("Verification cache hit for %s", business_id)
                return cached

        started = time.perf_counter()
        result = self.evaluate(business, snapshot, options)
        result = replace(result, audit_recorded=self._record_audit(result, actor_id))

        with self._cache_lock:
            self._cache[business_id] = _CacheEntry(key=key, result=result)

        logger.info(
            "Verified %s: %s (confidence %d, threshold %s)",
            business_id, result.decision.value, result.confidence_score,
            result.confidence_threshold,
            extra={
                "business_id": business_id,
                "decision": result.decision.value,
                "confidence": result.confidence_score,
                "config_version": snapshot.version,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return result

    def last_result(self, business_id: str) -> Optional[VerificationResult]:
        with self._cache_lock:
            entry = self._cache.get(business_id)
        return entry.result if entry else None

    def evaluate(
        self,
        business: BusinessRecord,
        snapshot: ConfigurationSnapshot,
        options: Optional[VerificationOptions] = None,
    ) -> VerificationResult:
        """Run the pipeline against one snapshot. No caching, no audit."""
        options = options or VerificationOptions()
        bundle = self.analyze(business, snapshot, options)

        confidence = ConfidenceCalculator(ConfidenceConfig.from_configuration(snapshot)).compute(bundle)
        threshold = resolve_threshold(snapshot, business.category, options.confidence_threshold)
        classification = apply_automation_policy(
            classify(bundle, confidence.confidence, threshold), snapshot
        )
        decision = classification.decision

        rule = category_rule(snapshot, business.category)
        return VerificationResult(
            business_id=business.id,
            business_name=business.name,
            verified_at=self._clock(),
            decision=decision,
            decision_rule=classification.rule,
            confidence_score=confidence.confidence,
            confidence_threshold=threshold,
            analysis=bundle,
            confidence_factors=tuple(f.to_dict() for f in confidence.factors),
            rationale=build_rationale(decision, bundle),
            recommendations=build_actions(decision, bundle, special_requirements_for(rule)),
            configuration_version=snapshot.version,
            configuration_hash=content_hash(snapshot.values),
            options=options,
            manual_override=build_manual_override(decision, bundle),
        )

    def analyze(
        self,
        business: BusinessRecord,
        snapshot: ConfigurationSnapshot,
        options: VerificationOptions,
    ) -> AnalysisBundle:
        """Fan the analyzers out and join them into one bundle."""
        moderation_enabled = (
            options.include_content_moderation
            and snapshot.get("contentModeration.enabled", True)
        )
        duplicate_settings = DuplicateSettings.from_configuration(snapshot)
        duplicates_enabled = options.include_duplicate_analysis and duplicate_settings.enabled

        tasks: dict[str, Callable[[], Any]] = {
            "completeness": lambda: analyze_completeness(business),
            "data_quality": lambda: analyze_data_quality(
                business, DataQualitySettings.from_configuration(snapshot)
            ),
            "legitimacy": lambda: analyze_legitimacy(business, now=self._clock()),
        }
        if moderation_enabled:
            tasks["content_moderation"] = lambda: analyze_content_moderation(
                business, ModerationSettings.from_configuration(snapshot)
            )
        if duplicates_enabled:
            tasks["duplicates"] = lambda: self._matcher.analyze(business, duplicate_settings)

        outputs = self._run_parallel(business.id, tasks)
        return AnalysisBundle(
            completeness=outputs["completeness"],
            data_quality=outputs["data_quality"],
            legitimacy=outputs["legitimacy"],
            content_moderation=outputs.get("content_moderation") or skipped_content_moderation(),
            duplicates=outputs.get("duplicates") or skipped_duplicate_analysis(),
        )

    def invalidate(self, business_id: Optional[str] = None) -> None:
        """Drop cached results for one business, or all of them."""
        with self._cache_lock:
            if business_id is None:
                self._cache.clear()
            else:
                self._cache.pop(business_id, None)

    # =========================================================================
    # Internals
    # =========================================================================

    def _run_parallel(self, business_id: str, tasks: dict[str, Callable[[], Any]]) -> dict[str, Any]:
        outputs: dict[str, Any] = {}
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks))) as executor:
            future_to_name: dict[Future, str] = {
                executor.submit(fn): name for name, fn in tasks.items()
            }
            for future in as_completed(future_to_name):
                name = future_to_name[future]
                try:
                    outputs[name] = future.result()
                except Exception as exc:
                    logger.exception(
                        "Analyzer %s failed for %s", name, business_id,
                        extra={"business_id": business_id},
                    )
                    for pending in future_to_name:
                        pending.cancel()
                    raise ComputationError(
                        message=f"Analyzer '{name}' failed: {exc}",
                        business_id=business_id,
                        analyzer=name,
                    ) from exc
        return outputs

    def _record_audit(self, result: VerificationResult, actor_id: Optional[str]) -> bool:
        if self.events is None:
            return False
        try:
            self.events.record_event(
                VERIFICATION_EVENT,
                result.business_id,
                actor_id,
                {
                    "decision": result.decision.value,
                    "decision_rule": result.decision_rule.value,
                    "confidence_score": result.confidence_score,
                    "confidence_threshold": result.confidence_threshold,
                    "configuration_version": result.configuration_version,
                },
            )
        except Exception:
            logger.warning(
                "Failed to record verification audit event for %s",
                result.business_id,
                exc_info=True,
                extra={"business_id": result.business_id},
            )
            return False
        return True

    def _cached(
        self,
        business_id: str,
        key: tuple,
        snapshot: ConfigurationSnapshot,
    ) -> Optional[VerificationResult]:
        if not snapshot.get("performance.enableCaching", True):
            return None
        with self._cache_lock:
            entry = self._cache.get(business_id)
        if entry is None or entry.key != key:
            return None
        minutes = snapshot.get("performance.cacheExpiryMinutes", DEFAULT_CACHE_EXPIRY_MINUTES)
        if self._clock() - entry.result.verified_at >= timedelta(minutes=minutes):
            return None
        return replace(entry.result, cached=True)

    @staticmethod
    def _cache_key(
        business: BusinessRecord,
        snapshot: ConfigurationSnapshot,
        options: VerificationOptions,
    ) -> tuple:
        return (snapshot.version, content_hash(business.to_dict()), options.cache_key())

    @staticmethod
    def _check_request(business_id: str, options: VerificationOptions) -> None:
        if not business_id or not str(business_id).strip():
            raise ValidationError(message="Business ID is required")
        threshold = options.confidence_threshold
        if threshold is not None and not 0 <= threshold <= 100:
            raise ValidationError(
                message="Confidence threshold must be between 0 and 100",
                details={"confidence_threshold": threshold},
                business_id=business_id,
            )
