"""
ListingTrust Configuration Management

Versioned, diffable, validated configuration:
- diff: leaf-level diff / apply / merge
- validation: threshold ordering, weight partitions, schema checks
- store: ConfigurationStore with optimistic concurrency
- history: filtered, paginated change history with summaries
"""
from __future__ import annotations

from .diff import apply_changes, diff_configuration, merge_configuration
from .history import (
    CRITICAL_FIELDS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    HistoryPage,
    HistoryQuery,
    change_categories,
    count_critical_changes,
    query_history,
    summarize_history,
)
from .store import ConfigurationStore, increment_version
from .validation import (
    PARTITION_WEIGHT_SETS,
    WEIGHT_SUM_TOLERANCE,
    check_duplicate_tiers,
    check_threshold_ordering,
    check_weight_partitions,
    collect_violations,
    validate_configuration,
)

__all__ = [
    "apply_changes",
    "diff_configuration",
    "merge_configuration",
    "CRITICAL_FIELDS",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "HistoryPage",
    "HistoryQuery",
    "change_categories",
    "count_critical_changes",
    "query_history",
    "summarize_history",
    "ConfigurationStore",
    "increment_version",
    "PARTITION_WEIGHT_SETS",
    "WEIGHT_SUM_TOLERANCE",
    "check_duplicate_tiers",
    "check_threshold_ordering",
    "check_weight_partitions",
    "collect_violations",
    "validate_configuration",
]
