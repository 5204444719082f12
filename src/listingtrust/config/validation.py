"""
Configuration Validation

Invariant checks applied to every proposed configuration before it can be
applied or returned from a test-mode evaluation:

- Threshold ordering: autoApprove > manualReview > autoReject
- Percentage partitions sum to 100 (within WEIGHT_SUM_TOLERANCE)
- Duplicate tier ordering: merge > markDuplicate
- Structural validation against ConfigurationSchema (types, ranges,
  unknown keys)

All violations are collected; a single ConfigurationInvariantError
carries the full list.
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationInvariantError
from ..packs.schema import ConfigurationSchema, validate_configuration_values


WEIGHT_SUM_TOLERANCE = 0.1

# Weight sets declared as percentage partitions
PARTITION_WEIGHT_SETS: dict[str, str] = {
    "businessVerification.confidenceWeights": "Confidence weights",
    "businessVerification.qualityWeights": "Quality weights",
    "businessVerification.riskAssessment.riskFactorWeights": "Risk factor weights",
}


def _lookup(values: Mapping[str, Any], path: str) -> Any:
    node: Any = values
    for key in path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_threshold_ordering(values: Mapping[str, Any]) -> list[str]:
    thresholds = _lookup(values, "businessVerification.confidenceThresholds")
    if not isinstance(thresholds, Mapping):
        return []

    errors = []
    auto_approve = thresholds.get("autoApprove")
    manual_review = thresholds.get("manualReview")
    auto_reject = thresholds.get("autoReject")

    if _is_number(auto_approve) and _is_number(manual_review) and auto_approve <= manual_review:
        errors.append("Auto-approve threshold must be higher than manual review threshold")
    if _is_number(manual_review) and _is_number(auto_reject) and manual_review <= auto_reject:
        errors.append("Manual review threshold must be higher than auto-reject threshold")
    return errors


def check_weight_partitions(values: Mapping[str, Any]) -> list[str]:
    errors = []
    for path, label in PARTITION_WEIGHT_SETS.items():
        weights = _lookup(values, path)
        if not isinstance(weights, Mapping) or not weights:
            continue
        numbers = [w for w in weights.values() if _is_number(w)]
        if len(numbers) != len(weights):
            # Non-numeric weights are reported by the schema check
            continue
        total = sum(numbers)
        if abs(total - 100) > WEIGHT_SUM_TOLERANCE:
            errors.append(f"{label} must sum to 100% (got {total:g})")
    return errors


def check_duplicate_tiers(values: Mapping[str, Any]) -> list[str]:
    tiers = _lookup(values, "duplicateDetection.tierThresholds")
    if not isinstance(tiers, Mapping):
        return []
    merge = tiers.get("merge")
    mark = tiers.get("markDuplicate")
    if _is_number(merge) and _is_number(mark) and merge <= mark:
        return ["Duplicate merge threshold must be higher than mark-duplicate threshold"]
    return []


def _schema_errors(values: Mapping[str, Any]) -> list[str]:
    try:
        validate_configuration_values(dict(values))
    except PydanticValidationError as e:
        messages = []
        for error in e.errors(include_url=False):
            location = ".".join(str(part) for part in error.get("loc", ()))
            messages.append(f"{location}: {error.get('msg', 'invalid value')}")
        return messages
    return []


def collect_violations(values: Mapping[str, Any]) -> list[str]:
    """Return every invariant violation in `values` (empty when valid)."""
    return (
        check_threshold_ordering(values)
        + check_weight_partitions(values)
        + check_duplicate_tiers(values)
        + _schema_errors(values)
    )


def validate_configuration(values: Mapping[str, Any]) -> ConfigurationSchema:
    """
    Validate a complete configuration mapping.

    Returns:
        The parsed ConfigurationSchema

    Raises:
        ConfigurationInvariantError: listing every violation
    """
    violations = collect_violations(values)
    if violations:
        raise ConfigurationInvariantError(
            message=f"Configuration validation failed: {len(violations)} violation(s)",
            violations=violations,
            details={"validation_errors": violations},
        )
    return validate_configuration_values(dict(values))
