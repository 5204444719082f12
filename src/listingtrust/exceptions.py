"""
ListingTrust Exception Hierarchy

Domain-specific exceptions for listing verification and configuration.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: LT_<CATEGORY>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class ListingTrustError(Exception):
    """
    Base exception for all ListingTrust errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (LT_*)
        details: Additional context about the error
        business_id: Associated business ID if applicable
    """
    message: str
    code: str = "LT_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    business_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.business_id:
            parts.append(f"(business: {self.business_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.business_id:
            result["business_id"] = self.business_id
        return result


# =============================================================================
# Request Errors
# =============================================================================

@dataclass
class ValidationError(ListingTrustError):
    """Malformed request input. Nothing was computed."""
    code: str = "LT_VALIDATION_ERROR"


@dataclass
class NotFoundError(ListingTrustError):
    """Referenced business does not exist."""
    code: str = "LT_NOT_FOUND"


# =============================================================================
# Configuration Errors
# =============================================================================

@dataclass
class ConfigurationInvariantError(ListingTrustError):
    """
    Proposed configuration violates an invariant.

    `violations` lists every failed check; the current configuration
    is left untouched.
    """
    code: str = "LT_CONFIG_INVARIANT"
    violations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["validation_errors"] = list(self.violations)
        return result


@dataclass
class ConcurrencyConflictError(ListingTrustError):
    """Configuration version changed between read and apply."""
    code: str = "LT_CONCURRENCY_CONFLICT"
    expected_version: Optional[str] = None
    current_version: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["expected_version"] = self.expected_version
        result["current_version"] = self.current_version
        return result


@dataclass
class ConfigurationLoadError(ListingTrustError):
    """Failed to load a configuration pack from file."""
    code: str = "LT_CONFIG_LOAD_ERROR"


# =============================================================================
# Engine Errors
# =============================================================================

@dataclass
class ComputationError(ListingTrustError):
    """An analyzer failed; the verification is abandoned as a whole."""
    code: str = "LT_COMPUTATION_ERROR"
    analyzer: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.analyzer:
            result["analyzer"] = self.analyzer
        return result


__all__ = [
    "ListingTrustError",
    "ValidationError",
    "NotFoundError",
    "ConfigurationInvariantError",
    "ConcurrencyConflictError",
    "ConfigurationLoadError",
    "ComputationError",
]
