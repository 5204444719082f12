"""
ListingTrust Enumerations

All enumeration types used throughout the verification engine.
Organized by domain area for clarity.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Decisions
# =============================================================================

class Decision(str, Enum):
    """
    Overall verification recommendation.

    Note: These are RECOMMENDATIONS. An admin makes the final call
    through the review action.
    """
    APPROVE = "approve"
    REJECT = "reject"
    MANUAL_REVIEW = "manual_review"


class DecisionRule(str, Enum):
    """Which classifier rule produced the decision."""
    HARD_REJECT = "hard_reject"
    MANUAL_REVIEW = "manual_review"
    APPROVE = "approve"
    DEFAULT = "default"
    AUTOMATION_DISABLED = "automation_disabled"


# =============================================================================
# Findings
# =============================================================================

class Severity(str, Enum):
    """Severity of a data quality issue or legitimacy flag."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueCategory(str, Enum):
    """Category of a data quality issue."""
    FORMAT = "format"
    VALIDITY = "validity"
    CONSISTENCY = "consistency"
    DUPLICATE = "duplicate"


class FlagType(str, Enum):
    """Legitimacy flag types."""
    SUSPICIOUS_CONTACT = "suspicious_contact"
    DUPLICATE_LISTING = "duplicate_listing"
    INVALID_LOCATION = "invalid_location"
    FAKE_WEBSITE = "fake_website"
    SPAM_CONTENT = "spam_content"


# =============================================================================
# Verification Factors
# =============================================================================

class AbnVerification(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    INVALID = "invalid"
    EXPIRED = "expired"
    NOT_PROVIDED = "not_provided"


class ContactVerification(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


class WebsiteVerification(str, Enum):
    VERIFIED = "verified"
    SUSPICIOUS = "suspicious"
    INVALID = "invalid"
    NOT_PROVIDED = "not_provided"


class LocationVerification(str, Enum):
    VERIFIED = "verified"
    APPROXIMATE = "approximate"
    INVALID = "invalid"
    NOT_PROVIDED = "not_provided"


# =============================================================================
# Duplicates
# =============================================================================

class DuplicateTier(str, Enum):
    """
    Classification of a duplicate candidate by match confidence.

    Ordered from most to least severe.
    """
    MERGE = "merge"
    MARK_DUPLICATE = "mark_duplicate"
    INVESTIGATE = "investigate"


class DuplicateStrategy(str, Enum):
    """How an admin resolves flagged duplicates."""
    MERGE = "merge"
    MARK_DUPLICATE = "mark_duplicate"
    KEEP_SEPARATE = "keep_separate"


# =============================================================================
# Business State
# =============================================================================

class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AbnStatus(str, Enum):
    """ABN register status as stored on the business record."""
    VERIFIED = "VERIFIED"
    PENDING = "PENDING"
    INVALID = "INVALID"
    EXPIRED = "EXPIRED"
    NOT_PROVIDED = "NOT_PROVIDED"


# =============================================================================
# Review & Feedback
# =============================================================================

class ReviewAction(str, Enum):
    """Admin decision on a listing."""
    APPROVE = "approve"
    REJECT = "reject"
    DEFER = "defer"
    REQUEST_CHANGES = "request_changes"


class AccuracyRating(str, Enum):
    """Admin rating of the automated recommendation."""
    ACCURATE = "accurate"
    PARTIALLY_ACCURATE = "partially_accurate"
    INACCURATE = "inaccurate"


# =============================================================================
# Configuration History
# =============================================================================

class ChangeType(str, Enum):
    """History filter over configuration change content."""
    ALL = "all"
    CRITICAL = "critical"
    CONFIGURATION = "configuration"
    THRESHOLDS = "thresholds"


class HistorySortField(str, Enum):
    TIMESTAMP = "timestamp"
    CHANGES = "changes"
    USER = "user"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
