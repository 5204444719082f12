"""
Data Quality Analyzer

Starts at 100 and deducts a fixed penalty per triggered check:

    email format                       -15  format    high
    disposable email domain            -20  validity  high
    phone format (AU)                  -10  format    medium
    malformed website URL              -10  format    medium
    redirect / social website          -8   validity  medium
    ABN not 11 digits                  -8   format    medium
    name under 3 characters            -15  validity  high
    placeholder name (per pattern)     -20  validity  high
    bio under 20 characters            -5   validity  low
    promotional bio phrasing           -15  validity  high

Floor at 0.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from ..models import (
    BusinessRecord,
    ConfigurationSnapshot,
    DataQualityResult,
    IssueCategory,
    QualityIssue,
    Severity,
)
from .scoring import Contribution, combine, tiered_text


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^(\+61|0)[2-9]\d{8}$")
ABN_PATTERN = re.compile(r"^\d{11}$")
WHITESPACE = re.compile(r"\s")

DEFAULT_DISPOSABLE_DOMAINS = (
    "10minutemail.com",
    "tempmail.org",
    "guerrillamail.com",
    "mailinator.com",
)
REDIRECT_WEBSITE_PATTERNS = ("bit.ly", "tinyurl.com", "facebook.com/profile")
PLACEHOLDER_NAME_PATTERNS = ("test", "example", "lorem ipsum", "123", "asdf")
PROMOTIONAL_BIO_PATTERNS = ("click here", "buy now", "limited time", "act fast", "!!!")

MIN_NAME_LENGTH = 3
MIN_BIO_LENGTH = 20

RECOMMENDATION_TIERS = (
    (90, "Excellent data quality. No significant issues detected."),
    (75, "Good data quality. Minor formatting issues to address."),
    (60, "Moderate data quality. Several issues need attention."),
)
RECOMMENDATION_FALLBACK = "Poor data quality. Major issues must be resolved before approval."


@dataclass(frozen=True)
class DataQualitySettings:
    """Configuration-driven inputs to the data quality checks."""
    block_disposable_emails: bool = True
    disposable_domains: frozenset[str] = frozenset(DEFAULT_DISPOSABLE_DOMAINS)

    @classmethod
    def from_configuration(cls, snapshot: ConfigurationSnapshot) -> "DataQualitySettings":
        blocking = snapshot.section("contentModeration.disposableEmailBlocking")
        domains = blocking.get("domains") or DEFAULT_DISPOSABLE_DOMAINS
        return cls(
            block_disposable_emails=bool(blocking.get("enabled", True)),
            disposable_domains=frozenset(d.strip().lower() for d in domains if d),
        )


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def _issue(
    field: str,
    category: IssueCategory,
    severity: Severity,
    description: str,
    suggestion: str,
    penalty: float,
) -> tuple[QualityIssue, Contribution]:
    issue = QualityIssue(
        field=field,
        category=category,
        severity=severity,
        description=description,
        suggestion=suggestion,
    )
    return issue, Contribution(-penalty, f"{field}:{category.value}")


def _email_checks(email: str, settings: DataQualitySettings):
    if not EMAIL_PATTERN.match(email):
        yield _issue(
            "email", IssueCategory.FORMAT, Severity.HIGH,
            "Invalid email format detected",
            "Correct the email format to ensure deliverability",
            15,
        )
    domain = email.split("@", 1)[1].lower() if "@" in email else ""
    if settings.block_disposable_emails and domain in settings.disposable_domains:
        yield _issue(
            "email", IssueCategory.VALIDITY, Severity.HIGH,
            "Temporary or suspicious email domain detected",
            "Use a permanent business email address",
            20,
        )


def _phone_checks(phone: str):
    if not PHONE_PATTERN.match(WHITESPACE.sub("", phone)):
        yield _issue(
            "phone", IssueCategory.FORMAT, Severity.MEDIUM,
            "Phone number format may not be valid Australian format",
            "Use Australian phone format: +61 X XXXX XXXX or 0X XXXX XXXX",
            10,
        )


def _website_checks(website: str):
    if not is_valid_url(website):
        yield _issue(
            "website", IssueCategory.FORMAT, Severity.MEDIUM,
            "Invalid website URL format",
            "Ensure website URL includes http:// or https://",
            10,
        )
    elif any(pattern in website for pattern in REDIRECT_WEBSITE_PATTERNS):
        yield _issue(
            "website", IssueCategory.VALIDITY, Severity.MEDIUM,
            "Website URL appears to be a redirect or social media profile",
            "Use the main business website URL",
            8,
        )


def _abn_checks(abn: str):
    if not ABN_PATTERN.match(WHITESPACE.sub("", abn)):
        yield _issue(
            "abn", IssueCategory.FORMAT, Severity.MEDIUM,
            "ABN format appears invalid (should be 11 digits)",
            "Verify ABN format and ensure it's correctly entered",
            8,
        )


def _name_checks(name: str):
    if len(name) < MIN_NAME_LENGTH:
        yield _issue(
            "name", IssueCategory.VALIDITY, Severity.HIGH,
            "Business name is too short",
            f"Provide full business name (at least {MIN_NAME_LENGTH} characters)",
            15,
        )
    lowered = name.lower()
    for pattern in PLACEHOLDER_NAME_PATTERNS:
        if pattern in lowered:
            yield _issue(
                "name", IssueCategory.VALIDITY, Severity.HIGH,
                f'Business name appears to be placeholder or test data ("{pattern}")',
                "Provide the actual business name",
                20,
            )


def _bio_checks(bio: str):
    if len(bio) < MIN_BIO_LENGTH:
        yield _issue(
            "bio", IssueCategory.VALIDITY, Severity.LOW,
            "Business description is very brief",
            "Expand description to provide more details about services",
            5,
        )
    lowered = bio.lower()
    if any(pattern in lowered for pattern in PROMOTIONAL_BIO_PATTERNS):
        yield _issue(
            "bio", IssueCategory.VALIDITY, Severity.HIGH,
            "Description contains potential spam content",
            "Remove promotional language and focus on business services",
            15,
        )


def analyze_data_quality(
    business: BusinessRecord,
    settings: Optional[DataQualitySettings] = None,
) -> DataQualityResult:
    settings = settings or DataQualitySettings()
    findings: list[tuple[QualityIssue, Contribution]] = []

    email = business.value_of("email")
    if email:
        findings.extend(_email_checks(email, settings))

    phone = business.value_of("phone")
    if phone:
        findings.extend(_phone_checks(phone))

    website = business.value_of("website")
    if website:
        findings.extend(_website_checks(website))

    abn = business.value_of("abn")
    if abn:
        findings.extend(_abn_checks(abn))

    name = business.value_of("name")
    if name:
        findings.extend(_name_checks(name))

    bio = business.value_of("bio")
    if bio:
        findings.extend(_bio_checks(bio))

    score = combine(100, (contribution for _, contribution in findings))
    return DataQualityResult(
        score=score,
        issues=tuple(issue for issue, _ in findings),
        recommendation=tiered_text(score, RECOMMENDATION_TIERS, RECOMMENDATION_FALLBACK),
    )
