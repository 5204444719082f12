"""
Legitimacy Analyzer

Heuristics for whether a listing represents a genuine, active business.
Contributions are summed onto 100 and clamped to [0, 100]:

    website does not contain the normalized business name   -15  fake_website flag
    street address without geocode                          -10
    email domain appears in the website                     +5
    CSV import with no owner                                -5   duplicate_listing flag
    recent inquiries or leads                               +10
    no recent activity and listed > 90 days                 -8   suspicious_contact flag
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..models import (
    AbnVerification,
    BusinessRecord,
    ContactVerification,
    FlagType,
    LegitimacyFactors,
    LegitimacyFlag,
    LegitimacyResult,
    LocationVerification,
    Severity,
    WebsiteVerification,
)
from .scoring import Contribution, combine, tiered_text


INACTIVITY_WINDOW = timedelta(days=90)
BULK_IMPORT_SOURCE = "CSV"
_NON_ALNUM = re.compile(r"[^a-z0-9]")

RECOMMENDATION_TIERS = (
    (85, "High business legitimacy confidence. Strong indicators of genuine business."),
    (70, "Good legitimacy indicators. Minor verification recommended."),
    (50, "Moderate legitimacy concerns. Additional verification required."),
)
RECOMMENDATION_FALLBACK = "Significant legitimacy concerns. Manual review strongly recommended."


def normalize_for_match(value: str) -> str:
    """Lower-case and drop everything but letters and digits."""
    return _NON_ALNUM.sub("", value.lower())


def website_matches_name(website: str, name: str) -> bool:
    normalized_name = normalize_for_match(name)
    return bool(normalized_name) and normalized_name in normalize_for_match(website)


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def abn_verification_state(status: Optional[str]) -> AbnVerification:
    if not status:
        return AbnVerification.NOT_PROVIDED
    try:
        return AbnVerification(status.strip().lower())
    except ValueError:
        return AbnVerification.INVALID


def analyze_legitimacy(
    business: BusinessRecord,
    now: Optional[datetime] = None,
) -> LegitimacyResult:
    now = now or datetime.now(timezone.utc)
    contributions: list[Contribution] = []
    flags: list[LegitimacyFlag] = []

    phone = business.value_of("phone")
    email = business.value_of("email")
    website = business.value_of("website")
    address = business.value_of("address")

    contact_state = (
        ContactVerification.VERIFIED if phone and email else ContactVerification.NOT_ATTEMPTED
    )

    website_state = WebsiteVerification.NOT_PROVIDED
    if website:
        if website_matches_name(website, business.name or ""):
            website_state = WebsiteVerification.VERIFIED
        else:
            website_state = WebsiteVerification.SUSPICIOUS
            flags.append(LegitimacyFlag(
                type=FlagType.FAKE_WEBSITE,
                severity=Severity.MEDIUM,
                description="Website URL does not appear to match business name",
            ))
            contributions.append(Contribution(-15, "website_name_mismatch"))

    location_state = (
        LocationVerification.VERIFIED if business.has_geocode else LocationVerification.NOT_PROVIDED
    )
    if not business.has_geocode and address:
        contributions.append(Contribution(-10, "address_without_geocode"))

    if email and phone and website and "@" in email:
        email_domain = email.split("@", 1)[1].lower()
        if email_domain and email_domain in website.lower():
            contributions.append(Contribution(5, "email_domain_matches_website"))

    if (business.source or "").upper() == BULK_IMPORT_SOURCE and not business.owner_id:
        flags.append(LegitimacyFlag(
            type=FlagType.DUPLICATE_LISTING,
            severity=Severity.LOW,
            description="Business imported from CSV without owner verification",
        ))
        contributions.append(Contribution(-5, "unowned_bulk_import"))

    if business.recent_activity > 0:
        contributions.append(Contribution(10, "recent_activity"))
    elif _as_utc(business.created_at) < _as_utc(now) - INACTIVITY_WINDOW:
        flags.append(LegitimacyFlag(
            type=FlagType.SUSPICIOUS_CONTACT,
            severity=Severity.LOW,
            description="No recent customer interactions despite being listed for over 90 days",
        ))
        contributions.append(Contribution(-8, "inactive_listing"))

    score = combine(100, contributions)
    return LegitimacyResult(
        score=score,
        factors=LegitimacyFactors(
            abn_verification=abn_verification_state(business.abn_status),
            contact_verification=contact_state,
            website_verification=website_state,
            location_verification=location_state,
        ),
        flags=tuple(flags),
        recommendation=tiered_text(score, RECOMMENDATION_TIERS, RECOMMENDATION_FALLBACK),
    )
