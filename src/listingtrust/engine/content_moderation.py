"""
Content Moderation Analyzer

Scans the business description and public content items:

- Spam phrases in the bio: each hit is a spam indicator, -10 each,
  capped at -30 in total
- Uppercase ratio above 30%: -10
- Repeated ! or ? punctuation: -5
- Profanity: -15 per word
- Content items: hits from a shorter spam list add to the indicator
  count; each item with any hit costs -5

Floor at 0.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..models import BusinessRecord, ConfigurationSnapshot, ContentModerationResult
from .scoring import Contribution, combine, tiered_text


BIO_SPAM_PHRASES: tuple[str, ...] = (
    "click here",
    "buy now",
    "limited time offer",
    "act fast",
    "guaranteed",
    "free money",
    "make money fast",
    "100% guaranteed",
    "no risk",
    "urgent",
    "call now",
    "don't miss out",
    "exclusive deal",
    "once in a lifetime",
)
CONTENT_SPAM_PHRASES: tuple[str, ...] = ("click here", "buy now", "limited time")
PROFANITY_WORDS: tuple[str, ...] = ("damn", "hell", "crap")

SPAM_PENALTY_PER_HIT = 10
SPAM_PENALTY_CAP = 30
CAPS_RATIO_LIMIT = 0.3
REPEATED_PUNCTUATION = re.compile(r"[!?]{2,}")
UPPERCASE = re.compile(r"[A-Z]")

SKIPPED_RECOMMENDATION = "Content moderation analysis skipped."
RECOMMENDATION_TIERS = (
    (90, "Content passes moderation checks. No issues detected."),
    (75, "Minor content issues detected. Review recommended."),
    (60, "Moderate content issues. Cleanup required before approval."),
)
RECOMMENDATION_FALLBACK = "Significant content issues. Manual review required."


@dataclass(frozen=True)
class ModerationSettings:
    spam_detection: bool = True
    profanity_filtering: bool = True
    custom_keywords: tuple[str, ...] = ()

    @classmethod
    def from_configuration(cls, snapshot: ConfigurationSnapshot) -> "ModerationSettings":
        spam = snapshot.section("contentModeration.spamDetection")
        profanity = snapshot.section("contentModeration.profanityFiltering")
        return cls(
            spam_detection=bool(spam.get("enabled", True)),
            profanity_filtering=bool(profanity.get("enabled", True)),
            custom_keywords=tuple(spam.get("customKeywords") or ()),
        )

    @property
    def spam_phrases(self) -> tuple[str, ...]:
        extra = tuple(k for k in self.custom_keywords if k not in BIO_SPAM_PHRASES)
        return BIO_SPAM_PHRASES + extra


def skipped_content_moderation() -> ContentModerationResult:
    return ContentModerationResult(
        score=100,
        spam_indicators=0,
        profanity_detected=False,
        flags=(),
        recommendation=SKIPPED_RECOMMENDATION,
        skipped=True,
    )


def analyze_content_moderation(
    business: BusinessRecord,
    settings: Optional[ModerationSettings] = None,
) -> ContentModerationResult:
    settings = settings or ModerationSettings()
    contributions: list[Contribution] = []
    flags: list[str] = []
    spam_indicators = 0
    profanity_detected = False

    bio = business.bio if business.value_of("bio") else None
    if bio:
        lowered = bio.lower()

        if settings.spam_detection:
            hits = [phrase for phrase in settings.spam_phrases if phrase in lowered]
            for phrase in hits:
                flags.append(f'Spam pattern detected: "{phrase}"')
            spam_indicators += len(hits)
            if hits:
                penalty = min(SPAM_PENALTY_CAP, len(hits) * SPAM_PENALTY_PER_HIT)
                contributions.append(Contribution(-penalty, "bio_spam"))

        caps_ratio = len(UPPERCASE.findall(bio)) / len(bio)
        if caps_ratio > CAPS_RATIO_LIMIT:
            flags.append("Excessive capitalization detected")
            contributions.append(Contribution(-10, "excessive_caps"))

        if REPEATED_PUNCTUATION.search(bio):
            flags.append("Excessive punctuation detected")
            contributions.append(Contribution(-5, "excessive_punctuation"))

        if settings.profanity_filtering:
            for word in PROFANITY_WORDS:
                if word in lowered:
                    profanity_detected = True
                    flags.append(f'Potential profanity: "{word}"')
                    contributions.append(Contribution(-15, f"profanity:{word}"))

    if settings.spam_detection:
        for item in business.content_items:
            if not item.text:
                continue
            text = item.text.lower()
            item_hits = sum(1 for phrase in CONTENT_SPAM_PHRASES if phrase in text)
            if item_hits:
                spam_indicators += item_hits
                flags.append("Spam content in posts detected")
                contributions.append(Contribution(-5, f"content_spam:{item.id}"))

    score = combine(100, contributions)
    return ContentModerationResult(
        score=score,
        spam_indicators=spam_indicators,
        profanity_detected=profanity_detected,
        flags=tuple(flags),
        recommendation=tiered_text(score, RECOMMENDATION_TIERS, RECOMMENDATION_FALLBACK),
    )
