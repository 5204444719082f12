"""
Tests for the field analyzers.

Covers:
- Completeness scoring and missing-field reporting
- Data quality checks and deductions
- Legitimacy contributions, flags and factors
- Content moderation spam / caps / punctuation / profanity checks
"""
import pytest
from datetime import timedelta

from listingtrust.engine.completeness import (
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    analyze_completeness,
)
from listingtrust.engine.content_moderation import (
    ModerationSettings,
    analyze_content_moderation,
    skipped_content_moderation,
)
from listingtrust.engine.data_quality import DataQualitySettings, analyze_data_quality
from listingtrust.engine.legitimacy import abn_verification_state, analyze_legitimacy
from listingtrust.engine.scoring import round_half_up
from listingtrust.models import (
    AbnVerification,
    ContactVerification,
    ContentItem,
    FlagType,
    IssueCategory,
    LocationVerification,
    Severity,
    WebsiteVerification,
)
from tests.conftest import FIXED_NOW, make_bare_business, make_business, make_snapshot


# =============================================================================
# Completeness
# =============================================================================

class TestCompleteness:
    """Tests for analyze_completeness."""

    def test_complete_record_scores_100(self):
        result = analyze_completeness(make_business())
        assert result.score == 100
        assert result.missing_fields == ()
        assert result.recommendation == "Excellent profile completeness. Ready for approval."

    def test_name_only_record(self):
        result = analyze_completeness(make_bare_business())
        assert result.score == 15
        assert result.missing_fields == ("phone", "email", "suburb", "category")
        assert result.recommendation.startswith("Poor profile completeness")

    def test_required_fields_only_is_75(self):
        business = make_business(website=None, address=None, bio=None, abn=None)
        result = analyze_completeness(business)
        assert result.score == 75
        assert result.recommendation.startswith("Good profile completeness")

    def test_whitespace_only_counts_as_missing(self):
        result = analyze_completeness(make_business(email="   ", suburb="\t"))
        assert result.missing_fields == ("email", "suburb")
        assert result.score == 70

    def test_missing_fields_are_complement_of_present_required(self):
        business = make_business(phone=None, category="")
        result = analyze_completeness(business)
        present = [f for f in REQUIRED_FIELDS if business.value_of(f) is not None]
        assert set(result.missing_fields) | set(present) == set(REQUIRED_FIELDS)
        assert not set(result.missing_fields) & set(present)

    @pytest.mark.parametrize("optional_present,expected", [
        (0, 75),
        (1, 81),    # 81.25
        (2, 88),    # 87.5 rounds half up
        (3, 94),    # 93.75
        (4, 100),
    ])
    def test_score_is_sum_of_contributions(self, optional_present, expected):
        blanks = {f: None for f in OPTIONAL_FIELDS[optional_present:]}
        result = analyze_completeness(make_business(**blanks))
        assert result.score == expected
        assert result.score == round_half_up(75 + 6.25 * optional_present)

    def test_reports_field_lists(self):
        result = analyze_completeness(make_business())
        assert result.required_fields == REQUIRED_FIELDS
        assert result.optional_fields == OPTIONAL_FIELDS


# =============================================================================
# Data Quality
# =============================================================================

class TestDataQuality:
    """Tests for analyze_data_quality."""

    def test_clean_record_scores_100(self):
        result = analyze_data_quality(make_business())
        assert result.score == 100
        assert result.issues == ()
        assert result.recommendation == "Excellent data quality. No significant issues detected."

    def test_invalid_email_format(self):
        result = analyze_data_quality(make_business(email="not-an-email"))
        assert result.score == 85
        (issue,) = result.issues
        assert issue.field == "email"
        assert issue.category == IssueCategory.FORMAT
        assert issue.severity == Severity.HIGH

    def test_disposable_email_domain(self):
        result = analyze_data_quality(make_business(email="owner@mailinator.com"))
        assert result.score == 80
        assert result.issues[0].category == IssueCategory.VALIDITY

    def test_disposable_check_can_be_disabled(self):
        snapshot = make_snapshot(contentModeration={
            "enabled": True,
            "disposableEmailBlocking": {"enabled": False, "domains": []},
        })
        settings = DataQualitySettings.from_configuration(snapshot)
        result = analyze_data_quality(make_business(email="owner@mailinator.com"), settings)
        assert result.score == 100

    def test_configured_disposable_domains(self):
        settings = DataQualitySettings(disposable_domains=frozenset({"throwaway.io"}))
        result = analyze_data_quality(make_business(email="a@throwaway.io"), settings)
        assert result.score == 80

    @pytest.mark.parametrize("phone", ["+61 2 9876 5432", "02 9876 5432", "0412345678"])
    def test_valid_australian_phone_formats(self, phone):
        assert analyze_data_quality(make_business(phone=phone)).score == 100

    @pytest.mark.parametrize("phone", ["12345", "0198765432", "+1 555 123 4567"])
    def test_invalid_phone(self, phone):
        result = analyze_data_quality(make_business(phone=phone))
        assert result.score == 90
        assert result.issues[0].severity == Severity.MEDIUM

    def test_website_without_scheme(self):
        result = analyze_data_quality(make_business(website="harbourbakery.com.au"))
        assert result.score == 90
        assert result.issues[0].category == IssueCategory.FORMAT

    @pytest.mark.parametrize("website", [
        "https://bit.ly/3abc",
        "https://tinyurl.com/bakery",
        "https://facebook.com/profile/123",
    ])
    def test_redirect_or_social_website(self, website):
        result = analyze_data_quality(make_business(website=website))
        assert result.score == 92
        assert result.issues[0].category == IssueCategory.VALIDITY

    def test_abn_with_spaces_is_valid(self):
        assert analyze_data_quality(make_business(abn="51 824 753 556")).score == 100

    def test_abn_wrong_length(self):
        assert analyze_data_quality(make_business(abn="12345")).score == 92

    def test_short_name(self):
        result = analyze_data_quality(make_business(name="AB"))
        assert result.score == 85

    def test_placeholder_name_penalized_per_pattern(self):
        result = analyze_data_quality(make_business(name="Test Cafe 123"))
        assert result.score == 60
        assert len(result.issues) == 2
        assert all(i.field == "name" and i.severity == Severity.HIGH for i in result.issues)

    def test_brief_bio(self):
        result = analyze_data_quality(make_business(bio="Great bread"))
        assert result.score == 95
        assert result.issues[0].severity == Severity.LOW

    def test_promotional_bio(self):
        result = analyze_data_quality(
            make_business(bio="Click here for the best sourdough in Sydney")
        )
        assert result.score == 85

    def test_score_floors_at_zero(self):
        business = make_business(
            name="test example lorem ipsum 123 asdf",
            email="bad",
            phone="1",
            website="nope",
            abn="1",
            bio="buy now!!!",
        )
        result = analyze_data_quality(business)
        assert result.score == 0
        assert result.recommendation.startswith("Poor data quality")

    def test_blank_fields_are_not_checked(self):
        assert analyze_data_quality(make_bare_business()).score == 100


# =============================================================================
# Legitimacy
# =============================================================================

class TestLegitimacy:
    """Tests for analyze_legitimacy."""

    def test_complete_record(self):
        result = analyze_legitimacy(make_business(), now=FIXED_NOW)
        assert result.score == 100
        assert result.flags == ()
        assert result.factors.abn_verification == AbnVerification.VERIFIED
        assert result.factors.contact_verification == ContactVerification.VERIFIED
        assert result.factors.website_verification == WebsiteVerification.VERIFIED
        assert result.factors.location_verification == LocationVerification.VERIFIED

    def test_website_not_matching_name(self):
        result = analyze_legitimacy(make_business(website="https://example.org"), now=FIXED_NOW)
        # -15 mismatch, +10 activity, no email-domain bonus
        assert result.score == 95
        (flag,) = result.flags
        assert flag.type == FlagType.FAKE_WEBSITE
        assert flag.severity == Severity.MEDIUM
        assert result.factors.website_verification == WebsiteVerification.SUSPICIOUS

    def test_address_without_geocode(self):
        business = make_business(latitude=None, recent_inquiries=0, recent_leads=0)
        result = analyze_legitimacy(business, now=FIXED_NOW)
        # -10 no geocode, +5 email domain
        assert result.score == 95
        assert result.factors.location_verification == LocationVerification.NOT_PROVIDED

    def test_csv_import_without_owner(self):
        business = make_business(source="CSV", owner_id=None, recent_inquiries=0, recent_leads=0)
        result = analyze_legitimacy(business, now=FIXED_NOW)
        assert result.score == 100  # -5 + 5
        assert [f.type for f in result.flags] == [FlagType.DUPLICATE_LISTING]

    def test_inactive_old_listing(self):
        business = make_business(
            recent_inquiries=0,
            recent_leads=0,
            created_at=FIXED_NOW - timedelta(days=120),
        )
        result = analyze_legitimacy(business, now=FIXED_NOW)
        assert result.score == 97  # -8 + 5
        assert result.flags[0].type == FlagType.SUSPICIOUS_CONTACT
        assert result.flags[0].severity == Severity.LOW

    def test_inactive_new_listing_not_flagged(self):
        business = make_business(recent_inquiries=0, recent_leads=0)
        assert analyze_legitimacy(business, now=FIXED_NOW).flags == ()

    def test_contact_not_attempted_without_email(self):
        result = analyze_legitimacy(make_business(email=None), now=FIXED_NOW)
        assert result.factors.contact_verification == ContactVerification.NOT_ATTEMPTED

    def test_no_website(self):
        result = analyze_legitimacy(make_business(website=None), now=FIXED_NOW)
        assert result.factors.website_verification == WebsiteVerification.NOT_PROVIDED

    @pytest.mark.parametrize("status,expected", [
        (None, AbnVerification.NOT_PROVIDED),
        ("", AbnVerification.NOT_PROVIDED),
        ("VERIFIED", AbnVerification.VERIFIED),
        ("pending", AbnVerification.PENDING),
        ("EXPIRED", AbnVerification.EXPIRED),
        ("something-else", AbnVerification.INVALID),
    ])
    def test_abn_verification_state(self, status, expected):
        assert abn_verification_state(status) == expected

    def test_multiple_penalties_and_tiers(self):
        business = make_business(
            website="https://example.org",
            latitude=None,
            source="CSV",
            owner_id=None,
            recent_inquiries=0,
            recent_leads=0,
            created_at=FIXED_NOW - timedelta(days=365),
        )
        result = analyze_legitimacy(business, now=FIXED_NOW)
        assert result.score == 100 - 15 - 10 - 5 - 8
        assert result.recommendation.startswith("Moderate legitimacy concerns")


# =============================================================================
# Content Moderation
# =============================================================================

class TestContentModeration:
    """Tests for analyze_content_moderation."""

    def test_clean_content(self):
        result = analyze_content_moderation(make_business())
        assert result.score == 100
        assert result.flags == ()
        assert result.spam_indicators == 0
        assert not result.inappropriate_content
        assert not result.duplicate_content

    def test_spam_phrases(self):
        result = analyze_content_moderation(
            make_business(bio="Click here to buy now, limited time offer on bread.")
        )
        assert result.spam_indicators == 3
        assert result.score == 70
        assert 'Spam pattern detected: "click here"' in result.flags

    def test_spam_penalty_capped_at_30(self):
        bio = "act fast, free money, no risk, call now, exclusive deal for you"
        result = analyze_content_moderation(make_business(bio=bio))
        assert result.spam_indicators == 5
        assert result.score == 70

    def test_excessive_capitalization(self):
        result = analyze_content_moderation(make_business(bio="BEST BAKERY IN TOWN"))
        assert result.score == 90
        assert "Excessive capitalization detected" in result.flags

    def test_excessive_punctuation(self):
        result = analyze_content_moderation(make_business(bio="Fresh bread daily?!"))
        assert result.score == 95
        assert result.flags == ("Excessive punctuation detected",)

    def test_profanity(self):
        result = analyze_content_moderation(make_business(bio="Damn good pies, made with care"))
        assert result.score == 85
        assert result.profanity_detected
        assert 'Potential profanity: "damn"' in result.flags

    def test_profanity_filtering_disabled(self):
        settings = ModerationSettings(profanity_filtering=False)
        result = analyze_content_moderation(
            make_business(bio="Damn good pies, made with care"), settings
        )
        assert result.score == 100
        assert not result.profanity_detected

    def test_custom_keywords(self):
        snapshot = make_snapshot(contentModeration={
            "enabled": True,
            "spamDetection": {"enabled": True, "aggressiveness": "medium", "customKeywords": ["crypto"]},
        })
        settings = ModerationSettings.from_configuration(snapshot)
        result = analyze_content_moderation(
            make_business(bio="We now accept crypto for sourdough loaves"), settings
        )
        assert result.spam_indicators == 1
        assert 'Spam pattern detected: "crypto"' in result.flags

    def test_content_items(self):
        items = (
            ContentItem(id="p1", text="Click here for our menu"),
            ContentItem(id="p2", text="Open on Sunday"),
            ContentItem(id="p3", text="Buy now, limited time only"),
        )
        result = analyze_content_moderation(make_business(content_items=items))
        assert result.spam_indicators == 3
        assert result.score == 90
        assert result.flags.count("Spam content in posts detected") == 2

    def test_score_floors_at_zero(self):
        bio = "CLICK HERE!!! BUY NOW, GUARANTEED, URGENT, DAMN HELL CRAP"
        items = tuple(ContentItem(id=f"p{i}", text="click here") for i in range(10))
        result = analyze_content_moderation(make_business(bio=bio, content_items=items))
        assert result.score == 0
        assert result.recommendation == "Significant content issues. Manual review required."

    def test_skipped(self):
        result = skipped_content_moderation()
        assert result.skipped
        assert result.score == 100
        assert result.recommendation == "Content moderation analysis skipped."
