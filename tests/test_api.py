"""
Tests for the ListingTrust HTTP service.

Every test runs the app through TestClient with an explicit
ServiceContext so startup never reads the environment.
"""
import pytest
from fastapi.testclient import TestClient

from listingtrust.exceptions import (
    ComputationError,
    ConcurrencyConflictError,
    ConfigurationInvariantError,
    NotFoundError,
    ValidationError,
)
from listingtrust.ports import InMemoryRecordStore
from service import context as service_context
from service.context import build_context
from service.main import create_app, status_for
from tests.conftest import make_approved, make_business


REVIEW_BODY = {
    "action": "approve",
    "reason": "Confirmed trading details with the owner by phone",
    "agreed_with_recommendation": True,
    "accuracy_feedback": "accurate",
}


@pytest.fixture
def ctx():
    return build_context(records=InMemoryRecordStore([make_business(), make_approved("other-1")]))


@pytest.fixture
def client(ctx):
    with TestClient(create_app(ctx)) as test_client:
        yield test_client


# =============================================================================
# Health and Errors
# =============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["configuration_version"] == "1.0.0"
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.parametrize("exc,status", [
        (NotFoundError(message="x"), 404),
        (ConcurrencyConflictError(message="x"), 409),
        (ConfigurationInvariantError(message="x"), 400),
        (ValidationError(message="x"), 400),
        (ComputationError(message="x"), 500),
    ])
    def test_error_status_mapping(self, exc, status):
        assert status_for(exc) == status

    def test_uninitialized_service(self, ctx):
        service_context.set_context(None)
        client = TestClient(create_app(ctx))
        assert client.get("/feedback").status_code == 503


# =============================================================================
# Verification
# =============================================================================

class TestVerifyEndpoint:

    def test_verify(self, client):
        response = client.post("/businesses/biz-1/verify")
        assert response.status_code == 200
        data = response.json()
        assert data["success"]
        assert data["message"] == "Verification completed for Harbour Bakery"
        assert data["result"]["overall_recommendation"] == "approve"
        assert data["result"]["confidence_score"] == 100
        assert data["result"]["configuration_version"] == "1.0.0"

    def test_verify_with_options(self, client):
        response = client.post("/businesses/biz-1/verify", json={
            "confidence_threshold": 100,
            "include_duplicate_analysis": False,
        })
        result = response.json()["result"]
        assert result["confidence_threshold"] == 100
        assert result["analysis"]["duplicate_analysis"]["skipped"]

    def test_admin_header_recorded_on_audit(self, client, ctx):
        client.post("/businesses/biz-1/verify", headers={"X-Admin-Id": "admin-9"})
        (event,) = ctx.events.events("business_verification")
        assert event.actor_id == "admin-9"

    def test_unknown_business(self, client):
        response = client.post("/businesses/missing/verify")
        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "LT_NOT_FOUND"
        assert data["request_id"]

    @pytest.mark.parametrize("body", [
        {"confidence_threshold": 150},
        {"unexpected": True},
    ])
    def test_malformed_body(self, client, body):
        assert client.post("/businesses/biz-1/verify", json=body).status_code == 422

    def test_demo_data(self):
        ctx = build_context(seed_demo_data=True)
        with TestClient(create_app(ctx)) as client:
            approved = client.post("/businesses/demo-complete-plumber/verify").json()
            placeholder = client.post("/businesses/demo-placeholder-cafe/verify").json()
            spam = client.post("/businesses/demo-spam-listing/verify").json()

        assert approved["result"]["overall_recommendation"] == "approve"
        assert placeholder["result"]["overall_recommendation"] == "manual_review"
        assert spam["result"]["overall_recommendation"] == "reject"


# =============================================================================
# Review
# =============================================================================

class TestReviewEndpoint:

    def test_review(self, client, ctx):
        client.post("/businesses/biz-1/verify")
        response = client.post(
            "/businesses/biz-1/review", json=REVIEW_BODY, headers={"X-Admin-Id": "admin-1"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Admin review completed for Harbour Bakery"
        assert data["result"]["business_updates"]["new_approval_status"] == "APPROVED"
        assert data["result"]["recommendation_review"]["original_recommendation"] == "approve"
        assert ctx.records.get_business("biz-1").approval_status.value == "APPROVED"

    def test_threshold_toggle(self, client):
        body = dict(REVIEW_BODY, adjust_confidence_threshold=True, new_confidence_threshold=80)
        impact = client.post("/businesses/biz-1/review", json=body).json()["result"]["system_impact"]
        assert impact["confidence_threshold_adjusted"]
        assert impact["configuration_version"] == "1.0.1"
        assert client.get("/configuration").json()["version"] == "1.0.1"

    def test_threshold_value_ignored_without_toggle(self, client):
        body = dict(REVIEW_BODY, new_confidence_threshold=80)
        impact = client.post("/businesses/biz-1/review", json=body).json()["result"]["system_impact"]
        assert not impact["confidence_threshold_adjusted"]

    def test_resolve_duplicates_requires_strategy(self, client):
        body = dict(REVIEW_BODY, resolve_duplicates=True, duplicate_business_ids=["other-1"])
        assert client.post("/businesses/biz-1/review", json=body).status_code == 422

    def test_resolve_duplicates(self, client, ctx):
        body = dict(
            REVIEW_BODY,
            resolve_duplicates=True,
            duplicate_resolution_strategy="mark_duplicate",
            duplicate_business_ids=["other-1"],
        )
        response = client.post("/businesses/biz-1/review", json=body)
        assert response.status_code == 200
        assert ctx.records.get_business("other-1").duplicate_of_id == "biz-1"

    @pytest.mark.parametrize("path,body", [
        ("/businesses/missing/review", REVIEW_BODY),
        ("/businesses/biz-1/review", dict(
            REVIEW_BODY,
            resolve_duplicates=True,
            duplicate_resolution_strategy="merge",
            duplicate_business_ids=["ghost"],
        )),
    ])
    def test_not_found(self, client, path, body):
        assert client.post(path, json=body).status_code == 404

    def test_short_reason(self, client):
        body = dict(REVIEW_BODY, reason="too short")
        assert client.post("/businesses/biz-1/review", json=body).status_code == 422

    def test_feedback_listing(self, client):
        client.post("/businesses/biz-1/review", json=REVIEW_BODY)
        data = client.get("/feedback").json()
        assert data["count"] == 1
        assert data["feedback"][0]["business_id"] == "biz-1"
        assert client.get("/feedback", params={"business_id": "other-1"}).json()["count"] == 0


# =============================================================================
# Configuration
# =============================================================================

class TestConfigurationEndpoints:

    def test_get_configuration(self, client):
        data = client.get("/configuration").json()
        assert data["version"] == "1.0.0"
        assert data["metadata"]["modified_by"] == "system"
        assert data["configuration"]["systemSettings"]["globalConfidenceThreshold"] == 75

    def test_apply_update(self, client):
        response = client.put(
            "/configuration",
            json={
                "configuration": {"systemSettings": {"globalConfidenceThreshold": 80}},
                "reason": "Raise the bar",
                "expected_version": "1.0.0",
            },
            headers={"X-Admin-Id": "admin-1"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["applied"]
        assert data["version"] == "1.0.1"
        assert data["changes"] == [{
            "field": "systemSettings.globalConfidenceThreshold",
            "old_value": 75.0,
            "new_value": 80,
        }]

        history = client.get("/configuration/history").json()
        assert history["current_version"] == "1.0.1"
        assert history["history"][0]["modified_by"] == "admin-1"
        assert history["pagination"]["total"] == 1

    def test_test_mode(self, client):
        response = client.put("/configuration", json={
            "configuration": {"systemSettings": {"enableAIAutomation": False}},
            "reason": "Preview pause",
            "test_mode": True,
        })
        data = response.json()
        assert data["test_mode"]
        assert not data["applied"]
        assert data["version"] == "1.0.0-test"
        assert client.get("/configuration").json()["version"] == "1.0.0"

        history = client.get("/configuration/history").json()
        assert history["history"] == []
        with_trials = client.get(
            "/configuration/history", params={"include_test_mode": True}
        ).json()
        assert with_trials["summary"]["test_mode_changes"] == 1

    def test_invariant_violation(self, client):
        response = client.put("/configuration", json={
            "configuration": {"businessVerification": {"confidenceThresholds": {"autoApprove": 50}}},
            "reason": "Oops",
        })
        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "LT_CONFIG_INVARIANT"
        assert data["validation_errors"] == [
            "Auto-approve threshold must be higher than manual review threshold",
        ]

    def test_stale_version(self, client):
        client.put("/configuration", json={
            "configuration": {"systemSettings": {"globalConfidenceThreshold": 80}},
            "reason": "first",
        })
        response = client.put("/configuration", json={
            "configuration": {"systemSettings": {"globalConfidenceThreshold": 85}},
            "reason": "second",
            "expected_version": "1.0.0",
        })
        assert response.status_code == 409
        assert response.json()["details"]["current_version"] == "1.0.1"

    def test_missing_reason(self, client):
        response = client.put("/configuration", json={"configuration": {}})
        assert response.status_code == 422

    def test_history_filters(self, client):
        client.put("/configuration", json={
            "configuration": {"systemSettings": {"enableAIAutomation": False}},
            "reason": "Pause automation",
        })
        client.put("/configuration", json={
            "configuration": {"performance": {"cacheExpiryMinutes": 30}},
            "reason": "Cache tuning",
        })
        data = client.get("/configuration/history", params={"change_type": "critical"}).json()
        assert data["pagination"]["filtered"] == 1
        assert data["filters"]["change_type"] == "critical"

    def test_history_invalid_range(self, client):
        response = client.get("/configuration/history", params={
            "from_date": "2025-06-02", "to_date": "2025-06-01",
        })
        assert response.status_code == 400

    def test_history_limit_bounds(self, client):
        assert client.get("/configuration/history", params={"limit": 500}).status_code == 422
