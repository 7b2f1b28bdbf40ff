"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient

from fraud_gateway.api.dependencies import get_profile_service
from fraud_gateway.domain.exceptions import StorageError
from fraud_gateway.infrastructure.database.repositories import AssessmentRepository
from fraud_gateway.services.profiles import BehavioralProfileService, ProfileCache

SUSPICIOUS = {
    "merchant": "Flipkart",
    "amount": 32000,
    "time": "2:14 AM",
    "source": "UPI",
    "category": "Shopping",
    "user_id": "user_001",
}

SAFE = {
    "merchant": "Amazon",
    "amount": 2499,
    "time": "10:42 AM",
    "source": "UPI",
    "category": "Shopping",
    "user_id": "user_001",
}


class UnavailableStore:
    """Profile store whose backend is down"""

    def load(self, user_id):
        raise StorageError("load", user_id, "connection refused")

    def save(self, profile):
        raise StorageError("save", profile.user_id, "connection refused")

    def delete(self, user_id):
        raise StorageError("delete", user_id, "connection refused")


@pytest.fixture
def unavailable_storage_client(client: TestClient) -> TestClient:
    """Client whose profile service raises on every storage failure"""
    client.app.dependency_overrides[get_profile_service] = lambda: BehavioralProfileService(
        store=UnavailableStore(),
        cache=ProfileCache(),
        fail_on_storage_error=True,
    )
    return client


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/risk/analyze", json=SAFE)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "fraud_risk_assessment_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_analyze_high_risk_transaction(client: TestClient):
    """Test POST /v1/risk/analyze with a suspicious transaction"""
    response = client.post("/v1/risk/analyze", json=SUSPICIOUS)

    assert response.status_code == 200
    data = response.json()
    assert data["analysis"]["riskScore"] == 90
    assert data["analysis"]["riskLevel"] == "High"
    assert "New merchant" in data["analysis"]["reasons"]
    assert data["mlModel"]["confidence"] == 95
    assert data["merchant"] == "Flipkart"
    assert data["assessmentId"]
    assert data["transactionId"].startswith("txn_")


def test_analyze_low_risk_transaction(client: TestClient):
    response = client.post("/v1/risk/analyze", json={**SAFE, "transaction_id": "txn_001"})

    assert response.status_code == 200
    data = response.json()
    assert data["transactionId"] == "txn_001"
    assert data["analysis"]["riskScore"] == 0
    assert data["analysis"]["riskLevel"] == "Low"
    assert data["analysis"]["recommendation"] == "Process transaction normally"


def test_analyze_validation(client: TestClient):
    """Missing fields and non-positive amounts are rejected"""
    assert client.post("/v1/risk/analyze", json={"merchant": "Amazon", "time": "1:00 PM"}).status_code == 422
    assert client.post("/v1/risk/analyze", json={**SAFE, "amount": 0}).status_code == 422


def test_velocity_from_repeated_requests(client: TestClient):
    """Fourth transaction inside the window trips the velocity rule"""
    for _ in range(3):
        data = client.post("/v1/risk/analyze", json=SAFE).json()
        assert data["analysis"]["riskScore"] == 0

    data = client.post("/v1/risk/analyze", json=SAFE).json()
    assert data["analysis"]["reasons"] == ["Multiple transactions in short time"]
    assert data["analysis"]["riskScore"] == 10


def test_risk_history(client: TestClient):
    """Test GET /v1/risk/history"""
    client.post("/v1/risk/analyze", json=SAFE)
    client.post("/v1/risk/analyze", json=SUSPICIOUS)
    client.post("/v1/risk/analyze", json={**SAFE, "user_id": "someone_else"})

    response = client.get("/v1/risk/history?user_id=user_001")

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "user_001"
    assert len(data["assessments"]) == 2
    assert {a["merchant"] for a in data["assessments"]} == {"Amazon", "Flipkart"}
    assert all(a["status"] == "Pending" for a in data["assessments"])


def test_report_and_verify_assessment(client: TestClient):
    first = client.post("/v1/risk/analyze", json=SUSPICIOUS).json()["assessmentId"]
    second = client.post("/v1/risk/analyze", json=SAFE).json()["assessmentId"]

    reported = client.post(f"/v1/risk/{first}/report", json={"reason": "Not me"})
    assert reported.status_code == 200
    assert reported.json()["status"] == "Reported"
    assert reported.json()["reason"] == "Not me"

    verified = client.post(f"/v1/risk/{second}/verify")
    assert verified.status_code == 200
    assert verified.json()["status"] == "Verified"

    stats = client.get("/v1/risk/stats").json()
    assert stats["total"] == 2
    assert stats["average_risk_score"] == 45.0
    assert stats["by_level"] == {"High": 1, "Low": 1}
    assert stats["by_status"] == {"Reported": 1, "Verified": 1}


def test_report_unknown_assessment(client: TestClient):
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    assert client.post(f"/v1/risk/{fake_uuid}/report").status_code == 404
    assert client.post("/v1/risk/not-a-uuid/verify").status_code == 400


def test_behavior_init(client: TestClient):
    """Test POST /v1/behavior/init"""
    response = client.post("/v1/behavior/init", json={"user_id": "alice"})

    assert response.status_code == 200
    data = response.json()
    assert data["user_id"] == "alice"
    assert data["trust_score"] == 50
    assert data["patterns"]["transaction_count"] == 0
    assert data["patterns"]["min_transaction"] is None
    assert data["risk_factors"] == []


def test_behavior_analyze_then_update(client: TestClient):
    """Analyze is read-only until update commits the transaction"""
    body = {"user_id": "alice", "transaction": {**SAFE, "merchant": "Foo", "user_id": None}}

    first = client.post("/v1/behavior/analyze", json=body)
    second = client.post("/v1/behavior/analyze", json=body)
    assert first.status_code == 200
    assert first.json() == second.json()
    assert "First time transaction with this merchant" in first.json()["reasons"]

    update = client.post("/v1/behavior/update", json=body)
    assert update.status_code == 204

    after = client.post("/v1/behavior/analyze", json=body).json()
    assert "First time transaction with this merchant" not in after["reasons"]

    profile = client.post("/v1/behavior/init", json={"user_id": "alice"}).json()
    assert profile["patterns"]["transaction_count"] == 1
    assert profile["patterns"]["frequent_merchants"] == {"Foo": 1}
    assert profile["patterns"]["time_patterns"] == {"10": 1}


def test_behavior_insights(client: TestClient):
    """Test GET /v1/behavior/insights"""
    for merchant, amount in [("Swiggy", 400), ("Swiggy", 350), ("Amazon", 2499)]:
        client.post(
            "/v1/behavior/update",
            json={"user_id": "alice", "transaction": {**SAFE, "merchant": merchant, "amount": amount}},
        )

    response = client.get("/v1/behavior/insights?user_id=alice")

    assert response.status_code == 200
    data = response.json()
    assert data["top_merchants"][0] == {"name": "Swiggy", "count": 2}
    assert data["preferred_payment_method"] == "UPI"
    assert data["most_active_time"] == "10:00 - 11:00"
    assert data["spending_trend"] == "Moderate spender"  # average 1083


def test_behavior_insights_unknown_user(client: TestClient):
    data = client.get("/v1/behavior/insights?user_id=nobody").json()
    assert data["spending_trend"] == "No data"
    assert data["top_merchants"] == []


def test_behavior_clear(client: TestClient):
    client.post("/v1/behavior/update", json={"user_id": "alice", "transaction": SAFE})

    assert client.delete("/v1/behavior/alice").status_code == 204

    data = client.get("/v1/behavior/insights?user_id=alice").json()
    assert data["spending_trend"] == "No data"


def test_parse_transaction_text(client: TestClient):
    """Test POST /v1/transactions/parse"""
    response = client.post(
        "/v1/transactions/parse",
        json={"text": "Rs.389 debited from A/c XX1234 to Swiggy via UPI on 16-Jan-26 1:22 PM."},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == 389.0
    assert data["merchant"] == "Swiggy"
    assert data["source"] == "UPI"
    assert data["complete"] is True
    assert data["summary"] == "Paid ₹389 to Swiggy via UPI at 1:22 PM"


def test_storage_failure_maps_to_503(unavailable_storage_client: TestClient):
    """Fail-fast storage errors surface as service unavailable"""
    client = unavailable_storage_client
    body = {"user_id": "alice", "transaction": SAFE}

    init = client.post("/v1/behavior/init", json={"user_id": "alice"})
    assert init.status_code == 503
    assert init.json()["detail"] == "Profile storage unavailable"

    assert client.post("/v1/behavior/update", json=body).status_code == 503
    assert client.post("/v1/behavior/analyze", json=body).status_code == 503
    assert client.get("/v1/behavior/insights?user_id=alice").status_code == 503
    assert client.delete("/v1/behavior/alice").status_code == 503


def test_storage_failure_falls_back_by_default(client: TestClient):
    client.app.dependency_overrides[get_profile_service] = lambda: BehavioralProfileService(
        store=UnavailableStore(),
        cache=ProfileCache(),
    )

    assert client.post("/v1/behavior/init", json={"user_id": "alice"}).status_code == 200
    assert client.post("/v1/behavior/update", json={"user_id": "alice", "transaction": SAFE}).status_code == 204


def test_failed_assessment_is_not_counted_for_velocity(client: TestClient, monkeypatch):
    """Only persisted assessments feed the velocity rule"""

    def broken_create(self, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(AssessmentRepository, "create_assessment", broken_create)
    for _ in range(3):
        assert client.post("/v1/risk/analyze", json=SAFE).status_code == 500

    monkeypatch.undo()
    data = client.post("/v1/risk/analyze", json=SAFE).json()
    assert data["analysis"]["reasons"] == []
