"""HTTP API tests through FastAPI's TestClient."""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from riskcore.main import app
from riskcore.models.enforcement import Payout, PayoutStatus
from riskcore.models.risk import UserRiskScore
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.scoring.regional import calculate_regional_risk


@pytest.fixture
def client(store, writer):
    return TestClient(app)


def _seed_signals(store, user_id, severities):
    for severity in severities:
        store.insert_signal(RiskSignal(user_id=user_id, source=SignalSource.chat,
                                       signal_type=SignalType.copy_paste_behavior, severity=severity,
                                       created_at=utcnow() - timedelta(hours=1)))


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_emit_and_list_signals(client, writer):
    response = client.post("/api/signals/", json={
        "user_id": "u1", "source": "wallet", "signal_type": "payout-abuse", "severity": 4,
        "metadata": {"attemptCount": 4},
    })
    assert response.status_code == 200
    assert response.json()["data"]["emitted"] is True
    writer.drain(timeout=5)

    listed = client.get("/api/signals/", params={"user_id": "u1"}).json()
    assert listed["count"] == 1
    assert listed["data"][0]["signal_type"] == "payout-abuse"


def test_invalid_signal_is_rejected(client):
    response = client.post("/api/signals/", json={
        "user_id": "u1", "source": "wallet", "signal_type": "payout-abuse", "severity": 9})
    assert response.status_code == 422


def test_signal_stats(client, store):
    _seed_signals(store, "u1", [3, 5])
    _seed_signals(store, "u2", [4])
    stats = client.get("/api/signals/stats").json()
    assert stats["total"] == 3
    assert stats["users"] == 2
    assert stats["by_type"] == {"copy-paste-behavior": 3}
    assert stats["avg_severity"] == 4.0
    assert sum(day["count"] for day in stats["daily"]) == 3


def test_signal_stats_empty(client):
    assert client.get("/api/signals/stats").json()["total"] == 0


def test_detector_endpoint(client):
    body = {"user_id": "u1", "message_text": "Visit my page for a special private show tonight"}
    for chat in ("c1", "c2"):
        assert client.post("/api/events/copy-paste-behavior", json={**body, "chat_id": chat}).json()["signal"] is None
    signal = client.post("/api/events/copy-paste-behavior", json={**body, "chat_id": "c3"}).json()["signal"]
    assert signal["metadata"]["matchCount"] == 3


def test_recalculate_and_read_scores(client, store):
    _seed_signals(store, "u1", [5, 5])
    response = client.post("/api/risk/u1/recalculate", json={"region_id": "GLOBAL"})
    assert response.status_code == 200
    body = response.json()
    assert body["score"]["risk_score"] == 80
    assert body["score"]["trust_score"] == 20
    assert body["regional"]["level"] == "CRITICAL"

    assert client.get("/api/risk/u1").json()["data"]["level"] == "CRITICAL"
    assert client.get("/api/risk/u1/regional").json()["data"]["region_id"] == "GLOBAL"
    scores = client.get("/api/risk/scores", params={"level": "CRITICAL"}).json()
    assert [s["user_id"] for s in scores["data"]] == ["u1"]
    assert client.get("/api/risk/nobody").json()["data"] is None


def test_regional_listing_filters_by_region_and_date(client, store, now):
    for user_id, score, region_id, days_ago in [("u1", 70, "BR", 0), ("u2", 20, "BR", 0), ("u3", 60, "MX", 10)]:
        store.upsert_risk_score(UserRiskScore(user_id=user_id, risk_score=score, last_updated_at=now))
        calculate_regional_risk(user_id, region_id, now=now - timedelta(days=days_ago))

    by_region = client.get("/api/risk/regional", params={"region_id": "BR"}).json()
    assert [r["user_id"] for r in by_region["data"]] == ["u1", "u2"]
    recent = client.get("/api/risk/regional", params={"since": (now - timedelta(days=1)).isoformat()}).json()
    assert [r["user_id"] for r in recent["data"]] == ["u1", "u2"]
    old = client.get("/api/risk/regional", params={"until": (now - timedelta(days=1)).isoformat()}).json()
    assert [r["user_id"] for r in old["data"]] == ["u3"]

    moved = client.get("/api/risk/u3/regional", params={"region_id": "BR"}).json()["data"]
    assert moved["region_id"] == "BR"
    assert moved["calculated_at"] != old["data"][0]["calculated_at"]


def test_score_listing_filters_by_signal_date(client, store, now):
    store.upsert_risk_score(UserRiskScore(user_id="u1", risk_score=50, last_signal_date=now, last_updated_at=now))
    store.upsert_risk_score(UserRiskScore(user_id="u2", risk_score=60, last_signal_date=now - timedelta(days=20),
                                          last_updated_at=now))
    since = (now - timedelta(days=7)).isoformat()
    assert [s["user_id"] for s in client.get("/api/risk/scores", params={"since": since}).json()["data"]] == ["u1"]
    assert [s["user_id"] for s in client.get("/api/risk/scores", params={"until": since}).json()["data"]] == ["u2"]


def test_action_gate(client, store):
    _seed_signals(store, "u1", [5, 5])
    client.post("/api/risk/u1/recalculate")
    decision = client.get("/api/actions/u1/swipe").json()
    assert decision["allowed"] is False
    assert decision["reason"] == "Account suspended due to security concerns"
    assert client.get("/api/actions/other/chat").json()["allowed"] is True
    assert client.get("/api/actions/u1/teleport").status_code == 422


def test_region_admin(client):
    assert client.get("/api/regions/BR").status_code == 404
    response = client.put("/api/regions/BR", json={"fraud_multiplier": 1.4, "updated_by": "admin"})
    assert response.status_code == 200
    profile = client.get("/api/regions/BR").json()["data"]
    assert profile["fraud_multiplier"] == 1.4
    assert profile["detection_thresholds"]["auto_block_score"] == 85
    assert client.get("/api/regions/").json()["count"] == 1


def test_region_with_unordered_thresholds_is_rejected(client):
    response = client.put("/api/regions/BR", json={
        "detection_thresholds": {"suspicious_activity_score": 90, "auto_block_score": 50}})
    assert response.status_code == 422


def test_manual_reserve_and_release(client, store):
    store.add_payout(Payout(id="p1", user_id="u1", amount=100))
    response = client.post("/api/enforcement/u1/reserve", json={"percentage": 25, "days": 5})
    assert response.status_code == 200
    record_id = response.json()["data"]["id"]

    state = client.get("/api/enforcement/u1").json()
    assert state["payouts"][0]["status"] == PayoutStatus.on_hold.value
    assert len(state["enforcements"]) == 1

    released = client.post(f"/api/enforcement/records/{record_id}/release").json()
    assert released["status"] == "released"
    assert client.get("/api/enforcement/u1").json()["payouts"][0]["status"] == "pending"


def test_invalid_reserve_maps_to_400(client):
    response = client.post("/api/enforcement/u1/reserve", json={"percentage": 150, "days": 5})
    assert response.status_code == 400
    assert "percentage" in response.json()["error"]


def test_release_unknown_record_is_404(client):
    assert client.post("/api/enforcement/records/missing/release").status_code == 404


def test_chargeback_endpoint(client):
    response = client.post("/api/enforcement/u1/chargeback", json={
        "total_transactions": 100, "chargeback_count": 6})
    body = response.json()
    assert body["recommendation"]["percentage"] == 20
    assert body["enforcement"]["kind"] == "reserve"


def test_reviews_listing(client, store):
    _seed_signals(store, "u1", [5, 4])
    client.post("/api/risk/u1/recalculate")
    reviews = client.get("/api/enforcement/reviews").json()
    assert [r["user_id"] for r in reviews["data"]] == ["u1"]


def test_run_job(client):
    response = client.post("/api/jobs/cleanup")
    assert response.status_code == 200
    assert response.json()["result"]["signals_deleted"] == 0
    assert client.post("/api/jobs/unknown").status_code == 404
