"""Enforcement endpoints: state per user, manual reserves, chargeback policy and releases."""
from fastapi import APIRouter, Query

from riskcore.database import get_store
from riskcore.enforcement import policy
from riskcore.models.enforcement import ChargebackStats, ReserveRequest

router = APIRouter()


@router.get("/reviews")
def list_reviews(include_resolved: bool = False, limit: int = Query(default=100, le=500)):
    flags = get_store().list_review_flags(include_resolved=include_resolved, limit=limit)
    return {"data": [f.model_dump(mode="json") for f in flags], "count": len(flags)}


@router.get("/{user_id}")
def get_enforcement_state(user_id: str, active_only: bool = True):
    store = get_store()
    records = store.list_enforcements(user_id, active_only=active_only)
    payouts = store.list_payouts(user_id)
    return {
        "user_id": user_id,
        "enforcements": [r.model_dump(mode="json") for r in records],
        "payouts": [p.model_dump(mode="json") for p in payouts],
    }


@router.post("/{user_id}/reserve")
def create_reserve(user_id: str, request: ReserveRequest):
    record = policy.apply_reserve_hold(user_id, request.percentage, request.days, request.reason)
    return {"status": "created", "data": record.model_dump(mode="json")}


@router.post("/{user_id}/chargeback")
def evaluate_chargebacks(user_id: str, stats: ChargebackStats):
    recommendation, record = policy.apply_chargeback_policy(user_id, stats)
    return {
        "recommendation": recommendation.model_dump(mode="json"),
        "enforcement": record.model_dump(mode="json") if record else None,
    }


@router.post("/records/{record_id}/release")
def release(record_id: str, force: bool = True):
    record = policy.release_enforcement(record_id, force=force)
    return {"status": "released" if record else "unchanged",
            "data": record.model_dump(mode="json") if record else None}
