"""Risk score endpoints."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from riskcore.database import get_store
from riskcore.models.risk import BehaviorFacts, RiskLevel
from riskcore import service

router = APIRouter()


class RecalculateRequest(BaseModel):
    region_id: Optional[str] = None
    behavior: Optional[BehaviorFacts] = None
    churn_signal: Optional[float] = None


def _score_payload(score) -> dict:
    data = score.model_dump(mode="json")
    data["trust_score"] = score.trust_score
    return data


@router.get("/scores")
def list_scores(
    level: Optional[RiskLevel] = None,
    min_score: Optional[int] = Query(default=None, ge=0, le=100),
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = Query(default=100, le=500),
    offset: int = Query(default=0, ge=0),
):
    scores = get_store().list_risk_scores(level=level, min_score=min_score, since=since, until=until,
                                          limit=limit, offset=offset)
    return {"data": [_score_payload(s) for s in scores], "count": len(scores)}


@router.get("/regional")
def list_regional(
    region_id: Optional[str] = None,
    level: Optional[RiskLevel] = None,
    min_score: Optional[float] = Query(default=None, ge=0, le=100),
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = Query(default=100, le=500),
    offset: int = Query(default=0, ge=0),
):
    results = get_store().list_regional_risk(region_id=region_id, level=level, min_score=min_score,
                                             since=since, until=until, limit=limit, offset=offset)
    return {"data": [_score_payload(r) for r in results], "count": len(results)}


@router.get("/{user_id}")
def get_score(user_id: str):
    score = service.get_user_risk_score(user_id)
    if score is None:
        return {"data": None}
    return {"data": _score_payload(score)}


@router.post("/{user_id}/recalculate")
def recalculate(user_id: str, request: Optional[RecalculateRequest] = None):
    request = request or RecalculateRequest()
    score, regional, outcome = service.recalculate(
        user_id, region_id=request.region_id, behavior=request.behavior, churn_signal=request.churn_signal)
    return {
        "score": _score_payload(score),
        "regional": _score_payload(regional),
        "policy": outcome.model_dump(mode="json"),
    }


@router.get("/{user_id}/regional")
def get_regional(user_id: str, region_id: Optional[str] = None):
    result = service.get_regional_risk(user_id, region_id=region_id)
    if result is None:
        return {"data": None}
    return {"data": _score_payload(result)}
