"""In-process entry points used by the rest of the platform."""
from datetime import datetime
from typing import Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.enforcement.policy import evaluate_user, is_action_allowed
from riskcore.logger import get_logger
from riskcore.models.enforcement import PolicyOutcome
from riskcore.models.risk import BehaviorFacts, RegionalRiskResult, UserRiskScore
from riskcore.models.signal import utcnow
from riskcore.pipeline.emitter import emit_signal
from riskcore.scoring.aggregator import recompute
from riskcore.scoring.regional import calculate_regional_risk

logger = get_logger(__name__)

__all__ = [
    "emit_signal",
    "get_user_risk_score",
    "get_regional_risk",
    "is_action_allowed",
    "recalculate",
]


def get_user_risk_score(user_id: str) -> Optional[UserRiskScore]:
    return get_store().get_risk_score(user_id)


def get_regional_risk(user_id: str, region_id: Optional[str] = None) -> Optional[RegionalRiskResult]:
    """Stored result, recomputed when the caller asks about a different region."""
    stored = get_store().get_regional_risk(user_id)
    if region_id and (stored is None or stored.region_id != region_id):
        return calculate_regional_risk(user_id, region_id)
    return stored


def resolve_region(user_id: str, region_id: Optional[str] = None) -> str:
    if region_id:
        return region_id
    previous = get_store().get_regional_risk(user_id)
    if previous:
        return previous.region_id
    return settings.default_region_id


def recalculate(user_id: str, region_id: Optional[str] = None,
                behavior: Optional[BehaviorFacts] = None,
                churn_signal: Optional[float] = None,
                now: Optional[datetime] = None) -> tuple[UserRiskScore, RegionalRiskResult, PolicyOutcome]:
    """Base score, then regional modifier, then policy; each step reads what the last one committed."""
    now = now or utcnow()
    region = resolve_region(user_id, region_id)
    score = recompute(user_id, now=now)
    regional = calculate_regional_risk(user_id, region, behavior=behavior, churn_signal=churn_signal, now=now)
    outcome = evaluate_user(user_id, now=now)
    logger.info("user_recalculated", user_id=user_id, region_id=region,
                risk_score=score.risk_score, regional_score=regional.score, action=outcome.action)
    return score, regional, outcome
