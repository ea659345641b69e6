"""Regional risk modifier: scale a user's base score by the region's fraud rate."""
from datetime import datetime
from typing import Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.errors import ConfigurationError
from riskcore.logger import get_logger
from riskcore.models.region import RegionalRiskProfile
from riskcore.models.risk import ActionLimits, BehaviorFacts, RegionalRiskResult, RiskLevel
from riskcore.models.signal import utcnow

logger = get_logger(__name__)

BEHAVIOR_WEIGHTS = {
    "suspicious_logins": 5,
    "device_changes": 3,
    "reports": 10,
    "chargebacks": 20,
}
CHURN_WEIGHT = 10
MAX_SCORE = 100


def load_profile(region_id: str) -> tuple[RegionalRiskProfile, bool]:
    """
    Region profile, or a neutral default (multiplier 1.0, default cutoffs and
    limits) when the region is not configured.
    """
    try:
        profile = get_store().get_region_profile(region_id)
    except ConfigurationError:
        logger.exception("regional_profile_unusable", region_id=region_id)
        return RegionalRiskProfile(region_id=region_id), False
    if profile is None:
        logger.warning("regional_profile_missing", region_id=region_id)
        return RegionalRiskProfile(region_id=region_id), False
    return profile, True


def behavior_risk(facts: Optional[BehaviorFacts]) -> float:
    if facts is None:
        return 0
    return sum(getattr(facts, field) * weight for field, weight in BEHAVIOR_WEIGHTS.items())


def recommended_limits(level: RiskLevel, profile: RegionalRiskProfile) -> ActionLimits:
    t = profile.detection_thresholds
    if level == RiskLevel.low:
        return ActionLimits(
            daily_swipes=max(settings.low_risk_swipe_ceiling, t.daily_swipe_limit),
            daily_chats=max(settings.low_risk_chat_ceiling, t.daily_chat_limit),
            daily_sessions=max(settings.low_risk_session_ceiling, t.daily_session_limit),
        )
    if level == RiskLevel.medium:
        return ActionLimits(
            daily_swipes=t.daily_swipe_limit,
            daily_chats=t.daily_chat_limit,
            daily_sessions=t.daily_session_limit,
        )
    if level == RiskLevel.high:
        return ActionLimits(
            daily_swipes=t.daily_swipe_limit // 2,
            daily_chats=t.daily_chat_limit // 2,
            daily_sessions=t.daily_session_limit // 2,
        )
    return ActionLimits()


def compose_score(base_score: float, multiplier: float, behavior: float, churn_signal: float) -> float:
    churn = min(max(churn_signal, 0.0), 1.0)
    return min(MAX_SCORE, base_score * multiplier + behavior + churn * CHURN_WEIGHT)


def calculate_regional_risk(user_id: str, region_id: str, behavior: Optional[BehaviorFacts] = None,
                            churn_signal: Optional[float] = None,
                            now: Optional[datetime] = None) -> RegionalRiskResult:
    """
    Compose base score, regional multiplier, behavior and churn terms, then
    persist by user. When behavior or churn facts are not supplied (scheduled
    sweeps), the terms from the user's previous result are carried over.
    """
    now = now or utcnow()
    store = get_store()

    base = store.get_risk_score(user_id)
    base_score = base.risk_score if base else 0
    profile, found = load_profile(region_id)

    previous = store.get_regional_risk(user_id) if behavior is None or churn_signal is None else None
    if behavior is not None:
        behavior_term = behavior_risk(behavior)
    else:
        behavior_term = previous.behavior_risk if previous else 0
    if churn_signal is not None:
        churn = min(max(churn_signal, 0.0), 1.0)
    else:
        churn = previous.churn_term / CHURN_WEIGHT if previous else 0.0

    score = compose_score(base_score, profile.fraud_multiplier, behavior_term, churn)
    level = profile.level_cutoffs.level_for(score)

    result = RegionalRiskResult(
        user_id=user_id,
        region_id=region_id,
        base_score=base_score,
        multiplier=profile.fraud_multiplier,
        behavior_risk=behavior_term,
        churn_term=churn * CHURN_WEIGHT,
        score=score,
        level=level,
        recommended_limits=recommended_limits(level, profile),
        profile_found=found,
        calculated_at=now,
    )
    store.upsert_regional_risk(result)
    logger.info("regional_risk_calculated", user_id=user_id, region_id=region_id,
                base_score=base_score, score=score, level=level.value)
    return result
