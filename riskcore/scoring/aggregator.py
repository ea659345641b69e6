"""Risk aggregation: time-decayed weighted sum of a user's signals.

The score is derived data. recompute() rebuilds it from the signal log on
every run and overwrites the stored value, so running it twice over the same
signals gives the same result.
"""
import math
from datetime import datetime, timedelta
from typing import Iterable, Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.errors import AggregationError
from riskcore.logger import get_logger
from riskcore.models.risk import RiskLevel, UserRiskScore
from riskcore.models.signal import RiskSignal, utcnow

logger = get_logger(__name__)

SEVERITY_POINTS = {1: 2, 2: 5, 3: 10, 4: 20, 5: 40}
MAX_SCORE = 100


def decay_weight(age_days: float) -> float:
    """Full weight for the first period, halving every further period, floored."""
    period = settings.decay_period_days
    if age_days <= period:
        return 1.0
    return max(0.5 ** math.floor(age_days / period), settings.decay_floor)


def signal_contribution(signal: RiskSignal, now: datetime) -> float:
    age_days = max((now - signal.created_at).total_seconds() / 86400, 0)
    return SEVERITY_POINTS[signal.severity] * decay_weight(age_days)


def level_for_score(score: float) -> RiskLevel:
    if score >= settings.critical_score:
        return RiskLevel.critical
    if score >= settings.high_score:
        return RiskLevel.high
    if score >= settings.medium_score:
        return RiskLevel.medium
    return RiskLevel.low


def calculate_score(user_id: str, signals: Iterable[RiskSignal], now: datetime) -> UserRiskScore:
    """Pure scoring over an already-fetched signal list."""
    signals = list(signals)
    total = sum(signal_contribution(s, now) for s in signals)
    # round half up; Python's round() is banker's rounding
    risk_score = int(math.floor(min(total, MAX_SCORE) + 0.5))

    latest = max(signals, key=lambda s: s.created_at) if signals else None
    return UserRiskScore(
        user_id=user_id,
        risk_score=risk_score,
        level=level_for_score(risk_score),
        signal_count=len(signals),
        last_signal_type=latest.signal_type if latest else None,
        last_signal_date=latest.created_at if latest else None,
        last_updated_at=now,
    )


def recompute(user_id: str, now: Optional[datetime] = None) -> UserRiskScore:
    """Rebuild and persist the user's score from the last lookback window of signals."""
    now = now or utcnow()
    store = get_store()
    try:
        since = now - timedelta(days=settings.aggregation_lookback_days)
        signals = store.list_signals(user_id, since=since, until=now)
        score = calculate_score(user_id, signals, now)
        store.upsert_risk_score(score)
    except Exception as e:
        raise AggregationError(f"recompute failed for {user_id}") from e

    logger.info("risk_score_recomputed", user_id=user_id, risk_score=score.risk_score,
                level=score.level.value, signal_count=score.signal_count)
    return score
