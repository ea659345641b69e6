"""Policy and enforcement engine.

Decisions are always taken on the regional result as committed in the store,
never on a value handed over by an earlier step, so an interleaved
recompute cannot make the engine act on a stale score.

Freeze and reserve records are written together with the user's payout
status change in a single store operation.
"""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.errors import (
    EnforcementError, EnforcementNotFoundError, InvalidDurationError, InvalidPercentageError,
)
from riskcore.logger import get_logger
from riskcore.models.enforcement import (
    ChargebackStats, EnforcementKind, EnforcementRecord, PayoutStatus, PolicyOutcome,
    ReserveRecommendation, ReviewFlag,
)
from riskcore.models.risk import ActionDecision, ActionType, RiskLevel
from riskcore.models.signal import utcnow
from riskcore.scoring.chargeback import calculate_chargeback_risk
from riskcore.scoring.regional import load_profile

logger = get_logger(__name__)

SUSPENDED = "Account suspended due to security concerns"
DAILY_LIMIT = "Daily limit reached"
NEEDS_VERIFICATION = "Account requires verification before monetization"


def evaluate_user(user_id: str, now: Optional[datetime] = None) -> PolicyOutcome:
    """Compare the user's committed regional score against the region's thresholds."""
    now = now or utcnow()
    store = get_store()
    result = store.get_regional_risk(user_id)
    if result is None:
        return PolicyOutcome(user_id=user_id)

    profile, _ = load_profile(result.region_id)
    thresholds = profile.detection_thresholds

    if result.score >= thresholds.auto_block_score:
        record = apply_payout_freeze(
            user_id, reason=f"auto_block: score {result.score:.0f} >= {thresholds.auto_block_score:.0f}", now=now)
        return PolicyOutcome(user_id=user_id, score=result.score, action="freeze", enforcement=record)

    if result.score >= thresholds.suspicious_activity_score:
        flag_for_review(user_id, result.score, "suspicious_activity", now=now)
        return PolicyOutcome(user_id=user_id, score=result.score, action="review")

    return PolicyOutcome(user_id=user_id, score=result.score)


def flag_for_review(user_id: str, score: float, reason: str, now: Optional[datetime] = None) -> Optional[ReviewFlag]:
    """Queue the user for manual review unless an open flag already exists."""
    store = get_store()
    if store.get_open_review_flag(user_id) is not None:
        return None
    flag = ReviewFlag(user_id=user_id, score=score, reason=reason, created_at=now or utcnow())
    store.add_review_flag(flag)
    logger.info("user_flagged_for_review", user_id=user_id, score=score, reason=reason)
    return flag


def _apply(record: EnforcementRecord, payout_status: PayoutStatus) -> EnforcementRecord:
    try:
        stored = get_store().apply_enforcement(record, payout_status)
    except Exception as e:
        logger.exception("enforcement_apply_failed", user_id=record.user_id, kind=record.kind.value)
        raise EnforcementError(f"could not apply {record.kind.value} for {record.user_id}") from e
    logger.info("enforcement_applied", user_id=stored.user_id, kind=stored.kind.value,
                record_id=stored.id, expires_at=stored.expires_at.isoformat(), percentage=stored.percentage)
    return stored


def apply_payout_freeze(user_id: str, reason: str, days: Optional[int] = None,
                        now: Optional[datetime] = None) -> EnforcementRecord:
    """Create or refresh a payout freeze and mark the user's pending payouts frozen."""
    days = settings.freeze_days if days is None else days
    if days <= 0:
        raise InvalidDurationError("freeze duration must be at least one day")
    now = now or utcnow()
    record = EnforcementRecord(
        user_id=user_id,
        kind=EnforcementKind.freeze,
        reason=reason,
        applied_at=now,
        expires_at=now + timedelta(days=days),
    )
    return _apply(record, PayoutStatus.frozen)


def apply_reserve_hold(user_id: str, percentage: float, days: int, reason: str,
                       now: Optional[datetime] = None) -> EnforcementRecord:
    """Withhold a share of the user's pending payouts for `days`."""
    if not 0 < percentage <= 100:
        raise InvalidPercentageError(f"reserve percentage must be in (0, 100], got {percentage}")
    if days <= 0:
        raise InvalidDurationError("reserve duration must be at least one day")
    now = now or utcnow()
    record = EnforcementRecord(
        user_id=user_id,
        kind=EnforcementKind.reserve,
        reason=reason,
        applied_at=now,
        expires_at=now + timedelta(days=days),
        percentage=percentage,
    )
    return _apply(record, PayoutStatus.on_hold)


def apply_chargeback_policy(user_id: str, stats: ChargebackStats,
                            now: Optional[datetime] = None) -> tuple[ReserveRecommendation, Optional[EnforcementRecord]]:
    """Score chargeback exposure and place the recommended reserve, if any."""
    recommendation = calculate_chargeback_risk(stats)
    if not recommendation.requires_reserve:
        logger.info("chargeback_monitor_only", user_id=user_id, risk_score=recommendation.risk_score)
        return recommendation, None
    record = apply_reserve_hold(
        user_id, recommendation.percentage, recommendation.hold_days,
        reason=f"chargeback_risk: {recommendation.risk_score}", now=now,
    )
    return recommendation, record


def release_enforcement(record_id: str, now: Optional[datetime] = None,
                        force: bool = False) -> Optional[EnforcementRecord]:
    """
    Expire a freeze/reserve and return held payouts to pending. The sweep
    only releases records past expiry; admins may force an early release.
    """
    now = now or utcnow()
    store = get_store()
    if store.get_enforcement(record_id) is None:
        raise EnforcementNotFoundError(f"enforcement record {record_id} not found")
    try:
        released = store.release_enforcement(record_id, now, only_if_expired=not force)
    except Exception as e:
        logger.exception("enforcement_release_failed", record_id=record_id)
        raise EnforcementError(f"could not release {record_id}") from e
    if released:
        logger.info("enforcement_released", user_id=released.user_id, kind=released.kind.value,
                    record_id=record_id, forced=force)
    return released


def is_action_allowed(user_id: str, action: ActionType, used_today: int = 0) -> ActionDecision:
    """Consulted by rate-limited actions before they proceed."""
    action = ActionType(action)
    store = get_store()

    if action == ActionType.monetization:
        frozen = any(r.kind == EnforcementKind.freeze for r in store.list_enforcements(user_id))
        if frozen:
            return ActionDecision(allowed=False, reason=SUSPENDED)

    result = store.get_regional_risk(user_id)
    if result is None:
        return ActionDecision(allowed=True)
    if result.level == RiskLevel.critical:
        return ActionDecision(allowed=False, reason=SUSPENDED, limit=0)

    limits = result.recommended_limits
    if action == ActionType.swipe:
        limit = limits.daily_swipes
    elif action == ActionType.chat:
        limit = limits.daily_chats
    else:
        profile, _ = load_profile(result.region_id)
        if result.trust_score < profile.trust_requirements.creator_min_trust_score:
            return ActionDecision(allowed=False, reason=NEEDS_VERIFICATION)
        limit = limits.daily_sessions

    if used_today >= limit:
        return ActionDecision(allowed=False, reason=DAILY_LIMIT, limit=limit)
    return ActionDecision(allowed=True, limit=limit)
