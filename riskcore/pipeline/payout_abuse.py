"""Payout abuse: bursts of payout attempts."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


@detector("payout_abuse")
def check_payout_abuse(user_id: str, payout_id: str, amount: float, payout_attempts: list[dict],
                       now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """Called when a payout is requested. `payout_attempts` are {payout_id, created_at}."""
    now = now or utcnow()
    window_hours = settings.payout_time_window_hours
    window = in_window(payout_attempts, "created_at", now, timedelta(hours=window_hours))
    attempts = {p.get("payout_id") for p in window}
    attempts.add(payout_id)
    attempt_count = len(attempts)

    if attempt_count < settings.payout_attempt_count:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.wallet,
        signal_type=SignalType.payout_abuse,
        severity=severity_for(attempt_count, high=5, very_high=10),
        context_ref=payout_id,
        created_at=now,
        metadata={
            "amount": amount,
            "attemptCount": attempt_count,
            "timeWindowHours": window_hours,
            "pattern": "rapid_attempts",
        },
    )
    dispatch_signal(signal)
    return signal
