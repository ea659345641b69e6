"""Self refunds: a creator repeatedly cancelling their own paid bookings."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


@detector("self_refunds")
def check_self_refunds(user_id: str, booking_id: str, cancellations: list[dict],
                       now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """
    Called when a calendar booking is cancelled by its host.
    `cancellations` are {booking_id, canceled_at, canceled_by}; only host
    cancellations count.
    """
    now = now or utcnow()
    window_days = settings.self_cancel_window_days
    window = in_window(cancellations, "canceled_at", now, timedelta(days=window_days))
    canceled = {c.get("booking_id") for c in window if c.get("canceled_by", "host") == "host"}
    canceled_count = len(canceled)

    if canceled_count < settings.self_cancel_count:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.calendar,
        signal_type=SignalType.self_refunds,
        severity=severity_for(canceled_count, high=10, very_high=15),
        context_ref=booking_id,
        created_at=now,
        metadata={
            "canceledCount": canceled_count,
            "timeWindowDays": window_days,
        },
    )
    dispatch_signal(signal)
    return signal
