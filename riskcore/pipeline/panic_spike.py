"""Panic rate spike: an unusual number of panic-button triggers."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


@detector("panic_rate_spike")
def check_panic_rate_spike(user_id: str, panic_event_id: str, panic_events: list[dict],
                           now: Optional[datetime] = None) -> Optional[RiskSignal]:
    now = now or utcnow()
    window_hours = settings.panic_time_window_hours
    window = in_window(panic_events, "created_at", now, timedelta(hours=window_hours))
    # facts without an event id are skipped
    events = {e["event_id"] for e in window if e.get("event_id")}
    events.add(panic_event_id)
    panic_count = len(events)

    if panic_count < settings.panic_count_spike:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.wallet,
        signal_type=SignalType.panic_rate_spike,
        severity=severity_for(panic_count, high=7, very_high=10),
        context_ref=panic_event_id,
        created_at=now,
        metadata={
            "panicCount": panic_count,
            "timeWindowHours": window_hours,
        },
    )
    dispatch_signal(signal)
    return signal
