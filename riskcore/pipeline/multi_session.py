"""Multi-session spam: one sender driving many sessions in parallel."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


@detector("multi_session_spam")
def check_multi_session_spam(user_id: str, session_id: str, source: str, recent_activity: list[dict],
                             now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """
    Called when a message is sent into a chat/AI session.
    `recent_activity` holds {session_id, timestamp} entries for the sender.
    """
    now = now or utcnow()
    window_min = settings.parallel_time_window_min
    window = in_window(recent_activity, "timestamp", now, timedelta(minutes=window_min))

    sessions = {a.get("session_id") for a in window if a.get("session_id")}
    sessions.add(session_id)
    parallel = len(sessions)

    if parallel < settings.parallel_session_count:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource(source),
        signal_type=SignalType.multi_session_spam,
        severity=severity_for(parallel, high=7, very_high=10),
        context_ref=session_id,
        created_at=now,
        metadata={
            "parallelSessions": parallel,
            "timeWindowMinutes": window_min,
        },
    )
    dispatch_signal(signal)
    return signal
