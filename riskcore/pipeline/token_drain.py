"""Token drain detection: repeated very short paid voice/video sessions."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


def _is_short_paid(session: dict) -> bool:
    return (session.get("duration_seconds", 0) < settings.short_session_seconds
            and session.get("tokens_cost", 0) > 0)


@detector("token_drain")
def check_token_drain_pattern(user_id: str, session: dict, recent_sessions: list[dict],
                              now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """
    Called after a paid voice/video session ends.
    `session` is the one that just ended, `recent_sessions` the user's sessions
    from the last 24h (may include the current one).
    """
    if not _is_short_paid(session):
        return None

    now = now or utcnow()
    window = in_window(recent_sessions, "ended_at", now, timedelta(hours=24))
    short_ids = {s.get("session_id") for s in window if _is_short_paid(s)}
    short_ids.add(session.get("session_id"))
    short_count = len(short_ids)

    if short_count < settings.short_session_count_24h:
        return None

    session_type = str(session.get("session_type", "voice")).lower()
    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.ai_video if session_type == "video" else SignalSource.ai_voice,
        signal_type=SignalType.token_drain,
        severity=severity_for(short_count, high=7, very_high=10),
        context_ref=session.get("session_id"),
        created_at=now,
        metadata={
            "durationSeconds": session.get("duration_seconds", 0),
            "tokensCost": session.get("tokens_cost", 0),
            "recentShortSessions": short_count,
            "sessionType": session_type,
        },
    )
    dispatch_signal(signal)
    return signal
