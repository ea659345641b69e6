"""Fake bookings: an organizer's event tickets get refunded far too often."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal


@detector("fake_bookings")
def check_fake_bookings(user_id: str, event_id: str, ticket_id: str, tickets: list[dict],
                        now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """
    Called when a ticket for one of `user_id`'s events is refunded.
    `tickets` are the event's tickets as {ticket_id, status, created_at}.
    """
    now = now or utcnow()
    window = in_window(tickets, "created_at", now, timedelta(days=settings.refund_window_days))

    total = len(window)
    refunded = sum(1 for t in window if str(t.get("status", "")).lower() == "refunded")

    if refunded < settings.min_refund_count:
        return None

    refund_rate = refunded / total
    if refund_rate < settings.high_refund_rate:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.event,
        signal_type=SignalType.fake_bookings,
        severity=severity_for(refund_rate, high=0.8, very_high=0.9),
        context_ref=event_id,
        created_at=now,
        metadata={
            "totalTickets": total,
            "refundedTickets": refunded,
            "refundRate": round(refund_rate * 100),
            "ticketId": ticket_id,
        },
    )
    dispatch_signal(signal)
    return signal
