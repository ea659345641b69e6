"""Detector endpoints: collaborators post the facts, a signal comes back when a pattern trips."""
from typing import Optional

from fastapi import APIRouter

from riskcore.models.event import (
    BookingCanceledEvent, ChatMessageEvent, PanicTriggeredEvent, PayoutRequestedEvent,
    SessionEndedEvent, SessionMessageEvent, TicketRefundedEvent, UserReportedEvent,
)
from riskcore.models.signal import RiskSignal
from riskcore.pipeline.copy_paste import check_copy_paste_behavior
from riskcore.pipeline.fake_bookings import check_fake_bookings
from riskcore.pipeline.identity_mismatch import check_identity_mismatch
from riskcore.pipeline.multi_session import check_multi_session_spam
from riskcore.pipeline.panic_spike import check_panic_rate_spike
from riskcore.pipeline.payout_abuse import check_payout_abuse
from riskcore.pipeline.self_refunds import check_self_refunds
from riskcore.pipeline.token_drain import check_token_drain_pattern

router = APIRouter()


def _response(signal: Optional[RiskSignal]) -> dict:
    return {"signal": signal.model_dump(mode="json") if signal else None}


@router.post("/token-drain")
def token_drain(event: SessionEndedEvent):
    return _response(check_token_drain_pattern(event.user_id, event.session, event.recent_sessions, now=event.now))


@router.post("/multi-session-spam")
def multi_session_spam(event: SessionMessageEvent):
    return _response(check_multi_session_spam(
        event.user_id, event.session_id, event.source, event.recent_activity, now=event.now))


@router.post("/copy-paste-behavior")
def copy_paste_behavior(event: ChatMessageEvent):
    return _response(check_copy_paste_behavior(event.user_id, event.chat_id, event.message_text, now=event.now))


@router.post("/fake-bookings")
def fake_bookings(event: TicketRefundedEvent):
    return _response(check_fake_bookings(
        event.user_id, event.event_id, event.ticket_id, event.tickets, now=event.now))


@router.post("/self-refunds")
def self_refunds(event: BookingCanceledEvent):
    return _response(check_self_refunds(event.user_id, event.booking_id, event.cancellations, now=event.now))


@router.post("/payout-abuse")
def payout_abuse(event: PayoutRequestedEvent):
    return _response(check_payout_abuse(
        event.user_id, event.payout_id, event.amount, event.payout_attempts, now=event.now))


@router.post("/identity-mismatch")
def identity_mismatch(event: UserReportedEvent):
    return _response(check_identity_mismatch(event.user_id, event.report_id, event.reports, now=event.now))


@router.post("/panic-rate-spike")
def panic_rate_spike(event: PanicTriggeredEvent):
    return _response(check_panic_rate_spike(
        event.user_id, event.panic_event_id, event.panic_events, now=event.now))
