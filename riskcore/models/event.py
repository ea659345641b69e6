"""Request bodies for the detector endpoints. Facts arrive as plain records."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from riskcore.models.signal import SignalSource


class SessionEndedEvent(BaseModel):
    user_id: str
    session: dict
    recent_sessions: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class SessionMessageEvent(BaseModel):
    user_id: str
    session_id: str
    source: SignalSource = SignalSource.ai_chat
    recent_activity: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class ChatMessageEvent(BaseModel):
    user_id: str
    chat_id: str
    message_text: str
    now: Optional[datetime] = None


class TicketRefundedEvent(BaseModel):
    user_id: str
    event_id: str
    ticket_id: str
    tickets: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class BookingCanceledEvent(BaseModel):
    user_id: str
    booking_id: str
    cancellations: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class PayoutRequestedEvent(BaseModel):
    user_id: str
    payout_id: str
    amount: float = 0
    payout_attempts: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class UserReportedEvent(BaseModel):
    user_id: str
    report_id: str
    reports: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None


class PanicTriggeredEvent(BaseModel):
    user_id: str
    panic_event_id: str
    panic_events: list[dict] = Field(default_factory=list)
    now: Optional[datetime] = None
