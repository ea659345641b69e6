from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union
from datetime import datetime, timezone
from enum import Enum
import uuid


class SignalSource(str, Enum):
    chat = "chat"
    ai_chat = "ai-chat"
    ai_voice = "ai-voice"
    ai_video = "ai-video"
    calendar = "calendar"
    event = "event"
    wallet = "wallet"


class SignalType(str, Enum):
    token_drain = "token-drain"
    multi_session_spam = "multi-session-spam"
    copy_paste_behavior = "copy-paste-behavior"
    fake_bookings = "fake-bookings"
    self_refunds = "self-refunds"
    payout_abuse = "payout-abuse"
    identity_mismatch = "identity-mismatch"
    panic_rate_spike = "panic-rate-spike"


Scalar = Union[str, int, float, bool, None]
# String keys, scalar or list-of-scalar values; interpreted only by the detector that wrote it
SignalMetadata = dict[str, Union[Scalar, list[Scalar]]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


class RiskSignal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    user_id: str
    source: SignalSource
    signal_type: SignalType
    severity: int = Field(ge=1, le=5)
    context_ref: Optional[str] = None
    metadata: SignalMetadata = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)


class SignalCreate(BaseModel):
    user_id: str
    source: SignalSource
    signal_type: SignalType
    severity: int = Field(ge=1, le=5)
    context_ref: Optional[str] = None
    metadata: SignalMetadata = Field(default_factory=dict)


class EmitSignalResult(BaseModel):
    signal_id: str = ""
    emitted: bool = False
    needs_risk_recalculation: bool = False


class SignalFilter(BaseModel):
    user_id: Optional[str] = None
    signal_type: Optional[SignalType] = None
    source: Optional[SignalSource] = None
    min_severity: Optional[int] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    limit: int = 100
    offset: int = 0

    def matches(self, signal: RiskSignal) -> bool:
        if self.user_id and signal.user_id != self.user_id:
            return False
        if self.signal_type and signal.signal_type != self.signal_type:
            return False
        if self.source and signal.source != self.source:
            return False
        if self.min_severity and signal.severity < self.min_severity:
            return False
        if self.since and signal.created_at < self.since:
            return False
        if self.until and signal.created_at > self.until:
            return False
        return True


class MessageCacheEntry(BaseModel):
    """Short-lived copy-paste dedup state, not part of the signal log."""
    key: str
    user_id: str
    message_hash: str
    chat_ids: list[str] = []
    timestamp: datetime
    expires_at: datetime
