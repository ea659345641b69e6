from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from riskcore.models.signal import new_id


class EnforcementKind(str, Enum):
    freeze = "freeze"
    reserve = "reserve"


class EnforcementStatus(str, Enum):
    active = "active"
    expired = "expired"


class PayoutStatus(str, Enum):
    pending = "pending"
    frozen = "frozen"
    on_hold = "on_hold"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class EnforcementRecord(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    kind: EnforcementKind
    reason: str
    applied_at: datetime
    expires_at: datetime
    percentage: Optional[float] = None
    status: EnforcementStatus = EnforcementStatus.active
    released_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class Payout(BaseModel):
    """Externally owned payout; the core only touches status and hold expiry."""
    id: str = Field(default_factory=new_id)
    user_id: str
    amount: float = 0
    status: PayoutStatus = PayoutStatus.pending
    hold_expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ReviewFlag(BaseModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    score: float
    reason: str
    created_at: datetime
    resolved: bool = False


class ChargebackStats(BaseModel):
    total_transactions: int = Field(default=0, ge=0)
    chargeback_count: int = Field(default=0, ge=0)
    chargebacks_last_30_days: int = Field(default=0, ge=0)
    max_dispute_tokens: float = Field(default=0, ge=0)


class ReserveRecommendation(BaseModel):
    risk_score: int
    chargeback_rate: float
    percentage: float = 0
    hold_days: int = 0
    action: str = "monitor"
    reasons: list[str] = []

    @property
    def requires_reserve(self) -> bool:
        return self.percentage > 0


class ReserveRequest(BaseModel):
    percentage: float
    days: int
    reason: str = "manual_reserve"


class PolicyOutcome(BaseModel):
    user_id: str
    score: float = 0
    action: str = "none"
    enforcement: Optional[EnforcementRecord] = None
