from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from riskcore.models.signal import SignalType


class RiskLevel(str, Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    critical = "CRITICAL"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {RiskLevel.low: 0, RiskLevel.medium: 1, RiskLevel.high: 2, RiskLevel.critical: 3}


class UserRiskScore(BaseModel):
    user_id: str
    risk_score: int = Field(default=0, ge=0, le=100)
    level: RiskLevel = RiskLevel.low
    signal_count: int = 0
    last_signal_type: Optional[SignalType] = None
    last_signal_date: Optional[datetime] = None
    last_updated_at: datetime

    @property
    def trust_score(self) -> int:
        # Derived on read, never stored on its own
        return 100 - self.risk_score


class BehaviorFacts(BaseModel):
    """Recent audit-style events supplied by collaborators."""
    suspicious_logins: int = Field(default=0, ge=0)
    device_changes: int = Field(default=0, ge=0)
    reports: int = Field(default=0, ge=0)
    chargebacks: int = Field(default=0, ge=0)


class ActionLimits(BaseModel):
    daily_swipes: int = 0
    daily_chats: int = 0
    daily_sessions: int = 0


class RegionalRiskResult(BaseModel):
    user_id: str
    region_id: str
    base_score: float = 0
    multiplier: float = 1.0
    behavior_risk: float = 0
    churn_term: float = 0
    score: float = 0
    level: RiskLevel = RiskLevel.low
    recommended_limits: ActionLimits = ActionLimits()
    profile_found: bool = True
    calculated_at: datetime

    @property
    def trust_score(self) -> float:
        return 100 - self.score


class ActionDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    limit: Optional[int] = None


class ActionType(str, Enum):
    swipe = "swipe"
    chat = "chat"
    monetization = "monetization"
