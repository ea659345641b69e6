"""Regional risk profile: typed configuration with explicit defaults.

Profiles are edited by admins only. Every nested block carries defaults so a
partially configured region still evaluates without missing-field failures.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

from riskcore.models.risk import RiskLevel
from riskcore.models.signal import SignalType


class PatternRule(BaseModel):
    weight: float = Field(default=1.0, ge=0)
    threshold: int = Field(default=3, ge=1)


class DetectionThresholds(BaseModel):
    daily_swipe_limit: int = Field(default=200, ge=0)
    daily_chat_limit: int = Field(default=100, ge=0)
    daily_session_limit: int = Field(default=20, ge=0)
    suspicious_activity_score: float = Field(default=60, ge=0, le=100)
    auto_block_score: float = Field(default=85, ge=0, le=100)

    @model_validator(mode="after")
    def _ordered(self):
        if self.suspicious_activity_score > self.auto_block_score:
            raise ValueError("suspicious_activity_score must not exceed auto_block_score")
        return self


class LevelCutoffs(BaseModel):
    medium: float = 25
    high: float = 50
    critical: float = 75

    @model_validator(mode="after")
    def _ordered(self):
        if not (0 <= self.medium <= self.high <= self.critical <= 100):
            raise ValueError("level cutoffs must be ordered medium <= high <= critical within 0-100")
        return self

    def level_for(self, score: float) -> RiskLevel:
        if score >= self.critical:
            return RiskLevel.critical
        if score >= self.high:
            return RiskLevel.high
        if score >= self.medium:
            return RiskLevel.medium
        return RiskLevel.low


class TrustRequirements(BaseModel):
    require_phone_verification: bool = False
    require_id_verification: bool = False
    creator_min_trust_score: float = Field(default=50, ge=0, le=100)


class MonitoringConfig(BaseModel):
    enabled: bool = True
    manual_review_queue: bool = True
    sample_rate: float = Field(default=1.0, ge=0, le=1)


class FraudPatterns(BaseModel):
    peak_hours: list[int] = []
    flagged_ips: list[str] = []
    flagged_devices: list[str] = []


class RegionalRiskProfile(BaseModel):
    region_id: str
    base_risk_level: RiskLevel = RiskLevel.low
    fraud_multiplier: float = Field(default=1.0, ge=0)
    pattern_rules: dict[SignalType, PatternRule] = {}
    detection_thresholds: DetectionThresholds = DetectionThresholds()
    level_cutoffs: LevelCutoffs = LevelCutoffs()
    trust_requirements: TrustRequirements = TrustRequirements()
    monitoring: MonitoringConfig = MonitoringConfig()
    fraud_patterns: FraudPatterns = FraudPatterns()
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class RegionalRiskProfileUpdate(BaseModel):
    """Admin-supplied profile body; region_id comes from the path."""
    base_risk_level: RiskLevel = RiskLevel.low
    fraud_multiplier: float = Field(default=1.0, ge=0)
    pattern_rules: dict[SignalType, PatternRule] = {}
    detection_thresholds: DetectionThresholds = DetectionThresholds()
    level_cutoffs: LevelCutoffs = LevelCutoffs()
    trust_requirements: TrustRequirements = TrustRequirements()
    monitoring: MonitoringConfig = MonitoringConfig()
    fraud_patterns: FraudPatterns = FraudPatterns()
    updated_by: Optional[str] = None
