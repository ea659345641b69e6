"""Storage contract shared by the hosted and in-memory stores.

The signal log is append-only: there is no update operation for signals.
Risk scores and regional results are full overwrites. The two enforcement
operations mutate the enforcement record and the user's payouts together or
not at all.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from riskcore.models.enforcement import EnforcementRecord, Payout, PayoutStatus, ReviewFlag
from riskcore.models.region import RegionalRiskProfile
from riskcore.models.risk import RegionalRiskResult, RiskLevel, UserRiskScore
from riskcore.models.signal import MessageCacheEntry, RiskSignal, SignalFilter, SignalType


class Store(ABC):

    # Signals
    @abstractmethod
    def insert_signal(self, signal: RiskSignal) -> None: ...

    @abstractmethod
    def list_signals(self, user_id: str, since: Optional[datetime] = None,
                     until: Optional[datetime] = None) -> list[RiskSignal]: ...

    @abstractmethod
    def count_signals(self, user_id: str, signal_type: Optional[SignalType] = None,
                      since: Optional[datetime] = None, until: Optional[datetime] = None) -> int: ...

    @abstractmethod
    def query_signals(self, flt: SignalFilter) -> list[RiskSignal]: ...

    @abstractmethod
    def delete_signals_before(self, cutoff: datetime, limit: int) -> int: ...

    # Risk scores
    @abstractmethod
    def get_risk_score(self, user_id: str) -> Optional[UserRiskScore]: ...

    @abstractmethod
    def upsert_risk_score(self, score: UserRiskScore) -> None: ...

    @abstractmethod
    def list_risk_scores(self, level: Optional[RiskLevel] = None, min_score: Optional[int] = None,
                         since: Optional[datetime] = None, until: Optional[datetime] = None,
                         limit: int = 100, offset: int = 0) -> list[UserRiskScore]:
        """Highest scores first; since/until bound the user's latest signal date."""

    @abstractmethod
    def users_needing_recompute(self, limit: int) -> list[str]:
        """Users with a signal newer than their last score update, or no score at all."""

    # Regional profiles and results
    @abstractmethod
    def get_region_profile(self, region_id: str) -> Optional[RegionalRiskProfile]: ...

    @abstractmethod
    def upsert_region_profile(self, profile: RegionalRiskProfile) -> None: ...

    @abstractmethod
    def list_region_profiles(self) -> list[RegionalRiskProfile]: ...

    @abstractmethod
    def get_regional_risk(self, user_id: str) -> Optional[RegionalRiskResult]: ...

    @abstractmethod
    def upsert_regional_risk(self, result: RegionalRiskResult) -> None: ...

    @abstractmethod
    def list_regional_risk(self, region_id: Optional[str] = None, level: Optional[RiskLevel] = None,
                           min_score: Optional[float] = None, since: Optional[datetime] = None,
                           until: Optional[datetime] = None, limit: int = 100,
                           offset: int = 0) -> list[RegionalRiskResult]:
        """Highest regional scores first; since/until bound calculated_at."""

    # Copy-paste dedup cache
    @abstractmethod
    def get_message_cache(self, key: str) -> Optional[MessageCacheEntry]: ...

    @abstractmethod
    def put_message_cache(self, entry: MessageCacheEntry) -> None: ...

    @abstractmethod
    def delete_expired_message_cache(self, now: datetime, limit: int) -> int: ...

    # Enforcement
    @abstractmethod
    def apply_enforcement(self, record: EnforcementRecord, payout_status: PayoutStatus) -> EnforcementRecord:
        """Create or refresh the user's active record of this kind and move the user's payouts
        to payout_status, atomically. A refresh keeps the later expiry and the higher
        percentage. A freeze takes over payouts on reserve hold, and a reserve applied
        under an active freeze leaves payouts frozen. Returns the stored record."""

    @abstractmethod
    def release_enforcement(self, record_id: str, now: datetime,
                            only_if_expired: bool = True) -> Optional[EnforcementRecord]:
        """Expire the record and move its held payouts to the state required by the
        user's remaining active record (frozen, on_hold, or pending when none), atomically.
        Returns None when the record is missing, already released, or (with
        only_if_expired) was refreshed to a future expiry."""

    @abstractmethod
    def get_enforcement(self, record_id: str) -> Optional[EnforcementRecord]: ...

    @abstractmethod
    def list_enforcements(self, user_id: str, active_only: bool = True) -> list[EnforcementRecord]: ...

    @abstractmethod
    def list_expired_enforcements(self, now: datetime, limit: int) -> list[EnforcementRecord]: ...

    # Payouts (owned by the wallet subsystem)
    @abstractmethod
    def add_payout(self, payout: Payout) -> None: ...

    @abstractmethod
    def list_payouts(self, user_id: str) -> list[Payout]: ...

    # Manual review queue
    @abstractmethod
    def add_review_flag(self, flag: ReviewFlag) -> None: ...

    @abstractmethod
    def get_open_review_flag(self, user_id: str) -> Optional[ReviewFlag]: ...

    @abstractmethod
    def list_review_flags(self, include_resolved: bool = False, limit: int = 100) -> list[ReviewFlag]: ...
