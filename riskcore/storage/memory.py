"""In-process store used for local runs and tests.

A single re-entrant lock stands in for the database transaction: every method
that touches more than one record holds it for the whole mutation.
"""
import threading
from datetime import datetime
from typing import Optional

from riskcore.models.enforcement import (
    EnforcementKind, EnforcementRecord, EnforcementStatus, Payout, PayoutStatus, ReviewFlag,
)
from riskcore.models.region import RegionalRiskProfile
from riskcore.models.risk import RegionalRiskResult, RiskLevel, UserRiskScore
from riskcore.models.signal import MessageCacheEntry, RiskSignal, SignalFilter, SignalType
from riskcore.storage.base import Store

HELD_STATUSES = (PayoutStatus.frozen, PayoutStatus.on_hold)
# A freeze also takes over payouts already on reserve hold; a reserve never loosens a freeze
MOVABLE_STATUSES = {
    PayoutStatus.frozen: (PayoutStatus.pending, PayoutStatus.on_hold, PayoutStatus.frozen),
    PayoutStatus.on_hold: (PayoutStatus.pending, PayoutStatus.on_hold),
}


def _max_percentage(current: Optional[float], requested: Optional[float]) -> Optional[float]:
    if current is None or requested is None:
        return requested if current is None else current
    return max(current, requested)


class MemoryStore(Store):

    def __init__(self):
        self._lock = threading.RLock()
        self._signals: list[RiskSignal] = []
        self._scores: dict[str, UserRiskScore] = {}
        self._profiles: dict[str, RegionalRiskProfile] = {}
        self._regional: dict[str, RegionalRiskResult] = {}
        self._cache: dict[str, MessageCacheEntry] = {}
        self._enforcements: dict[str, EnforcementRecord] = {}
        self._payouts: dict[str, Payout] = {}
        self._reviews: list[ReviewFlag] = []

    # Signals

    def insert_signal(self, signal: RiskSignal) -> None:
        with self._lock:
            self._signals.append(signal)

    def list_signals(self, user_id, since=None, until=None) -> list[RiskSignal]:
        with self._lock:
            signals = [s for s in self._signals if s.user_id == user_id]
        if since:
            signals = [s for s in signals if s.created_at >= since]
        if until:
            signals = [s for s in signals if s.created_at <= until]
        return sorted(signals, key=lambda s: s.created_at)

    def count_signals(self, user_id, signal_type=None, since=None, until=None) -> int:
        signals = self.list_signals(user_id, since, until)
        if signal_type:
            signals = [s for s in signals if s.signal_type == SignalType(signal_type)]
        return len(signals)

    def query_signals(self, flt: SignalFilter) -> list[RiskSignal]:
        with self._lock:
            matched = [s for s in self._signals if flt.matches(s)]
        matched.sort(key=lambda s: s.created_at, reverse=True)
        return matched[flt.offset:flt.offset + flt.limit]

    def delete_signals_before(self, cutoff: datetime, limit: int) -> int:
        with self._lock:
            old = [s for s in self._signals if s.created_at < cutoff][:limit]
            old_ids = {s.id for s in old}
            self._signals = [s for s in self._signals if s.id not in old_ids]
        return len(old)

    # Risk scores

    def get_risk_score(self, user_id) -> Optional[UserRiskScore]:
        with self._lock:
            return self._scores.get(user_id)

    def upsert_risk_score(self, score: UserRiskScore) -> None:
        with self._lock:
            self._scores[score.user_id] = score

    def list_risk_scores(self, level=None, min_score=None, since=None, until=None,
                         limit=100, offset=0) -> list[UserRiskScore]:
        with self._lock:
            scores = list(self._scores.values())
        if level:
            scores = [s for s in scores if s.level == RiskLevel(level)]
        if min_score is not None:
            scores = [s for s in scores if s.risk_score >= min_score]
        if since:
            scores = [s for s in scores if s.last_signal_date and s.last_signal_date >= since]
        if until:
            scores = [s for s in scores if s.last_signal_date and s.last_signal_date <= until]
        scores.sort(key=lambda s: (-s.risk_score, s.user_id))
        return scores[offset:offset + limit]

    def users_needing_recompute(self, limit: int) -> list[str]:
        with self._lock:
            latest: dict[str, datetime] = {}
            for s in self._signals:
                if s.user_id not in latest or s.created_at > latest[s.user_id]:
                    latest[s.user_id] = s.created_at
            stale = []
            for user_id, newest in latest.items():
                score = self._scores.get(user_id)
                if score is None or newest > score.last_updated_at:
                    stale.append((newest, user_id))
        stale.sort()
        return [user_id for _, user_id in stale[:limit]]

    # Regional profiles and results

    def get_region_profile(self, region_id) -> Optional[RegionalRiskProfile]:
        with self._lock:
            return self._profiles.get(region_id)

    def upsert_region_profile(self, profile: RegionalRiskProfile) -> None:
        with self._lock:
            self._profiles[profile.region_id] = profile

    def list_region_profiles(self) -> list[RegionalRiskProfile]:
        with self._lock:
            return sorted(self._profiles.values(), key=lambda p: p.region_id)

    def get_regional_risk(self, user_id) -> Optional[RegionalRiskResult]:
        with self._lock:
            return self._regional.get(user_id)

    def upsert_regional_risk(self, result: RegionalRiskResult) -> None:
        with self._lock:
            self._regional[result.user_id] = result

    def list_regional_risk(self, region_id=None, level=None, min_score=None, since=None, until=None,
                           limit=100, offset=0) -> list[RegionalRiskResult]:
        with self._lock:
            results = list(self._regional.values())
        if region_id:
            results = [r for r in results if r.region_id == region_id]
        if level:
            results = [r for r in results if r.level == RiskLevel(level)]
        if min_score is not None:
            results = [r for r in results if r.score >= min_score]
        if since:
            results = [r for r in results if r.calculated_at >= since]
        if until:
            results = [r for r in results if r.calculated_at <= until]
        results.sort(key=lambda r: (-r.score, r.user_id))
        return results[offset:offset + limit]

    # Copy-paste dedup cache

    def get_message_cache(self, key) -> Optional[MessageCacheEntry]:
        with self._lock:
            return self._cache.get(key)

    def put_message_cache(self, entry: MessageCacheEntry) -> None:
        with self._lock:
            self._cache[entry.key] = entry

    def delete_expired_message_cache(self, now: datetime, limit: int) -> int:
        with self._lock:
            expired = [k for k, e in self._cache.items() if e.expires_at < now][:limit]
            for key in expired:
                del self._cache[key]
        return len(expired)

    # Enforcement

    def apply_enforcement(self, record: EnforcementRecord, payout_status: PayoutStatus) -> EnforcementRecord:
        with self._lock:
            existing = self._active(record.user_id, record.kind)
            if existing:
                stored = existing.model_copy(update={
                    "reason": record.reason,
                    "applied_at": record.applied_at,
                    "expires_at": max(existing.expires_at, record.expires_at),
                    "percentage": _max_percentage(existing.percentage, record.percentage),
                })
            else:
                stored = record
            hold_expires_at = stored.expires_at
            freeze = self._active(record.user_id, EnforcementKind.freeze)
            if payout_status == PayoutStatus.on_hold and freeze is not None:
                payout_status, hold_expires_at = PayoutStatus.frozen, freeze.expires_at
            movable = MOVABLE_STATUSES[payout_status]
            updated = {}
            for payout_id, payout in self._payouts.items():
                if payout.user_id == record.user_id and payout.status in movable:
                    updated[payout_id] = payout.model_copy(
                        update={"status": payout_status, "hold_expires_at": hold_expires_at})
            self._enforcements[stored.id] = stored
            self._payouts.update(updated)
            return stored

    def release_enforcement(self, record_id, now, only_if_expired=True) -> Optional[EnforcementRecord]:
        with self._lock:
            record = self._enforcements.get(record_id)
            if record is None or record.status != EnforcementStatus.active:
                return None
            if only_if_expired and not record.is_expired(now):
                return None
            released = record.model_copy(update={"status": EnforcementStatus.expired, "released_at": now})
            self._enforcements[record_id] = released

            # payouts stay held by whichever record is still active, freeze first
            remaining = self._active(record.user_id, EnforcementKind.freeze) \
                or self._active(record.user_id, EnforcementKind.reserve)
            if remaining is None:
                status, hold_expires_at = PayoutStatus.pending, None
            elif remaining.kind == EnforcementKind.freeze:
                status, hold_expires_at = PayoutStatus.frozen, remaining.expires_at
            else:
                status, hold_expires_at = PayoutStatus.on_hold, remaining.expires_at
            updated = {}
            for payout_id, payout in self._payouts.items():
                if payout.user_id == record.user_id and payout.status in HELD_STATUSES:
                    updated[payout_id] = payout.model_copy(
                        update={"status": status, "hold_expires_at": hold_expires_at})
            self._payouts.update(updated)
            return released

    def get_enforcement(self, record_id) -> Optional[EnforcementRecord]:
        with self._lock:
            return self._enforcements.get(record_id)

    def list_enforcements(self, user_id, active_only=True) -> list[EnforcementRecord]:
        with self._lock:
            records = [r for r in self._enforcements.values() if r.user_id == user_id]
        if active_only:
            records = [r for r in records if r.status == EnforcementStatus.active]
        return sorted(records, key=lambda r: r.applied_at)

    def list_expired_enforcements(self, now, limit) -> list[EnforcementRecord]:
        with self._lock:
            expired = [r for r in self._enforcements.values()
                       if r.status == EnforcementStatus.active and r.is_expired(now)]
        return sorted(expired, key=lambda r: r.expires_at)[:limit]

    def _active(self, user_id, kind) -> Optional[EnforcementRecord]:
        for r in self._enforcements.values():
            if r.user_id == user_id and r.kind == kind and r.status == EnforcementStatus.active:
                return r
        return None

    # Payouts

    def add_payout(self, payout: Payout) -> None:
        with self._lock:
            self._payouts[payout.id] = payout

    def list_payouts(self, user_id) -> list[Payout]:
        with self._lock:
            return [p for p in self._payouts.values() if p.user_id == user_id]

    # Manual review queue

    def add_review_flag(self, flag: ReviewFlag) -> None:
        with self._lock:
            self._reviews.append(flag)

    def get_open_review_flag(self, user_id) -> Optional[ReviewFlag]:
        with self._lock:
            for flag in self._reviews:
                if flag.user_id == user_id and not flag.resolved:
                    return flag
        return None

    def list_review_flags(self, include_resolved=False, limit=100) -> list[ReviewFlag]:
        with self._lock:
            flags = [f for f in self._reviews if include_resolved or not f.resolved]
        return sorted(flags, key=lambda f: f.created_at, reverse=True)[:limit]
