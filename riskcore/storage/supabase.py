"""Supabase-backed store.

Enforcement apply/release and the stale-user scan run as Postgres functions
(see db/schema.sql) so the record and payout updates share one
transaction.
"""
from datetime import datetime
from typing import Optional

from pydantic import ValidationError
from supabase import Client

from riskcore.errors import ConfigurationError
from riskcore.models.enforcement import EnforcementRecord, Payout, PayoutStatus, ReviewFlag
from riskcore.models.region import RegionalRiskProfile
from riskcore.models.risk import RegionalRiskResult, RiskLevel, UserRiskScore
from riskcore.models.signal import MessageCacheEntry, RiskSignal, SignalFilter, SignalType
from riskcore.storage.base import Store

SIGNALS = "risk_signals"
SCORES = "user_risk_scores"
PROFILES = "regional_risk_profiles"
REGIONAL = "regional_risk_results"
MESSAGE_CACHE = "fraud_message_cache"
ENFORCEMENTS = "enforcement_records"
PAYOUTS = "payouts"
REVIEWS = "review_flags"

PAGE_SIZE = 1000


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class SupabaseStore(Store):

    def __init__(self, client: Client):
        self.client = client

    # Signals

    def insert_signal(self, signal: RiskSignal) -> None:
        self.client.table(SIGNALS).insert(signal.model_dump(mode="json")).execute()

    def _signal_query(self, user_id, since, until):
        query = self.client.table(SIGNALS).select("*").eq("user_id", user_id)
        if since:
            query = query.gte("created_at", _iso(since))
        if until:
            query = query.lte("created_at", _iso(until))
        return query

    def list_signals(self, user_id, since=None, until=None) -> list[RiskSignal]:
        # PostgREST caps each response (1000 rows by default), so read page by page
        rows = []
        while True:
            page = self._signal_query(user_id, since, until).order("created_at").order("id") \
                .range(len(rows), len(rows) + PAGE_SIZE - 1).execute().data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                break
        return [RiskSignal.model_validate(row) for row in rows]

    def count_signals(self, user_id, signal_type=None, since=None, until=None) -> int:
        query = self.client.table(SIGNALS).select("id", count="exact").eq("user_id", user_id)
        if signal_type:
            query = query.eq("signal_type", SignalType(signal_type).value)
        if since:
            query = query.gte("created_at", _iso(since))
        if until:
            query = query.lte("created_at", _iso(until))
        return query.execute().count or 0

    def query_signals(self, flt: SignalFilter) -> list[RiskSignal]:
        query = self.client.table(SIGNALS).select("*")
        if flt.user_id:
            query = query.eq("user_id", flt.user_id)
        if flt.signal_type:
            query = query.eq("signal_type", flt.signal_type.value)
        if flt.source:
            query = query.eq("source", flt.source.value)
        if flt.min_severity:
            query = query.gte("severity", flt.min_severity)
        if flt.since:
            query = query.gte("created_at", _iso(flt.since))
        if flt.until:
            query = query.lte("created_at", _iso(flt.until))
        result = query.order("created_at", desc=True).limit(flt.limit).offset(flt.offset).execute()
        return [RiskSignal.model_validate(row) for row in result.data or []]

    def delete_signals_before(self, cutoff: datetime, limit: int) -> int:
        old = self.client.table(SIGNALS).select("id").lt("created_at", _iso(cutoff)).limit(limit).execute()
        ids = [row["id"] for row in old.data or []]
        if ids:
            self.client.table(SIGNALS).delete().in_("id", ids).execute()
        return len(ids)

    # Risk scores

    def get_risk_score(self, user_id) -> Optional[UserRiskScore]:
        result = self.client.table(SCORES).select("*").eq("user_id", user_id).limit(1).execute()
        return UserRiskScore.model_validate(result.data[0]) if result.data else None

    def upsert_risk_score(self, score: UserRiskScore) -> None:
        self.client.table(SCORES).upsert(score.model_dump(mode="json"), on_conflict="user_id").execute()

    def list_risk_scores(self, level=None, min_score=None, since=None, until=None,
                         limit=100, offset=0) -> list[UserRiskScore]:
        query = self.client.table(SCORES).select("*")
        if level:
            query = query.eq("level", RiskLevel(level).value)
        if min_score is not None:
            query = query.gte("risk_score", min_score)
        if since:
            query = query.gte("last_signal_date", _iso(since))
        if until:
            query = query.lte("last_signal_date", _iso(until))
        result = query.order("risk_score", desc=True).limit(limit).offset(offset).execute()
        return [UserRiskScore.model_validate(row) for row in result.data or []]

    def users_needing_recompute(self, limit: int) -> list[str]:
        result = self.client.rpc("users_needing_recompute", {"p_limit": limit}).execute()
        return [row["user_id"] for row in result.data or []]

    # Regional profiles and results

    def get_region_profile(self, region_id) -> Optional[RegionalRiskProfile]:
        result = self.client.table(PROFILES).select("profile").eq("region_id", region_id).limit(1).execute()
        if not result.data:
            return None
        try:
            return RegionalRiskProfile.model_validate(result.data[0]["profile"])
        except ValidationError as e:
            raise ConfigurationError(f"stored profile for {region_id} is invalid") from e

    def upsert_region_profile(self, profile: RegionalRiskProfile) -> None:
        self.client.table(PROFILES).upsert({
            "region_id": profile.region_id,
            "profile": profile.model_dump(mode="json"),
            "updated_at": _iso(profile.updated_at),
        }, on_conflict="region_id").execute()

    def list_region_profiles(self) -> list[RegionalRiskProfile]:
        result = self.client.table(PROFILES).select("profile").order("region_id").execute()
        return [RegionalRiskProfile.model_validate(row["profile"]) for row in result.data or []]

    def get_regional_risk(self, user_id) -> Optional[RegionalRiskResult]:
        result = self.client.table(REGIONAL).select("result").eq("user_id", user_id).limit(1).execute()
        return RegionalRiskResult.model_validate(result.data[0]["result"]) if result.data else None

    def upsert_regional_risk(self, result: RegionalRiskResult) -> None:
        self.client.table(REGIONAL).upsert({
            "user_id": result.user_id,
            "region_id": result.region_id,
            "score": result.score,
            "level": result.level.value,
            "result": result.model_dump(mode="json"),
            "calculated_at": _iso(result.calculated_at),
        }, on_conflict="user_id").execute()

    def list_regional_risk(self, region_id=None, level=None, min_score=None, since=None, until=None,
                           limit=100, offset=0) -> list[RegionalRiskResult]:
        query = self.client.table(REGIONAL).select("result")
        if region_id:
            query = query.eq("region_id", region_id)
        if level:
            query = query.eq("level", RiskLevel(level).value)
        if min_score is not None:
            query = query.gte("score", min_score)
        if since:
            query = query.gte("calculated_at", _iso(since))
        if until:
            query = query.lte("calculated_at", _iso(until))
        result = query.order("score", desc=True).order("user_id").limit(limit).offset(offset).execute()
        return [RegionalRiskResult.model_validate(row["result"]) for row in result.data or []]

    # Copy-paste dedup cache

    def get_message_cache(self, key) -> Optional[MessageCacheEntry]:
        result = self.client.table(MESSAGE_CACHE).select("*").eq("key", key).limit(1).execute()
        return MessageCacheEntry.model_validate(result.data[0]) if result.data else None

    def put_message_cache(self, entry: MessageCacheEntry) -> None:
        self.client.table(MESSAGE_CACHE).upsert(entry.model_dump(mode="json"), on_conflict="key").execute()

    def delete_expired_message_cache(self, now: datetime, limit: int) -> int:
        expired = self.client.table(MESSAGE_CACHE).select("key").lt("expires_at", _iso(now)).limit(limit).execute()
        keys = [row["key"] for row in expired.data or []]
        if keys:
            self.client.table(MESSAGE_CACHE).delete().in_("key", keys).execute()
        return len(keys)

    # Enforcement

    def apply_enforcement(self, record: EnforcementRecord, payout_status: PayoutStatus) -> EnforcementRecord:
        result = self.client.rpc("apply_enforcement", {
            "p_record": record.model_dump(mode="json"),
            "p_payout_status": payout_status.value,
        }).execute()
        return EnforcementRecord.model_validate(_single(result.data))

    def release_enforcement(self, record_id, now, only_if_expired=True) -> Optional[EnforcementRecord]:
        result = self.client.rpc("release_enforcement", {
            "p_record_id": record_id,
            "p_now": _iso(now),
            "p_only_if_expired": only_if_expired,
        }).execute()
        row = _single(result.data)
        return EnforcementRecord.model_validate(row) if row else None

    def get_enforcement(self, record_id) -> Optional[EnforcementRecord]:
        result = self.client.table(ENFORCEMENTS).select("*").eq("id", record_id).limit(1).execute()
        return EnforcementRecord.model_validate(result.data[0]) if result.data else None

    def list_enforcements(self, user_id, active_only=True) -> list[EnforcementRecord]:
        query = self.client.table(ENFORCEMENTS).select("*").eq("user_id", user_id)
        if active_only:
            query = query.eq("status", "active")
        result = query.order("applied_at").execute()
        return [EnforcementRecord.model_validate(row) for row in result.data or []]

    def list_expired_enforcements(self, now, limit) -> list[EnforcementRecord]:
        result = self.client.table(ENFORCEMENTS).select("*").eq("status", "active") \
            .lte("expires_at", _iso(now)).order("expires_at").limit(limit).execute()
        return [EnforcementRecord.model_validate(row) for row in result.data or []]

    # Payouts

    def add_payout(self, payout: Payout) -> None:
        self.client.table(PAYOUTS).insert(payout.model_dump(mode="json")).execute()

    def list_payouts(self, user_id) -> list[Payout]:
        result = self.client.table(PAYOUTS).select("id, user_id, amount, status, hold_expires_at, created_at") \
            .eq("user_id", user_id).execute()
        return [Payout.model_validate(row) for row in result.data or []]

    # Manual review queue

    def add_review_flag(self, flag: ReviewFlag) -> None:
        self.client.table(REVIEWS).insert(flag.model_dump(mode="json")).execute()

    def get_open_review_flag(self, user_id) -> Optional[ReviewFlag]:
        result = self.client.table(REVIEWS).select("*").eq("user_id", user_id).eq("resolved", False) \
            .limit(1).execute()
        return ReviewFlag.model_validate(result.data[0]) if result.data else None

    def list_review_flags(self, include_resolved=False, limit=100) -> list[ReviewFlag]:
        query = self.client.table(REVIEWS).select("*")
        if not include_resolved:
            query = query.eq("resolved", False)
        result = query.order("created_at", desc=True).limit(limit).execute()
        return [ReviewFlag.model_validate(row) for row in result.data or []]


def _single(data):
    """RPCs returning a row come back as a dict or a one-element list."""
    if isinstance(data, list):
        return data[0] if data else None
    return data
