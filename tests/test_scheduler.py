"""Scheduler job tests."""
from datetime import timedelta

import pytest

from riskcore.models.enforcement import Payout, PayoutStatus
from riskcore.models.signal import MessageCacheEntry, RiskSignal, SignalSource, SignalType
from riskcore.enforcement.policy import apply_payout_freeze, apply_reserve_hold
from riskcore.scheduler import jobs
from riskcore.scheduler.runner import build_scheduler, main


def _signal(user_id, severity, created_at):
    return RiskSignal(user_id=user_id, source=SignalSource.wallet, signal_type=SignalType.payout_abuse,
                      severity=severity, created_at=created_at)


def test_recompute_picks_up_users_with_new_signals(store, region, now):
    store.insert_signal(_signal("u1", 5, now - timedelta(hours=1)))
    store.insert_signal(_signal("u1", 5, now - timedelta(hours=2)))
    store.insert_signal(_signal("u2", 3, now - timedelta(hours=1)))

    result = jobs.recompute_stale_scores(now=now)
    assert result == {"candidates": 2, "processed": 2, "failed": 0}
    assert store.get_risk_score("u1").risk_score == 80
    assert store.get_regional_risk("u2").score == 10

    assert jobs.recompute_stale_scores(now=now)["candidates"] == 0


def test_recompute_runs_policy(store, region, now, monkeypatch):
    monkeypatch.setattr(jobs.settings, "default_region_id", "TEST")
    for _ in range(2):
        store.insert_signal(_signal("u1", 5, now - timedelta(hours=1)))
    jobs.recompute_stale_scores(now=now)
    assert len(store.list_enforcements("u1")) == 1


def test_recompute_failure_is_isolated(store, now, monkeypatch):
    store.insert_signal(_signal("bad", 3, now - timedelta(hours=1)))
    store.insert_signal(_signal("good", 3, now - timedelta(hours=1)))
    real = jobs.recalculate

    def flaky(user_id, **kwargs):
        if user_id == "bad":
            raise RuntimeError("boom")
        return real(user_id, **kwargs)

    monkeypatch.setattr(jobs, "recalculate", flaky)
    result = jobs.recompute_stale_scores(now=now)
    assert result["processed"] == 1
    assert result["failed"] == 1
    assert store.get_risk_score("good") is not None


def test_release_expired_enforcements(store, now):
    store.add_payout(Payout(id="p1", user_id="u1"))
    store.add_payout(Payout(id="p2", user_id="u2"))
    apply_payout_freeze("u1", reason="test", days=1, now=now)
    apply_reserve_hold("u2", 10, 30, "test", now=now)

    result = jobs.release_expired_enforcements(now=now + timedelta(days=2))
    assert result == {"expired": 1, "released": 1, "failed": 0}
    assert store.list_payouts("u1")[0].status == PayoutStatus.pending
    assert store.list_payouts("u2")[0].status == PayoutStatus.on_hold

    assert jobs.release_expired_enforcements(now=now + timedelta(days=2))["released"] == 0


def test_cleanup_retention(store, now, monkeypatch):
    monkeypatch.setattr(jobs.settings, "cleanup_batch_size", 2)
    for days in (400, 380, 370, 10):
        store.insert_signal(_signal("u1", 3, now - timedelta(days=days)))
    store.put_message_cache(MessageCacheEntry(key="u1_a", user_id="u1", message_hash="a", chat_ids=["c1"],
                                              timestamp=now - timedelta(hours=1),
                                              expires_at=now - timedelta(minutes=45)))
    store.put_message_cache(MessageCacheEntry(key="u1_b", user_id="u1", message_hash="b", chat_ids=["c1"],
                                              timestamp=now, expires_at=now + timedelta(minutes=15)))

    result = jobs.cleanup_retention(now=now)
    assert result == {"signals_deleted": 3, "cache_deleted": 1}
    assert len(store.list_signals("u1")) == 1
    assert store.get_message_cache("u1_a") is None
    assert store.get_message_cache("u1_b") is not None


def test_scheduler_registers_three_interval_jobs():
    scheduler = build_scheduler()
    assert sorted(job.id for job in scheduler.get_jobs()) == [
        "enforcement_release", "retention_cleanup", "risk_recompute"]


def test_run_now_cli(store):
    assert main(["--run-now", "cleanup"]) == 0


def test_run_now_rejects_unknown_job():
    with pytest.raises(SystemExit):
        main(["--run-now", "nope"])
