"""Risk aggregator tests."""
from datetime import timedelta

import pytest

from riskcore.models.risk import RiskLevel
from riskcore.models.signal import RiskSignal, SignalSource, SignalType
from riskcore.scoring.aggregator import calculate_score, decay_weight, level_for_score, recompute


def _signal(user_id, severity, created_at, signal_type=SignalType.token_drain):
    return RiskSignal(user_id=user_id, source=SignalSource.ai_voice, signal_type=signal_type,
                      severity=severity, created_at=created_at)


def test_zero_signals_is_zero_and_low(store, now):
    score = recompute("nobody", now=now)
    assert score.risk_score == 0
    assert score.level == RiskLevel.low
    assert score.signal_count == 0
    assert score.trust_score == 100


def test_recompute_is_idempotent(store, now):
    for i, severity in enumerate([3, 4, 5, 3]):
        store.insert_signal(_signal("u1", severity, now - timedelta(days=10 * i)))
    first = recompute("u1", now=now)
    second = recompute("u1", now=now)
    assert first == second
    assert store.get_risk_score("u1") == second


def test_decay_weight_is_monotonic_and_floored():
    ages = [0, 15, 30, 31, 60, 61, 90, 120, 200, 400, 1000]
    weights = [decay_weight(a) for a in ages]
    assert weights == sorted(weights, reverse=True)
    assert min(weights) == pytest.approx(0.1)
    assert decay_weight(30) == 1.0
    assert decay_weight(45) == 0.5
    assert decay_weight(65) == 0.25


def test_points_and_decay(store, now):
    store.insert_signal(_signal("u1", 5, now - timedelta(days=1)))   # 40
    store.insert_signal(_signal("u1", 3, now - timedelta(days=40)))  # 10 * 0.5
    score = recompute("u1", now=now)
    assert score.risk_score == 45
    assert score.level == RiskLevel.high


def test_signals_outside_lookback_are_ignored(store, now):
    store.insert_signal(_signal("u1", 5, now - timedelta(days=120)))
    assert recompute("u1", now=now).risk_score == 0


def test_score_is_capped_at_100(store, now):
    for _ in range(10):
        store.insert_signal(_signal("u1", 5, now - timedelta(hours=1)))
    score = recompute("u1", now=now)
    assert score.risk_score == 100
    assert score.level == RiskLevel.critical
    assert score.trust_score == 0


def test_rounds_half_up(now):
    # 2.5 points: one severity-2 signal at half weight
    signals = [_signal("u1", 2, now - timedelta(days=35))]
    assert calculate_score("u1", signals, now).risk_score == 3


def test_last_signal_fields(now):
    older = _signal("u1", 3, now - timedelta(days=5), SignalType.payout_abuse)
    newer = _signal("u1", 3, now - timedelta(days=1), SignalType.self_refunds)
    score = calculate_score("u1", [newer, older], now)
    assert score.last_signal_type == SignalType.self_refunds
    assert score.last_signal_date == newer.created_at


@pytest.mark.parametrize("score,level", [
    (0, RiskLevel.low), (14, RiskLevel.low), (15, RiskLevel.medium), (34, RiskLevel.medium),
    (35, RiskLevel.high), (69, RiskLevel.high), (70, RiskLevel.critical), (100, RiskLevel.critical),
])
def test_level_boundaries(score, level):
    assert level_for_score(score) == level


def test_levels_are_monotonic():
    ranks = [level_for_score(s).rank for s in range(101)]
    assert ranks == sorted(ranks)
