"""Chargeback risk scoring and the reserve hold it recommends."""
from riskcore.config import settings
from riskcore.models.enforcement import ChargebackStats, ReserveRecommendation

# (score floor, reserve percentage, hold days), checked top-down
RESERVE_TIERS = [
    (70, 30, 14),
    (50, 20, 7),
    (30, 10, 3),
]


def calculate_chargeback_risk(stats: ChargebackStats) -> ReserveRecommendation:
    rate = stats.chargeback_count / stats.total_transactions if stats.total_transactions else 0.0
    score = 0
    reasons = []

    if rate > 0.05:
        score += 50
        reasons.append(f"CHARGEBACK_RATE_SEVERE: {rate:.1%}")
    elif rate > 0.02:
        score += 30
        reasons.append(f"CHARGEBACK_RATE_HIGH: {rate:.1%}")
    elif rate > 0.01:
        score += 15
        reasons.append(f"CHARGEBACK_RATE_ELEVATED: {rate:.1%}")

    if stats.chargebacks_last_30_days > 3:
        score += 30
        reasons.append(f"CHARGEBACK_BURST: {stats.chargebacks_last_30_days} in 30 days")

    if stats.max_dispute_tokens > settings.large_dispute_tokens:
        score += 20
        reasons.append(f"LARGE_DISPUTE: {stats.max_dispute_tokens:.0f} tokens")

    score = min(score, 100)
    for floor, percentage, days in RESERVE_TIERS:
        if score >= floor:
            return ReserveRecommendation(
                risk_score=score, chargeback_rate=rate, percentage=percentage,
                hold_days=days, action="reserve", reasons=reasons,
            )
    return ReserveRecommendation(risk_score=score, chargeback_rate=rate, reasons=reasons)
