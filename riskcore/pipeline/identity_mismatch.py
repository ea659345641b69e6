"""Identity mismatch: several different people reporting the same profile as fake."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.models.signal import RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, in_window, severity_for
from riskcore.pipeline.emitter import dispatch_signal

IDENTITY_FRAUD = "identity_fraud"


@detector("identity_mismatch")
def check_identity_mismatch(user_id: str, report_id: str, reports: list[dict],
                            now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """
    Called when `user_id` is reported. `reports` are {reporter_id, category,
    created_at}; only identity-fraud reports from distinct reporters count.
    """
    now = now or utcnow()
    window_days = settings.identity_report_window_days
    window = in_window(reports, "created_at", now, timedelta(days=window_days))
    reporters = {
        r["reporter_id"] for r in window
        if r.get("reporter_id") and str(r.get("category", IDENTITY_FRAUD)).lower() == IDENTITY_FRAUD
    }
    report_count = len(reporters)

    if report_count < settings.identity_report_count:
        return None

    signal = RiskSignal(
        user_id=user_id,
        # no profile-level source exists, wallet is the generic user source
        source=SignalSource.wallet,
        signal_type=SignalType.identity_mismatch,
        severity=severity_for(report_count, high=7, very_high=10),
        context_ref=report_id,
        created_at=now,
        metadata={
            "reportCount": len(window),
            "uniqueReporters": report_count,
            "timeWindowDays": window_days,
        },
    )
    dispatch_signal(signal)
    return signal
