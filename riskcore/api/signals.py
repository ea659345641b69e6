"""Signal log endpoints: direct emission, admin listing and summary stats."""
from datetime import datetime, timedelta
from typing import Optional

import pandas as pd
from fastapi import APIRouter, Query

from riskcore.database import get_store
from riskcore.models.signal import SignalCreate, SignalFilter, SignalSource, SignalType, utcnow
from riskcore.pipeline.emitter import emit_signal

router = APIRouter()

STATS_SAMPLE = 10000


@router.post("/")
def create_signal(signal: SignalCreate):
    """Emit a signal directly. The write happens in the background."""
    result = emit_signal(**signal.model_dump())
    return {"status": "accepted" if result.emitted else "dropped", "data": result.model_dump()}


@router.get("/")
def list_signals(
    user_id: Optional[str] = None,
    signal_type: Optional[SignalType] = None,
    source: Optional[SignalSource] = None,
    min_severity: Optional[int] = Query(default=None, ge=1, le=5),
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = Query(default=100, le=500),
    offset: int = Query(default=0, ge=0),
):
    flt = SignalFilter(user_id=user_id, signal_type=signal_type, source=source, min_severity=min_severity,
                       since=since, until=until, limit=limit, offset=offset)
    signals = get_store().query_signals(flt)
    return {"data": [s.model_dump(mode="json") for s in signals], "count": len(signals)}


@router.get("/stats")
def signal_stats(user_id: Optional[str] = None, days: int = Query(default=30, ge=1, le=365)):
    """Signal volume over the last `days`, broken down by type, source and severity."""
    since = utcnow() - timedelta(days=days)
    signals = get_store().query_signals(SignalFilter(user_id=user_id, since=since, limit=STATS_SAMPLE))
    if not signals:
        return {"total": 0, "by_type": {}, "by_source": {}, "by_severity": {},
                "avg_severity": 0, "users": 0, "daily": []}

    df = pd.DataFrame([s.model_dump(mode="json", include={"user_id", "source", "signal_type",
                                                           "severity", "created_at"}) for s in signals])
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)

    daily = (
        df.groupby(df["created_at"].dt.strftime("%Y-%m-%d"))
        .agg(signals=("signal_type", "size"), avg_severity=("severity", "mean"))
        .reset_index()
        .rename(columns={"created_at": "date"})
    )
    daily["avg_severity"] = daily["avg_severity"].round(2)

    return {
        "total": int(len(df)),
        "by_type": {k: int(v) for k, v in df["signal_type"].value_counts().items()},
        "by_source": {k: int(v) for k, v in df["source"].value_counts().items()},
        "by_severity": {str(k): int(v) for k, v in df["severity"].value_counts().sort_index().items()},
        "avg_severity": round(float(df["severity"].mean()), 2),
        "users": int(df["user_id"].nunique()),
        "daily": [
            {"date": row.date, "count": int(row.signals), "avg_severity": float(row.avg_severity)}
            for row in daily.itertuples(index=False)
        ],
    }
