"""Seed regional risk profiles from a CSV of per-region settings."""
import os
import sys

import pandas as pd

from riskcore.database import get_store
from riskcore.logger import get_logger
from riskcore.models.region import (
    DetectionThresholds, FraudPatterns, LevelCutoffs, RegionalRiskProfile, TrustRequirements,
)
from riskcore.models.signal import utcnow
from riskcore.storage.base import Store

logger = get_logger(__name__)

DEFAULT_CSV = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "regions.csv")


def _hours(value) -> list[int]:
    if pd.isna(value) or value == "":
        return []
    return [int(h) for h in str(value).split(";") if h.strip()]


def load_profiles(csv_path: str = None) -> list[RegionalRiskProfile]:
    csv_path = csv_path or DEFAULT_CSV
    df = pd.read_csv(csv_path, dtype={"peak_hours": str})
    now = utcnow()
    profiles = []
    for row in df.to_dict("records"):
        profiles.append(RegionalRiskProfile(
            region_id=str(row["region_id"]),
            base_risk_level=row["base_risk_level"],
            fraud_multiplier=float(row["fraud_multiplier"]),
            detection_thresholds=DetectionThresholds(
                daily_swipe_limit=int(row["daily_swipe_limit"]),
                daily_chat_limit=int(row["daily_chat_limit"]),
                daily_session_limit=int(row["daily_session_limit"]),
                suspicious_activity_score=float(row["suspicious_activity_score"]),
                auto_block_score=float(row["auto_block_score"]),
            ),
            level_cutoffs=LevelCutoffs(
                medium=float(row["medium_cutoff"]),
                high=float(row["high_cutoff"]),
                critical=float(row["critical_cutoff"]),
            ),
            trust_requirements=TrustRequirements(
                require_phone_verification=bool(row["require_phone_verification"]),
                require_id_verification=bool(row["require_id_verification"]),
                creator_min_trust_score=float(row["creator_min_trust_score"]),
            ),
            fraud_patterns=FraudPatterns(peak_hours=_hours(row.get("peak_hours"))),
            updated_at=now,
            updated_by="seed",
        ))
    return profiles


def seed_regions(csv_path: str = None, store: Store = None) -> int:
    store = store or get_store()
    profiles = load_profiles(csv_path)
    for profile in profiles:
        store.upsert_region_profile(profile)
    logger.info("regions_seeded", count=len(profiles), source=csv_path or DEFAULT_CSV)
    return len(profiles)


if __name__ == "__main__":
    sys.exit(0 if seed_regions(sys.argv[1] if len(sys.argv) > 1 else None) else 1)
