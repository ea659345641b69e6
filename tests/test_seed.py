"""Regional profile seeding from CSV."""
from riskcore.models.risk import RiskLevel
from riskcore.seed import load_profiles, seed_regions


def test_load_bundled_profiles():
    profiles = {p.region_id: p for p in load_profiles()}
    assert "GLOBAL" in profiles
    assert profiles["GLOBAL"].fraud_multiplier == 1.0
    ng = profiles["NG"]
    assert ng.base_risk_level == RiskLevel.high
    assert ng.detection_thresholds.auto_block_score == 70
    assert ng.level_cutoffs.critical == 65
    assert ng.trust_requirements.require_id_verification is True
    assert ng.fraud_patterns.peak_hours == [0, 1, 2, 3, 4]
    assert profiles["US"].fraud_patterns.peak_hours == []


def test_seed_into_store(store):
    count = seed_regions()
    assert count == len(store.list_region_profiles())
    assert store.get_region_profile("BR").fraud_multiplier == 1.4
