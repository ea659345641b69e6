"""Shared fixtures: every test gets a fresh in-memory store and signal writer."""
from datetime import datetime, timezone

import pytest

from riskcore.database import set_store
from riskcore.models.region import DetectionThresholds, RegionalRiskProfile
from riskcore.pipeline.emitter import SignalWriter, set_writer
from riskcore.storage.memory import MemoryStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    store = MemoryStore()
    set_store(store)
    yield store
    set_store(None)


@pytest.fixture
def writer(store):
    writer = SignalWriter(max_workers=2, queue_size=100)
    set_writer(writer)
    yield writer
    writer.drain(timeout=5)
    writer.shutdown()
    set_writer(None)


@pytest.fixture
def region(store):
    profile = RegionalRiskProfile(
        region_id="TEST",
        fraud_multiplier=1.0,
        detection_thresholds=DetectionThresholds(suspicious_activity_score=50, auto_block_score=70),
    )
    store.upsert_region_profile(profile)
    return profile
