import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # "memory" for local runs and tests, "supabase" for the hosted store
    storage_backend: str = os.getenv("STORAGE_BACKEND", "memory")
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    default_region_id: str = os.getenv("DEFAULT_REGION_ID", "GLOBAL")

    # Signal emission
    signal_writer_workers: int = 4
    signal_writer_queue_size: int = 1000
    signal_retention_days: int = 365

    # Aggregation
    aggregation_lookback_days: int = 90
    decay_period_days: int = 30
    decay_floor: float = 0.1
    critical_score: int = 70
    high_score: int = 35
    medium_score: int = 15

    # Token drain: repeated short paid calls
    short_session_seconds: int = 30
    short_session_count_24h: int = 5
    # Multi-session spam
    parallel_time_window_min: int = 5
    parallel_session_count: int = 3
    # Copy-paste
    copy_paste_time_window_min: int = 10
    copy_paste_cache_ttl_min: int = 15
    identical_message_count: int = 3
    min_message_length: int = 20
    # Fake bookings
    refund_window_days: int = 30
    min_refund_count: int = 3
    high_refund_rate: float = 0.6
    # Self refunds
    self_cancel_window_days: int = 7
    self_cancel_count: int = 5
    # Payout abuse
    payout_time_window_hours: int = 1
    payout_attempt_count: int = 3
    # Identity mismatch
    identity_report_window_days: int = 30
    identity_report_count: int = 3
    # Panic rate spike
    panic_time_window_hours: int = 24
    panic_count_spike: int = 3

    # Regional limits for LOW risk users
    low_risk_swipe_ceiling: int = 1000
    low_risk_chat_ceiling: int = 500
    low_risk_session_ceiling: int = 100

    # Enforcement
    freeze_days: int = 14
    large_dispute_tokens: int = 500

    # Scheduler
    recompute_batch_size: int = 100
    recompute_interval_hours: int = 1
    expiry_interval_hours: int = 6
    cleanup_interval_hours: int = 24
    cleanup_batch_size: int = 500

    class Config:
        env_file = ".env"


settings = Settings()
