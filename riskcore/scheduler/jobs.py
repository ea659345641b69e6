"""Periodic jobs. Each is idempotent and handles one user or record at a time,
so a failure is logged and skipped without affecting the rest of the batch."""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.enforcement.policy import release_enforcement
from riskcore.logger import get_logger
from riskcore.models.signal import utcnow
from riskcore.service import recalculate

logger = get_logger(__name__)


def recompute_stale_scores(batch_size: Optional[int] = None, now: Optional[datetime] = None) -> dict:
    """Users with signals newer than their stored score: recompute, regional, policy."""
    batch_size = batch_size or settings.recompute_batch_size
    user_ids = get_store().users_needing_recompute(batch_size)
    processed = failed = 0
    for user_id in user_ids:
        try:
            recalculate(user_id, now=now)
            processed += 1
        except Exception:
            failed += 1
            logger.exception("recompute_user_failed", user_id=user_id)
    logger.info("recompute_stale_scores_done", candidates=len(user_ids), processed=processed, failed=failed)
    return {"candidates": len(user_ids), "processed": processed, "failed": failed}


def release_expired_enforcements(now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    expired = get_store().list_expired_enforcements(now, settings.cleanup_batch_size)
    released = failed = 0
    for record in expired:
        try:
            if release_enforcement(record.id, now=now):
                released += 1
        except Exception:
            failed += 1
            logger.exception("release_enforcement_failed", record_id=record.id, user_id=record.user_id)
    logger.info("release_expired_enforcements_done", expired=len(expired), released=released, failed=failed)
    return {"expired": len(expired), "released": released, "failed": failed}


def cleanup_retention(now: Optional[datetime] = None) -> dict:
    """Drop signals past retention and expired copy-paste cache entries, in batches."""
    now = now or utcnow()
    store = get_store()
    cutoff = now - timedelta(days=settings.signal_retention_days)
    batch = settings.cleanup_batch_size

    signals_deleted = 0
    while True:
        n = store.delete_signals_before(cutoff, batch)
        signals_deleted += n
        if n < batch:
            break

    cache_deleted = 0
    while True:
        n = store.delete_expired_message_cache(now, batch)
        cache_deleted += n
        if n < batch:
            break

    logger.info("cleanup_retention_done", signals_deleted=signals_deleted, cache_deleted=cache_deleted,
                cutoff=cutoff.isoformat())
    return {"signals_deleted": signals_deleted, "cache_deleted": cache_deleted}


JOBS = {
    "recompute": recompute_stale_scores,
    "release": release_expired_enforcements,
    "cleanup": cleanup_retention,
}
