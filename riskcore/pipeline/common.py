"""Helpers shared by the pattern detectors: timestamps, windows, severity, error guard."""
import functools
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from riskcore.errors import IngestionError
from riskcore.logger import get_logger

logger = get_logger(__name__)


def parse_timestamp(value) -> Optional[datetime]:
    """Accept datetimes or ISO strings; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def in_window(facts: Iterable[dict], field: str, now: datetime, window: timedelta) -> list[dict]:
    """Facts whose `field` timestamp falls within [now - window, now]."""
    window_start = now - window
    matched = []
    for fact in facts:
        if not isinstance(fact, dict):
            raise IngestionError(f"expected fact records, got {type(fact).__name__}")
        ts = parse_timestamp(fact.get(field))
        if ts is None:
            continue
        if window_start <= ts <= now:
            matched.append(fact)
    return matched


def severity_for(value: float, high: float, very_high: float) -> int:
    """Detector breakpoints: >= very_high -> 5, >= high -> 4, else 3."""
    if value >= very_high:
        return 5
    if value >= high:
        return 4
    return 3


def detector(name: str) -> Callable:
    """Never let a detector failure reach the product action that triggered it."""
    def decorate(fn):
        @functools.wraps(fn)
        def wrapper(user_id, *args, **kwargs):
            try:
                return fn(user_id, *args, **kwargs)
            except IngestionError as e:
                logger.warning("detector_bad_facts", detector=name, user_id=user_id, error=str(e))
                return None
            except Exception:
                logger.exception("detector_failed", detector=name, user_id=user_id)
                return None
        return wrapper
    return decorate
