"""Copy-paste behavior: the same reply pasted into many different chats.

Messages are compared through a short-lived dedup cache keyed by user and a
weak 32-bit string hash. Collisions are possible and tolerated: this is a
heuristic, not an exact-match guarantee.
"""
from datetime import datetime, timedelta
from typing import Optional

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.models.signal import MessageCacheEntry, RiskSignal, SignalSource, SignalType, utcnow
from riskcore.pipeline.common import detector, severity_for
from riskcore.pipeline.emitter import dispatch_signal

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def simple_hash(text: str) -> str:
    """31-multiplier string hash wrapped to a signed 32-bit int, rendered in base 36."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    h = abs(h)
    if h == 0:
        return "0"
    digits = []
    while h:
        h, rem = divmod(h, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


@detector("copy_paste")
def check_copy_paste_behavior(user_id: str, chat_id: str, message_text: str,
                              now: Optional[datetime] = None) -> Optional[RiskSignal]:
    """Called when a chat message is sent. Emits only when a new chat joins the match set."""
    if not message_text or len(message_text) < settings.min_message_length:
        return None

    now = now or utcnow()
    store = get_store()
    message_hash = simple_hash(message_text.lower().strip())
    key = f"{user_id}_{message_hash}"
    window_min = settings.copy_paste_time_window_min

    entry = store.get_message_cache(key)
    if entry is None or entry.timestamp < now - timedelta(minutes=window_min):
        chat_ids = [chat_id]
        added = True
    elif chat_id not in entry.chat_ids:
        chat_ids = entry.chat_ids + [chat_id]
        added = True
    else:
        chat_ids = list(entry.chat_ids)
        added = False

    store.put_message_cache(MessageCacheEntry(
        key=key,
        user_id=user_id,
        message_hash=message_hash,
        chat_ids=chat_ids,
        timestamp=now,
        expires_at=now + timedelta(minutes=settings.copy_paste_cache_ttl_min),
    ))

    match_count = len(chat_ids)
    if not added or match_count < settings.identical_message_count:
        return None

    signal = RiskSignal(
        user_id=user_id,
        source=SignalSource.chat,
        signal_type=SignalType.copy_paste_behavior,
        severity=severity_for(match_count, high=5, very_high=7),
        context_ref=chat_id,
        created_at=now,
        metadata={
            "matchCount": match_count,
            "timeWindowMinutes": window_min,
            "messageSnippet": message_text[:100],
        },
    )
    dispatch_signal(signal)
    return signal
