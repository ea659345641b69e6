"""Non-blocking signal emission.

emit_signal never raises and never waits on the write: the signal is handed
to a bounded pool of writer threads. When every slot is taken the write is
dropped and logged rather than making the caller wait.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional

from pydantic import ValidationError

from riskcore.config import settings
from riskcore.database import get_store
from riskcore.logger import get_logger
from riskcore.models.signal import EmitSignalResult, RiskSignal, SignalMetadata
from riskcore.storage.base import Store

logger = get_logger(__name__)


class SignalWriter:
    """Bounded background writer for the append-only signal log."""

    def __init__(self, max_workers: int = None, queue_size: int = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.signal_writer_workers,
            thread_name_prefix="signal-writer",
        )
        self._slots = threading.BoundedSemaphore(queue_size or settings.signal_writer_queue_size)
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, signal: RiskSignal, store: Store) -> bool:
        if not self._slots.acquire(blocking=False):
            logger.warning("signal_write_dropped", user_id=signal.user_id,
                           signal_type=signal.signal_type.value, reason="queue_full")
            return False
        try:
            future = self._executor.submit(self._write, signal, store)
        except RuntimeError:
            self._slots.release()
            logger.warning("signal_write_dropped", user_id=signal.user_id,
                           signal_type=signal.signal_type.value, reason="writer_shut_down")
            return False
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._done)
        return True

    def _write(self, signal: RiskSignal, store: Store) -> None:
        try:
            store.insert_signal(signal)
        except Exception:
            logger.exception("signal_write_failed", user_id=signal.user_id,
                             signal_id=signal.id, signal_type=signal.signal_type.value)
        finally:
            self._slots.release()

    def _done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for writes already submitted. Used on shutdown and in tests."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


_writer: Optional[SignalWriter] = None
_writer_lock = threading.Lock()


def get_writer() -> SignalWriter:
    global _writer
    with _writer_lock:
        if _writer is None:
            _writer = SignalWriter()
        return _writer


def set_writer(writer: Optional[SignalWriter]) -> None:
    global _writer
    with _writer_lock:
        _writer = writer


def dispatch_signal(signal: RiskSignal) -> EmitSignalResult:
    try:
        accepted = get_writer().submit(signal, get_store())
    except Exception:
        logger.exception("signal_dispatch_failed", user_id=signal.user_id, signal_type=signal.signal_type.value)
        return EmitSignalResult()
    if not accepted:
        return EmitSignalResult(signal_id=signal.id)
    logger.info("signal_emitted", user_id=signal.user_id, signal_id=signal.id,
                signal_type=signal.signal_type.value, severity=signal.severity)
    return EmitSignalResult(signal_id=signal.id, emitted=True, needs_risk_recalculation=True)


def emit_signal(user_id: str, source, signal_type, severity: int,
                context_ref: Optional[str] = None, metadata: Optional[SignalMetadata] = None) -> EmitSignalResult:
    """Fire-and-forget emission. Reports success or failure, never raises."""
    try:
        signal = RiskSignal(
            user_id=user_id,
            source=source,
            signal_type=signal_type,
            severity=severity,
            context_ref=context_ref,
            metadata=metadata or {},
        )
    except ValidationError as e:
        logger.error("signal_rejected", user_id=user_id, signal_type=str(signal_type), error=str(e))
        return EmitSignalResult()
    return dispatch_signal(signal)
