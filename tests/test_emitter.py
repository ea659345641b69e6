"""Signal emission tests."""
import threading

from riskcore.models.signal import RiskSignal, SignalSource, SignalType
from riskcore.pipeline.emitter import SignalWriter, emit_signal
from riskcore.storage.memory import MemoryStore


def test_emit_signal_reports_success(store, writer):
    result = emit_signal("u1", "wallet", "payout-abuse", 4, context_ref="p1", metadata={"attemptCount": 4})
    assert result.emitted
    assert result.needs_risk_recalculation
    writer.drain(timeout=5)
    [stored] = store.list_signals("u1")
    assert stored.id == result.signal_id
    assert stored.metadata == {"attemptCount": 4}


def test_emit_signal_never_raises_on_bad_input(store, writer):
    assert not emit_signal("u1", "wallet", "payout-abuse", 0).emitted
    assert not emit_signal("u1", "fax", "payout-abuse", 3).emitted
    assert not emit_signal("u1", "wallet", "made-up", 3).emitted
    writer.drain(timeout=5)
    assert store.list_signals("u1") == []


class _BlockingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.release = threading.Event()

    def insert_signal(self, signal):
        self.release.wait(timeout=5)
        super().insert_signal(signal)


def _signal(i):
    return RiskSignal(user_id="u1", source=SignalSource.wallet, signal_type=SignalType.payout_abuse,
                      severity=3, context_ref=f"p{i}")


def test_full_queue_drops_writes():
    store = _BlockingStore()
    writer = SignalWriter(max_workers=1, queue_size=2)
    try:
        assert writer.submit(_signal(0), store)
        assert writer.submit(_signal(1), store)
        assert not writer.submit(_signal(2), store)
        store.release.set()
        writer.drain(timeout=5)
        assert len(store.list_signals("u1")) == 2
        assert writer.submit(_signal(3), store)
    finally:
        store.release.set()
        writer.shutdown()


def test_failed_write_is_logged_not_raised():
    class BrokenStore(MemoryStore):
        def insert_signal(self, signal):
            raise ConnectionError("db down")

    writer = SignalWriter(max_workers=1, queue_size=2)
    try:
        assert writer.submit(_signal(0), BrokenStore())
        writer.drain(timeout=5)
        assert writer.submit(_signal(1), BrokenStore())
    finally:
        writer.shutdown()


def test_submit_after_shutdown_is_dropped():
    writer = SignalWriter(max_workers=1, queue_size=2)
    writer.shutdown()
    assert not writer.submit(_signal(0), MemoryStore())
