"""SupabaseStore reads against an in-memory stand-in for the PostgREST client."""
from datetime import timedelta
from types import SimpleNamespace

from riskcore.models.enforcement import ReviewFlag
from riskcore.models.signal import RiskSignal, SignalSource, SignalType
from riskcore.storage.supabase import SupabaseStore

MAX_ROWS = 1000


class FakeQuery:
    """Enough of the query builder for the reads under test, capped like PostgREST."""

    def __init__(self, rows):
        self.rows = rows
        self.filters = []
        self.orders = []
        self.bounds = None
        self.max = None

    def select(self, *columns, **kwargs):
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row[column] == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row[column] >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row[column] <= value)
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.bounds = (start, end + 1)
        return self

    def limit(self, count):
        self.max = count
        return self

    def execute(self):
        rows = [row for row in self.rows if all(f(row) for f in self.filters)]
        for column, desc in reversed(self.orders):
            rows.sort(key=lambda row: row[column], reverse=desc)
        if self.bounds:
            rows = rows[self.bounds[0]:self.bounds[1]]
        if self.max is not None:
            rows = rows[:self.max]
        return SimpleNamespace(data=rows[:MAX_ROWS], count=None)


class FakeClient:

    def __init__(self):
        self.tables = {}

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []))


def test_list_signals_reads_past_the_response_cap(now):
    client = FakeClient()
    client.tables["risk_signals"] = [
        RiskSignal(user_id="u1", source=SignalSource.chat, signal_type=SignalType.copy_paste_behavior,
                   severity=3, created_at=now - timedelta(minutes=i)).model_dump(mode="json")
        for i in range(1500)
    ]
    client.tables["risk_signals"].append(
        RiskSignal(user_id="u2", source=SignalSource.chat, signal_type=SignalType.copy_paste_behavior,
                   severity=3, created_at=now).model_dump(mode="json"))

    signals = SupabaseStore(client).list_signals("u1")
    assert len(signals) == 1500
    assert len({s.id for s in signals}) == 1500
    assert signals[-1].created_at == now
    assert signals[0].created_at == now - timedelta(minutes=1499)


def test_list_signals_exact_page_boundary(now):
    client = FakeClient()
    client.tables["risk_signals"] = [
        RiskSignal(user_id="u1", source=SignalSource.wallet, signal_type=SignalType.payout_abuse,
                   severity=4, created_at=now - timedelta(seconds=i)).model_dump(mode="json")
        for i in range(MAX_ROWS)
    ]
    assert len(SupabaseStore(client).list_signals("u1", since=now - timedelta(hours=1))) == MAX_ROWS


def test_open_review_flag_lookup_ignores_resolved(now):
    client = FakeClient()
    client.tables["review_flags"] = [
        ReviewFlag(user_id="u1", score=55, reason="old", created_at=now, resolved=True).model_dump(mode="json"),
    ]
    store = SupabaseStore(client)
    assert store.get_open_review_flag("u1") is None

    client.tables["review_flags"].append(
        ReviewFlag(user_id="u1", score=60, reason="suspicious_activity", created_at=now).model_dump(mode="json"))
    assert store.get_open_review_flag("u1").reason == "suspicious_activity"
