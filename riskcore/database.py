from supabase import create_client, Client
from riskcore.config import settings
from riskcore.storage.base import Store
from typing import Optional

_client: Optional[Client] = None
_store: Optional[Store] = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


def get_store() -> Store:
    """Process-wide store chosen by STORAGE_BACKEND."""
    global _store
    if _store is None:
        if settings.storage_backend == "supabase":
            from riskcore.storage.supabase import SupabaseStore
            _store = SupabaseStore(get_supabase())
        else:
            from riskcore.storage.memory import MemoryStore
            _store = MemoryStore()
    return _store


def set_store(store: Optional[Store]) -> None:
    global _store
    _store = store
