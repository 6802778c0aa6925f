import pytest

from app.core.config import get_settings
from app.db import store as store_module
from app.services.citations import get_resolver
from scroll.store import InMemoryStore


@pytest.fixture
def memory_store(monkeypatch):
    store = InMemoryStore()
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("APP_ENVIRONMENT", "development")
    get_settings.cache_clear()
    get_resolver.cache_clear()
    monkeypatch.setattr(store_module, "_store", store)
    monkeypatch.setattr(store_module, "_driver", None)
    yield store
    get_resolver.cache_clear()
    get_settings.cache_clear()
