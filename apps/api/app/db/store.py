import logging
from typing import Optional

from neo4j import Driver

from app.core.config import get_settings
from scroll.neo4j import Neo4jStore, build_driver, ensure_schema
from scroll.store import InMemoryStore, Store

logger = logging.getLogger(__name__)

_driver: Optional[Driver] = None
_store: Optional[Store] = None


def get_store() -> Store:
    global _driver, _store
    if _store is None:
        settings = get_settings()
        if settings.storage_backend == "neo4j":
            _driver = build_driver(settings)  # type: ignore[arg-type]
            _store = Neo4jStore(_driver)
        else:
            _store = InMemoryStore()
        logger.info("store_initialized:%s", settings.storage_backend)
    return _store


def reconcile_schema() -> bool:
    get_store()
    if _driver is None:
        return False
    ensure_schema(_driver)
    return True


def check_ready() -> bool:
    return get_store().check_ready()


def close_store() -> None:
    global _driver, _store
    if _driver is not None:
        _driver.close()
        _driver = None
    _store = None
