"""Pytest fixtures shared by unit and integration tests."""

from datetime import UTC, datetime, timedelta

import pytest

from selfhub.core.config import Settings, get_settings
from selfhub.core.schemas import Context, Memory
from selfhub.memory.hub import SelfHub
from selfhub.storage.connection import DatabaseManager
from selfhub.storage.memory_store import InMemoryStore
from selfhub.storage.sql_store import SQLDocumentStore

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"
BASE_TIME = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Auto-clear the settings LRU cache after each test to prevent pollution."""
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings()


async def _open_sql_store() -> SQLDocumentStore:
    manager = await DatabaseManager.create(SQLITE_MEMORY_URL)
    store = SQLDocumentStore(manager.session_factory, engine=manager.engine)
    await store.initialize()
    return store


@pytest.fixture
async def sql_store():
    """SQL document store on a private in-memory SQLite database."""
    store = await _open_sql_store()
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sql"])
async def store(request):
    """Every storage backend, so contract tests run against each one."""
    if request.param == "memory":
        s = InMemoryStore()
    else:
        s = await _open_sql_store()
    yield s
    await s.close()


@pytest.fixture
async def hub(store, settings):
    return SelfHub(store, settings)


def make_memory(memory_id: str, age_days: int = 0, **overrides) -> Memory:
    """Memory created ``age_days`` before BASE_TIME; ``overrides`` use field names."""
    created = BASE_TIME - timedelta(days=age_days)
    metadata = {
        "created_at": created,
        "updated_at": created,
        **overrides.pop("metadata", {}),
    }
    data = {
        "id": memory_id,
        "content": f"content of {memory_id}",
        "metadata": metadata,
        **overrides,
    }
    return Memory.model_validate(data)


def make_context(context_id: str, age_days: int = 0, **overrides) -> Context:
    created = BASE_TIME - timedelta(days=age_days)
    metadata = {"created_at": created, "updated_at": created, **overrides.pop("metadata", {})}
    data = {
        "id": context_id,
        "name": f"Context {context_id}",
        "type": "project",
        "metadata": metadata,
        **overrides,
    }
    return Context.model_validate(data)


@pytest.fixture
def memory_factory():
    return make_memory


@pytest.fixture
def context_factory():
    return make_context
