"""Database connection manager and storage backend factory."""

import structlog
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..core.config import Settings, ensure_async_driver, get_settings
from ..core.enums import StorageBackend
from ..core.exceptions import ConfigurationError, StorageConnectionError
from .base import EntityStoreBase
from .memory_store import InMemoryStore
from .sql_store import SQLDocumentStore

_logger = structlog.get_logger(__name__)


class DatabaseManager:
    """Owns one async engine and its session factory.

    Instances are independent; nothing is shared at module level, so tests can
    open several isolated databases side by side.
    """

    engine: AsyncEngine | None
    session_factory: async_sessionmaker[AsyncSession] | None

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = ensure_async_driver(database_url)
        self.echo = echo
        self.engine = None
        self.session_factory = None

    @classmethod
    async def create(cls, database_url: str, echo: bool = False) -> "DatabaseManager":
        """Async factory that guarantees clean disposal on partial failure."""
        instance = cls(database_url, echo=echo)
        try:
            instance._init_engine()
        except Exception as e:
            await instance.close()
            raise StorageConnectionError(f"Cannot open {instance.database_url}: {e}") from e
        return instance

    def _init_engine(self) -> None:
        self.engine = create_async_engine(self.database_url, echo=self.echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def close(self) -> None:
        """Dispose the engine safely."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None


async def create_store(settings: Settings | None = None) -> EntityStoreBase:
    """Build the storage backend selected by ``storage.backend``."""
    settings = settings or get_settings()
    storage = settings.storage
    if storage.backend == StorageBackend.MEMORY:
        _logger.info("store_selected", backend=storage.backend.value)
        return InMemoryStore()
    if storage.backend == StorageBackend.SQL:
        manager = await DatabaseManager.create(storage.database_url, echo=storage.echo)
        store = SQLDocumentStore(manager.session_factory, engine=manager.engine)
        await store.initialize()
        _logger.info("store_selected", backend=storage.backend.value)
        return store
    raise ConfigurationError(f"Unknown storage backend: {storage.backend}")
