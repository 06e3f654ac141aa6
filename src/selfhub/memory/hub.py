"""SelfHub facade: the single entry point the tool layer calls into."""

from typing import Any

from ..core.config import Settings, get_settings
from ..core.enums import ContextType
from ..core.schemas import (
    Context,
    CreateContextInput,
    CreateMemoryInput,
    HubStats,
    ListMemoriesInput,
    Memory,
    MemoryPage,
    SearchMemoriesInput,
    SearchResults,
    UpdateContextInput,
    UpdateMemoryInput,
)
from ..storage.base import EntityStoreBase
from ..storage.connection import create_store
from ..utils.logging_config import configure_logging, get_logger
from .context_service import ContextService
from .memory_service import MemoryService
from .relations import RelationManager

logger = get_logger(__name__)


class SelfHub:
    """
    Orchestrates memory and context use-cases over one injected store.
    Absent ids come back as ``None``/``False``; callers decide how to report them.
    """

    def __init__(self, store: EntityStoreBase, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.relations = RelationManager(
            store, cascade_deletes=self.settings.storage.cascade_deletes
        )
        self.memories = MemoryService(store, self.relations, self.settings.query)
        self.contexts = ContextService(store, self.relations)

    @classmethod
    async def create(cls, settings: Settings | None = None) -> "SelfHub":
        """Factory: configure logging and open the backend named in settings."""
        settings = settings or get_settings()
        configure_logging(
            settings.logging.level,
            settings.logging.json_output,
            app_name=settings.app_name,
        )
        store = await create_store(settings)
        logger.info("selfhub_started", backend=settings.storage.backend.value)
        return cls(store, settings)

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> "SelfHub":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # --- Memories ---

    async def store_memory(self, data: CreateMemoryInput | dict[str, Any]) -> Memory:
        return await self.memories.store_memory(data)

    async def retrieve_memory(self, memory_id: str) -> Memory | None:
        return await self.memories.retrieve_memory(memory_id)

    async def update_memory(self, data: UpdateMemoryInput | dict[str, Any]) -> Memory | None:
        return await self.memories.update_memory(data)

    async def delete_memory(self, memory_id: str) -> bool:
        return await self.memories.delete_memory(memory_id)

    async def list_memories(
        self, data: ListMemoriesInput | dict[str, Any] | None = None
    ) -> MemoryPage:
        return await self.memories.list_memories(data)

    async def search_memories(
        self, data: SearchMemoriesInput | dict[str, Any] | str
    ) -> SearchResults:
        if isinstance(data, str):
            data = {"query": data}
        return await self.memories.search_memories(data)

    async def get_stats(self) -> HubStats:
        return await self.memories.get_stats()

    # --- Contexts ---

    async def create_context(self, data: CreateContextInput | dict[str, Any]) -> Context:
        return await self.contexts.create_context(data)

    async def get_context(self, context_id: str) -> Context | None:
        return await self.contexts.get_context(context_id)

    async def update_context(self, data: UpdateContextInput | dict[str, Any]) -> Context | None:
        return await self.contexts.update_context(data)

    async def delete_context(self, context_id: str) -> bool:
        return await self.contexts.delete_context(context_id)

    async def list_contexts(
        self, type: ContextType | str | None = None, active: bool | None = None
    ) -> list[Context]:
        return await self.contexts.list_contexts(type=type, active=active)

    async def activate_context(self, context_id: str) -> Context | None:
        return await self.contexts.activate_context(context_id)

    async def get_active_context(self) -> Context | None:
        return await self.contexts.get_active_context()

    async def add_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        return await self.contexts.add_memory_to_context(context_id, memory_id)

    async def get_context_memories(self, context_id: str) -> list[Memory]:
        return await self.contexts.get_context_memories(context_id)
