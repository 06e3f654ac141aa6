"""Context use-cases: CRUD, listing, activation and membership."""

from typing import Any
from uuid import uuid4

from ..core.enums import ContextType
from ..core.schemas import (
    Context,
    ContextFilter,
    CreateContextInput,
    Memory,
    UpdateContextInput,
    utc_now,
    validate_model,
)
from ..storage.base import EntityStoreBase
from ..utils.logging_config import get_logger
from .relations import RelationManager

logger = get_logger(__name__)


def new_context_id() -> str:
    return f"ctx_{uuid4().hex[:8]}"


class ContextService:
    """Business logic for contexts on top of an injected store."""

    def __init__(self, store: EntityStoreBase, relations: RelationManager) -> None:
        self.store = store
        self.relations = relations

    async def create_context(self, data: CreateContextInput | dict[str, Any]) -> Context:
        """Create an inactive context, then link ``memoryIds`` one by one in order.

        Unknown memory ids are skipped, so the stored list only holds real members.
        """
        request = validate_model(CreateContextInput, data)
        now = utc_now()
        context = validate_model(
            Context,
            {
                "id": new_context_id(),
                "name": request.name,
                "type": request.type,
                "description": request.description,
                "memory_ids": [],
                "metadata": {
                    "tags": request.tags,
                    "active": False,
                    "created_at": now,
                    "updated_at": now,
                },
            },
        )
        await self.store.create_context(context)
        logger.info("context_created", context_id=context.id, type=context.type.value)

        if request.memory_ids:
            await self.relations.link_many(context.id, request.memory_ids)
            context = await self.store.get_context(context.id) or context
        return context

    async def get_context(self, context_id: str) -> Context | None:
        return await self.store.get_context(context_id)

    async def update_context(self, data: UpdateContextInput | dict[str, Any]) -> Context | None:
        """Update name/description/tags; ``active=True`` goes through activation."""
        request = validate_model(UpdateContextInput, data)
        if await self.store.get_context(request.id) is None:
            return None

        patch: dict[str, Any] = {}
        if request.name is not None:
            patch["name"] = request.name
        if "description" in request.model_fields_set:
            patch["description"] = request.description
        metadata: dict[str, Any] = {}
        if request.tags is not None:
            metadata["tags"] = request.tags
        if request.active is False:
            metadata["active"] = False
        if metadata:
            patch["metadata"] = metadata

        updated = await self.store.update_context(request.id, patch)
        if request.active:
            updated = await self.activate_context(request.id)
        if updated is not None:
            logger.info("context_updated", context_id=request.id, fields=sorted(patch))
        return updated

    async def delete_context(self, context_id: str) -> bool:
        deleted = await self.store.delete_context(context_id)
        if deleted:
            logger.info("context_deleted", context_id=context_id)
            await self.relations.on_context_deleted(context_id)
        return deleted

    async def list_contexts(
        self,
        type: ContextType | str | None = None,
        active: bool | None = None,
    ) -> list[Context]:
        """Contexts matching the filter, newest first."""
        filters = validate_model(ContextFilter, {"type": type, "active": active})
        contexts = await self.store.list_contexts(filters)
        return sorted(contexts, key=lambda c: c.metadata.created_at, reverse=True)

    async def activate_context(self, context_id: str) -> Context | None:
        """Make ``context_id`` the single active context.

        Other contexts are deactivated even when ``context_id`` is unknown.
        """
        activated = await self.store.set_active_context(context_id)
        if activated is None:
            logger.warning("context_activation_failed", context_id=context_id)
        else:
            logger.info("context_activated", context_id=context_id)
        return activated

    async def get_active_context(self) -> Context | None:
        active = await self.store.list_contexts(ContextFilter(active=True))
        return active[0] if active else None

    async def add_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        return await self.relations.link_memory_to_context(context_id, memory_id)

    async def get_context_memories(self, context_id: str) -> list[Memory]:
        """Members in ``memoryIds`` order; ids that no longer resolve are skipped.

        Each member read counts as an access.
        """
        context = await self.store.get_context(context_id)
        if context is None:
            return []
        memories: list[Memory] = []
        for memory_id in context.memory_ids:
            memory = await self.store.get_memory(memory_id)
            if memory is not None:
                memories.append(memory)
        return memories
