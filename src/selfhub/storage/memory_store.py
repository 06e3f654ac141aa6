"""In-memory entity store for tests, development and ephemeral sessions."""

from typing import Any

from ..core.exceptions import DuplicateKeyError
from ..core.schemas import Context, ContextFilter, Memory, MemoryFilter, utc_now
from .base import EntityStoreBase
from .utils import (
    apply_context_patch,
    apply_memory_patch,
    context_matches_filter,
    memory_matches_filter,
    memory_matches_query,
    touch_memory,
)


class InMemoryStore(EntityStoreBase):
    """Dict-backed store; search is a linear scan with substring inclusion.

    Entities are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        self._memories: dict[str, Memory] = {}
        self._contexts: dict[str, Context] = {}

    # --- Memories ---

    async def create_memory(self, memory: Memory) -> Memory:
        if memory.id in self._memories:
            raise DuplicateKeyError(memory.id, "Memory id already exists")
        self._memories[memory.id] = memory.model_copy(deep=True)
        return memory.model_copy(deep=True)

    async def get_memory(self, memory_id: str, track_access: bool = True) -> Memory | None:
        memory = self._memories.get(memory_id)
        if memory is None:
            return None
        if track_access:
            memory = touch_memory(memory)
            self._memories[memory_id] = memory
        return memory.model_copy(deep=True)

    async def update_memory(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        memory = self._memories.get(memory_id)
        if memory is None:
            return None
        updated = apply_memory_patch(memory, patch)
        self._memories[memory_id] = updated
        return updated.model_copy(deep=True)

    async def delete_memory(self, memory_id: str) -> bool:
        return self._memories.pop(memory_id, None) is not None

    def _newest_first(self) -> list[Memory]:
        return sorted(
            self._memories.values(), key=lambda m: m.metadata.created_at, reverse=True
        )

    async def list_memories(self, filters: MemoryFilter | None = None) -> list[Memory]:
        return [
            m.model_copy(deep=True)
            for m in self._newest_first()
            if memory_matches_filter(m, filters)
        ]

    async def search_memories(self, query: str, limit: int = 100) -> list[Memory]:
        hits = [m for m in self._newest_first() if memory_matches_query(m, query)]
        return [m.model_copy(deep=True) for m in hits[:limit]]

    # --- Contexts ---

    async def create_context(self, context: Context) -> Context:
        if context.id in self._contexts:
            raise DuplicateKeyError(context.id, "Context id already exists")
        self._contexts[context.id] = context.model_copy(deep=True)
        return context.model_copy(deep=True)

    async def get_context(self, context_id: str) -> Context | None:
        context = self._contexts.get(context_id)
        return context.model_copy(deep=True) if context else None

    async def update_context(self, context_id: str, patch: dict[str, Any]) -> Context | None:
        context = self._contexts.get(context_id)
        if context is None:
            return None
        updated = apply_context_patch(context, patch)
        self._contexts[context_id] = updated
        return updated.model_copy(deep=True)

    async def delete_context(self, context_id: str) -> bool:
        return self._contexts.pop(context_id, None) is not None

    async def list_contexts(self, filters: ContextFilter | None = None) -> list[Context]:
        return [
            c.model_copy(deep=True)
            for c in self._contexts.values()
            if context_matches_filter(c, filters)
        ]

    # --- Cross-entity primitives ---

    async def link_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        context = self._contexts.get(context_id)
        memory = self._memories.get(memory_id)
        if context is None or memory is None:
            return False
        now = utc_now()
        if memory_id not in context.memory_ids:
            self._contexts[context_id] = apply_context_patch(
                context, {"memory_ids": [*context.memory_ids, memory_id]}, now
            )
        self._memories[memory_id] = apply_memory_patch(
            memory, {"relations": {"context_id": context_id}}, now
        )
        return True

    async def set_active_context(self, context_id: str) -> Context | None:
        now = utc_now()
        for cid, context in list(self._contexts.items()):
            if context.metadata.active and cid != context_id:
                self._contexts[cid] = apply_context_patch(
                    context, {"metadata": {"active": False}}, now
                )
        target = self._contexts.get(context_id)
        if target is None:
            return None
        activated = apply_context_patch(target, {"metadata": {"active": True}}, now)
        self._contexts[context_id] = activated
        return activated.model_copy(deep=True)

    async def remove_memory_references(self, memory_id: str) -> int:
        touched = 0
        now = utc_now()
        for cid, context in list(self._contexts.items()):
            if memory_id in context.memory_ids:
                remaining = [mid for mid in context.memory_ids if mid != memory_id]
                self._contexts[cid] = apply_context_patch(context, {"memory_ids": remaining}, now)
                touched += 1
        return touched

    async def clear_context_references(self, context_id: str) -> int:
        touched = 0
        now = utc_now()
        for mid, memory in list(self._memories.items()):
            if memory.context_id == context_id:
                self._memories[mid] = apply_memory_patch(
                    memory, {"relations": {"context_id": None}}, now
                )
                touched += 1
        return touched
