"""Abstract storage interface shared by the in-memory and document-store backends."""

from abc import ABC, abstractmethod
from typing import Any

from ..core.schemas import Context, ContextFilter, Memory, MemoryFilter


class EntityStoreBase(ABC):
    """Abstract base for memory/context storage backends.

    Absence is signalled with ``None``/``False``; collisions raise
    ``DuplicateKeyError`` and patches that would break field bounds raise
    ``ValidationError`` before anything is written.
    """

    # --- Memories ---

    @abstractmethod
    async def create_memory(self, memory: Memory) -> Memory:
        """Insert a new memory. Raises DuplicateKeyError if the id exists."""
        ...

    @abstractmethod
    async def get_memory(self, memory_id: str, track_access: bool = True) -> Memory | None:
        """Get a memory by id.

        With ``track_access`` (the default) this is a read with side effects:
        ``accessCount`` is incremented and ``lastAccessedAt``/``updatedAt`` are set.
        """
        ...

    @abstractmethod
    async def update_memory(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        """Merge ``patch`` into a memory and refresh ``updatedAt``.

        Top-level scalars (content, type, category) are replaced; the
        ``metadata``, ``relations`` and ``privacy`` groups are each shallow-merged.
        """
        ...

    @abstractmethod
    async def delete_memory(self, memory_id: str) -> bool:
        """Hard delete. Returns whether something was removed."""
        ...

    @abstractmethod
    async def list_memories(self, filters: MemoryFilter | None = None) -> list[Memory]:
        """All memories matching ``filters``, newest first."""
        ...

    @abstractmethod
    async def search_memories(self, query: str, limit: int = 100) -> list[Memory]:
        """Lexical search over content, title, description and tags.

        Every hit contains ``query`` case-insensitively in at least one of
        those fields; ranking is backend-specific.
        """
        ...

    # --- Contexts ---

    @abstractmethod
    async def create_context(self, context: Context) -> Context:
        """Insert a new context. Raises DuplicateKeyError if the id exists."""
        ...

    @abstractmethod
    async def get_context(self, context_id: str) -> Context | None:
        ...

    @abstractmethod
    async def update_context(self, context_id: str, patch: dict[str, Any]) -> Context | None:
        """Merge ``patch`` into a context (``metadata`` shallow-merged) and refresh ``updatedAt``."""
        ...

    @abstractmethod
    async def delete_context(self, context_id: str) -> bool:
        ...

    @abstractmethod
    async def list_contexts(self, filters: ContextFilter | None = None) -> list[Context]:
        """Contexts matching ``filters``; order is backend-defined."""
        ...

    # --- Cross-entity primitives ---

    @abstractmethod
    async def link_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        """Append ``memory_id`` to the context (once) and point the memory at it.

        Returns False, writing nothing, if either side is missing.
        """
        ...

    @abstractmethod
    async def set_active_context(self, context_id: str) -> Context | None:
        """Deactivate every active context, then activate ``context_id``.

        Deactivation happens even when the target does not exist.
        """
        ...

    @abstractmethod
    async def remove_memory_references(self, memory_id: str) -> int:
        """Drop ``memory_id`` from every context's ``memoryIds``. Returns contexts touched."""
        ...

    @abstractmethod
    async def clear_context_references(self, context_id: str) -> int:
        """Unset ``relations.contextId`` on memories pointing at ``context_id``."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        return None
