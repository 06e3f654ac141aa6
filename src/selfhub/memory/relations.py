"""Relation manager: keeps the context <-> memory edge consistent."""

from collections.abc import Iterable

from ..storage.base import EntityStoreBase
from ..utils.logging_config import get_logger

logger = get_logger(__name__)


class RelationManager:
    """Maintains ``Context.memoryIds`` and ``Memory.relations.contextId`` together.

    Linking is last-writer-wins on the memory side: a memory points at one
    context at a time, and re-linking it elsewhere does not remove it from the
    previous context's ``memoryIds`` unless reference cleanup is enabled.
    """

    def __init__(self, store: EntityStoreBase, cascade_deletes: bool = False) -> None:
        self.store = store
        self.cascade_deletes = cascade_deletes

    async def link_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        """Link one memory; False if either id is unknown. Idempotent."""
        linked = await self.store.link_memory_to_context(context_id, memory_id)
        if linked:
            logger.info("memory_linked", context_id=context_id, memory_id=memory_id)
        else:
            logger.warning("memory_link_skipped", context_id=context_id, memory_id=memory_id)
        return linked

    async def link_many(self, context_id: str, memory_ids: Iterable[str]) -> list[str]:
        """Link each id in order; returns the ids that were actually linked."""
        linked: list[str] = []
        for memory_id in memory_ids:
            if memory_id in linked:
                continue
            if await self.link_memory_to_context(context_id, memory_id):
                linked.append(memory_id)
        return linked

    async def on_memory_deleted(self, memory_id: str) -> int:
        if not self.cascade_deletes:
            return 0
        touched = await self.store.remove_memory_references(memory_id)
        logger.info("memory_references_removed", memory_id=memory_id, contexts=touched)
        return touched

    async def on_context_deleted(self, context_id: str) -> int:
        if not self.cascade_deletes:
            return 0
        touched = await self.store.clear_context_references(context_id)
        logger.info("context_references_cleared", context_id=context_id, memories=touched)
        return touched
