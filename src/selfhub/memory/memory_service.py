"""Memory use-cases: store, retrieve, update, delete, list, search and stats."""

from typing import Any
from uuid import uuid4

from ..core.config import QuerySettings
from ..core.exceptions import ContextNotFoundError
from ..core.schemas import (
    DEFAULT_IMPORTANCE,
    CreateMemoryInput,
    HubStats,
    ListMemoriesInput,
    Memory,
    MemoryFilter,
    MemoryPage,
    SearchHit,
    SearchMemoriesInput,
    SearchResults,
    UpdateMemoryInput,
    utc_now,
    validate_model,
)
from ..retrieval.query import paginate, relevance_for, sort_memories
from ..retrieval.statistics import compute_stats
from ..storage.base import EntityStoreBase
from ..storage.utils import memory_matches_filter
from ..utils.logging_config import get_logger
from .relations import RelationManager

logger = get_logger(__name__)


def new_memory_id() -> str:
    return f"mem_{uuid4().hex[:8]}"


class MemoryService:
    """Business logic for memories on top of an injected store."""

    def __init__(
        self,
        store: EntityStoreBase,
        relations: RelationManager,
        query_settings: QuerySettings | None = None,
    ) -> None:
        self.store = store
        self.relations = relations
        self.query_settings = query_settings or QuerySettings()

    async def store_memory(self, data: CreateMemoryInput | dict[str, Any]) -> Memory:
        """Create a memory; links it to ``contextId`` when one is given.

        Raises ContextNotFoundError before writing anything if the context is unknown.
        """
        request = validate_model(CreateMemoryInput, data)
        if request.context_id and await self.store.get_context(request.context_id) is None:
            raise ContextNotFoundError(request.context_id)

        now = utc_now()
        meta = request.metadata
        memory = validate_model(
            Memory,
            {
                "id": new_memory_id(),
                "type": request.type,
                "category": request.category,
                "content": request.content,
                "metadata": {
                    "title": meta.title,
                    "description": meta.description,
                    "tags": meta.tags or [],
                    "source": meta.source,
                    "created_at": now,
                    "updated_at": now,
                    "expires_at": meta.expires_at,
                    "importance": meta.importance or DEFAULT_IMPORTANCE,
                    "access_count": 0,
                },
                "privacy": {"encrypted": request.encrypt, "access_level": request.access_level},
            },
        )
        await self.store.create_memory(memory)
        logger.info(
            "memory_created",
            memory_id=memory.id,
            category=memory.category.value,
            type=memory.type.value,
        )

        if request.context_id:
            await self.relations.link_memory_to_context(request.context_id, memory.id)
            memory = await self.store.get_memory(memory.id, track_access=False) or memory
        return memory

    async def retrieve_memory(self, memory_id: str) -> Memory | None:
        """Read by id; counts as an access."""
        return await self.store.get_memory(memory_id)

    async def update_memory(self, data: UpdateMemoryInput | dict[str, Any]) -> Memory | None:
        request = validate_model(UpdateMemoryInput, data)
        patch: dict[str, Any] = {}
        for field in ("content", "type", "category"):
            value = getattr(request, field)
            if value is not None:
                patch[field] = value
        if request.metadata is not None:
            metadata = request.metadata.model_dump(exclude_unset=True)
            # tags and importance are required on the stored memory; null leaves them as is.
            for field in ("tags", "importance"):
                if field in metadata and metadata[field] is None:
                    del metadata[field]
            patch["metadata"] = metadata
        relations: dict[str, Any] = {}
        if request.parent_id is not None:
            relations["parent_id"] = request.parent_id
        if request.related_ids is not None:
            relations["related_ids"] = request.related_ids
        if relations:
            patch["relations"] = relations
        if request.access_level is not None:
            patch["privacy"] = {"access_level": request.access_level}

        updated = await self.store.update_memory(request.id, patch)
        if updated is not None:
            logger.info("memory_updated", memory_id=request.id, fields=sorted(patch))
        return updated

    async def delete_memory(self, memory_id: str) -> bool:
        deleted = await self.store.delete_memory(memory_id)
        if deleted:
            logger.info("memory_deleted", memory_id=memory_id)
            await self.relations.on_memory_deleted(memory_id)
        return deleted

    async def list_memories(
        self, data: ListMemoriesInput | dict[str, Any] | None = None
    ) -> MemoryPage:
        request = validate_model(ListMemoriesInput, data or {})
        memories = await self.store.list_memories(
            MemoryFilter(
                type=request.type,
                category=request.category,
                tags=request.tags,
                context_id=request.context_id,
            )
        )
        ordered = sort_memories(memories, request.sort_by, request.sort_order)
        page, total = paginate(
            ordered, request.offset, request.limit or self.query_settings.list_limit
        )
        return MemoryPage(memories=page, total=total)

    async def search_memories(self, data: SearchMemoriesInput | dict[str, Any]) -> SearchResults:
        """Lexical search, then type/category/tag filtering and relevance labels.

        ``total`` counts filtered hits among the first
        ``search_candidate_limit`` store matches.
        """
        request = validate_model(SearchMemoriesInput, data)
        candidates = await self.store.search_memories(
            request.query, self.query_settings.search_candidate_limit
        )
        filters = MemoryFilter(type=request.type, category=request.category, tags=request.tags)
        matches = [m for m in candidates if memory_matches_filter(m, filters)]
        page, total = paginate(
            matches, request.offset, request.limit or self.query_settings.search_limit
        )
        return SearchResults(
            results=[SearchHit(memory=m, relevance=relevance_for(m)) for m in page],
            total=total,
        )

    async def get_stats(self) -> HubStats:
        memories = await self.store.list_memories()
        contexts = await self.store.list_contexts()
        return compute_stats(memories, contexts, self.query_settings.top_tags)
