"""Document-store backend on SQLAlchemy async (SQLite via aiosqlite, PostgreSQL via asyncpg)."""

from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError

from ..core.exceptions import DuplicateKeyError
from ..core.schemas import Context, ContextFilter, Memory, MemoryFilter, utc_now
from ..utils.logging_config import get_logger
from .base import EntityStoreBase
from .models import Base, ContextDocument, MemoryDocument
from .utils import (
    apply_context_patch,
    apply_memory_patch,
    memory_matches_filter,
    memory_matches_query,
    naive_utc,
    touch_memory,
)

logger = get_logger(__name__)


def _tag_index(tags: list[str]) -> str:
    return "\n" + "\n".join(tags) + "\n"


def _search_text(memory: Memory) -> str:
    # SQLite LOWER/LIKE only fold ASCII, so the folded text is stored.
    meta = memory.metadata
    fields = [memory.content, meta.title or "", meta.description or "", *meta.tags]
    return "\n".join(field.lower() for field in fields)


def _memory_values(memory: Memory) -> dict[str, Any]:
    doc = memory.to_document()
    return {
        "id": memory.id,
        "type": doc["type"],
        "category": doc["category"],
        "content": memory.content,
        "meta": doc["metadata"],
        "relations": doc.get("relations"),
        "privacy": doc["privacy"],
        "created_at": naive_utc(memory.metadata.created_at),
        "context_id": memory.context_id,
        "tag_index": _tag_index(memory.metadata.tags),
        "search_text": _search_text(memory),
    }


def _context_values(context: Context) -> dict[str, Any]:
    doc = context.to_document()
    return {
        "id": context.id,
        "name": context.name,
        "type": doc["type"],
        "description": context.description,
        "memory_ids": list(context.memory_ids),
        "meta": doc["metadata"],
        "created_at": naive_utc(context.metadata.created_at),
        "active": context.metadata.active,
    }


def _to_memory(model: MemoryDocument) -> Memory:
    doc: dict[str, Any] = {
        "id": model.id,
        "type": model.type,
        "category": model.category,
        "content": model.content,
        "metadata": model.meta,
        "privacy": model.privacy,
    }
    if model.relations is not None:
        doc["relations"] = model.relations
    return Memory.model_validate(doc)


def _to_context(model: ContextDocument) -> Context:
    doc: dict[str, Any] = {
        "id": model.id,
        "name": model.name,
        "type": model.type,
        "memoryIds": model.memory_ids or [],
        "metadata": model.meta,
    }
    if model.description is not None:
        doc["description"] = model.description
    return Context.model_validate(doc)


def _assign(model: Any, values: dict[str, Any]) -> None:
    for key, value in values.items():
        if key != "id":
            setattr(model, key, value)


class SQLDocumentStore(EntityStoreBase):
    """Entity store persisting memory/context documents through SQLAlchemy.

    Multi-step operations (linking, activation, reference cleanup) run inside
    a single session and commit once.
    """

    def __init__(self, session_factory: Any, engine: Any = None) -> None:
        self.session_factory = session_factory
        self.engine = engine

    async def initialize(self) -> None:
        """Create tables if they do not exist."""
        if self.engine is None:
            return
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("sql_store_initialized", dialect=self.engine.dialect.name)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    # --- Memories ---

    async def create_memory(self, memory: Memory) -> Memory:
        async with self.session_factory() as session:
            if await session.get(MemoryDocument, memory.id) is not None:
                raise DuplicateKeyError(memory.id, "Memory id already exists")
            session.add(MemoryDocument(**_memory_values(memory)))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateKeyError(memory.id, "Memory id already exists") from e
        return memory

    async def get_memory(self, memory_id: str, track_access: bool = True) -> Memory | None:
        async with self.session_factory() as session:
            model = await session.get(MemoryDocument, memory_id)
            if model is None:
                return None
            memory = _to_memory(model)
            if track_access:
                memory = touch_memory(memory)
                model.meta = memory.metadata.to_document()
                await session.commit()
            return memory

    async def update_memory(self, memory_id: str, patch: dict[str, Any]) -> Memory | None:
        async with self.session_factory() as session:
            model = await session.get(MemoryDocument, memory_id)
            if model is None:
                return None
            updated = apply_memory_patch(_to_memory(model), patch)
            _assign(model, _memory_values(updated))
            await session.commit()
            return updated

    async def delete_memory(self, memory_id: str) -> bool:
        async with self.session_factory() as session:
            r = await session.execute(delete(MemoryDocument).where(MemoryDocument.id == memory_id))
            await session.commit()
            return r.rowcount > 0

    async def list_memories(self, filters: MemoryFilter | None = None) -> list[Memory]:
        q = select(MemoryDocument)
        if filters is not None:
            if filters.type is not None:
                q = q.where(MemoryDocument.type == filters.type.value)
            if filters.category is not None:
                q = q.where(MemoryDocument.category == filters.category.value)
            if filters.context_id is not None:
                q = q.where(MemoryDocument.context_id == filters.context_id)
            if filters.tags:
                q = q.where(
                    or_(
                        *(
                            MemoryDocument.tag_index.contains(f"\n{tag}\n", autoescape=True)
                            for tag in filters.tags
                        )
                    )
                )
        q = q.order_by(MemoryDocument.created_at.desc())
        async with self.session_factory() as session:
            r = await session.execute(q)
            memories = [_to_memory(m) for m in r.scalars().all()]
        # LIKE is case-insensitive on SQLite; confirm exact tag matches here.
        return [m for m in memories if memory_matches_filter(m, filters)]

    async def search_memories(self, query: str, limit: int = 100) -> list[Memory]:
        meta = MemoryDocument.meta
        q = select(MemoryDocument).where(
            MemoryDocument.search_text.contains(query.lower(), autoescape=True)
        )
        async with self.session_factory() as session:
            if session.bind.dialect.name == "postgresql":
                document = func.to_tsvector(
                    "english",
                    func.concat_ws(
                        " ",
                        MemoryDocument.content,
                        meta["title"].as_string(),
                        meta["description"].as_string(),
                    ),
                )
                rank = func.ts_rank(document, func.plainto_tsquery("english", query))
                q = q.order_by(rank.desc(), MemoryDocument.created_at.desc())
            else:
                q = q.order_by(MemoryDocument.created_at.desc())
            if "\n" not in query:
                # Only a query spanning two fields can be a false candidate.
                q = q.limit(limit)
            r = await session.execute(q)
            memories = [_to_memory(m) for m in r.scalars().all()]
        hits = [m for m in memories if memory_matches_query(m, query)]
        return hits[:limit]

    # --- Contexts ---

    async def create_context(self, context: Context) -> Context:
        async with self.session_factory() as session:
            if await session.get(ContextDocument, context.id) is not None:
                raise DuplicateKeyError(context.id, "Context id already exists")
            session.add(ContextDocument(**_context_values(context)))
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise DuplicateKeyError(context.id, "Context id already exists") from e
        return context

    async def get_context(self, context_id: str) -> Context | None:
        async with self.session_factory() as session:
            model = await session.get(ContextDocument, context_id)
            return _to_context(model) if model else None

    async def update_context(self, context_id: str, patch: dict[str, Any]) -> Context | None:
        async with self.session_factory() as session:
            model = await session.get(ContextDocument, context_id)
            if model is None:
                return None
            updated = apply_context_patch(_to_context(model), patch)
            _assign(model, _context_values(updated))
            await session.commit()
            return updated

    async def delete_context(self, context_id: str) -> bool:
        async with self.session_factory() as session:
            r = await session.execute(
                delete(ContextDocument).where(ContextDocument.id == context_id)
            )
            await session.commit()
            return r.rowcount > 0

    async def list_contexts(self, filters: ContextFilter | None = None) -> list[Context]:
        q = select(ContextDocument)
        if filters is not None:
            if filters.type is not None:
                q = q.where(ContextDocument.type == filters.type.value)
            if filters.active is not None:
                q = q.where(ContextDocument.active == filters.active)
        async with self.session_factory() as session:
            r = await session.execute(q)
            return [_to_context(c) for c in r.scalars().all()]

    # --- Cross-entity primitives ---

    async def link_memory_to_context(self, context_id: str, memory_id: str) -> bool:
        async with self.session_factory() as session:
            context_model = await session.get(ContextDocument, context_id)
            memory_model = await session.get(MemoryDocument, memory_id)
            if context_model is None or memory_model is None:
                return False
            now = utc_now()
            context = _to_context(context_model)
            if memory_id not in context.memory_ids:
                context = apply_context_patch(
                    context, {"memory_ids": [*context.memory_ids, memory_id]}, now
                )
                _assign(context_model, _context_values(context))
            memory = apply_memory_patch(
                _to_memory(memory_model), {"relations": {"context_id": context_id}}, now
            )
            _assign(memory_model, _memory_values(memory))
            await session.commit()
            return True

    async def set_active_context(self, context_id: str) -> Context | None:
        now = utc_now()
        async with self.session_factory() as session:
            r = await session.execute(
                select(ContextDocument).where(
                    ContextDocument.active.is_(True), ContextDocument.id != context_id
                )
            )
            for model in r.scalars().all():
                ctx = apply_context_patch(_to_context(model), {"metadata": {"active": False}}, now)
                _assign(model, _context_values(ctx))
            target = await session.get(ContextDocument, context_id)
            activated = None
            if target is not None:
                activated = apply_context_patch(
                    _to_context(target), {"metadata": {"active": True}}, now
                )
                _assign(target, _context_values(activated))
            await session.commit()
            return activated

    async def remove_memory_references(self, memory_id: str) -> int:
        now = utc_now()
        touched = 0
        async with self.session_factory() as session:
            r = await session.execute(select(ContextDocument))
            for model in r.scalars().all():
                context = _to_context(model)
                if memory_id not in context.memory_ids:
                    continue
                remaining = [mid for mid in context.memory_ids if mid != memory_id]
                updated = apply_context_patch(context, {"memory_ids": remaining}, now)
                _assign(model, _context_values(updated))
                touched += 1
            await session.commit()
        return touched

    async def clear_context_references(self, context_id: str) -> int:
        now = utc_now()
        async with self.session_factory() as session:
            r = await session.execute(
                select(MemoryDocument).where(MemoryDocument.context_id == context_id)
            )
            models = r.scalars().all()
            for model in models:
                memory = apply_memory_patch(
                    _to_memory(model), {"relations": {"context_id": None}}, now
                )
                _assign(model, _memory_values(memory))
            await session.commit()
            return len(models)
