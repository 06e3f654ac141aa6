"""Shared storage utilities: datetime normalisation, patch merging and match predicates."""

from datetime import datetime, timezone
from typing import Any, Optional

from ..core.exceptions import ValidationError
from ..core.schemas import (
    Context,
    ContextFilter,
    Memory,
    MemoryFilter,
    utc_now,
    validate_model,
)

_MEMORY_SCALARS = frozenset({"content", "type", "category"})
_MEMORY_GROUPS = frozenset({"metadata", "relations", "privacy"})
_CONTEXT_SCALARS = frozenset({"name", "type", "description", "memory_ids"})
_CONTEXT_GROUPS = frozenset({"metadata"})


def naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    if dt is None:
        return None
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _merge(
    data: dict[str, Any],
    patch: dict[str, Any],
    scalars: frozenset[str],
    groups: frozenset[str],
) -> dict[str, Any]:
    for key, value in patch.items():
        if key in groups:
            data[key] = {**(data.get(key) or {}), **(value or {})}
        elif key in scalars:
            data[key] = value
        else:
            raise ValidationError(f"Field cannot be updated: {key}")
    return data


def apply_memory_patch(
    memory: Memory, patch: dict[str, Any], now: datetime | None = None
) -> Memory:
    """Return ``memory`` with ``patch`` merged in and ``updatedAt`` refreshed.

    The result is fully re-validated, so a patch that pushes a field out of
    bounds raises ValidationError instead of being clamped.
    """
    data = _merge(memory.model_dump(), patch, _MEMORY_SCALARS, _MEMORY_GROUPS)
    data["metadata"]["updated_at"] = now or utc_now()
    return validate_model(Memory, data)


def apply_context_patch(
    context: Context, patch: dict[str, Any], now: datetime | None = None
) -> Context:
    """Context counterpart of :func:`apply_memory_patch`."""
    data = _merge(context.model_dump(), patch, _CONTEXT_SCALARS, _CONTEXT_GROUPS)
    data["metadata"]["updated_at"] = now or utc_now()
    return validate_model(Context, data)


def touch_memory(memory: Memory, now: datetime | None = None) -> Memory:
    """Record one read: bump accessCount, set lastAccessedAt and updatedAt."""
    now = now or utc_now()
    metadata = memory.metadata.model_copy(
        update={
            "access_count": memory.metadata.access_count + 1,
            "last_accessed_at": now,
            "updated_at": now,
        }
    )
    return memory.model_copy(update={"metadata": metadata})


def memory_matches_filter(memory: Memory, filters: MemoryFilter | None) -> bool:
    if filters is None:
        return True
    if filters.type is not None and memory.type != filters.type:
        return False
    if filters.category is not None and memory.category != filters.category:
        return False
    if filters.tags and not any(tag in memory.metadata.tags for tag in filters.tags):
        return False
    if filters.context_id is not None and memory.context_id != filters.context_id:
        return False
    return True


def memory_matches_query(memory: Memory, query: str) -> bool:
    """Case-insensitive substring match against content, title, description or any tag."""
    needle = query.lower()
    meta = memory.metadata
    return (
        needle in memory.content.lower()
        or (meta.title is not None and needle in meta.title.lower())
        or (meta.description is not None and needle in meta.description.lower())
        or any(needle in tag.lower() for tag in meta.tags)
    )


def context_matches_filter(context: Context, filters: ContextFilter | None) -> bool:
    if filters is None:
        return True
    if filters.type is not None and context.type != filters.type:
        return False
    if filters.active is not None and context.metadata.active != filters.active:
        return False
    return True
