"""Secondary shaping of store results: sorting, pagination and relevance labels."""

from collections.abc import Sequence
from typing import TypeVar

from ..core.enums import Relevance, SortField, SortOrder
from ..core.schemas import Memory

T = TypeVar("T")

_SORT_KEYS = {
    SortField.CREATED_AT: lambda m: m.metadata.created_at,
    SortField.UPDATED_AT: lambda m: m.metadata.updated_at,
    SortField.IMPORTANCE: lambda m: m.metadata.importance,
    SortField.ACCESS_COUNT: lambda m: m.metadata.access_count,
}


def sort_memories(
    memories: Sequence[Memory],
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
) -> list[Memory]:
    """Sort by one field; ties keep the order they arrived in."""
    return sorted(
        memories,
        key=_SORT_KEYS[SortField(sort_by)],
        reverse=SortOrder(sort_order) == SortOrder.DESC,
    )


def paginate(items: Sequence[T], offset: int = 0, limit: int = 50) -> tuple[list[T], int]:
    """Return ``(page, total)`` where ``total`` is the pre-pagination count.

    An offset past the end yields an empty page rather than an error.
    """
    if offset < 0 or limit < 0:
        raise ValueError("offset and limit must be non-negative")
    return list(items[offset : offset + limit]), len(items)


def relevance_for(memory: Memory) -> Relevance:
    """Bucket a hit by importance: 4-5 high, 3 medium, 1-2 low."""
    importance = memory.metadata.importance
    if importance >= 4:
        return Relevance.HIGH
    if importance >= 3:
        return Relevance.MEDIUM
    return Relevance.LOW
