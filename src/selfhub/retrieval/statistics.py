"""Read-side aggregation over the memory and context collections."""

from collections import Counter
from collections.abc import Iterable, Sequence

from ..core.schemas import Context, HubStats, Memory, TagCount


def top_tags(memories: Iterable[Memory], limit: int = 10) -> list[TagCount]:
    """Most frequent tags, count descending then tag name ascending."""
    counts = Counter(tag for m in memories for tag in m.metadata.tags)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [TagCount(tag=tag, count=count) for tag, count in ranked[:limit]]


def compute_stats(
    memories: Sequence[Memory],
    contexts: Sequence[Context],
    tag_limit: int = 10,
) -> HubStats:
    """Totals, per-category and per-type counts (present values only) and top tags."""
    by_category = Counter(m.category.value for m in memories)
    by_type = Counter(m.type.value for m in memories)
    return HubStats(
        total_memories=len(memories),
        total_contexts=len(contexts),
        by_category=dict(by_category),
        by_type=dict(by_type),
        top_tags=top_tags(memories, tag_limit),
    )
