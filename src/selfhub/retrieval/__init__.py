"""Result shaping and aggregation."""

from .query import paginate, relevance_for, sort_memories
from .statistics import compute_stats, top_tags

__all__ = ["paginate", "relevance_for", "sort_memories", "compute_stats", "top_tags"]
