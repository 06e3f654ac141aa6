"""Core types and configuration for SelfHub."""

from .config import Settings, get_settings
from .enums import AccessLevel, ContextType, DataCategory, MemoryType, Relevance
from .schemas import Context, HubStats, Memory

__all__ = [
    "get_settings",
    "Settings",
    "AccessLevel",
    "ContextType",
    "DataCategory",
    "MemoryType",
    "Relevance",
    "Context",
    "HubStats",
    "Memory",
]
