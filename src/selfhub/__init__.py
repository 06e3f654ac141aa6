"""SelfHub: personal memory hub storage and query core."""

from .core.config import Settings, get_settings
from .core.exceptions import (
    ContextNotFoundError,
    DuplicateKeyError,
    MemoryNotFoundError,
    NotFoundError,
    SelfHubError,
    ValidationError,
)
from .core.schemas import Context, HubStats, Memory
from .memory.hub import SelfHub
from .storage.base import EntityStoreBase
from .storage.memory_store import InMemoryStore
from .storage.sql_store import SQLDocumentStore

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "get_settings",
    "ContextNotFoundError",
    "DuplicateKeyError",
    "MemoryNotFoundError",
    "NotFoundError",
    "SelfHubError",
    "ValidationError",
    "Context",
    "HubStats",
    "Memory",
    "SelfHub",
    "EntityStoreBase",
    "InMemoryStore",
    "SQLDocumentStore",
]
