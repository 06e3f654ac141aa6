"""Storage layer: abstract entity store, in-memory and SQL document backends."""

from .base import EntityStoreBase
from .connection import DatabaseManager, create_store
from .memory_store import InMemoryStore
from .models import Base, ContextDocument, MemoryDocument
from .sql_store import SQLDocumentStore

__all__ = [
    "EntityStoreBase",
    "DatabaseManager",
    "create_store",
    "InMemoryStore",
    "Base",
    "ContextDocument",
    "MemoryDocument",
    "SQLDocumentStore",
]
