"""Memory and context services."""

from .context_service import ContextService
from .hub import SelfHub
from .memory_service import MemoryService
from .relations import RelationManager

__all__ = ["ContextService", "SelfHub", "MemoryService", "RelationManager"]
