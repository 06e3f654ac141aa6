"""Core enums for memory and context fields."""

from enum import Enum


class MemoryType(str, Enum):
    """Retention class of a memory."""

    SHORT_TERM = "short-term"
    LONG_TERM = "long-term"
    CONTEXTUAL = "contextual"


class DataCategory(str, Enum):
    """Fixed set of categories a memory can be filed under."""

    PERSONAL = "personal"
    PROFESSIONAL = "professional"
    LEARNING = "learning"
    PROJECTS = "projects"
    CONVERSATIONS = "conversations"
    DOCUMENTS = "documents"
    CODE = "code"
    TASKS = "tasks"
    CONTACTS = "contacts"
    TIMELINE = "timeline"
    CUSTOM = "custom"


class AccessLevel(str, Enum):
    """Stored privacy label (not enforced)."""

    PRIVATE = "private"
    SHARED = "shared"
    PUBLIC = "public"


class ContextType(str, Enum):
    """Kind of grouping a context represents."""

    PROJECT = "project"
    CONVERSATION = "conversation"
    TOPIC = "topic"
    TEMPORAL = "temporal"


class SortField(str, Enum):
    """Memory fields a listing can be ordered by."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    IMPORTANCE = "importance"
    ACCESS_COUNT = "accessCount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Relevance(str, Enum):
    """Coarse label attached to search hits."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StorageBackend(str, Enum):
    """Persistence strategy selected at startup."""

    MEMORY = "memory"
    SQL = "sql"
