"""Core Pydantic schemas for memories, contexts, requests and summaries.

Field names are snake_case in Python and camelCase on the wire and in the
persisted document layout (``metadata.createdAt``, ``relations.contextId``).
"""

from datetime import UTC, datetime
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .enums import (
    AccessLevel,
    ContextType,
    DataCategory,
    MemoryType,
    Relevance,
    SortField,
    SortOrder,
)
from .exceptions import ValidationError

MAX_CONTENT_LENGTH = 50_000
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_TAG_LENGTH = 50
MAX_CONTEXT_NAME_LENGTH = 100
MAX_CONTEXT_DESCRIPTION_LENGTH = 500
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5
DEFAULT_IMPORTANCE = 3

Tag = Annotated[str, StringConstraints(min_length=1, max_length=MAX_TAG_LENGTH)]
Importance = Annotated[int, Field(ge=MIN_IMPORTANCE, le=MAX_IMPORTANCE)]

ModelT = TypeVar("ModelT", bound=BaseModel)


def utc_now() -> datetime:
    return datetime.now(UTC)


def _unique(values: list[str]) -> list[str]:
    """Drop repeated entries, keeping first-seen order."""
    return list(dict.fromkeys(values))


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Serialise to the persisted (camelCase, JSON-safe) layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def validate_model(model_cls: type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` into ``model_cls``, raising the SelfHub ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid {model_cls.__name__}: {e.error_count()} error(s)",
            errors=e.errors(include_url=False),
        ) from e


# --- Memory ---


class MemoryMetadata(_Document):
    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    tags: list[Tag] = Field(default_factory=list)
    source: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime | None = None
    importance: Importance = DEFAULT_IMPORTANCE
    access_count: int = Field(default=0, ge=0)
    last_accessed_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: list[str]) -> list[str]:
        return _unique(v)


class MemoryRelations(_Document):
    parent_id: str | None = None
    related_ids: list[str] = Field(default_factory=list)
    context_id: str | None = None


class MemoryPrivacy(_Document):
    encrypted: bool = False  # label only; content is stored as-is
    access_level: AccessLevel = AccessLevel.PRIVATE


class Memory(_Document):
    """A stored unit of information."""

    id: str = Field(min_length=1)
    type: MemoryType = MemoryType.LONG_TERM
    category: DataCategory = DataCategory.CUSTOM
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)
    metadata: MemoryMetadata = Field(default_factory=MemoryMetadata)
    relations: MemoryRelations | None = None
    privacy: MemoryPrivacy = Field(default_factory=MemoryPrivacy)

    @property
    def context_id(self) -> str | None:
        return self.relations.context_id if self.relations else None


# --- Context ---


class ContextMetadata(_Document):
    tags: list[Tag] = Field(default_factory=list)
    active: bool = False
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: list[str]) -> list[str]:
        return _unique(v)


class Context(_Document):
    """A named grouping of memories with an activation flag."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=MAX_CONTEXT_NAME_LENGTH)
    type: ContextType
    description: str | None = Field(default=None, max_length=MAX_CONTEXT_DESCRIPTION_LENGTH)
    memory_ids: list[str] = Field(default_factory=list)
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)

    @field_validator("memory_ids")
    @classmethod
    def _dedupe_memory_ids(cls, v: list[str]) -> list[str]:
        return _unique(v)


# --- Store-level filters ---


class MemoryFilter(BaseModel):
    """Conjunction of optional predicates; ``tags`` matches when ANY tag is present."""

    type: MemoryType | None = None
    category: DataCategory | None = None
    tags: list[str] | None = None
    context_id: str | None = None


class ContextFilter(BaseModel):
    type: ContextType | None = None
    active: bool | None = None


# --- Requests ---


class MemoryMetadataInput(_Document):
    """Caller-settable metadata; server-managed fields are not accepted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)
    tags: list[Tag] | None = None
    source: str | None = None
    expires_at: datetime | None = None
    importance: Importance | None = None


class CreateMemoryInput(_Document):
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)
    type: MemoryType = MemoryType.LONG_TERM
    category: DataCategory = DataCategory.CUSTOM
    metadata: MemoryMetadataInput = Field(default_factory=MemoryMetadataInput)
    context_id: str | None = None
    encrypt: bool = False
    access_level: AccessLevel = AccessLevel.PRIVATE


class UpdateMemoryInput(_Document):
    id: str
    content: str | None = Field(default=None, min_length=1, max_length=MAX_CONTENT_LENGTH)
    type: MemoryType | None = None
    category: DataCategory | None = None
    metadata: MemoryMetadataInput | None = None
    parent_id: str | None = None
    related_ids: list[str] | None = None
    access_level: AccessLevel | None = None


class ListMemoriesInput(_Document):
    type: MemoryType | None = None
    category: DataCategory | None = None
    tags: list[str] | None = None
    context_id: str | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


class SearchMemoriesInput(_Document):
    query: str = Field(min_length=1)
    type: MemoryType | None = None
    category: DataCategory | None = None
    tags: list[str] | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


class CreateContextInput(_Document):
    name: str = Field(min_length=1, max_length=MAX_CONTEXT_NAME_LENGTH)
    type: ContextType
    description: str | None = Field(default=None, max_length=MAX_CONTEXT_DESCRIPTION_LENGTH)
    tags: list[Tag] = Field(default_factory=list)
    memory_ids: list[str] = Field(default_factory=list)


class UpdateContextInput(_Document):
    id: str
    name: str | None = Field(default=None, min_length=1, max_length=MAX_CONTEXT_NAME_LENGTH)
    description: str | None = Field(default=None, max_length=MAX_CONTEXT_DESCRIPTION_LENGTH)
    tags: list[Tag] | None = None
    active: bool | None = None


# --- Responses ---


class MemoryPage(_Document):
    memories: list[Memory]
    total: int


class SearchHit(_Document):
    memory: Memory
    relevance: Relevance


class SearchResults(_Document):
    results: list[SearchHit]
    total: int


class TagCount(_Document):
    tag: str
    count: int


class HubStats(_Document):
    total_memories: int
    total_contexts: int
    by_category: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    top_tags: list[TagCount] = Field(default_factory=list)
