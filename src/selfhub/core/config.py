"""Configuration management with pydantic-settings."""

import re
from functools import lru_cache

from pydantic import BaseModel as PydanticBaseModel
from pydantic import Field
from pydantic_settings import BaseSettings

from .enums import StorageBackend


def ensure_async_driver(url: str) -> str:
    """Normalise a database URL to an async driver.

    ``postgresql://`` and any ``postgresql+<driver>://`` variant become
    ``postgresql+asyncpg://``; plain ``sqlite://`` becomes ``sqlite+aiosqlite://``.
    URLs that already name an async driver are returned unchanged.
    """
    if "+asyncpg" in url or "+aiosqlite" in url:
        return url
    if url.startswith("sqlite"):
        return re.sub(r"^sqlite(\+\w+)?://", "sqlite+aiosqlite://", url)
    return re.sub(r"^postgresql(\+\w+)?://", "postgresql+asyncpg://", url)


class StorageSettings(PydanticBaseModel):
    """Storage backend selection (nested; STORAGE__BACKEND, STORAGE__DATABASE_URL, ...)."""

    backend: StorageBackend = Field(default=StorageBackend.MEMORY)
    database_url: str = Field(default="sqlite+aiosqlite:///selfhub.db")
    echo: bool = Field(default=False)
    cascade_deletes: bool = Field(
        default=False,
        description="Remove dangling cross-references when a memory or context is deleted.",
    )


class QuerySettings(PydanticBaseModel):
    """Default page sizes for listing and search."""

    list_limit: int = Field(default=50, ge=1)
    search_limit: int = Field(default=10, ge=1)
    search_candidate_limit: int = Field(default=100, ge=1)
    top_tags: int = Field(default=10, ge=1)


class LoggingSettings(PydanticBaseModel):
    level: str = Field(default="INFO")
    json_output: bool = Field(default=True)


class Settings(BaseSettings):
    """Application settings with nested configuration."""

    app_name: str = Field(default="selfhub")

    storage: StorageSettings = Field(default_factory=StorageSettings)
    query: QuerySettings = Field(default_factory=QuerySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = {
        "env_file": ".env",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings.

    Call ``get_settings.cache_clear()`` after overriding environment variables;
    an autouse fixture in ``tests/conftest.py`` does this after each test.
    """
    return Settings()
