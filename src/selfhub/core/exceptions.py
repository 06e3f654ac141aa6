"""Custom exception hierarchy for SelfHub."""


class SelfHubError(Exception):
    """Base exception for all SelfHub errors."""

    pass


# --- Storage errors ---


class StorageError(SelfHubError):
    """Base for storage-related errors."""

    pass


class StorageConnectionError(StorageError):
    """Failed to connect to a storage backend."""

    pass


class DuplicateKeyError(StorageError):
    """Attempted to create an entity whose id already exists."""

    def __init__(self, entity_id=None, message: str = "Duplicate id"):
        self.entity_id = entity_id
        super().__init__(f"{message}: {entity_id}" if entity_id else message)


# --- Lookup errors ---


class NotFoundError(SelfHubError):
    """Referenced entity does not exist."""

    def __init__(self, entity_id=None, message: str = "Not found"):
        self.entity_id = entity_id
        super().__init__(f"{message}: {entity_id}" if entity_id else message)


class MemoryNotFoundError(NotFoundError):
    """Requested memory does not exist."""

    def __init__(self, memory_id=None, message: str = "Memory not found"):
        super().__init__(memory_id, message)

    @property
    def memory_id(self):
        return self.entity_id


class ContextNotFoundError(NotFoundError):
    """Requested context does not exist."""

    def __init__(self, context_id=None, message: str = "Context not found"):
        super().__init__(context_id, message)

    @property
    def context_id(self):
        return self.entity_id


# --- Validation errors ---


class ValidationError(SelfHubError):
    """Input validation failed (bounds, enum values, required fields).

    ``errors`` holds the underlying pydantic error list when the failure
    came from schema validation.
    """

    def __init__(self, message: str, errors: list | None = None):
        self.errors = errors or []
        super().__init__(message)


class ConfigurationError(SelfHubError):
    """Application configuration is invalid or missing required values."""

    pass
