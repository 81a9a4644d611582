"""
Exceptions raised by the session store.
"""


class StoreError(Exception):
    """Base exception for session store errors."""

    def __init__(self, message: str, operation: str = None):
        self.operation = operation
        super().__init__(message)


class ConstraintViolation(StoreError):
    """Enumerated-value, uniqueness or foreign-key violation on write."""
    pass


class NotFound(StoreError):
    """Referenced row does not exist."""

    def __init__(self, entity: str, entity_id: str, operation: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}", operation=operation)


class EncodingError(StoreError):
    """A structured field could not be encoded to or decoded from JSON."""
    pass


class StorageUnavailable(StoreError):
    """Engine-level I/O or connection failure, or the store is not open."""
    pass
