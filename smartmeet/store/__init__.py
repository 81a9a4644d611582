"""Session store package: models, schemas and the SQLite-backed repository."""

from smartmeet.store.errors import (
    StoreError,
    ConstraintViolation,
    NotFound,
    EncodingError,
    StorageUnavailable
)
from smartmeet.store.repo import SessionStore

__all__ = [
    'SessionStore',
    'StoreError',
    'ConstraintViolation',
    'NotFound',
    'EncodingError',
    'StorageUnavailable',
]
