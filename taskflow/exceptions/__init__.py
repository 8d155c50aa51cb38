"""
Error types and exception handlers.
"""
from .errors import (
    TaskflowError,
    ConfigurationError,
    StoreError,
    TaskNotFoundError,
    StoreValidationError,
    StoreAuthorizationError,
    TransientStoreError,
)

__all__ = [
    "TaskflowError",
    "ConfigurationError",
    "StoreError",
    "TaskNotFoundError",
    "StoreValidationError",
    "StoreAuthorizationError",
    "TransientStoreError",
]
