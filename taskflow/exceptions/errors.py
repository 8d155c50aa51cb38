"""
Error taxonomy for the taskflow service.

Configuration errors are fatal at startup. Store errors are split so that
only transient failures are retried by the store's retry policy.
"""
from typing import Optional


class TaskflowError(Exception):
    """Base class for all taskflow errors."""


class ConfigurationError(TaskflowError):
    """Missing or invalid configuration (credentials, numeric settings)."""


class StoreError(TaskflowError):
    """Base class for failures reported by the task store."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class TaskNotFoundError(StoreError):
    """The requested task (page) does not exist or is not shared with the integration."""


class StoreValidationError(StoreError):
    """The store rejected the request as invalid."""


class StoreAuthorizationError(StoreError):
    """The store rejected the credentials."""


class TransientStoreError(StoreError):
    """Network, rate-limit or server-side failure; safe to retry."""
