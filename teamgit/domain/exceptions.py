"""Errors raised by the activity store and its backends."""


class ActivityStoreError(RuntimeError):
    """Base class for activity store failures."""


class ValidationError(ActivityStoreError):
    """Raised when an event or query is missing required information."""


class BackendUnavailable(ActivityStoreError):
    """Raised when the storage backend cannot be read or written."""


class ConfigurationError(ActivityStoreError):
    """Raised when the selected storage backend is not configured."""


__all__ = [
    "ActivityStoreError",
    "BackendUnavailable",
    "ConfigurationError",
    "ValidationError",
]
