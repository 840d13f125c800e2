"""Exception types shared across the cortex package."""


class CortexError(Exception):
    """Base class for all cortex errors."""
    pass


class StorageError(CortexError):
    """Raised when a durable read or write fails."""
    pass


class SyncError(CortexError):
    """Raised when a graph API call fails. str() is the message shown to the user."""
    pass


class ValidationError(CortexError):
    """Raised when node fields fail validation."""
    pass


class ConfigError(CortexError):
    """Raised when configuration is unreadable or invalid."""
    pass
