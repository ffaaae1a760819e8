"""
Dayleaf exception hierarchy.

All dayleaf exceptions inherit from DayleafError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class DayleafError(Exception):
    """Base exception class for all dayleaf errors."""


class ConfigurationError(DayleafError):
    """Raised for configuration errors (missing keys, invalid values)."""


class PersistenceError(DayleafError):
    """Raised when a diary backend fails to read or write entries."""

    def __init__(self, message: str, *, operation: str = "write", path: str = ""):
        super().__init__(message)
        self.operation = operation
        self.path = path


class PersistencePermissionError(PersistenceError):
    """Raised when the backend rejects a read or write as unauthorized.

    ``operation`` is ``"list"`` for reads and ``"write"`` for writes;
    ``path`` names the collection or storage key that was targeted.
    """


class ImportFormatError(DayleafError):
    """Raised when an import file cannot be parsed as JSON."""


class PromptGenerationError(DayleafError):
    """Raised for writing-prompt generation failures."""


class AuthenticationError(DayleafError):
    """Raised for password gate errors."""
