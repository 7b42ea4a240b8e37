"""
Exception hierarchy for relengindex.

Expected steady states (no manifest, no pom.xml, checking disabled) are never
reported through exceptions. These cover genuine faults only:
- MapFileError: a map document could not be read
- StorageError: a workspace resource could not be read or written
- VcsError: a version-control operation failed
- OperationCanceled: a long-running operation was interrupted by the caller
- ConfigError: a configuration value is not allowed
"""


class RelengError(Exception):
    """Base class for all relengindex errors."""


class StorageError(RelengError):
    """Raised when a workspace resource cannot be read or written."""

    def __init__(self, path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class MapFileError(StorageError):
    """Raised when a map document cannot be loaded."""


class VcsError(RelengError):
    """Raised when a version-control command fails."""

    def __init__(self, message: str, returncode: int = -1, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class OperationCanceled(RelengError):
    """Raised when the caller cancels a long-running operation."""


class ConfigError(RelengError, ValueError):
    """Raised when a configuration value is not allowed."""
