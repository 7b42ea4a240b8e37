"""
Standard exit codes for relengindex commands.

Following Unix/POSIX conventions for command-line tools.
"""
# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_MAPPED = 64          # Project has no map entry
VCS_ERROR = 65           # Version-control command failed
CONFIG_ERROR = 66        # Configuration file error
STORAGE_ERROR = 67       # Workspace file could not be read or written
PROBLEMS_FOUND = 72      # Validation reported diagnostics
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'StorageError': STORAGE_ERROR,
    'MapFileError': STORAGE_ERROR,
    'VcsError': VCS_ERROR,
    'OperationCanceled': INTERRUPTED,
    'ConfigError': CONFIG_ERROR,
    'ValueError': USAGE_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class NotMappedError(CommandError):
    """Raised when a project has no entry in any map file."""
    def __init__(self, project: str):
        super().__init__(f"No map entry for {project}", NOT_MAPPED)
        self.project = project

