"""Custom exceptions for devvm."""

from devvm.utils import exit_status


class DevVMError(RuntimeError):
    """Base class for errors that end a devvm invocation."""

    exit_code = 1


class UsageError(DevVMError):
    """Raised on a missing argument or an unrecognized command."""


class PreconditionError(DevVMError):
    """Raised when the host or working directory is not ready for a command."""


class DelegatedCommandError(DevVMError):
    """Raised when an external tool fails and devvm cannot continue."""

    def __init__(self, message: str, returncode: int) -> None:
        super().__init__(message)
        self.exit_code = exit_status(returncode) or 1
