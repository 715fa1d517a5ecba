"""Exceptions raised by the git operations layer.

Categories:

- resolution errors: no usable credential for a remote that needs one
- structural errors: the repository is not in a supported shape
- timeout errors: a bounded git command ran past its deadline
- execution errors: git ran to completion but reported failure
"""

from auto_mr.security.sanitize import SanitizedError, sanitize_string
from auto_mr.timeutil import format_duration


class VCSError(Exception):
    """Base exception for all VCS-related errors."""


class NotARepositoryError(VCSError):
    """Raised when a directory is not inside a git repository."""


class AuthenticationSetupError(VCSError):
    """Raised when authentication for the remote cannot be set up."""


class NoSSHIdentityError(AuthenticationSetupError):
    """Raised when an SSH remote is used but no SSH identity is available."""


class StructuralError(VCSError):
    """Raised when the repository shape does not allow an operation."""


class DetachedHeadError(StructuralError):
    """Raised when HEAD is not pointing to a branch."""


class RemoteNotFoundError(StructuralError):
    """Raised when a remote does not exist or has no URLs."""


class BranchNotFoundError(StructuralError):
    """Raised when a branch does not exist."""


class MainBranchNotFoundError(StructuralError):
    """Raised when the main branch cannot be determined."""


class UnsupportedPlatformError(StructuralError):
    """Raised when the remote is hosted on neither GitLab nor GitHub."""


class VCSOperationError(VCSError):
    """Raised when a VCS operation fails."""


class GitCommandError(VCSOperationError, SanitizedError):
    """Raised when a git command exits with a non-zero status.

    The message holds the sanitized combined output of the command.
    """

    def __init__(self, operation: str, returncode: int | None, output: str) -> None:
        """Initialize command error.

        Args:
            operation: Name of the failed operation, e.g. "pull"
            returncode: Exit status of the command (None if it never started)
            output: Raw combined stdout/stderr; sanitized before it is stored
        """
        self.operation = operation
        self.returncode = returncode
        self.output = sanitize_string(output)
        super().__init__(
            sanitize_string(f"failed to {operation}: exit status {returncode}\nOutput: {output}")
        )


class GitTimeoutError(VCSError):
    """Raised when a git command exceeds its deadline.

    Kept distinct from :class:`GitCommandError` so callers can tell
    "the remote looked unresponsive" apart from "git rejected the operation".
    """

    def __init__(self, operation: str, timeout: float, cause: BaseException | None = None) -> None:
        """Initialize timeout error.

        Args:
            operation: Name of the operation that timed out
            timeout: Deadline that was applied, in seconds
            cause: Underlying cancellation error
        """
        self.operation = operation
        self.timeout = timeout
        self.cause = cause

        msg = f"git {operation} operation timed out after {format_duration(timeout)}"
        detail = str(cause) if cause is not None else ""
        if detail:
            msg = f"{msg}: {sanitize_string(detail)}"
        super().__init__(msg)
