"""
SFTP Deploy Exception Hierarchy

Every hard failure of a deployment derives from SFTPDeployError so the CLI
can report it uniformly. CleanupWarning is only ever logged.
"""

from typing import Optional


class SFTPDeployError(Exception):
    """Base exception for all SFTP Deploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigValidationError(SFTPDeployError):
    """Raised when a required input is missing or an input is malformed."""

    pass


class ToolNotFoundError(SFTPDeployError):
    """Raised when a required executable is not on PATH."""

    pass


class SourceNotFoundError(SFTPDeployError):
    """Raised when the local source directory does not exist."""

    pass


class CredentialSetupError(SFTPDeployError):
    """Raised when the private key cannot be materialized."""

    pass


class TransferError(SFTPDeployError):
    """Raised when the sftp client fails to start or exits non-zero."""

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        self.returncode = returncode
        super().__init__(message, context=context)


class CleanupWarning(UserWarning):
    """A temporary artifact could not be removed. Logged, never raised."""

    pass
