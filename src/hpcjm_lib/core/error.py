# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout hpcjm.

All recoverable errors derive from `JMError`. Each exception carries an
associated exit code used by hpcjm commands to report failures consistently.
"""

from hpcjm_lib.core.config import CFG


class JMError(Exception):
    """Common exception type for all recoverable hpcjm errors."""

    exit_code = CFG.exit_codes.default


class JMConfigurationError(JMError):
    """
    Raised when a job, a job manager, or the system configuration is not usable,
    e.g. a missing scratch directory, binary or batch script.
    """

    pass


class JMDetectionError(JMError):
    """Raised when no job manager or no MPI implementation could be detected."""

    pass


class JMParseError(JMError):
    """Raised when the output of an external command cannot be parsed."""

    def __init__(self, message: str, text: str):
        super().__init__(message)
        # The raw text that could not be parsed.
        self.text = text


class JMExecutionError(JMError):
    """Raised when an external command fails."""

    def __init__(
        self,
        message: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int | None = None,
    ):
        super().__init__(message)
        # Standard output captured before the failure.
        self.stdout = stdout
        # Standard error output captured before the failure.
        self.stderr = stderr
        # Exit code of the command (None if it did not terminate on its own).
        self.returncode = returncode


class JMTimeoutError(JMExecutionError):
    """Raised when an external command exceeds its deadline."""

    pass


class JMIntegrityError(JMError):
    """Raised when an MPI installation does not match its manifest."""

    pass


class JMNotSupportedError(JMError):
    """Raised when a job manager does not provide the requested capability."""

    pass
