"""Error types for boardtool.

Two tiers:
- Hard errors (ConfigurationError, RecipeError) are raised while the command
  line is being built. No process exists yet and the call fails.
- ProcessError is raised once an attempt to run the tool has been made.
  Callers embed it in an otherwise successful result instead of failing.
"""

from typing import Optional


class ToolExecutionError(Exception):
    """Base exception for tool launch failures.

    Attributes:
        message: Error description.
        cause: Optional underlying exception being wrapped.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        """Initialize ToolExecutionError.

        Args:
            message: Description of the error.
            cause: Optional exception that triggered this error.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigurationError(ToolExecutionError):
    """Configuration error (missing field, unresolvable board or tool, etc).

    Attributes:
        message: Description of the error.
        field: Optional request field or property key that failed.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.field = field


class RecipeError(ToolExecutionError):
    """An expanded recipe could not be split into arguments.

    Attributes:
        message: Description of the error.
        pattern: The recipe pattern that produced the bad command line.
    """

    def __init__(self, message: str, pattern: Optional[str] = None):
        super().__init__(message)
        self.pattern = pattern


class ProcessError(ToolExecutionError):
    """Spawn, pipe allocation, wait or exit failure of the external tool."""
