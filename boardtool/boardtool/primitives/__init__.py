"""boardtool primitives: stateless building blocks."""

from boardtool.primitives.errors import (
    ConfigurationError,
    ProcessError,
    RecipeError,
    ToolExecutionError,
)
from boardtool.primitives.process import (
    ProcessSession,
    SessionState,
    SignalChannel,
)
from boardtool.primitives.properties import PropertyStore
from boardtool.primitives.quoting import split_quoted

__all__ = [
    # Errors
    "ToolExecutionError",
    "ConfigurationError",
    "RecipeError",
    "ProcessError",
    # Properties
    "PropertyStore",
    "split_quoted",
    # Process
    "ProcessSession",
    "SessionState",
    "SignalChannel",
]
