"""
Error taxonomy for function execution.

Handlers never raise these across their boundary; a failure is returned as a
FunctionResult carrying an ErrorKind. The only exception that escapes is
RegistryDriftError, and only at startup.
"""

from enum import Enum
from typing import Iterable


class ErrorKind(str, Enum):
    # Malformed, missing or out-of-range parameter; the caller can retry with corrected arguments
    VALIDATION = "validation"
    # A required semantic tab is absent from the store's sheet
    RESOLUTION = "resolution"
    # Spreadsheet or ranking call failed, timed out or returned non-success
    TRANSPORT = "transport"
    # Function name with no registered handler
    UNKNOWN_FUNCTION = "unknown_function"
    INTERNAL = "internal"


class FunctionEngineError(Exception):
    """Base class for configuration errors raised by the function engine."""
    pass


class RegistryDriftError(FunctionEngineError):
    """Declared functions and implemented handlers disagree."""

    def __init__(self, missing_handlers: Iterable[str] = (), undeclared_handlers: Iterable[str] = ()):
        self.missing_handlers = sorted(missing_handlers)
        self.undeclared_handlers = sorted(undeclared_handlers)
        parts = []
        if self.missing_handlers:
            parts.append(f"declared without a handler: {', '.join(self.missing_handlers)}")
        if self.undeclared_handlers:
            parts.append(f"handled but not declared: {', '.join(self.undeclared_handlers)}")
        super().__init__("Function registry drift - " + "; ".join(parts))
