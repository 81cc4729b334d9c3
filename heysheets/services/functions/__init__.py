"""
Function Calling Engine for HeySheets store assistants

This package turns a classified intent (function name + model arguments) into
a uniform result envelope, reading and writing the store's spreadsheet.

Main components:
- schema.py: Pydantic models for definitions, context and results
- definitions.py: The declared catalog of invocable functions
- registry.py: Versioned lookup of definitions
- validator.py: Structural argument validation with defaults
- resolver.py: Semantic role to physical tab resolution
- executor.py: Dispatch, timeouts and failure-to-envelope conversion
  (import it from its module; it depends on the service clients)
- store_tools.py, lead_tools.py, booking_tools.py, recommendation_tools.py: Handlers
"""

from heysheets.services.functions.schema import (
    FunctionContext,
    FunctionDefinition,
    FunctionResult,
    ParameterSpec,
    StoreConfig,
)
from heysheets.services.functions.registry import function_registry, FunctionRegistry
from heysheets.services.functions.validator import validate_params, ValidationResult
from heysheets.services.functions.resolver import resolve_tab

__all__ = [
    "FunctionContext",
    "FunctionDefinition",
    "FunctionResult",
    "ParameterSpec",
    "StoreConfig",
    "function_registry",
    "FunctionRegistry",
    "validate_params",
    "ValidationResult",
    "resolve_tab",
]
