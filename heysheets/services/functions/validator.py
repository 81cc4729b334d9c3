"""
Parameter Validator - structural validation of model-generated arguments

Checks presence, primitive type, enum membership and simple string
constraints (minimum length, email/date/time format). Errors accumulate so one
response can tell the caller everything it has to fix. Unknown keys are
ignored; the model routinely over-generates fields.

A string that is empty or only whitespace counts as missing: models fill
fields they could not extract with "" rather than leaving them out.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import EmailStr, TypeAdapter, ValidationError

from heysheets.services.functions.schema import FunctionDefinition, ParameterSpec

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        return f"Invalid parameters: {'; '.join(self.errors)}"


_TYPE_MAP = {
    "string": str,
    "number": (int, float),
    "integer": int,
    "boolean": bool,
    "enum": str,
}

# format -> (strptime pattern, human description)
_DATETIME_FORMATS = {
    "date": ("%Y-%m-%d", "a date in YYYY-MM-DD format"),
    "time": ("%H:%M", "a time in HH:MM format"),
}


def _check_type(value: Any, expected: str) -> bool:
    """Check a value against a declared primitive type. bool never passes as a number."""
    if expected in ("number", "integer") and isinstance(value, bool):
        return False
    expected_types = _TYPE_MAP.get(expected)
    if expected_types is None:
        return True
    return isinstance(value, expected_types)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_string(spec: ParameterSpec, value: str) -> Optional[str]:
    """Return an error for a string that breaks its declared constraints, or None."""
    if spec.min_length and len(value.strip()) < spec.min_length:
        return f"{spec.name}: must be at least {spec.min_length} characters"

    if spec.format == "email":
        try:
            _email_adapter.validate_python(value.strip())
        except ValidationError:
            return f"{spec.name}: must be a valid email address"
    elif spec.format in _DATETIME_FORMATS:
        pattern, description = _DATETIME_FORMATS[spec.format]
        try:
            datetime.strptime(value.strip(), pattern)
        except ValueError:
            return f"{spec.name}: must be {description}"

    return None


def validate_params(
    schema: Union[FunctionDefinition, Iterable[ParameterSpec]],
    raw_params: Any,
) -> ValidationResult:
    """
    Validate raw arguments against a function's parameter schema.

    Args:
        schema: A FunctionDefinition or its list of ParameterSpecs
        raw_params: Arguments as produced by the model layer

    Returns:
        ValidationResult with the declared parameters (defaults applied) or every error found
    """
    specs = schema.parameters if isinstance(schema, FunctionDefinition) else list(schema)

    if raw_params is None:
        raw_params = {}
    if not isinstance(raw_params, Mapping):
        return ValidationResult(
            valid=False,
            errors=[f"parameters must be an object, got {type(raw_params).__name__}"],
        )

    errors: List[str] = []
    data: Dict[str, Any] = {}

    for spec in specs:
        value = raw_params.get(spec.name)

        if _is_blank(value):
            if spec.required:
                errors.append(f"{spec.name}: required parameter is missing")
            elif spec.default is not None:
                data[spec.name] = spec.default
            continue

        if not _check_type(value, spec.type):
            expected = "string" if spec.type == "enum" else spec.type
            errors.append(f"{spec.name}: expected {expected}, got {type(value).__name__}")
            continue

        if spec.type == "enum" and value not in (spec.enum or []):
            errors.append(f"{spec.name}: must be one of: {', '.join(spec.enum or [])}")
            continue

        if spec.type == "string":
            error = _check_string(spec, value)
            if error:
                errors.append(error)
                continue
            value = value.strip()

        data[spec.name] = value

    declared = {spec.name for spec in specs}
    ignored = [key for key in raw_params if key not in declared]
    if ignored:
        logger.debug(f"Ignoring undeclared parameters: {', '.join(map(str, ignored))}")

    if errors:
        return ValidationResult(valid=False, errors=errors)
    return ValidationResult(valid=True, data=data)
