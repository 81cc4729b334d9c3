"""
Function Definition Schema

Pydantic models describing invocable functions, the context a call runs in,
and the uniform result envelope every call produces.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from heysheets.core.errors import ErrorKind

ParameterType = Literal["string", "number", "integer", "boolean", "enum"]
StringFormat = Literal["email", "date", "time"]


class ParameterSpec(BaseModel):
    """Structural contract for a single parameter. Business rules do not belong here."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType
    description: str = ""
    required: bool = False
    enum: Optional[List[str]] = None
    default: Optional[Any] = None
    min_length: Optional[int] = Field(default=None, ge=1)
    format: Optional[StringFormat] = None

    @model_validator(mode="after")
    def _check_constraints(self) -> "ParameterSpec":
        if self.type == "enum" and not self.enum:
            raise ValueError(f"Parameter {self.name} is an enum but declares no allowed values")
        if self.type != "enum" and self.enum:
            raise ValueError(f"Parameter {self.name} declares allowed values but is typed {self.type}")
        if self.type != "string" and (self.min_length or self.format):
            raise ValueError(f"Parameter {self.name} declares string constraints but is typed {self.type}")
        return self

    def to_json_schema(self) -> Dict[str, Any]:
        if self.type == "enum":
            spec: Dict[str, Any] = {"type": "string", "enum": list(self.enum or [])}
        else:
            spec = {"type": self.type}
        if self.min_length:
            spec["minLength"] = self.min_length
        if self.format:
            spec["format"] = self.format
        if self.description:
            spec["description"] = self.description
        if self.default is not None:
            spec["default"] = self.default
        return spec


class FunctionDefinition(BaseModel):
    """
    A function the model layer may call.

    Definitions are immutable and shared read-only across every invocation.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique function identifier (snake_case)")
    description: str = Field(..., description="What the function does and when to use it")
    parameters: List[ParameterSpec] = Field(default_factory=list)
    side_effect: bool = Field(
        default=False,
        description="True when the function writes to the store"
    )
    max_execution_time_ms: int = Field(
        default=30000,
        description="Maximum execution time in milliseconds"
    )

    def get_parameter(self, name: str) -> Optional[ParameterSpec]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    @property
    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def to_openai_format(self) -> Dict[str, Any]:
        """Convert to OpenAI tools API format"""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {p.name: p.to_json_schema() for p in self.parameters},
                    "required": self.required_parameters,
                },
            },
        }

    def to_prompt_format(self) -> str:
        """Human-readable listing for classifiers without native function calling"""
        params_desc = []
        for param in self.parameters:
            param_str = f"  - {param.name} ({param.type}"
            if param.required:
                param_str += ", required"
            if param.format:
                param_str += f", {param.format}"
            param_str += f"): {param.description}"
            if param.enum:
                param_str += f" [options: {', '.join(param.enum)}]"
            params_desc.append(param_str)

        params_section = "\n".join(params_desc) if params_desc else "  (no parameters)"

        return f"""Function: {self.name}
Description: {self.description}
Parameters:
{params_section}
"""


class DetectedSchemaEntry(BaseModel):
    """Columns and inferred role of one physical tab, as detected at onboarding."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    columns: List[str] = Field(default_factory=list)
    role: Optional[str] = Field(default=None, alias="inferredRole")


class StoreConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: Optional[str] = None
    detected_schema: Dict[str, DetectedSchemaEntry] = Field(
        default_factory=dict,
        alias="detectedSchema",
    )


@dataclass(frozen=True)
class FunctionContext:
    """Everything a handler needs about the current turn. Built once, never mutated."""
    store_id: str
    auth_token: str
    store_config: StoreConfig
    request_id: Optional[str] = None

    @property
    def detected_schema(self) -> Dict[str, DetectedSchemaEntry]:
        return self.store_config.detected_schema


class FunctionResult(BaseModel):
    """Outcome of one function call: either success with data or failure with an error."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    function_name: Optional[str] = None
    execution_time_ms: int = 0

    @classmethod
    def ok(cls, data: Dict[str, Any], **kwargs) -> "FunctionResult":
        return cls(success=True, data=data, **kwargs)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.INTERNAL, **kwargs) -> "FunctionResult":
        return cls(success=False, error=error, error_kind=kind, **kwargs)

    def to_response(self) -> Dict[str, Any]:
        """The outbound envelope consumed by the response generator."""
        if self.success:
            return {"success": True, "data": self.data or {}}
        return {"success": False, "error": self.error or "Function execution failed"}

    def to_message_content(self) -> str:
        """Convert to string for an LLM message"""
        if self.success:
            return json.dumps(self.data, indent=2, default=str)
        return f"Error: {self.error}"
