"""
Data models for capability definitions and the call/result envelope

Models:
- ParameterKind: Closed type tag for capability parameters
- ParameterSpec: One parameter of a capability schema
- CapabilityDefinition: Name, description and ordered parameter list
- CapabilityCall: Request to invoke a capability (wire envelope)
- CapabilityResult: Result of an invocation (wire envelope)
- InvocationContext: Per-invocation execution bounds handed to executors
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from hostops.core.capabilities.exceptions import InvalidArguments


class ParameterKind(str, Enum):
    """Type tag for a capability parameter"""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class ParameterSpec(BaseModel):
    """Schema entry for one capability parameter"""

    name: str = Field(description="Parameter name")
    kind: ParameterKind = Field(description="Parameter type")
    required: bool = Field(default=False, description="Whether the parameter must be supplied")
    description: str = Field(default="", description="Human-readable description")

    # Numeric bounds (Number parameters only)
    minimum: Optional[float] = Field(default=None, description="Inclusive lower bound")
    maximum: Optional[float] = Field(default=None, description="Inclusive upper bound")

    # Optional default applied when the argument is omitted
    default: Optional[Union[bool, int, float, str]] = Field(default=None)

    # Path-like String parameters are checked against the path rules
    path_like: bool = Field(default=False)


class CapabilityDefinition(BaseModel):
    """
    Schema-described capability

    The name is the unique registry key. Parameters are kept in declaration
    order so listings and help output are stable.
    """

    name: str = Field(description="Unique capability name, e.g. 'fs-cat'")
    description: str = Field(description="What the capability does")
    parameters: List[ParameterSpec] = Field(default_factory=list)

    read_only: bool = Field(
        default=True,
        description="Read-only capabilities are safe to repeat and never mutate the host"
    )
    timeout_seconds: float = Field(default=30.0, gt=0, description="Default invocation timeout")

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> "CapabilityDefinition":
        seen = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(f"Duplicate parameter '{param.name}' in {self.name}")
            seen.add(param.name)
        return self

    def get_parameter(self, name: str) -> Optional[ParameterSpec]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def to_tool_schema(self) -> Dict[str, Any]:
        """Render as a JSON-schema style function description"""
        properties = {}
        for param in self.parameters:
            prop: Dict[str, Any] = {"type": param.kind.value, "description": param.description}
            if param.minimum is not None:
                prop["minimum"] = param.minimum
            if param.maximum is not None:
                prop["maximum"] = param.maximum
            properties[param.name] = prop
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": [p.name for p in self.parameters if p.required],
            },
        }


class CapabilityCall(BaseModel):
    """
    Request to invoke a capability

    ``arguments`` is either a structured object or its JSON text form, as
    received from a process boundary. Decoding happens at dispatch time so a
    malformed payload becomes a soft error instead of a construction failure.
    """

    id: str = Field(description="Call identifier, echoed back by callers")
    name: str = Field(description="Capability name")
    arguments: Union[Dict[str, Any], str] = Field(default_factory=dict)

    def decoded_arguments(self) -> Dict[str, Any]:
        """
        Return arguments as a dict

        Raises:
            InvalidArguments: If the JSON text is malformed or not an object
        """
        if isinstance(self.arguments, dict):
            return dict(self.arguments)

        text = self.arguments.strip()
        if not text:
            return {}
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise InvalidArguments(f"arguments are not valid JSON: {e.msg}") from e
        if not isinstance(value, dict):
            raise InvalidArguments("arguments must be a JSON object")
        return value


class CapabilityResult(BaseModel):
    """
    Result envelope for one capability invocation

    Exactly one of ``result`` and ``error`` is populated.
    """

    name: str
    result: Optional[Any] = None
    error: Optional[str] = None
    call_id: Optional[str] = None
    duration_ms: int = 0

    @model_validator(mode="after")
    def _exactly_one(self) -> "CapabilityResult":
        if (self.result is None) == (self.error is None):
            raise ValueError("CapabilityResult requires exactly one of result or error")
        return self

    @field_validator("error")
    @classmethod
    def _non_empty_error(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return "unknown error"
        return v

    @classmethod
    def ok(cls, name: str, result: Any, call_id: Optional[str] = None) -> "CapabilityResult":
        return cls(name=name, result=result, call_id=call_id)

    @classmethod
    def failed(cls, name: str, error: str, call_id: Optional[str] = None) -> "CapabilityResult":
        return cls(name=name, error=error, call_id=call_id)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_wire(self) -> Dict[str, Any]:
        """Wire form: {name, result, error}"""
        return {"name": self.name, "result": self.result, "error": self.error}


class InvocationContext(BaseModel):
    """Execution bounds for one invocation"""

    call_id: str
    timeout_seconds: float = Field(gt=0)
