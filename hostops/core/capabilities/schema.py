"""
Argument validation against a capability's parameter list

Arguments are checked and coerced before any executor code runs:
- unknown argument names are rejected
- required parameters must be present
- every present value must match its declared kind (Numbers must be finite)
- Number values outside declared [minimum, maximum] raise ValidationError
- path-like String values go through the path rules (ValidationError)
- omitted optional parameters take their declared default, if any
"""

import logging
import math
from typing import Any, Dict, List, Union

from hostops.core.capabilities.exceptions import InvalidArguments
from hostops.core.capabilities.models import CapabilityDefinition, ParameterKind, ParameterSpec
from hostops.core.capabilities.runner_base.validation import validate_number_range, validate_path

logger = logging.getLogger(__name__)


def validate_arguments(definition: CapabilityDefinition, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and coerce call arguments

    Args:
        definition: Capability definition carrying the parameter list
        arguments: Decoded call arguments

    Returns:
        New dict with coerced values and defaults filled in

    Raises:
        InvalidArguments: On unknown, missing or mistyped arguments
        ValidationError: On an unsafe path or a Number outside its bounds
    """
    known = {p.name for p in definition.parameters}
    unknown = [key for key in arguments if key not in known]
    if unknown:
        raise InvalidArguments(
            f"unknown parameter(s) for {definition.name}: {', '.join(sorted(unknown))}"
        )

    missing = [p.name for p in definition.parameters if p.required and arguments.get(p.name) is None]
    if missing:
        raise InvalidArguments(
            f"missing required parameter(s) for {definition.name}: {', '.join(missing)}"
        )

    validated: Dict[str, Any] = {}
    for param in definition.parameters:
        value = arguments.get(param.name)
        if value is None:
            if param.default is not None:
                validated[param.name] = param.default
            continue
        validated[param.name] = _coerce(param, value)

    logger.debug(f"Validated {len(validated)} argument(s) for {definition.name}")
    return validated


def _coerce(param: ParameterSpec, value: Any) -> Any:
    if param.kind == ParameterKind.STRING:
        if not isinstance(value, str):
            raise InvalidArguments(f"'{param.name}' must be a string, got {_type_name(value)}")
        if param.path_like:
            return validate_path(value, param.name)
        return value

    if param.kind == ParameterKind.BOOLEAN:
        if not isinstance(value, bool):
            raise InvalidArguments(f"'{param.name}' must be a boolean, got {_type_name(value)}")
        return value

    # Number: bool is a subclass of int and is rejected explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArguments(f"'{param.name}' must be a number, got {_type_name(value)}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidArguments(f"'{param.name}' must be a finite number, got {value}")
    number = _normalize_number(value)
    return validate_number_range(number, param.name, param.minimum, param.maximum)


def _normalize_number(value: Union[int, float]) -> Union[int, float]:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def describe_parameters(definition: CapabilityDefinition) -> List[str]:
    """One line per parameter, used by the CLI listing"""
    lines = []
    for p in definition.parameters:
        flag = "required" if p.required else "optional"
        bounds = ""
        if p.minimum is not None or p.maximum is not None:
            lo = "" if p.minimum is None else f"{p.minimum:g}"
            hi = "" if p.maximum is None else f"{p.maximum:g}"
            bounds = f" [{lo}..{hi}]"
        lines.append(f"{p.name}: {p.kind.value}{bounds} ({flag})")
    return lines
