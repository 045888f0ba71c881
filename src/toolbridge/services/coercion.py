"""Conversion of loosely-typed wire values into the types tool parameters declare."""

from __future__ import annotations

import functools
import json
import math
from enum import Enum
import typing
from typing import Any, Literal

from pydantic import TypeAdapter, ValidationError

from toolbridge.core.errors import InvalidArgument
from toolbridge.services.registry.descriptor import (
    EMPTY,
    Parameter,
    is_union,
    strip_optional,
    unwrap_annotated,
)

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}

# Parameters with this name accept a structured value and receive its JSON text
JSON_PARAMETER_NAME = "json"


class WireKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def wire_kind(value: Any) -> WireKind:
    """Classify a parsed-JSON value."""
    if value is None:
        return WireKind.NULL
    if isinstance(value, bool):
        return WireKind.BOOL
    if isinstance(value, (int, float)):
        return WireKind.NUMBER
    if isinstance(value, str):
        return WireKind.STRING
    if isinstance(value, (list, tuple)):
        return WireKind.ARRAY
    if isinstance(value, dict):
        return WireKind.OBJECT
    raise TypeError(f"Not a wire value: {type(value).__name__}")


def to_wire_text(value: Any) -> str:
    """Text form of a wire value: strings verbatim, everything else as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
    raise ValueError(f"expected boolean, got {to_wire_text(value)!r}")


def parse_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected integer, got boolean {value}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValueError(f"expected integer, got {value}")
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            number = float(text)  # accepts "5.0"
            if not number.is_integer():
                raise ValueError(f"expected integer, got {value!r}") from None
            return int(number)
    raise ValueError(f"expected integer, got {to_wire_text(value)!r}")


def parse_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected number, got boolean {value}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        number = float(value.strip())
        if math.isnan(number):
            raise ValueError("expected number, got NaN")
        return number
    raise ValueError(f"expected number, got {to_wire_text(value)!r}")


def parse_str(value: Any, parameter_name: str) -> str:
    if isinstance(value, str):
        return value
    if wire_kind(value) in (WireKind.ARRAY, WireKind.OBJECT):
        if parameter_name.lower() == JSON_PARAMETER_NAME:
            return json.dumps(value, ensure_ascii=False)
        raise ValueError("expected string, got a structured JSON value")
    return to_wire_text(value)


def parse_enum(value: Any, enum_type: type[Enum]) -> Enum:
    for member in enum_type:
        if member.value == value:
            return member
    members = list(enum_type)
    if isinstance(value, str):
        text = value.strip()
        for member in members:
            if member.name.lower() == text.lower():
                return member
        # Numeric enum values sent as text
        for member in members:
            if isinstance(member.value, (int, float)) and not isinstance(member.value, bool):
                try:
                    if parse_float(text) == member.value:
                        return member
                except ValueError:
                    break
    choices = ", ".join(repr(m.value) for m in members)
    raise ValueError(f"expected one of {choices}, got {to_wire_text(value)!r}")


@functools.lru_cache(maxsize=256)
def _adapter_for(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


def _type_adapter(annotation: Any) -> TypeAdapter:
    try:
        return _adapter_for(annotation)
    except TypeError:  # unhashable annotation
        return TypeAdapter(annotation)


def parse_structured(value: Any, annotation: Any, semantic: str) -> Any:
    """Deserialize into a composite type, parsing JSON text first when needed."""
    adapter = _type_adapter(annotation)
    if isinstance(value, str) and (semantic == "object" or semantic.endswith("[]")):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            # Unions such as int | str may still accept the raw text
            if not is_union(annotation):
                raise ValueError(f"expected JSON text for {semantic}: {e}") from None
    try:
        return adapter.validate_python(value)
    except ValidationError as e:
        details = "; ".join(err["msg"] for err in e.errors()[:3])
        raise ValueError(f"cannot convert to {semantic}: {details}") from None


def zero_value(parameter: Parameter) -> Any:
    """Value used when an argument is not supplied."""
    if parameter.has_default:
        return parameter.default
    return {
        "integer": 0,
        "number": 0.0,
        "boolean": False,
    }.get(parameter.type)


def coerce_argument(parameter: Parameter, value: Any, tool_name: str) -> Any:
    """Convert one wire value to the parameter's declared type.

    ``None`` (absent or JSON null) yields ``zero_value``. Any conversion failure
    is raised as ``InvalidArgument`` naming the parameter.
    """
    if value is None:
        return zero_value(parameter)

    annotation, _ = unwrap_annotated(parameter.annotation)
    annotation = strip_optional(annotation)
    try:
        if annotation is EMPTY or annotation is Any or annotation is object:
            return value
        if annotation is bool:
            return parse_bool(value)
        if annotation is int:
            return parse_int(value)
        if annotation is float:
            return parse_float(value)
        if annotation is str:
            return parse_str(value, parameter.name)
        if isinstance(annotation, type) and issubclass(annotation, Enum):
            return parse_enum(value, annotation)
        if typing.get_origin(annotation) is Literal:
            # Literal["a", "b"] and friends: coerce to the first value's type first
            value = coerce_argument(
                Parameter(parameter.name, type(typing.get_args(annotation)[0]), parameter.type, parameter.order),
                value,
                tool_name,
            )
        return parse_structured(value, annotation, parameter.type)
    except InvalidArgument:
        raise
    except (ValueError, TypeError) as e:
        raise InvalidArgument(tool_name, parameter.name, str(e)) from e
