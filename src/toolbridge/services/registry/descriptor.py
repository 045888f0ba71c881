"""Tool descriptors: parameter metadata and the schema published to callers."""

from __future__ import annotations

import collections.abc
import inspect
import logging
import sys
import types
import typing
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Annotated, Any, Callable, Iterable, Literal, Union
from uuid import UUID

from pydantic.fields import FieldInfo

from toolbridge.models import InputSchema, PropertySchema, ToolSchema
from toolbridge.services.registry.markers import Dropdown, ToolSpec

logger = logging.getLogger("mcp-toolbridge")

EMPTY = inspect.Parameter.empty

_SEQUENCE_ORIGINS = {
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
    collections.abc.Collection,
    collections.abc.Iterable,
}
_STRING_LIKE = (str, datetime, date, time, UUID, PurePath)


def unwrap_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    """Split ``Annotated[T, *meta]`` into ``(T, meta)``."""
    if typing.get_origin(annotation) is Annotated:
        base, *metadata = typing.get_args(annotation)
        return base, tuple(metadata)
    return annotation, ()


def is_union(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    return origin is Union or origin is types.UnionType


def strip_optional(annotation: Any) -> Any:
    """``Optional[T]`` / ``T | None`` -> ``T``; other unions are left alone."""
    if is_union(annotation):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def sequence_item_type(annotation: Any) -> Any | None:
    """Item type of a homogeneous sequence annotation, or None if it is not one."""
    origin = typing.get_origin(annotation)
    if origin in _SEQUENCE_ORIGINS:
        args = typing.get_args(annotation)
        if not args:
            return Any
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis) and len(args) != 1:
            return Any
        return args[0]
    if isinstance(annotation, type) and annotation in (list, tuple, set, frozenset):
        return Any
    return None


def semantic_type(annotation: Any) -> str:
    """Map a Python annotation onto the wire-level type tag."""
    annotation, _ = unwrap_annotated(annotation)
    annotation = strip_optional(annotation)

    if annotation is EMPTY or annotation is Any or annotation is object:
        return "object"
    if annotation is None or annotation is type(None):
        return "void"

    origin = typing.get_origin(annotation)
    if origin is Literal:
        values = typing.get_args(annotation)
        return semantic_type(type(values[0])) if values else "object"
    if is_union(annotation):
        return "object"

    item = sequence_item_type(annotation)
    if item is not None:
        return f"{semantic_type(item)}[]"

    if isinstance(annotation, type):
        if issubclass(annotation, Enum):
            members = list(annotation)
            return semantic_type(type(members[0].value)) if members else "string"
        if issubclass(annotation, bool):
            return "boolean"
        if issubclass(annotation, int):
            return "integer"
        if issubclass(annotation, (float, Decimal)):
            return "number"
        if issubclass(annotation, _STRING_LIKE):
            return "string"
    return "object"


@dataclass(frozen=True)
class Parameter:
    """One formal argument of a tool (or its return value, named ``return``)."""
    name: str
    annotation: Any
    type: str
    order: int
    description: str | None = None
    dropdown: Callable[..., Iterable[str]] | None = None
    default: Any = EMPTY
    keyword_only: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not EMPTY

    def to_schema(self) -> PropertySchema:
        return PropertySchema(type=self.type, description=self.description)


@dataclass(frozen=True)
class ToolDescriptor:
    """Everything needed to publish and call one tool.

    ``parameters`` is in declaration order; ``parameter(name)`` looks the same
    parameters up by name.
    """
    name: str
    description: str | None
    parameters: tuple[Parameter, ...]
    returns: Parameter
    call_target: Callable[..., Any] = field(repr=False)
    qualified_name: str = ""
    _by_name: dict[str, Parameter] = field(
        init=False, repr=False, compare=False, default_factory=dict)

    def __post_init__(self) -> None:
        by_name: dict[str, Parameter] = {}
        for param in self.parameters:
            if param.name in by_name:
                raise ValueError(
                    f"Tool '{self.name}' declares parameter '{param.name}' twice")
            by_name[param.name] = param
        object.__setattr__(self, "_by_name", by_name)

    def parameter(self, name: str) -> Parameter | None:
        return self._by_name.get(name)

    def to_schema(self) -> ToolSchema:
        return ToolSchema(
            name=self.name,
            description=self.description,
            inputSchema=InputSchema(
                properties={p.name: p.to_schema() for p in self.parameters}),
            returns=self.returns.to_schema(),
        )


def _describe(metadata: tuple[Any, ...]) -> str | None:
    for item in metadata:
        if isinstance(item, str):
            return item
        if isinstance(item, FieldInfo) and item.description:
            return item.description
    return None


def _resolve_dropdown(
    metadata: tuple[Any, ...],
    func: Callable,
    owner: type | None,
) -> Callable[..., Iterable[str]] | None:
    marker = next((m for m in metadata if isinstance(m, Dropdown)), None)
    if marker is None:
        return None
    if callable(marker.provider):
        return marker.provider

    provider = getattr(owner, marker.provider, None) if owner is not None else None
    if provider is None:
        module = sys.modules.get(func.__module__)
        provider = getattr(module, marker.provider, None)
    if not callable(provider):
        logger.warning(
            f"Dropdown provider '{marker.provider}' for {func.__qualname__} not found; ignoring it")
        return None
    return provider


def _doc_summary(func: Callable) -> str | None:
    doc = inspect.getdoc(func)
    if not doc:
        return None
    return doc.split("\n\n", 1)[0].strip() or None


def build_descriptor(func: Callable, spec: ToolSpec, owner: type | None = None) -> ToolDescriptor:
    """Build the descriptor for a marked function."""
    signature = inspect.signature(func)
    try:
        hints = typing.get_type_hints(func, include_extras=True)
    except Exception as e:
        logger.debug(f"Could not resolve type hints for {func.__qualname__}: {e}")
        hints = {}

    parameters: list[Parameter] = []
    for raw in signature.parameters.values():
        if raw.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            logger.warning(
                f"Tool {func.__qualname__}: variadic parameter '{raw.name}' is not exposed")
            continue
        annotation = hints.get(raw.name, raw.annotation)
        _, metadata = unwrap_annotated(annotation)
        parameters.append(Parameter(
            name=raw.name,
            annotation=annotation,
            type=semantic_type(annotation),
            order=len(parameters),
            description=_describe(metadata),
            dropdown=_resolve_dropdown(metadata, func, owner),
            default=raw.default,
            keyword_only=raw.kind is inspect.Parameter.KEYWORD_ONLY,
        ))

    return_annotation = hints.get("return", signature.return_annotation)
    returns = Parameter(
        name="return",
        annotation=return_annotation,
        type=semantic_type(return_annotation),
        order=len(parameters),
        description=spec.returns,
    )

    return ToolDescriptor(
        name=(spec.name or func.__name__).lower(),
        description=spec.description if spec.description is not None else _doc_summary(func),
        parameters=tuple(parameters),
        returns=returns,
        call_target=func,
        qualified_name=f"{func.__module__}.{func.__qualname__}",
    )
