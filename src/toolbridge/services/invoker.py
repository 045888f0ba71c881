"""
Invocation of registered tools with wire-format arguments.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic_core import to_jsonable_python

from toolbridge.core.errors import InvalidArgument, ToolExecutionFailed, ToolNotFound
from toolbridge.core.logging_decorator import log_execution
from toolbridge.services.coercion import coerce_argument
from toolbridge.services.registry.descriptor import ToolDescriptor
from toolbridge.services.registry.tool_registry import ToolRegistry

logger = logging.getLogger("mcp-toolbridge")


def to_jsonable(value: Any) -> Any:
    """Plain JSON data for a tool result (models, dataclasses, enums, datetimes...)."""
    return to_jsonable_python(value, fallback=str)


def render_result(value: Any) -> str:
    """Text shown for a result in history and interactive output."""
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable(value), ensure_ascii=False)


class ToolInvoker:
    """Looks tools up in a registry, coerces arguments and calls them.

    Calls are synchronous and at-most-once. Coroutine tools are run to
    completion on a fresh event loop, so invoke() must not be called from a
    running loop (the host service calls it from a worker thread).
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    def resolve(self, tool_name: str) -> ToolDescriptor:
        descriptor = self.registry.get(tool_name)
        if descriptor is None:
            raise ToolNotFound(tool_name)
        return descriptor

    def bind_arguments(
        self,
        descriptor: ToolDescriptor,
        arguments: Mapping[str, Any] | None,
    ) -> tuple[list[Any], dict[str, Any]]:
        """Coerce wire arguments into the positional/keyword lists for the call.

        Parameters are processed in declaration order regardless of the order
        of keys in ``arguments``.
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise InvalidArgument(
                descriptor.name, None, f"arguments must be an object, got {type(arguments).__name__}")

        unknown = [key for key in arguments if descriptor.parameter(key) is None]
        if unknown:
            logger.debug(f"Tool '{descriptor.name}' ignoring unknown arguments: {unknown}")

        positional: list[Any] = []
        keyword: dict[str, Any] = {}
        for parameter in descriptor.parameters:
            value = coerce_argument(parameter, arguments.get(parameter.name), descriptor.name)
            if parameter.keyword_only:
                keyword[parameter.name] = value
            else:
                positional.append(value)
        return positional, keyword

    def invoke(self, tool_name: str, arguments: Mapping[str, Any] | None = None) -> Any:
        descriptor = self.resolve(tool_name)
        positional, keyword = self.bind_arguments(descriptor, arguments)
        target = log_execution(descriptor.name, "Tool")(descriptor.call_target)
        try:
            result = target(*positional, **keyword)
            if inspect.isawaitable(result):
                result = asyncio.run(_await(result))
        except Exception as e:
            raise ToolExecutionFailed(descriptor.name, e) from e
        return result

    def suggest(
        self,
        tool_name: str,
        parameter_name: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> list[str]:
        """Values suggested by a parameter's dropdown provider (empty if it has none)."""
        descriptor = self.resolve(tool_name)
        parameter = descriptor.parameter(parameter_name)
        if parameter is None:
            raise InvalidArgument(
                descriptor.name, parameter_name, "no such parameter")
        provider = parameter.dropdown
        if provider is None:
            return []
        try:
            wants_arguments = bool(inspect.signature(provider).parameters)
        except (TypeError, ValueError):
            wants_arguments = False
        try:
            options = provider(dict(arguments or {})) if wants_arguments else provider()
        except Exception as e:
            raise ToolExecutionFailed(descriptor.name, e) from e
        return [str(option) for option in options or []]


async def _await(awaitable: Any) -> Any:
    return await awaitable


__all__ = ["ToolInvoker", "render_result", "to_jsonable"]
