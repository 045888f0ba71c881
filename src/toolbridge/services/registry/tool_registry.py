"""
Name-keyed registry of discovered tools.
"""
from __future__ import annotations

import logging
import threading
from types import ModuleType
from typing import Any, Callable, Iterable, Iterator

from toolbridge.core.errors import RegistryCollision
from toolbridge.services.registry.descriptor import ToolDescriptor, build_descriptor
from toolbridge.services.registry.discovery import dependent_modules, discover_modules, iter_candidates
from toolbridge.services.registry.markers import ToolSpec, get_tool_spec

logger = logging.getLogger("mcp-toolbridge")

Source = str | ModuleType


def _resolve_modules(sources: Iterable[Source] | None) -> list[ModuleType]:
    if sources is None:
        return dependent_modules()
    modules: list[ModuleType] = []
    seen: set[str] = set()
    for source in sources:
        for module in discover_modules(source):
            if module.__name__ not in seen:
                seen.add(module.__name__)
                modules.append(module)
    return modules


class ToolRegistry:
    """Maps lowercase tool names to descriptors.

    A scan builds a complete new mapping and swaps it in, so readers see either
    the previous set of tools or the new one, never a mix. If two different
    functions map to the same name the scan fails with ``RegistryCollision`` and
    the previous mapping stays published.

    ``sources`` are modules or dotted names (packages are walked); ``None``
    means every loaded module that references the tool markers, and an empty
    list disables discovery. Functions added with ``register()`` are kept
    across rescans in every mode.
    """

    def __init__(self, sources: Iterable[Source] | None = None) -> None:
        self._sources = list(sources) if sources is not None else None
        self._tools: dict[str, ToolDescriptor] = {}
        self._registered: dict[str, ToolDescriptor] = {}
        self._lock = threading.RLock()

    @property
    def sources(self) -> list[Source] | None:
        return list(self._sources) if self._sources is not None else None

    def build(self, sources: Iterable[Source] | None = None) -> dict[str, ToolDescriptor]:
        """Discover tools without publishing them."""
        tools: dict[str, ToolDescriptor] = {}
        seen_targets: set[int] = set()
        for module in _resolve_modules(sources):
            for func, spec, owner in iter_candidates(module):
                if id(func) in seen_targets:
                    continue
                seen_targets.add(id(func))
                self._add(tools, build_descriptor(func, spec, owner))
        for descriptor in self._registered.values():
            self._add(tools, descriptor)
        return tools

    @staticmethod
    def _add(tools: dict[str, ToolDescriptor], descriptor: ToolDescriptor) -> None:
        existing = tools.get(descriptor.name)
        if existing is not None and existing.call_target is descriptor.call_target:
            return
        if existing is not None:
            error = RegistryCollision(
                descriptor.name, existing.qualified_name, descriptor.qualified_name)
            logger.error(str(error))
            raise error
        tools[descriptor.name] = descriptor

    def scan(self, sources: Iterable[Source] | None = None) -> list[ToolDescriptor]:
        with self._lock:
            tools = self.build(sources)
            self._tools = tools
        if not tools:
            logger.warning("No tools registered!")
        else:
            logger.info(f"Registered {len(tools)} tools: {sorted(tools)}")
        return list(tools.values())

    def refresh(self) -> list[ToolDescriptor]:
        """Rebuild from the sources given at construction."""
        return self.scan(self._sources)

    def register(
        self,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        returns: str | None = None,
    ) -> ToolDescriptor:
        """Explicitly publish one function, marked or not."""
        marked = get_tool_spec(func) or ToolSpec()
        spec = ToolSpec(
            name=name or marked.name,
            description=description if description is not None else marked.description,
            returns=returns if returns is not None else marked.returns,
        )
        descriptor = build_descriptor(func, spec)
        with self._lock:
            tools = dict(self._tools)
            self._add(tools, descriptor)
            self._tools = tools
            self._registered.setdefault(descriptor.name, descriptor)
        logger.debug(f"Registered tool: {descriptor.name} - {descriptor.description}")
        return descriptor

    def get(self, name: str | None) -> ToolDescriptor | None:
        if not name:
            return None
        return self._tools.get(name.lower())

    def tools(self) -> list[ToolDescriptor]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def clear(self) -> None:
        """Forget every tool, including explicitly registered ones."""
        with self._lock:
            self._tools = {}
            self._registered = {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self.tools())


__all__ = ["ToolRegistry"]
