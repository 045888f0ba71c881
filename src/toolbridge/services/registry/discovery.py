"""
Module discovery utilities used to find tool functions.
"""
import importlib
import inspect
import logging
import pkgutil
import sys
from types import ModuleType
from typing import Any, Callable, Generator, Iterator

from toolbridge.services.registry import markers
from toolbridge.services.registry.markers import ToolSpec, get_tool_spec

logger = logging.getLogger("mcp-toolbridge")


def _walk_package(package: ModuleType) -> Generator[ModuleType, None, None]:
    for _, module_name, is_pkg in pkgutil.iter_modules(package.__path__):
        # Skip private modules and __init__
        if module_name.startswith('_'):
            continue

        full_module_name = f'{package.__name__}.{module_name}'
        try:
            module = importlib.import_module(full_module_name)
        except Exception as e:
            logger.warning(f"Failed to import module {full_module_name}: {e}")
            continue
        yield module
        if is_pkg:
            yield from _walk_package(module)


def discover_modules(target: str | ModuleType) -> list[ModuleType]:
    """
    Import a module, or a package and every public submodule below it.

    Args:
        target: Dotted module name or an already imported module

    Returns:
        The imported modules, the target itself first
    """
    module = importlib.import_module(target) if isinstance(target, str) else target
    modules = [module]
    if hasattr(module, "__path__"):
        modules.extend(_walk_package(module))
    return modules


def dependent_modules() -> list[ModuleType]:
    """Loaded modules that reference the tool marking mechanism.

    Only these can contain marked functions, so scanning stays away from
    unrelated third-party code. A module counts when it binds the markers
    module, `tool` or `Dropdown`, or one of the packages that re-export them
    (`import toolbridge` followed by `@toolbridge.tool`).
    """
    package = markers.__name__.rpartition(".")[0]
    exporters = (sys.modules.get(package), sys.modules.get(package.partition(".")[0]))
    references = (markers, markers.tool, markers.Dropdown) + tuple(m for m in exporters if m is not None)
    found = []
    for name, module in sorted(list(sys.modules.items())):
        if not isinstance(module, ModuleType):
            continue
        namespace = list(getattr(module, "__dict__", {}).values())
        if any(value is ref for value in namespace for ref in references):
            found.append(module)
    return found


def _ignore(what: str) -> None:
    logger.warning(
        f"Ignoring tool {what}: only public module-level functions and static methods can be tools")


def iter_candidates(module: ModuleType) -> Iterator[tuple[Callable[..., Any], ToolSpec, type | None]]:
    """Yield ``(function, spec, owner_class)`` for every marked function in a module.

    Module-level functions come first-seen in definition order; static methods
    of classes bound in the module are yielded with their class as owner.
    """
    for value in list(vars(module).values()):
        if inspect.isfunction(value):
            spec = get_tool_spec(value)
            if spec is None:
                continue
            if value.__name__.startswith("_"):
                _ignore(value.__qualname__)
                continue
            yield value, spec, None
        elif inspect.isclass(value):
            for member_name, member in list(vars(value).items()):
                target = member.__func__ if isinstance(member, (staticmethod, classmethod)) else member
                if not inspect.isfunction(target):
                    continue
                spec = get_tool_spec(target)
                if spec is None:
                    continue
                if (not isinstance(member, staticmethod)
                        or member_name.startswith("_")
                        or value.__name__.startswith("_")):
                    _ignore(f"{value.__qualname__}.{member_name}")
                    continue
                yield target, spec, value
