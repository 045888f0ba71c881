"""
Markers used to declare tools and their parameter metadata.
"""
from dataclasses import dataclass
from typing import Any, Callable, Iterable

TOOL_MARKER = "__toolbridge_tool__"


@dataclass(frozen=True)
class ToolSpec:
    """Options captured by @tool, read back during discovery."""
    name: str | None = None
    description: str | None = None
    returns: str | None = None


class Dropdown:
    """Parameter metadata naming a function that suggests values for interactive callers.

    Use inside ``Annotated``; ``provider`` is either the function itself or the
    name of a function/static method living next to the tool. Names are resolved
    once, when the tool is discovered.

    Example:
        @tool(description="Paint something")
        def paint(color: Annotated[str, "Color name", Dropdown("color_options")]) -> str:
            ...
    """

    def __init__(self, provider: Callable[..., Iterable[str]] | str):
        self.provider = provider

    def __repr__(self) -> str:
        target = self.provider if isinstance(self.provider, str) else getattr(
            self.provider, "__qualname__", repr(self.provider))
        return f"Dropdown({target!r})"


def tool(
    name: str | None = None,
    description: str | None = None,
    returns: str | None = None,
) -> Callable:
    """
    Decorator marking a module-level function or static method as a tool.

    The function is returned unchanged; discovery picks it up later by looking
    for the marker.

    Args:
        name: Tool name (defaults to the function name); always lowercased
        description: Tool description (defaults to the docstring)
        returns: Description of the return value

    Example:
        @tool(description="Echo the arguments back", returns="The echoed text")
        def echo(stringArg: Annotated[str, "Text to echo"], intArg: int) -> str:
            return f"echo:{stringArg},{intArg}"
    """
    def decorator(func: Any) -> Any:
        target = func.__func__ if isinstance(func, staticmethod) else func
        setattr(target, TOOL_MARKER, ToolSpec(
            name=name, description=description, returns=returns))
        return func

    return decorator


def get_tool_spec(func: Any) -> ToolSpec | None:
    spec = getattr(func, TOOL_MARKER, None)
    return spec if isinstance(spec, ToolSpec) else None
