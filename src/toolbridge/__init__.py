"""
MCP tool bridge: exposes annotated Python functions as remotely invocable tools.
"""
from .services.registry import Dropdown, ToolRegistry, tool

__version__ = "1.0.0"

__all__ = ["Dropdown", "ToolRegistry", "tool", "__version__"]
