"""
Registry package for tool marking and discovery.
"""
from .markers import (
    Dropdown,
    ToolSpec,
    tool,
)
from .descriptor import (
    Parameter,
    ToolDescriptor,
    build_descriptor,
    semantic_type,
)
from .discovery import (
    dependent_modules,
    discover_modules,
)
from .tool_registry import ToolRegistry

__all__ = [
    'Dropdown',
    'ToolSpec',
    'tool',
    'Parameter',
    'ToolDescriptor',
    'build_descriptor',
    'semantic_type',
    'dependent_modules',
    'discover_modules',
    'ToolRegistry',
]
