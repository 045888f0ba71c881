from .models import (
    CallToolParams,
    ExecutionHistoryEntry,
    ExecutionSource,
    InputSchema,
    MCPRequest,
    MCPResponse,
    PropertySchema,
    ToolList,
    ToolSchema,
)

__all__ = [
    'CallToolParams',
    'ExecutionHistoryEntry',
    'ExecutionSource',
    'InputSchema',
    'MCPRequest',
    'MCPResponse',
    'PropertySchema',
    'ToolList',
    'ToolSchema',
]
