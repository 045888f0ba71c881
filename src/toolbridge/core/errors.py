"""
Error taxonomy shared by the registry, the invoker, the host service and the bridge.

Every message is meant to be shown to an operator as-is, so each one names the
category of failure it represents.
"""
from __future__ import annotations


class ToolBridgeError(Exception):
    """Base class for all tool bridge failures."""


class ToolNotFound(ToolBridgeError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found")


class InvalidArgument(ToolBridgeError):
    def __init__(self, tool_name: str, parameter: str | None, reason: str):
        self.tool_name = tool_name
        self.parameter = parameter
        self.reason = reason
        if parameter is None:
            message = f"Invalid arguments for tool '{tool_name}': {reason}"
        else:
            message = f"Invalid argument '{parameter}' for tool '{tool_name}': {reason}"
        super().__init__(message)


class ToolExecutionFailed(ToolBridgeError):
    """The tool function itself raised; the original message is preserved."""

    def __init__(self, tool_name: str, original: BaseException):
        self.tool_name = tool_name
        self.original = original
        self.original_message = str(original) or type(original).__name__
        super().__init__(
            f"Tool '{tool_name}' execution failed: {self.original_message}")


class RegistryCollision(ToolBridgeError):
    def __init__(self, tool_name: str, existing: str, duplicate: str):
        self.tool_name = tool_name
        self.existing = existing
        self.duplicate = duplicate
        super().__init__(
            f"Tool name collision: '{tool_name}' is provided by both {existing} and {duplicate}")


class HostServiceError(ToolBridgeError):
    """The host service could not be started."""


class TransportUnavailable(ToolBridgeError):
    def __init__(self, url: str, detail: str):
        self.url = url
        self.detail = detail
        super().__init__(
            f"Cannot reach the tool host service at {url}; it may not be running. "
            f"Start the host service and retry. Details: {detail}")


class ToolCallFailed(ToolBridgeError):
    """The host answered, but reported that the tool call failed."""

    def __init__(self, tool_name: str, error: str | None):
        self.tool_name = tool_name
        self.error = error or "unknown error"
        super().__init__(f"Tool '{tool_name}' returned an error: {self.error}")


__all__ = [
    "ToolBridgeError",
    "ToolNotFound",
    "InvalidArgument",
    "ToolExecutionFailed",
    "RegistryCollision",
    "HostServiceError",
    "TransportUnavailable",
    "ToolCallFailed",
]
