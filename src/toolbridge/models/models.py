from enum import Enum
from typing import Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class MCPRequest(BaseModel):
    """Body of a POST to the host service."""
    method: str
    # Canonically a JSON-encoded string; an already decoded object is tolerated
    params: str | dict[str, Any] | None = None


class CallToolParams(BaseModel):
    name: str
    arguments: dict[str, Any] | None = None


class MCPResponse(BaseModel):
    """Uniform envelope wrapped around every host service response."""
    success: bool
    result: Any | None = None
    error: str | None = None

    @classmethod
    def ok(cls, result: Any = None) -> "MCPResponse":
        return cls(success=True, result=result)

    @classmethod
    def failure(cls, error: str | BaseException) -> "MCPResponse":
        return cls(success=False, error=str(error) or type(error).__name__)


class PropertySchema(BaseModel):
    type: str
    description: str | None = None


class InputSchema(BaseModel):
    type: str = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)


class ToolSchema(BaseModel):
    name: str
    description: str | None = None
    inputSchema: InputSchema = Field(default_factory=InputSchema)
    returns: PropertySchema


class ToolList(BaseModel):
    tools: list[ToolSchema] = Field(default_factory=list)


class ExecutionSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class ExecutionHistoryEntry(BaseModel):
    """One invocation attempt, successful or not."""
    tool_name: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    # (parameter name, value as supplied) in the order the caller sent them
    parameters: list[tuple[str, str]] = Field(default_factory=list)
    result_text: str = ""
    succeeded: bool
    source: ExecutionSource = ExecutionSource.REMOTE
