import asyncio
import json
import socket

import httpx
import pytest
from mcp import types

from toolbridge.core.errors import InvalidArgument, ToolCallFailed, TransportUnavailable
from toolbridge.transport.bridge import ToolBridge, result_text
from toolbridge.transport.host_client import HostClient

from tests.test_helpers import make_service

URL = "http://127.0.0.1:8080/mcp/"

ECHO_SCHEMA = {
    "name": "echo",
    "description": "Echo description",
    "inputSchema": {
        "type": "object",
        "properties": {
            "stringArg": {"type": "string", "description": "stringArg description"},
            "intArg": {"type": "integer", "description": "intArg description"},
        },
    },
    "returns": {"type": "string", "description": "The echoed arguments"},
}


class FakeHost:
    """Scripted replacement for the host service behind an httpx MockTransport."""

    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def __call__(self, request):
        body = json.loads(request.content)
        self.requests.append(body)
        reply = self.responses[body["method"]]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)


def make_bridge(responses):
    host = FakeHost(responses)
    client = HostClient(url=URL, timeout=5.0, transport=httpx.MockTransport(host))
    return ToolBridge(client), host


def test_bridge_registers_protocol_handlers():
    bridge, _ = make_bridge({})
    assert types.ListToolsRequest in bridge.server.request_handlers
    assert types.CallToolRequest in bridge.server.request_handlers


def test_list_tools_translates_schemas():
    bridge, host = make_bridge({
        "listtools": {"success": True, "result": {"tools": [ECHO_SCHEMA]}, "error": None},
    })

    tools = asyncio.run(bridge.list_tools())

    assert host.requests == [{"method": "listtools"}]
    assert [t.name for t in tools] == ["echo"]
    assert tools[0].description == "Echo description"
    assert tools[0].inputSchema == ECHO_SCHEMA["inputSchema"]


@pytest.mark.parametrize("reply", [
    httpx.ConnectError("connection refused"),
    httpx.Response(500),
    httpx.Response(200, text="<html>"),
    {"success": False, "result": None, "error": "registry unavailable"},
    {"success": True, "result": {"tools": [{"name": "broken"}]}, "error": None},
])
def test_list_tools_degrades_to_empty(reply):
    bridge, _ = make_bridge({"listtools": reply})
    assert asyncio.run(bridge.list_tools()) == []


def test_call_tool_sends_params_as_json_string():
    bridge, host = make_bridge({
        "calltool": {"success": True, "result": "echo:hi,7", "error": None},
    })

    content = asyncio.run(bridge.call_tool("echo", {"stringArg": "hi", "intArg": 7}))

    assert [(c.type, c.text) for c in content] == [("text", "echo:hi,7")]
    (request,) = host.requests
    assert request["method"] == "calltool"
    assert isinstance(request["params"], str)
    assert json.loads(request["params"]) == {
        "name": "echo", "arguments": {"stringArg": "hi", "intArg": 7},
    }


def test_call_tool_non_string_result_is_json_text():
    bridge, _ = make_bridge({"calltool": {"success": True, "result": {"sum": 6.5}, "error": None}})

    (content,) = asyncio.run(bridge.call_tool("add_numbers", {"values": [1, 2]}))
    assert json.loads(content.text) == {"sum": 6.5}


def test_call_tool_business_failure():
    bridge, _ = make_bridge({
        "calltool": {"success": False, "result": None, "error": "Tool 'nope' not found"},
    })

    with pytest.raises(ToolCallFailed) as excinfo:
        asyncio.run(bridge.call_tool("nope", {}))
    assert "Tool 'nope' not found" in str(excinfo.value)
    assert "may not be running" not in str(excinfo.value)


@pytest.mark.parametrize("reply", [
    httpx.ConnectError("connection refused"),
    httpx.ReadTimeout("timed out"),
    httpx.Response(502),
    httpx.Response(200, json={"unexpected": True}),
])
def test_call_tool_transport_failure(reply):
    bridge, _ = make_bridge({"calltool": reply})

    with pytest.raises(TransportUnavailable, match="may not be running"):
        asyncio.run(bridge.call_tool("echo", {}))


def test_empty_tool_name_is_rejected():
    bridge, host = make_bridge({})

    with pytest.raises(InvalidArgument):
        asyncio.run(bridge.call_tool("  ", {}))
    assert host.requests == []


def test_result_text():
    assert result_text("plain") == "plain"
    assert result_text(None) == "null"
    assert result_text([1, "a"]) == '[1, "a"]'


def test_unreachable_host_mentions_service_not_running():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
    client = HostClient(url=f"http://127.0.0.1:{port}/mcp/", timeout=2.0)

    with pytest.raises(TransportUnavailable, match="may not be running"):
        asyncio.run(client.call_tool("echo", {"stringArg": "hi"}))
    assert asyncio.run(ToolBridge(client).list_tools()) == []


def test_bridge_against_running_host():
    service = make_service()
    service.start()
    try:
        bridge = ToolBridge(HostClient(url=service.url, timeout=10.0))

        names = [t.name for t in asyncio.run(bridge.list_tools())]
        assert "echo" in names and "pick_color" in names

        (content,) = asyncio.run(bridge.call_tool("echo", {"stringArg": "hi", "intArg": 7}))
        assert content.text == "echo:hi,7"

        (content,) = asyncio.run(bridge.call_tool("ECHO", {"stringArg": "hi"}))
        assert content.text == "echo:hi,0"

        with pytest.raises(ToolCallFailed, match="not found"):
            asyncio.run(bridge.call_tool("nope", {}))
    finally:
        service.stop()

    assert [e.tool_name for e in service.history.entries()] == ["echo", "ECHO", "nope"]
