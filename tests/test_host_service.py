import json

import pytest
from starlette.testclient import TestClient

from toolbridge.models import ExecutionSource
from toolbridge.services.history import ExecutionHistory
from toolbridge.services.host import ServiceState

from tests.test_helpers import make_service, rpc


@pytest.fixture
def service():
    return make_service()


@pytest.fixture
def client(service):
    return TestClient(service.app)


def test_list_tools_payload(client):
    envelope = rpc(client, "listTools")

    assert envelope["success"] is True
    assert envelope["error"] is None
    tools = {t["name"]: t for t in envelope["result"]["tools"]}
    assert tools["echo"] == {
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
    assert tools["add_numbers"]["inputSchema"]["properties"]["values"]["type"] == "number[]"
    # Absent descriptions are omitted rather than sent as null
    assert "description" not in tools["ordered"]["inputSchema"]["properties"]["a"]


def test_call_tool(client, service):
    envelope = rpc(client, "callTool", {"name": "echo", "arguments": {"stringArg": "hi", "intArg": 7}})

    assert envelope == {"success": True, "result": "echo:hi,7", "error": None}
    (entry,) = service.history.entries()
    assert entry.tool_name == "echo"
    assert entry.succeeded
    assert entry.source is ExecutionSource.REMOTE
    assert entry.parameters == [("stringArg", "hi"), ("intArg", "7")]
    assert entry.result_text == "echo:hi,7"


def test_omitted_argument_uses_zero_value(client):
    envelope = rpc(client, "calltool", {"name": "echo", "arguments": {"stringArg": "hi"}})
    assert envelope["result"] == "echo:hi,0"


def test_structured_results_are_json(client):
    envelope = rpc(client, "callTool", {"name": "add_numbers", "arguments": {"values": [1, 2, 3.5]}})
    assert envelope["result"] == 6.5

    envelope = rpc(client, "callTool", {"name": "format_json", "arguments": {"json": {"b": 1, "a": [2]}}})
    assert json.loads(envelope["result"]) == {"a": [2], "b": 1}


def test_params_may_be_an_object(client):
    response = client.post("/mcp/", json={
        "method": "callTool",
        "params": {"name": "echo", "arguments": {"stringArg": "obj", "intArg": "3"}},
    })
    assert response.json()["result"] == "echo:obj,3"


def test_unknown_tool_is_a_recorded_failure(client, service):
    envelope = rpc(client, "callTool", {"name": "nope", "arguments": {}})

    assert envelope == {"success": False, "result": None, "error": "Tool 'nope' not found"}
    (entry,) = service.history.entries()
    assert entry.tool_name == "nope"
    assert not entry.succeeded
    assert entry.source is ExecutionSource.REMOTE


def test_invalid_argument_names_parameter(client):
    envelope = rpc(client, "callTool", {"name": "echo", "arguments": {"stringArg": "hi", "intArg": "seven"}})

    assert envelope["success"] is False
    assert "intArg" in envelope["error"]


def test_tool_exception_is_reported(client, service):
    envelope = rpc(client, "callTool", {"name": "explode", "arguments": {"message": "boom"}})

    assert envelope["success"] is False
    assert envelope["error"] == "Tool 'explode' execution failed: boom"
    assert service.history.entries()[-1].result_text == envelope["error"]


def test_unknown_method(client):
    envelope = rpc(client, "deleteEverything")
    assert envelope == {"success": False, "result": None, "error": "unknown method: deleteEverything"}


@pytest.mark.parametrize("body", [b"not json", b"{}", b'{"method": 5}', b"[]"])
def test_malformed_request_gets_failure_envelope(client, body):
    response = client.post("/mcp/", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    envelope = response.json()
    assert envelope["success"] is False
    assert envelope["error"].startswith("Malformed request")


def test_missing_call_params(client):
    envelope = rpc(client, "callTool")
    assert envelope["success"] is False
    assert envelope["error"].startswith("Malformed callTool params")


def test_path_without_trailing_slash(client):
    assert rpc(client, "listTools", path="/mcp")["success"] is True


def test_cors_headers(client):
    preflight = client.options("/mcp/")
    assert preflight.status_code == 200
    assert preflight.headers["access-control-allow-origin"] == "*"
    assert "POST" in preflight.headers["access-control-allow-methods"]

    response = client.post("/mcp/", json={"method": "listTools"})
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-headers"] == "Content-Type"


def test_invoke_local_records_local_source():
    history = ExecutionHistory()
    service = make_service(history=history)

    assert service.invoke_local("pick_color", {"color": "Red", "uppercase": "true"}) == "RED"
    with pytest.raises(Exception, match="Unknown color"):
        service.invoke_local("pick_color", {"color": "mauve"})

    first, second = history.entries()
    assert (first.source, first.succeeded) == (ExecutionSource.LOCAL, True)
    assert (second.source, second.succeeded) == (ExecutionSource.LOCAL, False)
    assert "Unknown color 'mauve'" in second.result_text


def test_new_service_is_stopped():
    service = make_service()
    assert service.state is ServiceState.STOPPED
    assert not service.running
    service.stop()
    assert service.state is ServiceState.STOPPED
