import threading
from concurrent.futures import ThreadPoolExecutor

import httpx
from starlette.testclient import TestClient

from toolbridge.core.config import ServerConfig
from toolbridge.services.history import ExecutionHistory
from toolbridge.services.host import ToolHostService
from toolbridge.services.registry import ToolRegistry

from tests.test_helpers import make_service, rpc


def test_parallel_calls_keep_history_capped_and_intact():
    service = make_service()
    workers, calls_per_worker = 5, 20

    def worker(worker_id):
        client = TestClient(service.app)
        results = []
        for i in range(calls_per_worker):
            envelope = rpc(client, "callTool", {
                "name": "echo",
                "arguments": {"stringArg": f"w{worker_id}", "intArg": i},
            })
            results.append(envelope)
        return results

    with ThreadPoolExecutor(max_workers=workers) as pool:
        envelopes = [e for batch in pool.map(worker, range(workers)) for e in batch]

    assert all(e["success"] for e in envelopes)
    entries = service.history.entries()
    assert len(service.history) == service.history.limit == 50
    for entry in entries:
        params = dict(entry.parameters)
        assert entry.succeeded
        assert entry.result_text == f"echo:{params['stringArg']},{params['intArg']}"


def test_slow_tool_does_not_block_other_requests():
    entered = threading.Event()
    release = threading.Event()

    def wait_for_release() -> str:
        entered.set()
        release.wait(timeout=10)
        return "released"

    registry = ToolRegistry([])
    registry.register(wait_for_release, name="block")
    service = ToolHostService(registry, ExecutionHistory(), config=ServerConfig(port=0))
    service.start()
    try:
        with httpx.Client(timeout=10.0, trust_env=False) as client:
            with ThreadPoolExecutor(max_workers=1) as pool:
                pending = pool.submit(
                    client.post, service.url,
                    json={"method": "callTool", "params": '{"name": "block", "arguments": {}}'})
                assert entered.wait(timeout=5)

                listing = client.post(service.url, json={"method": "listTools"}, timeout=5.0)
                assert listing.json()["result"]["tools"][0]["name"] == "block"
                assert not release.is_set()

                release.set()
                assert pending.result(timeout=10).json() == {
                    "success": True, "result": "released", "error": None,
                }
    finally:
        release.set()
        service.stop()
