"""HTTP RPC host exposing the tool registry to the bridge process."""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable

import uvicorn
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from toolbridge.core.config import ServerConfig, config as default_config
from toolbridge.core.errors import HostServiceError
from toolbridge.models import (
    CallToolParams,
    ExecutionSource,
    MCPRequest,
    MCPResponse,
    ToolList,
)
from toolbridge.services.history import ExecutionHistory
from toolbridge.services.invoker import ToolInvoker, render_result, to_jsonable
from toolbridge.services.registry import ToolRegistry

logger = logging.getLogger("mcp-toolbridge")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


class ServiceState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class _HostServer(uvicorn.Server):
    """uvicorn server that reports when startup has finished, successfully or not."""

    def __init__(self, config: uvicorn.Config) -> None:
        super().__init__(config)
        self.ready = threading.Event()

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        try:
            await super().startup(sockets=sockets)
        finally:
            self.ready.set()


def _validation_summary(error: ValidationError) -> str:
    first = error.errors()[0] if error.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", str(error))
    return f"{location}: {message}" if location else message


class ToolHostService:
    """Serves ``listtools``/``calltool`` over HTTP on a fixed loopback address.

    Lifecycle: stopped -> starting -> running -> stopping -> stopped. The
    listener runs in a background thread; each request is handled on its own
    worker thread so a slow tool does not hold up other callers. Every
    ``calltool`` is recorded in the execution history, whether it succeeds or not.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        history: ExecutionHistory | None = None,
        invoker: ToolInvoker | None = None,
        config: ServerConfig | None = None,
    ) -> None:
        self.config = config or default_config
        self.registry = registry
        self.history = history if history is not None else ExecutionHistory(
            limit=self.config.history_limit, key=self.config.history_key)
        self.invoker = invoker or ToolInvoker(registry)
        self.app = self._build_app()

        self._state = ServiceState.STOPPED
        self._lifecycle_lock = threading.RLock()
        self._state_listeners: list[Callable[[ServiceState], None]] = []
        self._server: _HostServer | None = None
        self._thread: threading.Thread | None = None
        self._socket: socket.socket | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is ServiceState.RUNNING

    @property
    def port(self) -> int:
        """Bound port (differs from the configured one when configured as 0)."""
        sock = self._socket
        if sock is not None:
            return sock.getsockname()[1]
        return self.config.port

    @property
    def url(self) -> str:
        return f"http://{self.config.host}:{self.port}{self.config.rpc_path}"

    def subscribe_state(self, listener: Callable[[ServiceState], None]) -> None:
        self._state_listeners.append(listener)

    def _set_state(self, state: ServiceState) -> None:
        self._state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")

    def _bind(self) -> socket.socket:
        host, port = self.config.host, self.config.port
        try:
            return socket.create_server((host, port))
        except OSError as e:
            raise HostServiceError(
                f"Cannot start the tool host service on {host}:{port} "
                f"(is the port already in use?): {e.strerror or e}") from e

    def start(self) -> None:
        """Bind the listener and start serving; raises if the port cannot be bound."""
        with self._lifecycle_lock:
            if self._state is not ServiceState.STOPPED:
                logger.debug(f"Tool host service already {self._state.value}")
                return
            self._set_state(ServiceState.STARTING)
            try:
                self.registry.refresh()
                sock = self._bind()
            except Exception:
                self._set_state(ServiceState.STOPPED)
                raise

            server = _HostServer(uvicorn.Config(
                self.app,
                log_config=None,
                log_level=self.config.log_level.lower(),
                access_log=False,
                lifespan="off",
            ))
            thread = threading.Thread(
                target=server.run, kwargs={"sockets": [sock]},
                name="toolbridge-host", daemon=True)
            thread.start()

            server.ready.wait(timeout=self.config.startup_timeout)
            if not server.started:
                server.should_exit = True
                thread.join(timeout=self.config.shutdown_timeout)
                sock.close()
                self._set_state(ServiceState.STOPPED)
                raise HostServiceError(
                    f"Tool host service did not start within {self.config.startup_timeout}s")

            self._server, self._thread, self._socket = server, thread, sock
            self._set_state(ServiceState.RUNNING)
            logger.info(f"Tool host service listening on {self.url}")

    def stop(self) -> None:
        """Stop serving and close the listener. Stopping a stopped service is a no-op."""
        with self._lifecycle_lock:
            if self._state is ServiceState.STOPPED:
                return
            self._set_state(ServiceState.STOPPING)
            server, thread, sock = self._server, self._thread, self._socket
            self._server = self._thread = self._socket = None

            if server is not None:
                server.should_exit = True
            if thread is not None:
                thread.join(timeout=self.config.shutdown_timeout)
                if thread.is_alive() and server is not None:
                    logger.warning("Tool host service did not stop in time; forcing exit")
                    server.force_exit = True
                    thread.join(timeout=self.config.shutdown_timeout)
            if sock is not None:
                sock.close()
            self._set_state(ServiceState.STOPPED)
            logger.info("Tool host service stopped")

    def serve_forever(self) -> None:
        """Start and block until interrupted."""
        self.start()
        try:
            while self._thread is not None and self._thread.is_alive():
                self._thread.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        finally:
            self.stop()

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def _build_app(self) -> Starlette:
        path = self.config.rpc_path
        paths = {path, path.rstrip("/") or "/"}
        routes = [Route(p, self._handle_http, methods=["POST", "OPTIONS"]) for p in sorted(paths)]
        return Starlette(routes=routes)

    async def _handle_http(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        try:
            body = await request.body()
            response = await run_in_threadpool(self.process_request, body)
            return JSONResponse(response.model_dump(mode="json"), headers=CORS_HEADERS)
        except Exception as e:
            logger.error(f"Error handling HTTP request: {e}", exc_info=True)
            return Response(status_code=500, headers=CORS_HEADERS)

    def process_request(self, body: bytes | str) -> MCPResponse:
        """Decode one request body and produce its envelope. Never raises."""
        try:
            request = MCPRequest.model_validate_json(body)
        except ValidationError as e:
            logger.warning(f"Malformed request: {e}")
            return MCPResponse.failure(f"Malformed request: {_validation_summary(e)}")

        method = request.method.lower()
        try:
            if method == "listtools":
                return MCPResponse.ok(self.list_tools_payload())
            if method == "calltool":
                return self._call_tool(request.params)
        except Exception as e:
            logger.error(f"Error processing request: {e}", exc_info=True)
            return MCPResponse.failure(e)
        return MCPResponse.failure(f"unknown method: {request.method}")

    def list_tools_payload(self) -> dict[str, Any]:
        tools = ToolList(tools=[d.to_schema() for d in self.registry.tools()])
        return tools.model_dump(mode="json", exclude_none=True)

    def _call_tool(self, params: str | dict[str, Any] | None) -> MCPResponse:
        try:
            if isinstance(params, str):
                call = CallToolParams.model_validate_json(params)
            else:
                call = CallToolParams.model_validate(params)
        except ValidationError as e:
            return MCPResponse.failure(f"Malformed callTool params: {_validation_summary(e)}")

        try:
            result = self.invoker.invoke(call.name, call.arguments)
            payload = to_jsonable(result)
        except Exception as e:
            self.history.record(call.name, call.arguments, str(e), False, ExecutionSource.REMOTE)
            return MCPResponse.failure(e)

        self.history.record(
            call.name, call.arguments, render_result(result), True, ExecutionSource.REMOTE)
        return MCPResponse.ok(payload)

    # ------------------------------------------------------------------
    # Local interactive caller
    # ------------------------------------------------------------------
    def invoke_local(self, tool_name: str, arguments: Mapping[str, Any] | None = None) -> Any:
        """Invoke a tool in-process, recording it in history as a local call."""
        try:
            result = self.invoker.invoke(tool_name, arguments)
        except Exception as e:
            self.history.record(tool_name, arguments, str(e), False, ExecutionSource.LOCAL)
            raise
        self.history.record(tool_name, arguments, render_result(result), True, ExecutionSource.LOCAL)
        return result


__all__ = ["CORS_HEADERS", "ServiceState", "ToolHostService"]
