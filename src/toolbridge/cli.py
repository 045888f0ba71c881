"""
Command line entry point: run the host service or the bridge, and use tools locally.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Sequence

from toolbridge.core.config import config
from toolbridge.core.errors import ToolBridgeError
from toolbridge.core.logging_setup import setup_logging
from toolbridge.core.prefs import PreferenceStore
from toolbridge.services.history import ExecutionHistory
from toolbridge.services.host import ToolHostService
from toolbridge.services.invoker import render_result
from toolbridge.services.registry import ToolRegistry
from toolbridge.transport.bridge import ToolBridge
from toolbridge.transport.host_client import HostClient

logger = logging.getLogger("mcp-toolbridge")

DEFAULT_TOOL_SOURCES = ["toolbridge.tools"]


def parse_assignments(pairs: Sequence[str]) -> dict[str, Any]:
    """``["a=1", "b=x"]`` -> ``{"a": "1", "b": "x"}``; values stay text for coercion."""
    arguments: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected key=value, got '{pair}'")
        arguments[key] = value
    return arguments


def build_service(tool_sources: Sequence[str] | None) -> tuple[ToolHostService, PreferenceStore]:
    prefs = PreferenceStore.in_data_dir(config.data_dir)
    history = ExecutionHistory(prefs, limit=config.history_limit, key=config.history_key)
    history.load()
    registry = ToolRegistry(list(tool_sources or DEFAULT_TOOL_SOURCES))
    registry.refresh()
    return ToolHostService(registry, history, config=config), prefs


def _cmd_serve(args: argparse.Namespace) -> int:
    service, _ = build_service(args.tools)
    service.history.subscribe(
        lambda entry: logger.info(
            f"History: {entry.tool_name} ({'ok' if entry.succeeded else 'failed'})"))
    service.serve_forever()
    return 0


def _cmd_bridge(args: argparse.Namespace) -> int:
    bridge = ToolBridge(HostClient(url=args.url, timeout=args.timeout))
    logger.info(f"Bridge forwarding to {bridge.client.url}")
    asyncio.run(bridge.run_stdio())
    return 0


def _cmd_tools(args: argparse.Namespace) -> int:
    service, _ = build_service(args.tools)
    print(json.dumps(service.list_tools_payload(), indent=2, ensure_ascii=False))
    return 0


def _cmd_call(args: argparse.Namespace) -> int:
    service, prefs = build_service(args.tools)
    assignments = list(args.assignments)
    if args.name and "=" in args.name:
        # "call key=value ..." reuses the last selected tool
        assignments.insert(0, args.name)
        args.name = None
    name = args.name or prefs.get(config.selected_tool_key)
    if not name:
        print("No tool given and no previously selected tool", file=sys.stderr)
        return 2
    try:
        arguments = json.loads(args.json_args) if args.json_args else {}
        arguments.update(parse_assignments(assignments))
    except (ValueError, AttributeError) as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2
    prefs.set(config.selected_tool_key, name)
    try:
        result = service.invoke_local(name, arguments)
    except ToolBridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(render_result(result))
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    prefs = PreferenceStore.in_data_dir(config.data_dir)
    history = ExecutionHistory(prefs, limit=config.history_limit, key=config.history_key)
    if args.clear:
        history.clear()
        return 0
    entries = history.load()
    for entry in entries[-args.limit:] if args.limit else entries:
        status = "ok" if entry.succeeded else "failed"
        params = ", ".join(f"{k}={v}" for k, v in entry.parameters)
        print(f"{entry.timestamp.isoformat()} [{entry.source.value}] {entry.tool_name}({params}) "
              f"{status}: {entry.result_text}")
    return 0


def _cmd_options(args: argparse.Namespace) -> int:
    service, _ = build_service(args.tools)
    try:
        options = service.invoker.suggest(args.name, args.parameter)
    except ToolBridgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for option in options:
        print(option)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolbridge",
        description="Expose Python functions as MCP tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  TOOLBRIDGE_HOST        Host service bind address (default 127.0.0.1)
  TOOLBRIDGE_PORT        Host service port (default 8080)
  TOOLBRIDGE_URL         Host service URL used by the bridge
  TOOLBRIDGE_LOG_LEVEL   Log level (DEBUG, INFO, WARNING, ...)
  TOOLBRIDGE_DATA_DIR    Directory for preferences, history and logs

Examples:
  # Serve the tools defined in the my_project.tools package
  toolbridge serve --tools my_project.tools

  # MCP client configuration command
  toolbridge bridge --url http://127.0.0.1:8080/mcp/

  # Try a tool locally
  toolbridge call echo stringArg=hi intArg=7
        """
    )
    parser.add_argument("--log-level", type=str, default=None,
                        help="Overrides TOOLBRIDGE_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    def _with_tools(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--tools", action="append", metavar="MODULE",
                       help="Module or package to scan for tools (repeatable); "
                            f"default: {', '.join(DEFAULT_TOOL_SOURCES)}")
        return p

    serve = _with_tools(sub.add_parser("serve", help="Run the HTTP host service"))
    serve.add_argument("--host", type=str, default=None)
    serve.add_argument("--port", type=int, default=None)

    bridge = sub.add_parser("bridge", help="Run the stdio MCP bridge")
    bridge.add_argument("--url", type=str, default=None)
    bridge.add_argument("--timeout", type=float, default=None)

    _with_tools(sub.add_parser("tools", help="Print the tool schemas"))

    call = _with_tools(sub.add_parser("call", help="Invoke a tool in-process"))
    call.add_argument("name", nargs="?", default=None,
                      help="Tool name (defaults to the last tool called)")
    call.add_argument("assignments", nargs="*", metavar="KEY=VALUE")
    call.add_argument("--json", dest="json_args", type=str, default=None,
                      help="Arguments as a JSON object")

    history = sub.add_parser("history", help="Show recent invocations")
    history.add_argument("--limit", type=int, default=0)
    history.add_argument("--clear", action="store_true")

    options = _with_tools(sub.add_parser("options", help="List suggested values for a parameter"))
    options.add_argument("name")
    options.add_argument("parameter")

    return parser


COMMANDS = {
    "serve": _cmd_serve,
    "bridge": _cmd_bridge,
    "tools": _cmd_tools,
    "call": _cmd_call,
    "history": _cmd_history,
    "options": _cmd_options,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config.apply_env()
    if args.log_level:
        config.log_level = args.log_level.upper()
    if getattr(args, "host", None):
        config.host = args.host
    if getattr(args, "port", None) is not None:
        config.port = args.port
    setup_logging(config, f"toolbridge_{args.command}.log")

    try:
        return COMMANDS[args.command](args)
    except ToolBridgeError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
