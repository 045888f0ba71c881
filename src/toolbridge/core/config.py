"""
Configuration settings for the tool bridge.
This file contains all configurable parameters for the host service and the bridge.
"""

import os
from dataclasses import dataclass


@dataclass
class ServerConfig:
    """Main configuration class for the host service and the stdio bridge."""

    # Network settings
    host: str = "127.0.0.1"
    port: int = 8080
    rpc_path: str = "/mcp/"
    # Overrides the URL derived from host/port when the bridge targets another address
    url: str | None = None

    # Connection settings
    request_timeout: float = 100.0
    startup_timeout: float = 5.0
    shutdown_timeout: float = 5.0

    # History settings
    history_limit: int = 50
    history_key: str = "ToolBridge_ExecutionHistory"
    selected_tool_key: str = "ToolBridge_SelectedTool"

    # Preference storage (None -> platform default)
    data_dir: str | None = None

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Bridge settings
    bridge_name: str = "mcp-toolbridge"
    bridge_version: str = "1.0.0"

    @property
    def host_url(self) -> str:
        if self.url:
            return self.url
        return f"http://{self.host}:{self.port}{self.rpc_path}"

    def apply_env(self, environ: dict[str, str] | None = None) -> "ServerConfig":
        """Override settings from TOOLBRIDGE_* environment variables."""
        env = os.environ if environ is None else environ
        if env.get("TOOLBRIDGE_HOST"):
            self.host = env["TOOLBRIDGE_HOST"]
        if env.get("TOOLBRIDGE_PORT"):
            self.port = int(env["TOOLBRIDGE_PORT"])
        if env.get("TOOLBRIDGE_URL"):
            self.url = env["TOOLBRIDGE_URL"]
        if env.get("TOOLBRIDGE_LOG_LEVEL"):
            self.log_level = env["TOOLBRIDGE_LOG_LEVEL"].upper()
        if env.get("TOOLBRIDGE_DATA_DIR"):
            self.data_dir = env["TOOLBRIDGE_DATA_DIR"]
        return self


# Create a global config instance
config = ServerConfig()
