from toolbridge.core.config import ServerConfig


def test_defaults():
    cfg = ServerConfig()

    assert cfg.host_url == "http://127.0.0.1:8080/mcp/"
    assert cfg.history_limit == 50
    assert cfg.request_timeout == 100.0


def test_explicit_url_overrides_host_and_port():
    cfg = ServerConfig(port=9000, url="http://example.test/rpc/")
    assert cfg.host_url == "http://example.test/rpc/"


def test_apply_env():
    cfg = ServerConfig().apply_env({
        "TOOLBRIDGE_HOST": "0.0.0.0",
        "TOOLBRIDGE_PORT": "9123",
        "TOOLBRIDGE_LOG_LEVEL": "debug",
        "TOOLBRIDGE_DATA_DIR": "/tmp/toolbridge",
    })

    assert cfg.host_url == "http://0.0.0.0:9123/mcp/"
    assert cfg.log_level == "DEBUG"
    assert cfg.data_dir == "/tmp/toolbridge"


def test_apply_env_ignores_empty_values():
    cfg = ServerConfig().apply_env({"TOOLBRIDGE_PORT": "", "TOOLBRIDGE_URL": ""})
    assert cfg.port == 8080
    assert cfg.url is None
