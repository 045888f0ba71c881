"""Process-wide logging setup for the host service, the bridge and the CLI."""
import logging
import os
from logging.handlers import RotatingFileHandler

from toolbridge.core.config import ServerConfig
from toolbridge.core.prefs import default_data_dir

LOGGER_NAME = "mcp-toolbridge"


def setup_logging(cfg: ServerConfig, log_file_name: str = "toolbridge.log") -> logging.Logger:
    """Configure stderr logging plus a rotating log file under the data directory."""
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format=cfg.log_format,
        stream=None,  # None -> defaults to sys.stderr; stdout carries the MCP stdio protocol
        force=True
    )
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    # Also write logs to a rotating file so logs are available when launched via stdio
    try:
        log_dir = os.path.join(cfg.data_dir or default_data_dir(), "Logs")
        os.makedirs(log_dir, exist_ok=True)
        fh = RotatingFileHandler(
            os.path.join(log_dir, log_file_name), maxBytes=512 * 1024, backupCount=2, encoding="utf-8")
        fh.setFormatter(logging.Formatter(cfg.log_format))
        fh.setLevel(level)
        logger.addHandler(fh)
    except OSError as e:
        # Never let logging setup break startup
        logger.debug("File logging unavailable: %s", e)

    # Quieten noisy third-party loggers
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(max(logging.WARNING, level))

    return logger
