import functools
import inspect
import logging
import time
from typing import Callable, Any

logger = logging.getLogger("mcp-toolbridge")


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def log_execution(name: str, type_label: str = "Tool"):
    """Decorator to log the positional arguments, result and duration of a call.

    Failures are logged and re-raised untouched so callers can classify them.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def _sync_wrapper(*args, **kwargs) -> Any:
            logger.info(f"{type_label} '{name}' called with args={list(args)}")
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    f"{type_label} '{name}' failed after {_elapsed_ms(started):.1f}ms: {e!r}")
                raise
            logger.info(
                f"{type_label} '{name}' returned {result!r} in {_elapsed_ms(started):.1f}ms")
            return result

        @functools.wraps(func)
        async def _async_wrapper(*args, **kwargs) -> Any:
            logger.info(f"{type_label} '{name}' called with args={list(args)}")
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    f"{type_label} '{name}' failed after {_elapsed_ms(started):.1f}ms: {e!r}")
                raise
            logger.info(
                f"{type_label} '{name}' returned {result!r} in {_elapsed_ms(started):.1f}ms")
            return result

        return _async_wrapper if inspect.iscoroutinefunction(func) else _sync_wrapper
    return decorator
