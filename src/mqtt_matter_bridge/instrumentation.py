"""
Timing decorators for the bridge's hot paths.

Message fan-out and device initialization are wrapped so slow handlers show
up in the logs. Toggled with BRIDGE_PERF_TRACKING; the warning threshold is
BRIDGE_PERF_THRESHOLD_MS.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any, ParamSpec, TypeVar

if TYPE_CHECKING:
    from mqtt_matter_bridge.logging_abstraction import BridgeLogger

__all__ = [
    "measure_time",
    "timed",
    "timed_async",
]

P = ParamSpec("P")
T = TypeVar("T")


def measure_time(start_time: float) -> float:
    """Milliseconds elapsed since ``start_time`` (a ``time.perf_counter()`` value)."""
    return (time.perf_counter() - start_time) * 1000


def timed(operation_name: str | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Time a synchronous function.

    Example:
        @timed("dispatch")
        def dispatch(self, topic, payload): ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from mqtt_matter_bridge.const import BRIDGE_PERF_THRESHOLD_MS, BRIDGE_PERF_TRACKING  # noqa: PLC0415
            from mqtt_matter_bridge.logging_abstraction import get_logger  # noqa: PLC0415

            if not BRIDGE_PERF_TRACKING:
                return func(*args, **kwargs)

            logger = get_logger(__name__)
            op_name = operation_name or func.__name__
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _log_timing(logger, op_name, measure_time(start_time), BRIDGE_PERF_THRESHOLD_MS)

        return wrapper

    return decorator


def timed_async(
    operation_name: str | None = None,
) -> Callable[[Callable[P, Coroutine[Any, Any, T]]], Callable[P, Coroutine[Any, Any, T]]]:
    """
    Time a coroutine function.

    Example:
        @timed_async("device_initialize")
        async def initialize(self): ...
    """

    def decorator(func: Callable[P, Coroutine[Any, Any, T]]) -> Callable[P, Coroutine[Any, Any, T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from mqtt_matter_bridge.const import BRIDGE_PERF_THRESHOLD_MS, BRIDGE_PERF_TRACKING  # noqa: PLC0415
            from mqtt_matter_bridge.logging_abstraction import get_logger  # noqa: PLC0415

            if not BRIDGE_PERF_TRACKING:
                return await func(*args, **kwargs)

            logger = get_logger(__name__)
            op_name = operation_name or func.__name__
            start_time = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                _log_timing(logger, op_name, measure_time(start_time), BRIDGE_PERF_THRESHOLD_MS)

        return wrapper

    return decorator


def _log_timing(logger: BridgeLogger, operation_name: str, elapsed_ms: float, threshold_ms: int) -> None:
    context = {
        "operation": operation_name,
        "duration_ms": round(elapsed_ms, 2),
        "threshold_ms": threshold_ms,
        "exceeded_threshold": elapsed_ms > threshold_ms,
    }
    if elapsed_ms > threshold_ms:
        logger.warning(
            "[%s] completed in %.1fms (threshold: %dms)",
            operation_name,
            elapsed_ms,
            threshold_ms,
            extra=context,
        )
    else:
        logger.debug("[%s] completed in %.1fms", operation_name, elapsed_ms, extra=context)
