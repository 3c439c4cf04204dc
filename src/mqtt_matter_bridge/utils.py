from __future__ import annotations

import asyncio
import re
import signal

from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.structs import GlobalObject

logger = get_logger(__name__)
g = GlobalObject()

_WHITESPACE_RE = re.compile(r"\s+")


def create_endpoint_id(device_name: str) -> str:
    """Derive an endpoint ID from a device name: lowercase, whitespace runs become '-'."""
    return _WHITESPACE_RE.sub("-", device_name.lower())


async def _async_signal_cleanup():
    logger.info("MQTT Matter bridge: Starting signal cleanup...")
    if g.status_api:
        logger.debug("Stopping status_api...")
        await g.status_api.stop()
    if g.bridge:
        logger.debug("Stopping bridge...")
        await g.bridge.stop()
    current = asyncio.current_task()
    for task in g.tasks:
        if task is not current and not task.done():
            logger.debug("MQTT Matter bridge: Cancelling task: %s", task.get_name())
            _ = task.cancel()
    logger.info("MQTT Matter bridge: Signal cleanup completed")


def signal_handler(signum: int):
    logger.info("MQTT Matter bridge: Intercepted signal: %s (%s)", signal.Signals(signum).name, signum)
    loop = g.loop or asyncio.get_event_loop()
    task = loop.create_task(_async_signal_cleanup(), name="signal_cleanup")
    g.tasks.append(task)
