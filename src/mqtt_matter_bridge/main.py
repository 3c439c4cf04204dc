from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from functools import partial
from pathlib import Path

import dotenv
import uvloop

from mqtt_matter_bridge.bridge import BridgeStartupError, MatterBridge
from mqtt_matter_bridge.config import ConfigValidationError, load_config
from mqtt_matter_bridge.const import (
    BRIDGE_DEBUG,
    BRIDGE_STATUS_API_ENABLED,
    BRIDGE_VERSION,
    STATUS_API_START_TASK_NAME,
)
from mqtt_matter_bridge.correlation import correlation_context, ensure_correlation_id
from mqtt_matter_bridge.devices import DeviceRegistryError
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.status_api import StatusServer
from mqtt_matter_bridge.structs import GlobalObject
from mqtt_matter_bridge.utils import signal_handler

logger = get_logger(__name__)

# Configure third-party loggers (uvicorn, mqtt) to reduce noise
uv_handler = logging.StreamHandler(sys.stdout)
uv_handler.setLevel(logging.INFO)
uv_handler.setFormatter(
    logging.Formatter(
        "%(asctime)s.%(msecs)d %(levelname)s (%(name)s) > %(message)s",
        "%m/%d/%y %H:%M:%S",
    ),
)
for _ul in (logging.getLogger(name) for name in ("uvicorn", "uvicorn.error", "uvicorn.access")):
    _ul.setLevel(logging.INFO)
    _ul.propagate = False
    _ul.addHandler(uv_handler)

# aiomqtt logs every reconnect attempt at warning level
mqtt_logger = logging.getLogger("mqtt")
mqtt_logger.setLevel(logging.ERROR)
mqtt_logger.propagate = False

g = GlobalObject()


def _enable_debug(reason: str) -> None:
    logger.set_level(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)
    logger.info("Debug mode enabled via %s", reason)


def _load_env_file(env_file: Path) -> None:
    env_path = env_file.expanduser().resolve()
    if not env_path.exists():
        logger.error("Environment file not found", extra={"path": str(env_path)})
        return
    if dotenv.load_dotenv(env_path, override=True):
        logger.info(" Environment variables loaded", extra={"source": str(env_path)})
    else:
        logger.warning("No environment variables loaded from file", extra={"path": str(env_path)})


def parse_cli(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="MQTT to Matter device bridge")
    _ = parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to the YAML configuration file",
    )
    _ = parser.add_argument("--env", help="Path to the environment file", default=None, type=Path)
    _ = parser.add_argument(
        "--status-api",
        action="store_true",
        dest="status_api",
        help="Enable the read-only status API",
    )
    _ = parser.add_argument(
        "-D",
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )
    g.cli_args = args = parser.parse_args(argv)

    if args.debug:
        _enable_debug("CLI argument")
    if args.env:
        _load_env_file(args.env)
    return args


class BridgeController:
    lp: str = "BridgeController:"

    def __init__(self, config_path: Path | None = None, status_api: bool = False) -> None:
        self.config_path: Path | None = config_path
        self.status_api_enabled: bool = status_api
        g.loop = uvloop.new_event_loop()
        asyncio.set_event_loop(g.loop)

        logger.info(" Initializing MQTT Matter bridge", extra={"version": BRIDGE_VERSION})

        g.loop.add_signal_handler(signal.SIGINT, partial(signal_handler, signal.SIGINT))
        g.loop.add_signal_handler(signal.SIGTERM, partial(signal_handler, signal.SIGTERM))
        logger.debug("Signal handlers configured for SIGINT & SIGTERM")

    async def start(self) -> None:
        """Load the configuration, start the bridge, and run until its tasks finish."""
        lp = f"{self.lp}start:"
        _ = ensure_correlation_id()

        config = load_config(self.config_path)
        g.bridge = bridge = MatterBridge(config)
        await bridge.start()

        tasks: list[asyncio.Task[None]] = []
        if bridge.start_task is not None:
            tasks.append(bridge.start_task)

        if self.status_api_enabled:
            logger.info("%s Starting status API...", lp)
            g.status_api = StatusServer()
            g.status_api.start_task = s_start = asyncio.Task(g.status_api.start(), name=STATUS_API_START_TASK_NAME)
            tasks.append(s_start)

        g.tasks.extend(tasks)
        if tasks:
            _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        await self.stop()

    async def stop(self) -> None:
        logger.info(" Shutting down MQTT Matter bridge...")
        if g.status_api is not None and g.status_api.running:
            await g.status_api.stop()
        if g.bridge is not None and g.bridge.running:
            await g.bridge.stop()


def main(argv: list[str] | None = None) -> int:
    """Console entry point; returns the process exit code."""
    with correlation_context():
        logger.info("Starting MQTT Matter bridge", extra={"version": BRIDGE_VERSION})

        args = parse_cli(argv)
        if BRIDGE_DEBUG and not args.debug:
            _enable_debug("configuration")

        controller = BridgeController(args.config, status_api=args.status_api or BRIDGE_STATUS_API_ENABLED)
        assert g.loop is not None
        exit_code = 0
        try:
            g.loop.run_until_complete(controller.start())
        except ConfigValidationError as exc:
            logger.error(" Invalid configuration:\n%s", "\n".join(f"  - {error}" for error in exc.errors))
            exit_code = 1
        except (BridgeStartupError, DeviceRegistryError) as exc:
            logger.error(" Bridge failed to start: %s", exc)
            exit_code = 1
        except asyncio.CancelledError:
            logger.info("MQTT Matter bridge cancelled, shutting down...")
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received, shutting down...")
        except Exception as e:
            logger.exception(" Fatal error in main loop", extra={"error": str(e)})
            exit_code = 1
        else:
            logger.info(" MQTT Matter bridge stopped gracefully")
        finally:
            if not g.loop.is_closed():
                g.loop.close()
            logger.info("MQTT Matter bridge shutdown complete")
        return exit_code


if __name__ == "__main__":
    sys.exit(main())
