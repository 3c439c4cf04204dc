import os
from pathlib import Path

from mqtt_matter_bridge import __version__

__all__ = [
    "BRIDGE_CONFIG_FILE_PATH",
    "BRIDGE_DEBUG",
    "BRIDGE_FALLBACK_CONFIG_FILE_PATH",
    "BRIDGE_LOG_CORRELATION_ENABLED",
    "BRIDGE_LOG_FORMAT",
    "BRIDGE_LOG_HUMAN_OUTPUT",
    "BRIDGE_LOG_JSON_FILE",
    "BRIDGE_LOG_NAME",
    "BRIDGE_MQTT_CLIENT_PREFIX",
    "BRIDGE_PERF_THRESHOLD_MS",
    "BRIDGE_PERF_TRACKING",
    "BRIDGE_RGB_DEBOUNCE_MS",
    "BRIDGE_SERIAL_PREFIX",
    "BRIDGE_STATUS_API_ENABLED",
    "BRIDGE_STATUS_API_HOST",
    "BRIDGE_STATUS_API_PORT",
    "BRIDGE_VERSION",
    "DEFAULT_LEVEL",
    "MQTT_CLIENT_START_TASK_NAME",
    "STATUS_API_START_TASK_NAME",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
BRIDGE_LOG_NAME: str = "mqtt_matter_bridge"
BRIDGE_VERSION: str = __version__

BRIDGE_DEBUG = os.environ.get("BRIDGE_DEBUG", "0").casefold() in YES_ANSWER

# Configuration file: mounted config dir first, then the working directory
BRIDGE_CONFIG_FILE_PATH: str = os.environ.get(
    "BRIDGE_CONFIG_FILE_PATH",
    str(Path.cwd() / "config" / "config.yaml"),
)
BRIDGE_FALLBACK_CONFIG_FILE_PATH: str = str(Path.cwd() / "config.yaml")

BRIDGE_MQTT_CLIENT_PREFIX: str = "mqtt-matter-bridge"
BRIDGE_SERIAL_PREFIX: str = "mmb"
MQTT_CLIENT_START_TASK_NAME = "MQTTClient_START"
STATUS_API_START_TASK_NAME = "StatusAPI_START"

# Matter level control range is 0-254, 254 being fully on
DEFAULT_LEVEL: int = 254

_rgb_debounce = os.environ.get("BRIDGE_RGB_DEBOUNCE_MS", "50")
try:
    _rgb_debounce_value: int = int(_rgb_debounce) if _rgb_debounce else 50
except ValueError:
    _rgb_debounce_value = 50
BRIDGE_RGB_DEBOUNCE_MS: int = max(_rgb_debounce_value, 0)

# Status API (read-only introspection server)
BRIDGE_STATUS_API_ENABLED: bool = os.environ.get("BRIDGE_STATUS_API_ENABLED", "false").casefold() in YES_ANSWER
BRIDGE_STATUS_API_HOST: str = os.environ.get("BRIDGE_STATUS_API_HOST", "0.0.0.0")
_status_port = os.environ.get("BRIDGE_STATUS_API_PORT", "8099")
BRIDGE_STATUS_API_PORT: int = int(_status_port) if _status_port and _status_port.isdigit() else 8099

# Logging Configuration
BRIDGE_LOG_FORMAT: str = os.environ.get("BRIDGE_LOG_FORMAT", "human")  # "json", "human", or "both"
BRIDGE_LOG_JSON_FILE: str | None = os.environ.get("BRIDGE_LOG_JSON_FILE") or None
BRIDGE_LOG_HUMAN_OUTPUT: str = os.environ.get("BRIDGE_LOG_HUMAN_OUTPUT", "stdout")  # "stdout", "stderr", or file path
BRIDGE_LOG_CORRELATION_ENABLED: bool = (
    os.environ.get("BRIDGE_LOG_CORRELATION_ENABLED", "true").casefold() in YES_ANSWER
)

# Performance Instrumentation
BRIDGE_PERF_TRACKING: bool = os.environ.get("BRIDGE_PERF_TRACKING", "true").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("BRIDGE_PERF_THRESHOLD_MS", "100")
BRIDGE_PERF_THRESHOLD_MS: int = int(_perf_threshold) if _perf_threshold and _perf_threshold.isdigit() else 100
