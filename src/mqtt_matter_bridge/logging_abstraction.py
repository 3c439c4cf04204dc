"""Logging layer for the bridge.

Every module logs through ``get_logger(__name__)``. Output is human-readable
text, JSON lines, or both, and each record carries the correlation ID of the
MQTT message or startup phase that produced it plus any structured ``extra``
context passed by the caller.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

__all__ = [
    "BridgeLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "get_logger",
]


def _current_correlation_id() -> str | None:
    # Imported lazily: correlation settings live in const, which imports the package root
    from mqtt_matter_bridge.const import BRIDGE_LOG_CORRELATION_ENABLED
    from mqtt_matter_bridge.correlation import get_correlation_id

    if not BRIDGE_LOG_CORRELATION_ENABLED:
        return None
    return get_correlation_id()


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": _current_correlation_id(),
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            log_data["context"] = dict(cast("Mapping[str, object]", extra_data))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text with a short correlation ID and trailing ``key=value`` context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = _current_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            context_str = " | ".join(f"{k}={v}" for k, v in context_map.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


class BridgeLogger:
    """Thin wrapper over ``logging.Logger`` adding structured ``extra`` context.

    Handlers are attached once per logger name, so calling ``get_logger`` for
    the same module twice never duplicates output.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
    ) -> None:
        """Create the logger.

        Args:
            name: Logger name (typically module name)
            log_format: "json", "human", or "both"
            json_file: Path for JSON output (None disables JSON file output)
            human_output: "stdout", "stderr", or a file path

        """
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format

        from mqtt_matter_bridge.const import BRIDGE_DEBUG

        self.logger.setLevel(logging.DEBUG if BRIDGE_DEBUG else logging.INFO)

        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(
        self,
        json_file: str | Path | None,
        human_output: str | None,
    ) -> None:
        handler_level = self.logger.level

        if self.log_format in ("json", "both") and json_file:
            try:
                json_path = Path(json_file)
                json_path.parent.mkdir(parents=True, exist_ok=True)
                json_handler = logging.FileHandler(json_path, mode="a")
            except OSError as e:
                print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
            else:
                json_handler.setFormatter(JSONFormatter())
                json_handler.setLevel(handler_level)
                self.logger.addHandler(json_handler)

        if self.log_format in ("human", "both"):
            normalized_output = human_output or "stdout"
            human_handler: logging.Handler
            if normalized_output == "stdout":
                human_handler = logging.StreamHandler(sys.stdout)
            elif normalized_output == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(normalized_output)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stdout)

            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(handler_level)
            self.logger.addHandler(human_handler)

    def _log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        # stacklevel 3 attributes the record to the caller of debug()/info()/...
        extra_payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=extra_payload, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at error level with the active exception's traceback."""
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> BridgeLogger:
    """Get a BridgeLogger configured from the BRIDGE_LOG_* environment settings.

    Explicit arguments override the environment defaults.
    """
    from mqtt_matter_bridge.const import (
        BRIDGE_LOG_FORMAT,
        BRIDGE_LOG_HUMAN_OUTPUT,
        BRIDGE_LOG_JSON_FILE,
    )

    return BridgeLogger(
        name=name,
        log_format=log_format or BRIDGE_LOG_FORMAT,
        json_file=json_file or BRIDGE_LOG_JSON_FILE,
        human_output=human_output or BRIDGE_LOG_HUMAN_OUTPUT,
    )
