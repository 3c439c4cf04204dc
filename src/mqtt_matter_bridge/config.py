"""YAML configuration loading.

The file has two top-level keys::

    broker:
      host: mqtt.local
      port: 1883
      user: bridge
      pass: secret
    devices:
      - type: OnOffPlugInUnitDevice
        name: Desk Lamp
        topics:
          getOnline: tele/desk/LWT
          getOn: stat/desk/POWER
          setOn: cmnd/desk/POWER

Each device entry is validated by the descriptor registered for its ``type``
(which also fills in option defaults) before a frozen ``DeviceConfig`` is
built from it. Every problem found is collected into a single
``ConfigValidationError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from mqtt_matter_bridge.const import BRIDGE_CONFIG_FILE_PATH, BRIDGE_FALLBACK_CONFIG_FILE_PATH
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.structs import OptionValue
from mqtt_matter_bridge.utils import create_endpoint_id

if TYPE_CHECKING:
    from mqtt_matter_bridge.devices.registry import DeviceRegistry

__all__ = [
    "BridgeConfig",
    "BrokerConfig",
    "ConfigValidationError",
    "DeviceConfig",
    "load_config",
    "parse_config",
    "resolve_config_path",
]

logger = get_logger(__name__)


class ConfigValidationError(Exception):
    """Configuration is unusable; ``errors`` lists every problem found."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: list[str] = list(errors)
        details = "\n".join(f"  - {error}" for error in self.errors)
        super().__init__(f"Invalid configuration ({len(self.errors)} error(s)):\n{details}")


class BrokerConfig(BaseModel):
    """MQTT broker connection settings. Delays and timeouts are in seconds."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    host: str = Field(min_length=1)
    port: int = Field(default=1883, ge=1, le=65535)
    user: str | None = None
    password: str | None = Field(default=None, alias="pass")
    client_id: str | None = None
    max_reconnect_attempts: int = Field(default=10, ge=0)
    base_reconnect_delay: float = Field(default=1.0, gt=0)
    max_reconnect_delay: float = Field(default=60.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    qos: Literal[0, 1, 2] = 0


class DeviceConfig(BaseModel):
    """A validated device entry with every option default already applied.

    ``topics`` and ``options`` are read-only mappings.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    name: str = Field(min_length=1)
    topics: Mapping[str, str]
    options: Mapping[str, OptionValue] = Field(default_factory=dict, validate_default=True)

    @field_validator("topics", "options", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("topics", "options")
    def _dump_mapping(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)

    @property
    def endpoint_id(self) -> str:
        return create_endpoint_id(self.name)


class BridgeConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    broker: BrokerConfig
    devices: list[DeviceConfig]


def _format_pydantic_errors(prefix: str, exc: ValidationError) -> list[str]:
    errors: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        where = f"{prefix}.{location}" if location else prefix
        errors.append(f"{where}: {error['msg']}")
    return errors


def _parse_devices(raw_devices: object, registry: DeviceRegistry, errors: list[str]) -> list[DeviceConfig]:
    if not isinstance(raw_devices, list):
        errors.append("devices must be a list")
        return []
    if not raw_devices:
        errors.append("devices list cannot be empty")
        return []

    devices: list[DeviceConfig] = []
    seen_names: set[str] = set()
    seen_endpoint_ids: dict[str, str] = {}
    for index, raw_device in enumerate(raw_devices):
        where = f"devices[{index}]"
        if not isinstance(raw_device, Mapping):
            errors.append(f"{where}: must be a mapping")
            continue

        entry: dict[str, Any] = dict(raw_device)
        result = registry.validate_config(entry)
        if not result.valid:
            errors.extend(f"{where}: {error}" for error in result.errors)
            continue

        try:
            device = DeviceConfig.model_validate(entry)
        except ValidationError as exc:
            errors.extend(_format_pydantic_errors(where, exc))
            continue

        if device.name in seen_names:
            errors.append(f"{where}: Duplicate device name: {device.name}")
            continue
        endpoint_id = device.endpoint_id
        if endpoint_id in seen_endpoint_ids:
            errors.append(
                f"{where}: Device {device.name} maps to endpoint ID {endpoint_id} "
                f"already used by {seen_endpoint_ids[endpoint_id]}",
            )
            continue
        seen_names.add(device.name)
        seen_endpoint_ids[endpoint_id] = device.name
        devices.append(device)
    return devices


def parse_config(raw: object, registry: DeviceRegistry | None = None) -> BridgeConfig:
    """Validate already-loaded configuration data.

    Args:
        raw: Parsed YAML document
        registry: Device type registry used for per-device validation; the
            built-in types are used when omitted

    Raises:
        ConfigValidationError: One or more problems were found

    """
    if registry is None:
        from mqtt_matter_bridge.devices import create_default_registry

        registry = create_default_registry()

    if not isinstance(raw, Mapping):
        raise ConfigValidationError(["Configuration must be a mapping with 'broker' and 'devices' keys"])

    errors: list[str] = []
    broker: BrokerConfig | None = None
    try:
        broker = BrokerConfig.model_validate(raw.get("broker"))
    except ValidationError as exc:
        errors.extend(_format_pydantic_errors("broker", exc))

    devices = _parse_devices(raw.get("devices"), registry, errors)

    if errors or broker is None:
        raise ConfigValidationError(errors)
    return BridgeConfig(broker=broker, devices=devices)


def resolve_config_path(config_path: str | Path | None = None) -> Path:
    """Pick the configuration file.

    An explicit path wins. Otherwise ``BRIDGE_CONFIG_FILE_PATH`` (read at call
    time so ``--env`` files apply), then ``./config.yaml``.
    """
    if config_path is not None:
        return Path(config_path).expanduser().resolve()

    candidates = [
        Path(os.environ.get("BRIDGE_CONFIG_FILE_PATH", BRIDGE_CONFIG_FILE_PATH)),
        Path(BRIDGE_FALLBACK_CONFIG_FILE_PATH),
    ]
    for candidate in candidates:
        if candidate.expanduser().exists():
            return candidate.expanduser().resolve()
    return candidates[0].expanduser().resolve()


def load_config(config_path: str | Path | None = None, registry: DeviceRegistry | None = None) -> BridgeConfig:
    """Read, parse and validate the YAML configuration file.

    Raises:
        ConfigValidationError: The file is missing, unreadable, not valid YAML,
            or fails validation

    """
    path = resolve_config_path(config_path)
    logger.debug("Parsing config file: %s", path)
    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigValidationError([f"Failed to read config file {path}: {exc}"]) from exc
    except yaml.YAMLError as exc:
        raise ConfigValidationError([f"Failed to parse YAML in {path}: {exc}"]) from exc

    config = parse_config(raw, registry)
    logger.info(
        "Configuration loaded",
        extra={"config_path": str(path), "device_count": len(config.devices)},
    )
    return config
