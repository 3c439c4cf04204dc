"""Device type registry.

Maps configuration ``type`` names to descriptors. Populated once at startup
by ``register_builtin_device_types`` and only read afterwards.
"""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

from mqtt_matter_bridge.devices.exceptions import (
    DuplicateDeviceTypeError,
    UnknownDeviceTypeError,
    unknown_type_message,
)
from mqtt_matter_bridge.devices.metadata import create_validation_result
from mqtt_matter_bridge.logging_abstraction import get_logger

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.devices.base_device import BridgedDevice
    from mqtt_matter_bridge.devices.metadata import DeviceDescriptor
    from mqtt_matter_bridge.matter import Endpoint
    from mqtt_matter_bridge.structs import MQTTClientProtocol, ValidationResult

logger = get_logger(__name__)


class DeviceRegistry:
    lp: str = "DeviceRegistry:"

    def __init__(self) -> None:
        self._descriptors: dict[str, DeviceDescriptor] = {}

    def register(self, type_name: str, descriptor: DeviceDescriptor) -> None:
        """Register ``descriptor`` under ``type_name``.

        Raises:
            DuplicateDeviceTypeError: ``type_name`` is already registered; the
                existing descriptor is kept

        """
        if type_name in self._descriptors:
            raise DuplicateDeviceTypeError(type_name)
        self._descriptors[type_name] = descriptor
        logger.debug("%s Registered device type %s -> %s", self.lp, type_name, descriptor.name)

    def register_descriptor(self, descriptor: DeviceDescriptor) -> None:
        """Register ``descriptor`` under every type name it declares, or under none."""
        for type_name in descriptor.type_names:
            if type_name in self._descriptors:
                raise DuplicateDeviceTypeError(type_name)
        for type_name in descriptor.type_names:
            self.register(type_name, descriptor)

    def lookup(self, type_name: str) -> DeviceDescriptor | None:
        return self._descriptors.get(type_name)

    def is_registered(self, type_name: str) -> bool:
        return type_name in self._descriptors

    def list_registered_types(self) -> list[str]:
        """Registered type names in registration order."""
        return list(self._descriptors)

    def descriptors(self) -> list[DeviceDescriptor]:
        """Distinct descriptors in registration order."""
        unique: list[DeviceDescriptor] = []
        for descriptor in self._descriptors.values():
            if descriptor not in unique:
                unique.append(descriptor)
        return unique

    def validate_config(self, config: MutableMapping[str, Any]) -> ValidationResult:
        type_name = config.get("type")
        descriptor = self._descriptors.get(type_name) if isinstance(type_name, str) else None
        if descriptor is None:
            return create_validation_result([unknown_type_message(type_name, self.list_registered_types())])
        return descriptor.validate_config(config)

    def create_device(
        self,
        config: DeviceConfig,
        endpoint: Endpoint,
        mqtt_client: MQTTClientProtocol,
    ) -> BridgedDevice:
        """Build the synchronization instance for ``config``.

        Raises:
            UnknownDeviceTypeError: ``config.type`` is not registered

        """
        descriptor = self._descriptors.get(config.type)
        if descriptor is None:
            raise UnknownDeviceTypeError(config.type, self.list_registered_types())
        return descriptor.create_device(config, endpoint, mqtt_client)

    def clear(self) -> None:
        self._descriptors.clear()

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._descriptors
