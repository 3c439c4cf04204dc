from __future__ import annotations

from typing import TYPE_CHECKING

from mqtt_matter_bridge.logging_abstraction import get_logger

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.devices.base_device import BridgedDevice
    from mqtt_matter_bridge.devices.registry import DeviceRegistry
    from mqtt_matter_bridge.matter import Endpoint
    from mqtt_matter_bridge.structs import MQTTClientProtocol

logger = get_logger(__name__)


class DeviceFactory:
    """Resolves a configured device's type and builds its synchronization instance.

    The only place an unknown type can surface at instantiation time.
    """

    lp: str = "DeviceFactory:"

    def __init__(self, registry: DeviceRegistry) -> None:
        self.registry: DeviceRegistry = registry

    def create_device(
        self,
        config: DeviceConfig,
        endpoint: Endpoint,
        mqtt_client: MQTTClientProtocol,
    ) -> BridgedDevice:
        device = self.registry.create_device(config, endpoint, mqtt_client)
        logger.debug(
            "%s Created %s for %s",
            self.lp,
            type(device).__name__,
            config.name,
            extra={"type": config.type, "endpoint_id": endpoint.id},
        )
        return device
