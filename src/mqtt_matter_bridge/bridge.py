"""Bootstrap: builds one endpoint and one bridged device per configured entry
and wires them to the MQTT client.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from mqtt_matter_bridge.const import MQTT_CLIENT_START_TASK_NAME
from mqtt_matter_bridge.devices import DeviceFactory, UnknownDeviceTypeError, create_default_registry
from mqtt_matter_bridge.instrumentation import timed
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import Aggregator, Endpoint
from mqtt_matter_bridge.mqtt import MQTTClient

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import BridgeConfig, DeviceConfig
    from mqtt_matter_bridge.devices import BridgedDevice, DeviceRegistry
    from mqtt_matter_bridge.structs import MQTTClientProtocol

logger = get_logger(__name__)


class BridgeStartupError(Exception):
    """The bridge could not start, e.g. the broker is unreachable."""


class MatterBridge:
    lp: str = "MatterBridge:"
    start_task: asyncio.Task[None] | None = None

    def __init__(
        self,
        config: BridgeConfig,
        registry: DeviceRegistry | None = None,
        mqtt_client: MQTTClientProtocol | None = None,
    ) -> None:
        self.config: BridgeConfig = config
        self.registry: DeviceRegistry = registry if registry is not None else create_default_registry()
        self.mqtt_client: MQTTClientProtocol = mqtt_client if mqtt_client is not None else MQTTClient(config.broker)
        self.aggregator: Aggregator = Aggregator()
        self.factory: DeviceFactory = DeviceFactory(self.registry)
        self.devices: list[BridgedDevice] = []
        self.running: bool = False

    def build(self) -> list[BridgedDevice]:
        """Create every endpoint and bridged device; a no-op once built."""
        if self.devices:
            return self.devices

        lp = f"{self.lp}build:"
        for device_config in self.config.devices:
            descriptor = self.registry.lookup(device_config.type)
            if descriptor is None:
                raise UnknownDeviceTypeError(device_config.type, self.registry.list_registered_types())
            endpoint_config = descriptor.create_endpoint_config(device_config)
            endpoint = Endpoint(
                descriptor.get_endpoint_shape(device_config),
                device_config.endpoint_id,
                endpoint_config.state,
            )
            self.aggregator.add(endpoint)
            self._watch_identify(endpoint, device_config)
            self.devices.append(self.factory.create_device(device_config, endpoint, self.mqtt_client))
            logger.info(
                "%s Added device %s",
                lp,
                device_config.name,
                extra={"type": device_config.type, "endpoint_id": endpoint.id},
            )

        logger.info("%s Built %d device(s)", lp, len(self.devices))
        return self.devices

    def _watch_identify(self, endpoint: Endpoint, device_config: DeviceConfig) -> None:
        for event in ("startIdentifying", "stopIdentifying"):
            if endpoint.has_event("identify", event):
                endpoint.events["identify"][event].on(
                    lambda *_, event=event: logger.info(
                        "%s %s: %s",
                        self.lp,
                        device_config.name,
                        "identify started" if event == "startIdentifying" else "identify stopped",
                    )
                )

    @timed("bridge_dispatch")
    def dispatch(self, topic: str, payload: bytes) -> None:
        """Hand a message to every device in configuration order."""
        for device in self.devices:
            try:
                device.handle_mqtt_message(topic, payload)
            except Exception:
                logger.exception("%s %s failed to handle message on %s", self.lp, device.name, topic)

    async def start(self) -> None:
        lp = f"{self.lp}start:"
        _ = self.build()
        self.mqtt_client.on_message(self.dispatch)

        if not await self.mqtt_client.connect():
            self.mqtt_client.off_message(self.dispatch)
            msg = f"Could not connect to MQTT broker {self.config.broker.host}:{self.config.broker.port}"
            raise BridgeStartupError(msg)

        for device in self.devices:
            await device.initialize()

        self.running = True
        self.start_task = asyncio.create_task(self.mqtt_client.start(), name=MQTT_CLIENT_START_TASK_NAME)
        logger.info("%s Bridge running with %d device(s)", lp, len(self.devices))

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        logger.info("%s Stopping bridge...", lp)
        for device in self.devices:
            device.close()
        self.mqtt_client.off_message(self.dispatch)
        await self.mqtt_client.disconnect()
        if self.start_task and not self.start_task.done():
            logger.debug("%s Cancelling MQTT receiver task", lp)
            _ = self.start_task.cancel()
        self.running = False
        logger.info("%s Bridge stopped", lp)

    def status(self) -> dict[str, Any]:
        return {
            "running": self.running,
            "mqtt_connected": self.mqtt_client.is_connected,
            "aggregator": self.aggregator.id,
            "device_count": len(self.devices),
        }

    def get_device(self, endpoint_id: str) -> BridgedDevice | None:
        for device in self.devices:
            if device.endpoint.id == endpoint_id:
                return device
        return None
