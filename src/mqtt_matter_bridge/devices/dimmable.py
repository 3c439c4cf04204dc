"""Dimmable lights: DimmableLightDevice."""

from __future__ import annotations

from typing import TYPE_CHECKING, override

from mqtt_matter_bridge.const import DEFAULT_LEVEL
from mqtt_matter_bridge.converters import brightness_to_level, level_to_brightness, parse_brightness
from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.metadata import ON_OFF_OPTIONS, DeviceDescriptor, basic_information_state
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import BRIDGED_DEVICE_BASIC_INFORMATION, DIMMABLE_LIGHT
from mqtt_matter_bridge.structs import AttributeState, Capability, TopicSchema

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.matter import EndpointShape

logger = get_logger(__name__)


class DimmableDevice(BridgedDevice):
    @override
    def _handle_message(self, role: str, message: str) -> None:
        match role:
            case "getOnline":
                self.handle_availability(message)
            case "getOn":
                self.handle_on_off_state(message)
            case "getBrightness":
                self.handle_brightness_state(message)
            case _:
                logger.debug("%s No handler for topic role %s", self.lp, role)

    def handle_brightness_state(self, message: str) -> None:
        brightness = parse_brightness(message)
        if brightness is None:
            logger.error("%s Invalid brightness value: %s", self.lp, message, extra={"device": self.name})
            return
        logger.info("%s MQTT brightness: %s", self.lp, brightness)
        self._set_attributes("levelControl", {"currentLevel": brightness_to_level(brightness)}, "brightness")

    @override
    def _setup_endpoint_listeners(self) -> None:
        _ = self._listen_changed("onOff", "onOff", self._on_on_off_changed)
        _ = self._listen_changed("levelControl", "currentLevel", self._on_level_changed)

    def _on_on_off_changed(self, value: bool, *_: object) -> None:
        self.publish_on_off(value, "setOn")

    def _on_level_changed(self, value: int | None, *_: object) -> None:
        if value is None:
            return
        logger.info("%s Endpoint brightness changed to: %s", self.lp, value)
        self._publish("setBrightness", str(level_to_brightness(value)), "brightness")


def _dimmable_shape(_config: DeviceConfig) -> EndpointShape:
    return DIMMABLE_LIGHT.with_clusters(BRIDGED_DEVICE_BASIC_INFORMATION)


def _dimmable_initial_state(config: DeviceConfig) -> AttributeState:
    return {
        "bridgedDeviceBasicInformation": basic_information_state(config.name, reachable=True),
        "onOff": {"onOff": True},
        "levelControl": {"currentLevel": DEFAULT_LEVEL},
    }


DIMMABLE_DESCRIPTOR = DeviceDescriptor(
    name="DimmableDevice",
    type_names=("DimmableLightDevice",),
    capabilities=frozenset({Capability.AVAILABILITY, Capability.ONOFF, Capability.DIMMING}),
    topic_schema=TopicSchema(required=("getOnline", "getOn", "setOn", "getBrightness", "setBrightness")),
    option_schema=ON_OFF_OPTIONS,
    subscribed_topics=("getOnline", "getOn", "getBrightness"),
    device_class=DimmableDevice,
    endpoint_shape=_dimmable_shape,
    initial_state=_dimmable_initial_state,
    behaviors=(BRIDGED_DEVICE_BASIC_INFORMATION,),
)
