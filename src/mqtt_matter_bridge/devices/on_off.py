"""On/off plugs and lights: OnOffPlugInUnitDevice, OnOffLightDevice."""

from __future__ import annotations

from typing import TYPE_CHECKING, override

from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.metadata import ON_OFF_OPTIONS, DeviceDescriptor, basic_information_state
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import BRIDGED_DEVICE_BASIC_INFORMATION, ON_OFF_LIGHT, ON_OFF_PLUG_IN_UNIT
from mqtt_matter_bridge.structs import AttributeState, Capability, TopicSchema

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.matter import EndpointShape

logger = get_logger(__name__)


class OnOffDevice(BridgedDevice):
    """getOnline -> reachable, getOn -> onOff; onOff changes publish to setOn."""

    @override
    def _handle_message(self, role: str, message: str) -> None:
        match role:
            case "getOnline":
                self.handle_availability(message)
            case "getOn":
                self.handle_on_off_state(message)
            case _:
                logger.debug("%s No handler for topic role %s", self.lp, role)

    @override
    def _setup_endpoint_listeners(self) -> None:
        _ = self._listen_changed("onOff", "onOff", self._on_on_off_changed)

    def _on_on_off_changed(self, value: bool, *_: object) -> None:
        self.publish_on_off(value, "setOn")


def _on_off_shape(config: DeviceConfig) -> EndpointShape:
    base = ON_OFF_LIGHT if config.type == "OnOffLightDevice" else ON_OFF_PLUG_IN_UNIT
    return base.with_clusters(BRIDGED_DEVICE_BASIC_INFORMATION)


def _on_off_initial_state(config: DeviceConfig) -> AttributeState:
    # Unreachable until the device reports in on its availability topic
    return {
        "bridgedDeviceBasicInformation": basic_information_state(config.name, reachable=False),
        "onOff": {"onOff": True},
    }


ON_OFF_DESCRIPTOR = DeviceDescriptor(
    name="OnOffDevice",
    type_names=("OnOffPlugInUnitDevice", "OnOffLightDevice"),
    capabilities=frozenset({Capability.AVAILABILITY, Capability.ONOFF}),
    topic_schema=TopicSchema(required=("getOnline", "getOn", "setOn")),
    option_schema=ON_OFF_OPTIONS,
    subscribed_topics=("getOnline", "getOn"),
    device_class=OnOffDevice,
    endpoint_shape=_on_off_shape,
    initial_state=_on_off_initial_state,
    behaviors=(BRIDGED_DEVICE_BASIC_INFORMATION,),
)
