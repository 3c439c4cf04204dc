"""Stateless push buttons: GenericSwitchDevice with the MomentarySwitch feature."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, override

from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.metadata import AVAILABILITY_OPTIONS, DeviceDescriptor, basic_information_state
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import BRIDGED_DEVICE_BASIC_INFORMATION, GENERIC_SWITCH, SWITCH
from mqtt_matter_bridge.structs import AttributeState, Capability, OptionDefinition, OptionType, TopicSchema

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.matter import EndpointShape

logger = get_logger(__name__)

MOMENTARY_SWITCH = SWITCH.with_features("MomentarySwitch")


class MomentarySwitchDevice(BridgedDevice):
    """Availability in; each initialPress publishes ``commandValue`` to setCommand."""

    @override
    def _handle_message(self, role: str, message: str) -> None:
        if role == "getOnline":
            self.handle_availability(message)
        else:
            logger.debug("%s No handler for topic role %s", self.lp, role)

    @override
    def _setup_endpoint_listeners(self) -> None:
        _ = self._listen("switch", "initialPress", self._on_initial_press)

    def _on_initial_press(self, event: object = None, *_: object) -> None:
        position = event.get("newPosition") if isinstance(event, Mapping) else None
        logger.info("%s Button pressed (position: %s)", self.lp, position)
        self._publish("setCommand", str(self.options["commandValue"]), "command")


def _switch_shape(_config: DeviceConfig) -> EndpointShape:
    return GENERIC_SWITCH.with_clusters(BRIDGED_DEVICE_BASIC_INFORMATION, MOMENTARY_SWITCH)


def _switch_initial_state(config: DeviceConfig) -> AttributeState:
    return {
        "bridgedDeviceBasicInformation": basic_information_state(config.name, reachable=True),
        "switch": {"numberOfPositions": 2, "currentPosition": 0},
    }


MOMENTARY_SWITCH_DESCRIPTOR = DeviceDescriptor(
    name="MomentarySwitchDevice",
    type_names=("GenericSwitchDevice",),
    capabilities=frozenset({Capability.AVAILABILITY, Capability.SWITCH}),
    topic_schema=TopicSchema(required=("getOnline", "setCommand")),
    option_schema={
        **AVAILABILITY_OPTIONS,
        "commandValue": OptionDefinition(OptionType.STRING, "", "Value to publish when the button is pressed"),
    },
    subscribed_topics=("getOnline",),
    device_class=MomentarySwitchDevice,
    endpoint_shape=_switch_shape,
    initial_state=_switch_initial_state,
    behaviors=(BRIDGED_DEVICE_BASIC_INFORMATION, MOMENTARY_SWITCH),
)
