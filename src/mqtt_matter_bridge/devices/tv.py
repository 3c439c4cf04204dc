"""TVs exposed as on/off plug-in units.

State arrives as a JSON object on getState, e.g.
``{"Time":"2025-12-24T17:42:22","POWER":"ON","INPUT":"HDMI3"}``; only
``POWER`` is used. Power changes from the endpoint publish to setPower.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, override

from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.metadata import ON_OFF_OPTIONS, DeviceDescriptor, basic_information_state
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import BRIDGED_DEVICE_BASIC_INFORMATION, ON_OFF_PLUG_IN_UNIT
from mqtt_matter_bridge.structs import AttributeState, Capability, TopicSchema

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.matter import EndpointShape

logger = get_logger(__name__)


class TVDevice(BridgedDevice):
    @override
    def _handle_message(self, role: str, message: str) -> None:
        match role:
            case "getOnline":
                self.handle_availability(message)
            case "getState":
                self.handle_state_update(message)
            case _:
                logger.debug("%s No handler for topic role %s", self.lp, role)

    def handle_state_update(self, message: str) -> None:
        try:
            state = json.loads(message)
        except json.JSONDecodeError as exc:
            logger.error(
                "%s Failed to parse STATE JSON: %s (%s)",
                self.lp,
                message,
                exc,
                extra={"device": self.name},
            )
            return

        if not isinstance(state, dict):
            logger.warning("%s STATE payload is not a JSON object, ignoring: %s", self.lp, message)
            return

        power = state.get("POWER")
        if power is None:
            logger.debug("%s STATE payload has no POWER field", self.lp)
            return

        is_on = power == self.options["onValue"]
        logger.info("%s MQTT power state from JSON: %s", self.lp, "ON" if is_on else "OFF")
        self._set_attributes("onOff", {"onOff": is_on}, "on/off state")

    @override
    def _setup_endpoint_listeners(self) -> None:
        _ = self._listen_changed("onOff", "onOff", self._on_power_changed)

    def _on_power_changed(self, value: bool, *_: object) -> None:
        self.publish_on_off(value, "setPower")


def _tv_shape(_config: DeviceConfig) -> EndpointShape:
    # Plug-in unit until a video player device type is available
    return ON_OFF_PLUG_IN_UNIT.with_clusters(BRIDGED_DEVICE_BASIC_INFORMATION)


def _tv_initial_state(config: DeviceConfig) -> AttributeState:
    return {
        "bridgedDeviceBasicInformation": basic_information_state(
            config.name,
            reachable=False,
            product_name=f"{config.name} (TV)",
            kind="tv",
        ),
        "onOff": {"onOff": False},
    }


TV_DESCRIPTOR = DeviceDescriptor(
    name="TVDevice",
    type_names=("TVDevice",),
    capabilities=frozenset({Capability.AVAILABILITY, Capability.ONOFF}),
    topic_schema=TopicSchema(required=("getOnline", "getState", "setPower")),
    option_schema=ON_OFF_OPTIONS,
    subscribed_topics=("getOnline", "getState"),
    device_class=TVDevice,
    endpoint_shape=_tv_shape,
    initial_state=_tv_initial_state,
    behaviors=(BRIDGED_DEVICE_BASIC_INFORMATION,),
)
