"""Extended colour lights: ExtendedColorLightDevice.

Colour flows one way. Hue and saturation are commanded from the endpoint side
and published to ``setRGB`` as a single hex value; RGB arriving on ``getRGB``
is parsed and logged but never written to the colour control cluster.

Controllers usually change hue and saturation as a near-simultaneous pair, so
the RGB publish is debounced: every change (re)schedules one publish
``rgb_debounce_ms`` later, and that publish reads the level current at the
time it fires.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, override

from mqtt_matter_bridge.const import BRIDGE_RGB_DEBOUNCE_MS, DEFAULT_LEVEL
from mqtt_matter_bridge.converters import (
    HSV,
    brightness_to_level,
    hex_to_hsv,
    hsv_to_hex,
    level_to_brightness,
    parse_brightness,
)
from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.metadata import ON_OFF_OPTIONS, DeviceDescriptor, basic_information_state
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter import BRIDGED_DEVICE_BASIC_INFORMATION, COLOR_CONTROL, EXTENDED_COLOR_LIGHT
from mqtt_matter_bridge.structs import (
    AttributeState,
    Capability,
    DeviceLifecycle,
    OptionDefinition,
    OptionType,
    TopicSchema,
)

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.matter import Endpoint, EndpointShape
    from mqtt_matter_bridge.structs import MQTTClientProtocol

logger = get_logger(__name__)

HUE_SATURATION_COLOR_CONTROL = COLOR_CONTROL.with_features("HueSaturation")


class ColorDevice(BridgedDevice):
    rgb_debounce_ms: ClassVar[int] = BRIDGE_RGB_DEBOUNCE_MS

    def __init__(
        self,
        config: DeviceConfig,
        endpoint: Endpoint,
        mqtt_client: MQTTClientProtocol,
        descriptor: DeviceDescriptor,
    ) -> None:
        super().__init__(config, endpoint, mqtt_client, descriptor)
        self.current_hue: int = 0
        self.current_saturation: int = 0
        # Last colour reported over MQTT; informational only
        self.last_reported_hsv: HSV | None = None
        self._rgb_timer: asyncio.TimerHandle | None = None

    @property
    def hex_prefix(self) -> str | None:
        return str(self.options["hexPrefix"]) if self.options["hex"] else None

    @property
    def rgb_publish_pending(self) -> bool:
        return self._rgb_timer is not None

    @override
    def _handle_message(self, role: str, message: str) -> None:
        match role:
            case "getOnline":
                self.handle_availability(message)
            case "getOn":
                self.handle_on_off_state(message)
            case "getBrightness":
                self.handle_brightness_state(message)
            case "getRGB":
                self.handle_rgb_state(message)
            case _:
                logger.debug("%s No handler for topic role %s", self.lp, role)

    def handle_brightness_state(self, message: str) -> None:
        brightness = parse_brightness(message)
        if brightness is None:
            logger.error("%s Invalid brightness value: %s", self.lp, message, extra={"device": self.name})
            return
        logger.info("%s MQTT brightness: %s", self.lp, brightness)
        self._set_attributes("levelControl", {"currentLevel": brightness_to_level(brightness)}, "brightness")

    def handle_rgb_state(self, message: str) -> None:
        hsv = hex_to_hsv(message, self.hex_prefix)
        if hsv is None:
            logger.error("%s Invalid RGB value: %s", self.lp, message, extra={"device": self.name})
            return
        self.last_reported_hsv = hsv
        logger.info(
            "%s MQTT RGB %s (H:%s S:%s V:%s) ignored, colour is controlled from the endpoint",
            self.lp,
            message,
            hsv.hue,
            hsv.saturation,
            hsv.value,
        )

    @override
    def _setup_endpoint_listeners(self) -> None:
        _ = self._listen_changed("onOff", "onOff", self._on_on_off_changed)
        _ = self._listen_changed("levelControl", "currentLevel", self._on_level_changed)

        hue_bound = self._listen_changed("colorControl", "currentHue", self._on_hue_changed)
        saturation_bound = self._listen_changed("colorControl", "currentSaturation", self._on_saturation_changed)
        if not (hue_bound and saturation_bound):
            logger.debug("%s Falling back to colorControl.stateChanged", self.lp)
            _ = self._listen("colorControl", "stateChanged", self._on_color_state_changed)

        color_state = self.endpoint.state.get("colorControl", {})
        if color_state.get("currentHue") is not None:
            self.current_hue = color_state["currentHue"]
        if color_state.get("currentSaturation") is not None:
            self.current_saturation = color_state["currentSaturation"]
        logger.debug("%s Initial hue: %s saturation: %s", self.lp, self.current_hue, self.current_saturation)

    def _on_on_off_changed(self, value: bool, *_: object) -> None:
        self.publish_on_off(value, "setOn")

    def _on_level_changed(self, value: int | None, *_: object) -> None:
        if value is None:
            return
        logger.info("%s Endpoint brightness changed to: %s", self.lp, value)
        self._publish("setBrightness", str(level_to_brightness(value)), "brightness")
        # Level is the V in the published colour
        self.schedule_rgb_publish()

    def _on_hue_changed(self, value: int | None, *_: object) -> None:
        if value is not None and value != self.current_hue:
            self.current_hue = value
            self.schedule_rgb_publish()

    def _on_saturation_changed(self, value: int | None, *_: object) -> None:
        if value is not None and value != self.current_saturation:
            self.current_saturation = value
            self.schedule_rgb_publish()

    def _on_color_state_changed(self, state: Mapping[str, Any], *_: object) -> None:
        changed = False
        hue = state.get("currentHue")
        if hue is not None and hue != self.current_hue:
            self.current_hue = hue
            changed = True
        saturation = state.get("currentSaturation")
        if saturation is not None and saturation != self.current_saturation:
            self.current_saturation = saturation
            changed = True
        if changed:
            self.schedule_rgb_publish()

    def schedule_rgb_publish(self) -> None:
        """(Re)start the debounce window for the combined RGB publish."""
        if self._rgb_timer is not None:
            self._rgb_timer.cancel()
        loop = asyncio.get_running_loop()
        self._rgb_timer = loop.call_later(self.rgb_debounce_ms / 1000, self._publish_rgb)

    def _publish_rgb(self) -> None:
        self._rgb_timer = None
        if self.state is DeviceLifecycle.CLOSED:
            return
        level = self.endpoint.state.get("levelControl", {}).get("currentLevel")
        if level is None:
            level = DEFAULT_LEVEL
        rgb_hex = hsv_to_hex(HSV(self.current_hue, self.current_saturation, level), self.hex_prefix)
        logger.info(
            "%s Publishing RGB: %s (H:%s S:%s V:%s)",
            self.lp,
            rgb_hex,
            self.current_hue,
            self.current_saturation,
            level,
        )
        self._publish("setRGB", rgb_hex, "RGB")

    @override
    def _cancel_timers(self) -> None:
        if self._rgb_timer is not None:
            self._rgb_timer.cancel()
            self._rgb_timer = None


def _color_shape(_config: DeviceConfig) -> EndpointShape:
    return EXTENDED_COLOR_LIGHT.with_clusters(BRIDGED_DEVICE_BASIC_INFORMATION, HUE_SATURATION_COLOR_CONTROL)


def _color_initial_state(config: DeviceConfig) -> AttributeState:
    return {
        "bridgedDeviceBasicInformation": basic_information_state(config.name, reachable=True),
        "onOff": {"onOff": True},
        "levelControl": {"currentLevel": DEFAULT_LEVEL},
        "colorControl": {"currentHue": 0, "currentSaturation": 0},
    }


COLOR_DESCRIPTOR = DeviceDescriptor(
    name="ColorDevice",
    type_names=("ExtendedColorLightDevice",),
    capabilities=frozenset({Capability.AVAILABILITY, Capability.ONOFF, Capability.DIMMING, Capability.COLOR}),
    topic_schema=TopicSchema(
        required=("getOnline", "getOn", "setOn", "getBrightness", "setBrightness", "getRGB", "setRGB"),
    ),
    option_schema={
        **ON_OFF_OPTIONS,
        "hex": OptionDefinition(OptionType.BOOLEAN, False, "Whether RGB payloads carry a hex prefix"),
        "hexPrefix": OptionDefinition(OptionType.STRING, "#", "Prefix used when hex is enabled"),
    },
    subscribed_topics=("getOnline", "getOn", "getBrightness", "getRGB"),
    device_class=ColorDevice,
    endpoint_shape=_color_shape,
    initial_state=_color_initial_state,
    behaviors=(BRIDGED_DEVICE_BASIC_INFORMATION, HUE_SATURATION_COLOR_CONTROL),
)
