"""Cluster definitions exposed by bridged endpoints.

Only the attributes and events the bridge reads, writes or listens to are
modelled. Feature-gated attributes and events (colour control hue/saturation,
momentary switch presses) are present only when the feature is enabled via
``with_features``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

__all__ = [
    "BRIDGED_DEVICE_BASIC_INFORMATION",
    "COLOR_CONTROL",
    "IDENTIFY",
    "LEVEL_CONTROL",
    "ON_OFF",
    "SWITCH",
    "ClusterSpec",
]


def _frozen(mapping: Mapping[str, frozenset[str]]) -> Mapping[str, frozenset[str]]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, eq=False)
class ClusterSpec:
    name: str
    base_attributes: frozenset[str]
    base_events: frozenset[str] = frozenset()
    feature_attributes: Mapping[str, frozenset[str]] = field(default_factory=dict)
    feature_events: Mapping[str, frozenset[str]] = field(default_factory=dict)
    features: frozenset[str] = frozenset()

    @property
    def supported_features(self) -> frozenset[str]:
        return frozenset(self.feature_attributes) | frozenset(self.feature_events)

    @property
    def attributes(self) -> frozenset[str]:
        attributes = set(self.base_attributes)
        for feature in self.features:
            attributes |= self.feature_attributes.get(feature, frozenset())
        return frozenset(attributes)

    @property
    def events(self) -> frozenset[str]:
        events = set(self.base_events)
        for feature in self.features:
            events |= self.feature_events.get(feature, frozenset())
        return frozenset(events)

    def with_features(self, *features: str) -> ClusterSpec:
        """Return a copy of this cluster with exactly ``features`` enabled."""
        unknown = set(features) - self.supported_features
        if unknown:
            msg = f"Cluster {self.name} has no feature(s): {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        return replace(self, features=frozenset(features))

    def describe(self) -> dict[str, object]:
        return {
            "name": self.name,
            "features": sorted(self.features),
            "attributes": sorted(self.attributes),
            "events": sorted(self.events),
        }


BRIDGED_DEVICE_BASIC_INFORMATION = ClusterSpec(
    name="bridgedDeviceBasicInformation",
    base_attributes=frozenset(
        {"nodeLabel", "productName", "productLabel", "serialNumber", "reachable", "vendorName", "uniqueId"},
    ),
)

IDENTIFY = ClusterSpec(
    name="identify",
    base_attributes=frozenset({"identifyTime", "identifyType"}),
    base_events=frozenset({"startIdentifying", "stopIdentifying"}),
)

ON_OFF = ClusterSpec(
    name="onOff",
    base_attributes=frozenset({"onOff"}),
)

LEVEL_CONTROL = ClusterSpec(
    name="levelControl",
    base_attributes=frozenset({"currentLevel", "minLevel", "maxLevel", "onLevel"}),
)

COLOR_CONTROL = ClusterSpec(
    name="colorControl",
    base_attributes=frozenset({"colorMode", "enhancedColorMode"}),
    feature_attributes=_frozen(
        {
            "HueSaturation": frozenset({"currentHue", "currentSaturation"}),
            "Xy": frozenset({"currentX", "currentY"}),
            "ColorTemperature": frozenset({"colorTemperatureMireds"}),
        },
    ),
)

SWITCH = ClusterSpec(
    name="switch",
    base_attributes=frozenset({"numberOfPositions", "currentPosition"}),
    feature_attributes=_frozen(
        {
            "MomentarySwitchMultiPress": frozenset({"multiPressMax"}),
        },
    ),
    feature_events=_frozen(
        {
            "LatchingSwitch": frozenset({"switchLatched"}),
            "MomentarySwitch": frozenset({"initialPress"}),
            "MomentarySwitchRelease": frozenset({"shortRelease"}),
            "MomentarySwitchLongPress": frozenset({"longPress", "longRelease"}),
            "MomentarySwitchMultiPress": frozenset({"multiPressOngoing", "multiPressComplete"}),
        },
    ),
)
