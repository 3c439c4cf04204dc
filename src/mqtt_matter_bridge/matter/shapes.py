"""Endpoint shapes: which clusters a bridged endpoint of a given device type exposes."""

from __future__ import annotations

from dataclasses import dataclass

from mqtt_matter_bridge.matter.clusters import (
    COLOR_CONTROL,
    IDENTIFY,
    LEVEL_CONTROL,
    ON_OFF,
    SWITCH,
    ClusterSpec,
)

__all__ = [
    "DIMMABLE_LIGHT",
    "EXTENDED_COLOR_LIGHT",
    "GENERIC_SWITCH",
    "ON_OFF_LIGHT",
    "ON_OFF_PLUG_IN_UNIT",
    "EndpointShape",
]


@dataclass(frozen=True, eq=False)
class EndpointShape:
    device_type: str
    clusters: tuple[ClusterSpec, ...]

    def with_clusters(self, *clusters: ClusterSpec) -> EndpointShape:
        """Add clusters, replacing any existing cluster of the same name in place."""
        replacements = {cluster.name: cluster for cluster in clusters}
        merged = [replacements.pop(cluster.name, cluster) for cluster in self.clusters]
        merged.extend(cluster for cluster in clusters if cluster.name in replacements)
        return EndpointShape(device_type=self.device_type, clusters=tuple(merged))

    def cluster(self, name: str) -> ClusterSpec | None:
        for cluster in self.clusters:
            if cluster.name == name:
                return cluster
        return None

    @property
    def cluster_names(self) -> tuple[str, ...]:
        return tuple(cluster.name for cluster in self.clusters)

    def describe(self) -> dict[str, object]:
        return {
            "device_type": self.device_type,
            "clusters": [cluster.describe() for cluster in self.clusters],
        }


ON_OFF_PLUG_IN_UNIT = EndpointShape("OnOffPlugInUnitDevice", (IDENTIFY, ON_OFF))
ON_OFF_LIGHT = EndpointShape("OnOffLightDevice", (IDENTIFY, ON_OFF))
DIMMABLE_LIGHT = EndpointShape("DimmableLightDevice", (IDENTIFY, ON_OFF, LEVEL_CONTROL))
EXTENDED_COLOR_LIGHT = EndpointShape(
    "ExtendedColorLightDevice",
    (IDENTIFY, ON_OFF, LEVEL_CONTROL, COLOR_CONTROL.with_features("Xy", "ColorTemperature")),
)
GENERIC_SWITCH = EndpointShape("GenericSwitchDevice", (IDENTIFY, SWITCH))
