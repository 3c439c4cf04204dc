"""In-process device graph used to expose bridged devices."""

from mqtt_matter_bridge.matter.clusters import (
    BRIDGED_DEVICE_BASIC_INFORMATION,
    COLOR_CONTROL,
    IDENTIFY,
    LEVEL_CONTROL,
    ON_OFF,
    SWITCH,
    ClusterSpec,
)
from mqtt_matter_bridge.matter.endpoint import Aggregator, Endpoint, EndpointStateError, Observable, changed_event
from mqtt_matter_bridge.matter.shapes import (
    DIMMABLE_LIGHT,
    EXTENDED_COLOR_LIGHT,
    GENERIC_SWITCH,
    ON_OFF_LIGHT,
    ON_OFF_PLUG_IN_UNIT,
    EndpointShape,
)

__all__ = [
    "BRIDGED_DEVICE_BASIC_INFORMATION",
    "COLOR_CONTROL",
    "DIMMABLE_LIGHT",
    "EXTENDED_COLOR_LIGHT",
    "GENERIC_SWITCH",
    "IDENTIFY",
    "LEVEL_CONTROL",
    "ON_OFF",
    "ON_OFF_LIGHT",
    "ON_OFF_PLUG_IN_UNIT",
    "SWITCH",
    "Aggregator",
    "ClusterSpec",
    "Endpoint",
    "EndpointShape",
    "EndpointStateError",
    "Observable",
    "changed_event",
]
