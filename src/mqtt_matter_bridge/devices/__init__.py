"""Bridged device types and the registry they are looked up through."""

from mqtt_matter_bridge.devices.base_device import BridgedDevice
from mqtt_matter_bridge.devices.color import COLOR_DESCRIPTOR, ColorDevice
from mqtt_matter_bridge.devices.dimmable import DIMMABLE_DESCRIPTOR, DimmableDevice
from mqtt_matter_bridge.devices.exceptions import (
    DeviceRegistryError,
    DuplicateDeviceTypeError,
    UnknownDeviceTypeError,
)
from mqtt_matter_bridge.devices.factory import DeviceFactory
from mqtt_matter_bridge.devices.metadata import DeviceDescriptor
from mqtt_matter_bridge.devices.momentary_switch import MOMENTARY_SWITCH_DESCRIPTOR, MomentarySwitchDevice
from mqtt_matter_bridge.devices.on_off import ON_OFF_DESCRIPTOR, OnOffDevice
from mqtt_matter_bridge.devices.registry import DeviceRegistry
from mqtt_matter_bridge.devices.tv import TV_DESCRIPTOR, TVDevice

__all__ = [
    "BUILTIN_DESCRIPTORS",
    "BridgedDevice",
    "ColorDevice",
    "DeviceDescriptor",
    "DeviceFactory",
    "DeviceRegistry",
    "DeviceRegistryError",
    "DimmableDevice",
    "DuplicateDeviceTypeError",
    "MomentarySwitchDevice",
    "OnOffDevice",
    "TVDevice",
    "UnknownDeviceTypeError",
    "create_default_registry",
    "register_builtin_device_types",
]

BUILTIN_DESCRIPTORS: tuple[DeviceDescriptor, ...] = (
    ON_OFF_DESCRIPTOR,
    DIMMABLE_DESCRIPTOR,
    COLOR_DESCRIPTOR,
    MOMENTARY_SWITCH_DESCRIPTOR,
    TV_DESCRIPTOR,
)


def register_builtin_device_types(registry: DeviceRegistry) -> DeviceRegistry:
    """Register every built-in device type on ``registry``."""
    for descriptor in BUILTIN_DESCRIPTORS:
        registry.register_descriptor(descriptor)
    return registry


def create_default_registry() -> DeviceRegistry:
    return register_builtin_device_types(DeviceRegistry())
