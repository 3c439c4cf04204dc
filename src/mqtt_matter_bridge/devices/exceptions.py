"""Exception hierarchy for device type registration and lookup."""

from __future__ import annotations

from collections.abc import Sequence


class DeviceRegistryError(Exception):
    """Base class for registry integrity errors."""


class DuplicateDeviceTypeError(DeviceRegistryError):
    """A device type name was registered twice.

    Attributes:
        type_name: The type name that was already registered

    """

    def __init__(self, type_name: str) -> None:
        self.type_name: str = type_name
        super().__init__(f"Device type already registered: {type_name}")


class UnknownDeviceTypeError(DeviceRegistryError):
    """No descriptor is registered under the requested type name.

    Attributes:
        type_name: The requested type name
        available_types: Registered type names, in registration order

    """

    def __init__(self, type_name: str, available_types: Sequence[str]) -> None:
        self.type_name: str = type_name
        self.available_types: list[str] = list(available_types)
        super().__init__(unknown_type_message(type_name, self.available_types))


def unknown_type_message(type_name: object, available_types: Sequence[str]) -> str:
    return f"Unknown device type: {type_name}. Available types: {', '.join(available_types)}"
