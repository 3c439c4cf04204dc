"""
Shared fixtures for unit tests.

This module provides reusable fixtures for building bridged devices against a
mock MQTT client and an in-process endpoint.
"""

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mqtt_matter_bridge.config import DeviceConfig
from mqtt_matter_bridge.devices import BridgedDevice, DeviceRegistry, create_default_registry
from mqtt_matter_bridge.matter import Endpoint

ON_OFF_TOPICS = {
    "getOnline": "plug/online",
    "getOn": "plug/state",
    "setOn": "plug/set",
}

DIMMABLE_TOPICS = {
    "getOnline": "lamp/online",
    "getOn": "lamp/state",
    "setOn": "lamp/set",
    "getBrightness": "lamp/brightness",
    "setBrightness": "lamp/brightness/set",
}

COLOR_TOPICS = {
    "getOnline": "bulb/online",
    "getOn": "bulb/state",
    "setOn": "bulb/set",
    "getBrightness": "bulb/brightness",
    "setBrightness": "bulb/brightness/set",
    "getRGB": "bulb/rgb",
    "setRGB": "bulb/rgb/set",
}

SWITCH_TOPICS = {
    "getOnline": "button/online",
    "setCommand": "button/cmd",
}

TV_TOPICS = {
    "getOnline": "tv/LWT",
    "getState": "tv/STATE",
    "setPower": "tv/cmnd/POWER",
}


async def drain(rounds: int = 5) -> None:
    """Let fire-and-forget endpoint writes and publishes run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def published(client: MagicMock, topic: str) -> list[str]:
    """Payloads published to ``topic`` on a mock client, in order."""
    return [call.args[1] for call in client.publish.call_args_list if call.args[0] == topic]


@pytest.fixture
def mock_mqtt_client():
    """
    Mock MQTT client for testing.

    Returns a MagicMock exposing the messaging client surface; publish and
    subscribe report success.
    """
    client = MagicMock()
    client.is_connected = True
    client.connect = AsyncMock(return_value=True)
    client.subscribe = AsyncMock(return_value=True)
    client.publish = AsyncMock(return_value=True)
    client.disconnect = AsyncMock()
    client.start = AsyncMock()
    client.on_message = MagicMock()
    client.off_message = MagicMock()
    return client


@pytest.fixture
def registry() -> DeviceRegistry:
    """Registry with every built-in device type."""
    return create_default_registry()


@pytest.fixture
def device_config(registry) -> Callable[..., DeviceConfig]:
    """Validate a raw device entry through the registry and build its DeviceConfig."""

    def _build(type_name: str, name: str, topics: dict[str, str], options: dict[str, Any] | None = None):
        entry: dict[str, Any] = {"type": type_name, "name": name, "topics": dict(topics)}
        if options is not None:
            entry["options"] = dict(options)
        result = registry.validate_config(entry)
        assert result.valid, result.errors
        return DeviceConfig.model_validate(entry)

    return _build


@pytest.fixture
def build_device(registry, device_config, mock_mqtt_client) -> Callable[..., BridgedDevice]:
    """Create an endpoint and bridged device the way the bridge does."""

    def _build(type_name: str, name: str, topics: dict[str, str], options: dict[str, Any] | None = None):
        config = device_config(type_name, name, topics, options)
        descriptor = registry.lookup(type_name)
        assert descriptor is not None
        endpoint_config = descriptor.create_endpoint_config(config)
        endpoint = Endpoint(descriptor.get_endpoint_shape(config), config.endpoint_id, endpoint_config.state)
        return registry.create_device(config, endpoint, mock_mqtt_client)

    return _build


@pytest.fixture
def sample_config_data():
    """
    Sample bridge configuration as loaded from YAML.

    One device of every built-in type.
    """
    return {
        "broker": {"host": "localhost", "port": 1883, "user": "bridge", "pass": "secret"},
        "devices": [
            {"type": "OnOffPlugInUnitDevice", "name": "Desk Plug", "topics": dict(ON_OFF_TOPICS)},
            {"type": "DimmableLightDevice", "name": "Hall Lamp", "topics": dict(DIMMABLE_TOPICS)},
            {
                "type": "ExtendedColorLightDevice",
                "name": "Bedroom Bulb",
                "topics": dict(COLOR_TOPICS),
                "options": {"hex": True},
            },
            {
                "type": "GenericSwitchDevice",
                "name": "Door Button",
                "topics": dict(SWITCH_TOPICS),
                "options": {"commandValue": "PRESS"},
            },
            {"type": "TVDevice", "name": "Living Room TV", "topics": dict(TV_TOPICS)},
        ],
    }
