"""Core data structures and typing protocols for the MQTT Matter bridge."""

from __future__ import annotations

import asyncio
from argparse import Namespace
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Protocol

if TYPE_CHECKING:
    from mqtt_matter_bridge.bridge import MatterBridge
    from mqtt_matter_bridge.status_api import StatusServer


class Capability(StrEnum):
    """Descriptive capability tags a device type declares."""

    AVAILABILITY = "availability"
    ONOFF = "onoff"
    DIMMING = "dimming"
    COLOR = "color"
    SWITCH = "switch"


class OptionType(StrEnum):
    """Value types a device option may take."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class DeviceLifecycle(StrEnum):
    INITIALIZING = "initializing"
    ACTIVE = "active"
    CLOSED = "closed"


OptionValue = str | int | float | bool
AttributeState = dict[str, dict[str, Any]]
MessageHandler = Callable[[str, bytes], object]


@dataclass(frozen=True)
class TopicSchema:
    """Topic roles a device type consumes or produces.

    ``required`` and ``optional`` are disjoint; every configured topic must
    belong to one of them.
    """

    required: tuple[str, ...]
    optional: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.required) & set(self.optional)
        if overlap:
            msg = f"Topic roles cannot be both required and optional: {', '.join(sorted(overlap))}"
            raise ValueError(msg)

    @property
    def roles(self) -> tuple[str, ...]:
        return self.required + self.optional


@dataclass(frozen=True)
class OptionDefinition:
    """One recognised configuration option of a device type."""

    type: OptionType
    default: OptionValue
    description: str = ""

    def as_dict(self) -> dict[str, OptionValue]:
        return {"type": str(self.type), "default": self.default, "description": self.description}


OptionSchema = Mapping[str, OptionDefinition]


@dataclass
class EndpointConfiguration:
    """Initial endpoint state plus the ordered MQTT topics a device subscribes to."""

    state: AttributeState
    topics: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)


class MQTTClientProtocol(Protocol):
    """Messaging client surface used by bridged devices and the bridge."""

    @property
    def is_connected(self) -> bool:
        """Whether the broker connection is currently up."""
        ...

    async def connect(self) -> bool:
        """Connect to the broker, returning success."""
        ...

    async def subscribe(self, topics: Sequence[str]) -> bool:
        """Subscribe to ``topics``; remembered for replay after reconnect."""
        ...

    async def publish(self, topic: str, payload: str | bytes) -> bool:
        """Publish a message, returning False instead of raising on failure."""
        ...

    def on_message(self, handler: MessageHandler) -> None:
        """Register an inbound message listener."""
        ...

    def off_message(self, handler: MessageHandler) -> None:
        """Remove an inbound message listener."""
        ...

    async def start(self) -> None:
        """Receive messages until disconnected, reconnecting as needed."""
        ...

    async def disconnect(self) -> None:
        """Disconnect from the broker."""
        ...


class GlobalObject:
    """Singleton container for process-wide services."""

    loop: asyncio.AbstractEventLoop | None = None
    bridge: MatterBridge | None = None
    status_api: StatusServer | None = None
    tasks: ClassVar[list[asyncio.Task[Any]]] = []
    cli_args: Namespace | None = None

    _instance: GlobalObject | None = None

    def __new__(cls, *_args: Any, **_kwargs: Any) -> GlobalObject:
        """Ensure only one GlobalObject instance exists."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
