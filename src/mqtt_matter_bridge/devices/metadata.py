"""Device type descriptors.

A ``DeviceDescriptor`` is the immutable, type-level record for one kind of
bridged device: which topics and options it accepts, how a configuration is
validated, what endpoint shape and initial state it gets, and which
``BridgedDevice`` subclass keeps it in sync. Adding a device type means
building one descriptor and registering it; nothing else dispatches on type
names.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from mqtt_matter_bridge.const import BRIDGE_SERIAL_PREFIX
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.structs import (
    AttributeState,
    Capability,
    EndpointConfiguration,
    OptionDefinition,
    OptionSchema,
    OptionType,
    OptionValue,
    TopicSchema,
    ValidationResult,
)
from mqtt_matter_bridge.utils import create_endpoint_id

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.devices.base_device import BridgedDevice
    from mqtt_matter_bridge.matter import ClusterSpec, Endpoint, EndpointShape
    from mqtt_matter_bridge.structs import MQTTClientProtocol

__all__ = [
    "AVAILABILITY_OPTIONS",
    "ON_OFF_OPTIONS",
    "DeviceDescriptor",
    "apply_option_defaults",
    "basic_information_state",
    "create_validation_result",
    "serial_number_for",
    "validate_option_types",
    "validate_topics",
]

logger = get_logger(__name__)

AVAILABILITY_OPTIONS: OptionSchema = MappingProxyType(
    {
        "onlineValue": OptionDefinition(OptionType.STRING, "Online", "Value representing 'online' state"),
        "offlineValue": OptionDefinition(OptionType.STRING, "Offline", "Value representing 'offline' state"),
    },
)

ON_OFF_OPTIONS: OptionSchema = MappingProxyType(
    {
        "onValue": OptionDefinition(OptionType.STRING, "ON", "Value representing 'on' state"),
        "offValue": OptionDefinition(OptionType.STRING, "OFF", "Value representing 'off' state"),
        **AVAILABILITY_OPTIONS,
    },
)


def create_validation_result(errors: list[str] | None = None) -> ValidationResult:
    errors = errors or []
    return ValidationResult(valid=not errors, errors=errors)


def validate_topics(config: Mapping[str, Any], schema: TopicSchema, device_name: str) -> list[str]:
    """Check the ``topics`` mapping against ``schema``.

    Every required role must map to a non-empty string, and no role outside
    ``required`` and ``optional`` may appear.
    """
    errors: list[str] = []
    topics = config.get("topics") or {}
    if not isinstance(topics, Mapping):
        return [f"[{device_name}] topics must be a mapping of role to topic"]

    for role in schema.required:
        if not topics.get(role):
            errors.append(f"[{device_name}] Missing required topic: {role}")

    known_roles = set(schema.roles)
    for role, topic in topics.items():
        if role not in known_roles:
            errors.append(f"[{device_name}] Unknown topic: {role}")
        elif topic and not isinstance(topic, str):
            errors.append(f"[{device_name}] Topic {role} must be a string, got {_type_name(topic)}")

    return errors


def _type_name(value: object) -> str:
    if isinstance(value, bool):
        return OptionType.BOOLEAN
    if isinstance(value, int | float):
        return OptionType.NUMBER
    if isinstance(value, str):
        return OptionType.STRING
    return type(value).__name__


def _matches(value: object, option_type: OptionType) -> bool:
    match option_type:
        case OptionType.BOOLEAN:
            return isinstance(value, bool)
        case OptionType.NUMBER:
            return isinstance(value, int | float) and not isinstance(value, bool)
        case OptionType.STRING:
            return isinstance(value, str)
        case _:
            return False


def validate_option_types(config: Mapping[str, Any], schema: OptionSchema, device_name: str) -> list[str]:
    """Type-check the options present in ``config``. Unknown option names only warn."""
    errors: list[str] = []
    options = config.get("options") or {}
    if not isinstance(options, Mapping):
        return [f"[{device_name}] options must be a mapping of name to value"]

    for key, value in options.items():
        definition = schema.get(key)
        if definition is None:
            logger.warning(
                "[%s] Unknown option %s will be ignored",
                device_name,
                key,
                extra={"device": device_name, "option": key},
            )
            continue
        if value is None:
            continue
        if not _matches(value, definition.type):
            errors.append(
                f"[{device_name}] Option {key} must be a {definition.type}, got {_type_name(value)}",
            )
    return errors


def apply_option_defaults(config: Mapping[str, Any], schema: OptionSchema) -> dict[str, Any]:
    """Return a copy of the configured options with every missing schema option defaulted."""
    raw_options = config.get("options")
    options: dict[str, Any] = dict(raw_options) if isinstance(raw_options, Mapping) else {}
    for key, definition in schema.items():
        if options.get(key) is None:
            options[key] = definition.default
    return options


def serial_number_for(device_name: str, kind: str | None = None) -> str:
    slug = create_endpoint_id(device_name)
    if kind:
        return f"{BRIDGE_SERIAL_PREFIX}-{kind}-{slug}"
    return f"{BRIDGE_SERIAL_PREFIX}-{slug}"


def basic_information_state(
    device_name: str,
    reachable: bool,
    product_name: str | None = None,
    kind: str | None = None,
) -> dict[str, Any]:
    """Initial bridgedDeviceBasicInformation attributes for a device."""
    return {
        "nodeLabel": device_name,
        "productName": product_name or device_name,
        "productLabel": device_name,
        "serialNumber": serial_number_for(device_name, kind),
        "reachable": reachable,
    }


@dataclass(frozen=True, eq=False)
class DeviceDescriptor:
    """Immutable description of one device type.

    Attributes:
        name: Descriptor name, e.g. "DimmableDevice"
        type_names: Configuration ``type`` values this descriptor accepts
        capabilities: Capability tags, kept for introspection
        topic_schema: Required and optional topic roles
        option_schema: Recognised options and their defaults
        subscribed_topics: Roles whose topics the device listens on, in order
        device_class: Synchronization class instantiated per configured device
        endpoint_shape: Builds the endpoint shape for a configuration
        initial_state: Builds the initial endpoint attribute state
        behaviors: Clusters mixed into the base device type shape

    """

    name: str
    type_names: tuple[str, ...]
    capabilities: frozenset[Capability]
    topic_schema: TopicSchema
    option_schema: OptionSchema
    subscribed_topics: tuple[str, ...]
    device_class: type[BridgedDevice]
    endpoint_shape: Callable[[DeviceConfig], EndpointShape]
    initial_state: Callable[[DeviceConfig], AttributeState]
    behaviors: tuple[ClusterSpec, ...] = ()

    def __post_init__(self) -> None:
        unknown_roles = set(self.subscribed_topics) - set(self.topic_schema.roles)
        if unknown_roles:
            msg = f"{self.name} subscribes to roles outside its topic schema: {', '.join(sorted(unknown_roles))}"
            raise ValueError(msg)
        # Freeze the schema so concurrent readers can share it
        object.__setattr__(self, "option_schema", MappingProxyType(dict(self.option_schema)))

    def validate_config(self, config: MutableMapping[str, Any]) -> ValidationResult:
        """Validate a raw device entry and store its defaulted options back on it.

        Errors are accumulated; one call reports every problem found.
        """
        errors: list[str] = []
        name = config.get("name")
        if not isinstance(name, str) or not name.strip():
            errors.append("Missing device name")
            name = None
        device_name = name or "unknown"

        if config.get("type") not in self.type_names:
            errors.append(f"[{device_name}] Invalid type for {self.name}: {config.get('type')}")

        errors.extend(validate_topics(config, self.topic_schema, device_name))
        errors.extend(validate_option_types(config, self.option_schema, device_name))

        if config.get("options") is None or isinstance(config.get("options"), Mapping):
            config["options"] = apply_option_defaults(config, self.option_schema)

        return create_validation_result(errors)

    def topics_for(self, config: DeviceConfig) -> list[str]:
        """Topic strings for the roles this type consumes, in subscription order."""
        return [config.topics[role] for role in self.subscribed_topics if config.topics.get(role)]

    def create_endpoint_config(self, config: DeviceConfig) -> EndpointConfiguration:
        return EndpointConfiguration(state=self.initial_state(config), topics=self.topics_for(config))

    def get_endpoint_shape(self, config: DeviceConfig) -> EndpointShape:
        return self.endpoint_shape(config)

    def get_behaviors(self) -> tuple[ClusterSpec, ...]:
        return self.behaviors

    def create_device(
        self,
        config: DeviceConfig,
        endpoint: Endpoint,
        mqtt_client: MQTTClientProtocol,
    ) -> BridgedDevice:
        return self.device_class(config, endpoint, mqtt_client, descriptor=self)

    def option_defaults(self) -> dict[str, OptionValue]:
        return {key: definition.default for key, definition in self.option_schema.items()}

    def describe(self) -> dict[str, Any]:
        """JSON-ready summary used by the status API."""
        return {
            "name": self.name,
            "type_names": list(self.type_names),
            "capabilities": sorted(str(capability) for capability in self.capabilities),
            "topics": {
                "required": list(self.topic_schema.required),
                "optional": list(self.topic_schema.optional),
                "subscribed": list(self.subscribed_topics),
            },
            "options": {key: definition.as_dict() for key, definition in self.option_schema.items()},
            "behaviors": [cluster.name for cluster in self.behaviors],
        }
