"""In-process attribute graph: endpoints, change notifications and the aggregator.

An ``Endpoint`` holds ``state[cluster][attribute]`` for the clusters of its
shape. Writes go through ``set``, which validates the whole patch before
applying any of it and then notifies ``events[cluster][attribute + "$Changed"]``
listeners for every value that actually changed, followed by one
``events[cluster]["stateChanged"]`` per touched cluster.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter.shapes import EndpointShape

__all__ = [
    "Aggregator",
    "Endpoint",
    "EndpointStateError",
    "Observable",
    "changed_event",
]

logger = get_logger(__name__)

STATE_CHANGED_EVENT = "stateChanged"


def changed_event(attribute: str) -> str:
    """Name of the change notification for ``attribute``."""
    return f"{attribute}$Changed"


class EndpointStateError(Exception):
    """An endpoint write or trigger referenced a cluster, attribute or event the shape lacks."""

    def __init__(self, endpoint_id: str, reason: str) -> None:
        self.endpoint_id: str = endpoint_id
        self.reason: str = reason
        super().__init__(f"[{endpoint_id}] {reason}")


class Observable:
    """A list of listeners called synchronously, in registration order."""

    def __init__(self, name: str) -> None:
        self.name: str = name
        self._listeners: list[Callable[..., object]] = []

    def on(self, listener: Callable[..., object]) -> None:
        self._listeners.append(listener)

    def off(self, listener: Callable[..., object]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, *args: object) -> None:
        for listener in list(self._listeners):
            try:
                _ = listener(*args)
            except Exception:
                logger.exception("Observable:%s: listener %r raised", self.name, listener)

    def __len__(self) -> int:
        return len(self._listeners)


class Endpoint:
    lp: str = "Endpoint:"

    def __init__(
        self,
        shape: EndpointShape,
        endpoint_id: str,
        state: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        self.shape: EndpointShape = shape
        self.id: str = endpoint_id
        self.lp = f"Endpoint:{endpoint_id}:"
        self._state: dict[str, dict[str, Any]] = {cluster.name: {} for cluster in shape.clusters}
        self.events: dict[str, dict[str, Observable]] = {}
        for cluster in shape.clusters:
            cluster_events = {
                changed_event(attribute): Observable(f"{endpoint_id}.{cluster.name}.{changed_event(attribute)}")
                for attribute in sorted(cluster.attributes)
            }
            cluster_events[STATE_CHANGED_EVENT] = Observable(f"{endpoint_id}.{cluster.name}.{STATE_CHANGED_EVENT}")
            for event in sorted(cluster.events):
                cluster_events[event] = Observable(f"{endpoint_id}.{cluster.name}.{event}")
            self.events[cluster.name] = cluster_events

        if state:
            self._validate(state)
            for cluster_name, values in state.items():
                self._state[cluster_name].update(values)

    @property
    def device_type(self) -> str:
        return self.shape.device_type

    @property
    def state(self) -> Mapping[str, Mapping[str, Any]]:
        """Read-only view of the current attribute values."""
        return MappingProxyType({name: MappingProxyType(values) for name, values in self._state.items()})

    def _validate(self, patch: Mapping[str, Mapping[str, Any]]) -> None:
        for cluster_name, values in patch.items():
            cluster = self.shape.cluster(cluster_name)
            if cluster is None:
                raise EndpointStateError(self.id, f"Unknown cluster: {cluster_name}")
            unknown = set(values) - cluster.attributes
            if unknown:
                raise EndpointStateError(
                    self.id,
                    f"Unknown attribute(s) for cluster {cluster_name}: {', '.join(sorted(unknown))}",
                )

    async def set(self, patch: Mapping[str, Mapping[str, Any]]) -> None:
        """Apply ``{cluster: {attribute: value}}``; nothing is written if any part is invalid."""
        self._validate(patch)

        changes: list[tuple[str, str, Any, Any]] = []
        touched: list[str] = []
        for cluster_name, values in patch.items():
            current = self._state[cluster_name]
            for attribute, value in values.items():
                old_value = current.get(attribute)
                if attribute in current and old_value == value:
                    continue
                current[attribute] = value
                changes.append((cluster_name, attribute, value, old_value))
                if cluster_name not in touched:
                    touched.append(cluster_name)

        for cluster_name, attribute, value, old_value in changes:
            logger.debug("%s %s.%s: %r -> %r", self.lp, cluster_name, attribute, old_value, value)
            self.events[cluster_name][changed_event(attribute)].emit(value, old_value)
        for cluster_name in touched:
            self.events[cluster_name][STATE_CHANGED_EVENT].emit(dict(self._state[cluster_name]))

    def trigger(self, cluster_name: str, event: str, payload: object = None) -> None:
        """Raise a cluster event such as ``switch.initialPress``."""
        cluster = self.shape.cluster(cluster_name)
        if cluster is None:
            raise EndpointStateError(self.id, f"Unknown cluster: {cluster_name}")
        if event not in cluster.events:
            raise EndpointStateError(self.id, f"Unknown event for cluster {cluster_name}: {event}")
        logger.debug("%s event %s.%s payload=%r", self.lp, cluster_name, event, payload)
        if payload is None:
            self.events[cluster_name][event].emit()
        else:
            self.events[cluster_name][event].emit(payload)

    def has_event(self, cluster_name: str, event: str) -> bool:
        return event in self.events.get(cluster_name, {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "device_type": self.device_type,
            "state": {name: dict(values) for name, values in self._state.items()},
        }


class Aggregator:
    """Ordered container of bridged endpoints; endpoint IDs are unique."""

    def __init__(self, aggregator_id: str = "aggregator") -> None:
        self.id: str = aggregator_id
        self._endpoints: dict[str, Endpoint] = {}

    def add(self, endpoint: Endpoint) -> None:
        if endpoint.id in self._endpoints:
            msg = f"Endpoint ID already in use on {self.id}: {endpoint.id}"
            raise ValueError(msg)
        self._endpoints[endpoint.id] = endpoint
        logger.debug("Aggregator:%s: added endpoint %s (%s)", self.id, endpoint.id, endpoint.device_type)

    def get(self, endpoint_id: str) -> Endpoint | None:
        return self._endpoints.get(endpoint_id)

    @property
    def endpoints(self) -> tuple[Endpoint, ...]:
        return tuple(self._endpoints.values())

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints.values())

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, endpoint_id: object) -> bool:
        return endpoint_id in self._endpoints
