"""Shared runtime for bridged devices.

``BridgedDevice`` binds one ``DeviceConfig`` to its endpoint and the MQTT
client. Subclasses implement ``_handle_message`` (MQTT -> endpoint) and
``_setup_endpoint_listeners`` (endpoint -> MQTT) using the helpers here.

Endpoint writes and MQTT publishes never block the handler that issued them:
they run as tasks whose failures are logged with the device context and
otherwise dropped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Mapping
from typing import TYPE_CHECKING, Any

from mqtt_matter_bridge.instrumentation import timed_async
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.matter.endpoint import changed_event
from mqtt_matter_bridge.structs import DeviceLifecycle

if TYPE_CHECKING:
    from mqtt_matter_bridge.config import DeviceConfig
    from mqtt_matter_bridge.devices.metadata import DeviceDescriptor
    from mqtt_matter_bridge.matter import Endpoint, Observable
    from mqtt_matter_bridge.structs import MQTTClientProtocol

logger = get_logger(__name__)


class BridgedDevice:
    """Synchronizes one configured device between MQTT and its endpoint."""

    lp: str = "BridgedDevice:"

    def __init__(
        self,
        config: DeviceConfig,
        endpoint: Endpoint,
        mqtt_client: MQTTClientProtocol,
        descriptor: DeviceDescriptor,
    ) -> None:
        self.config: DeviceConfig = config
        self.endpoint: Endpoint = endpoint
        self.mqtt_client: MQTTClientProtocol = mqtt_client
        self.descriptor: DeviceDescriptor = descriptor
        self.name: str = config.name
        self.lp = f"{type(self).__name__}:{config.name}:"
        self.state: DeviceLifecycle = DeviceLifecycle.INITIALIZING
        self.topics: list[str] = descriptor.topics_for(config)
        # First role wins when two roles share a topic
        self._topic_roles: dict[str, str] = {}
        for role in descriptor.subscribed_topics:
            topic = config.topics.get(role)
            if topic and topic not in self._topic_roles:
                self._topic_roles[topic] = role
        self._tasks: set[asyncio.Task[Any]] = set()
        self._listeners: list[tuple[Observable, Callable[..., object]]] = []

    @property
    def options(self) -> Mapping[str, Any]:
        return self.config.options

    def owns_topic(self, topic: str) -> bool:
        return topic in self._topic_roles

    @timed_async("device_initialize")
    async def initialize(self) -> None:
        """Subscribe to this device's topics and start listening for endpoint changes."""
        lp = f"{self.lp}initialize:"
        subscribed = await self.mqtt_client.subscribe(self.topics)
        if not subscribed:
            logger.warning(
                "%s Subscribing to %s failed; topics will be subscribed when the broker connection returns",
                lp,
                self.topics,
            )
        self._setup_endpoint_listeners()
        self.state = DeviceLifecycle.ACTIVE
        logger.info(
            "%s initialized",
            lp,
            extra={"device": self.name, "type": self.config.type, "topics": len(self.topics)},
        )

    def handle_mqtt_message(self, topic: str, payload: bytes | str) -> None:
        """Handle an inbound message; topics this device does not own are ignored."""
        if self.state is DeviceLifecycle.CLOSED:
            return
        role = self._topic_roles.get(topic)
        if role is None:
            return

        if isinstance(payload, str):
            message = payload
        else:
            try:
                message = bytes(payload).decode("utf-8")
            except UnicodeDecodeError:
                logger.error(
                    "%s Dropping undecodable payload on %s",
                    self.lp,
                    topic,
                    extra={"device": self.name, "topic": topic, "payload": bytes(payload).hex(" ")},
                )
                return

        self._handle_message(role, message)

    def _handle_message(self, role: str, message: str) -> None:
        raise NotImplementedError

    def _setup_endpoint_listeners(self) -> None:
        raise NotImplementedError

    def _listen(self, cluster: str, event: str, listener: Callable[..., object]) -> bool:
        """Attach ``listener`` to an endpoint event; False when the endpoint lacks it."""
        observable = self.endpoint.events.get(cluster, {}).get(event)
        if observable is None:
            logger.debug("%s endpoint has no %s.%s event", self.lp, cluster, event)
            return False
        observable.on(listener)
        self._listeners.append((observable, listener))
        return True

    def _listen_changed(self, cluster: str, attribute: str, listener: Callable[..., object]) -> bool:
        return self._listen(cluster, changed_event(attribute), listener)

    def handle_availability(self, message: str) -> None:
        is_online = message == self.options["onlineValue"]
        logger.info("%s Availability: %s", self.lp, "online" if is_online else "offline")
        self._set_attributes("bridgedDeviceBasicInformation", {"reachable": is_online}, "reachable status")

    def handle_on_off_state(self, message: str) -> None:
        is_on = message == self.options["onValue"]
        logger.info("%s MQTT state: %s", self.lp, "ON" if is_on else "OFF")
        self._set_attributes("onOff", {"onOff": is_on}, "on/off state")

    def publish_on_off(self, value: bool, role: str) -> None:
        payload = self.options["onValue"] if value else self.options["offValue"]
        logger.info("%s Endpoint on/off changed to: %s", self.lp, "ON" if value else "OFF")
        self._publish(role, payload, "on/off")

    def _set_attributes(self, cluster: str, values: dict[str, Any], what: str) -> None:
        self._spawn(self.endpoint.set({cluster: values}), f"update {what}")

    def _publish(self, role: str, payload: str, what: str) -> None:
        topic = self.config.topics[role]
        self._spawn(self._publish_checked(topic, payload, what), f"publish {what}")

    async def _publish_checked(self, topic: str, payload: str, what: str) -> None:
        published = await self.mqtt_client.publish(topic, payload)
        if not published:
            logger.warning(
                "%s Failed to publish %s to %s",
                self.lp,
                what,
                topic,
                extra={"device": self.name, "topic": topic, "payload": payload},
            )

    def _spawn(self, coro: Coroutine[Any, Any, Any], what: str) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_task_done(done, what))

    def _on_task_done(self, task: asyncio.Task[Any], what: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "%s Failed to %s: %s",
                self.lp,
                what,
                exc,
                extra={"device": self.name, "error_type": type(exc).__name__},
            )

    def _cancel_timers(self) -> None:
        """Cancel pending timers; devices without timers have nothing to do."""

    def close(self) -> None:
        """Stop reacting to messages and endpoint events and cancel outstanding work."""
        self._cancel_timers()
        for observable, listener in self._listeners:
            observable.off(listener)
        self._listeners.clear()
        for task in list(self._tasks):
            if not task.done():
                _ = task.cancel()
        self.state = DeviceLifecycle.CLOSED
        logger.debug("%s closed", self.lp)

    def status(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.config.type,
            "descriptor": self.descriptor.name,
            "endpoint_id": self.endpoint.id,
            "state": str(self.state),
            "topics": list(self.topics),
            "endpoint": self.endpoint.to_dict()["state"],
        }
