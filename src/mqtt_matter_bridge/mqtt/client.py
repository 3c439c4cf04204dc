"""aiomqtt-backed messaging client.

Owns the broker connection, remembers subscriptions so they can be replayed
after a reconnect, and fans every inbound message out to the registered
handlers.
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from typing import TYPE_CHECKING

import aiomqtt

from mqtt_matter_bridge.const import BRIDGE_MQTT_CLIENT_PREFIX
from mqtt_matter_bridge.correlation import correlation_context
from mqtt_matter_bridge.logging_abstraction import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mqtt_matter_bridge.config import BrokerConfig
    from mqtt_matter_bridge.structs import MessageHandler

logger = get_logger(__name__)


def _payload_bytes(payload: object) -> bytes:
    match payload:
        case None:
            return b""
        case bytes():
            return payload
        case bytearray():
            return bytes(payload)
        case str():
            return payload.encode()
        case _:
            return str(payload).encode()


class MQTTClient:
    lp: str = "mqtt:"

    def __init__(self, broker: BrokerConfig) -> None:
        self.broker: BrokerConfig = broker
        self.broker_client_id: str = broker.client_id or f"{BRIDGE_MQTT_CLIENT_PREFIX}-{uuid.uuid4().hex[:8]}"
        self.client: aiomqtt.Client | None = None
        self.reconnect_attempts: int = 0
        self._connected: bool = False
        self._subscriptions: list[str] = []
        self._handlers: list[MessageHandler] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def subscriptions(self) -> tuple[str, ...]:
        return tuple(self._subscriptions)

    def reconnect_delay(self, attempt: int) -> float:
        """Seconds to wait before reconnect ``attempt`` (1-based)."""
        exponent = max(attempt, 1) - 1
        return min(self.broker.base_reconnect_delay * 2**exponent, self.broker.max_reconnect_delay)

    async def connect(self) -> bool:
        lp = f"{self.lp}connect:"
        self._connected = False
        logger.debug("%s Connecting to MQTT broker %s:%s...", lp, self.broker.host, self.broker.port)
        self.client = aiomqtt.Client(
            hostname=self.broker.host,
            port=self.broker.port,
            username=self.broker.user,
            password=self.broker.password,
            identifier=self.broker_client_id,
            timeout=self.broker.connect_timeout,
            clean_session=True,
        )
        try:
            _ = await self.client.__aenter__()
        except aiomqtt.MqttError as mqtt_err_exc:
            # [code:134] Bad user name or password
            logger.warning(
                "%s Connection failed [MqttError] -> %s",
                lp,
                mqtt_err_exc,
                extra={"host": self.broker.host, "port": self.broker.port},
            )
            if "code:134" in str(mqtt_err_exc):
                logger.error("%s Bad username or password (username: %s)", lp, self.broker.user)
            return False

        self._connected = True
        self.reconnect_attempts = 0
        logger.info("%s Connected to MQTT broker: %s port: %s", lp, self.broker.host, self.broker.port)
        if self._subscriptions:
            _ = await self._subscribe_topics(self._subscriptions)
        return True

    async def subscribe(self, topics: Sequence[str]) -> bool:
        """Subscribe to ``topics``; they are remembered and re-subscribed on reconnect."""
        new_topics = [topic for topic in dict.fromkeys(topics) if topic not in self._subscriptions]
        self._subscriptions.extend(new_topics)
        if not self._connected:
            return False
        return await self._subscribe_topics(new_topics)

    async def _subscribe_topics(self, topics: Sequence[str]) -> bool:
        lp = f"{self.lp}subscribe:"
        assert self.client is not None, "client must be initialized"
        try:
            for topic in topics:
                _ = await self.client.subscribe(topic, qos=self.broker.qos)
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
            self._connected = False
            return False
        logger.debug("%s Subscribed to MQTT topics: %s", lp, list(topics))
        return True

    async def publish(self, topic: str, payload: str | bytes) -> bool:
        """Publish a message; failures are logged and reported as False."""
        lp = f"{self.lp}publish:"
        if not self._connected:
            logger.debug("%s Not connected, dropping message for %s", lp, topic)
            return False
        assert self.client is not None, "client must be initialized"
        try:
            _ = await self.client.publish(topic, payload, qos=self.broker.qos, retain=False)
        except aiomqtt.MqttCodeError as mqtt_code_exc:
            logger.warning("%s [MqttCodeError] -> %s", lp, mqtt_code_exc)
            self._connected = False
        except aiomqtt.MqttError as mqtt_err:
            logger.warning("%s [MqttError] -> %s", lp, mqtt_err)
            self._connected = False
        else:
            return True
        return False

    def on_message(self, handler: MessageHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def off_message(self, handler: MessageHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def dispatch(self, topic: str, payload: bytes) -> None:
        """Deliver one message to every handler under a fresh correlation ID."""
        lp = f"{self.lp}dispatch:"
        with correlation_context():
            for handler in list(self._handlers):
                try:
                    result = handler(topic, payload)
                    if inspect.isawaitable(result):
                        _ = await result
                except Exception:
                    logger.exception("%s Message handler %r failed for topic %s", lp, handler, topic)

    async def _receive(self) -> None:
        lp = f"{self.lp}rcv:"
        assert self.client is not None, "client must be initialized"
        logger.debug("%s Waiting for MQTT messages...", lp)
        async for message in self.client.messages:
            topic = message.topic.value
            payload = _payload_bytes(message.payload)
            logger.debug("%s Received message: topic=%s, payload_len=%d", lp, topic, len(payload))
            await self.dispatch(topic, payload)

    async def start(self) -> None:
        """Receive messages until cancelled, reconnecting with exponential backoff."""
        lp = f"{self.lp}start:"
        try:
            while True:
                if self._connected:
                    try:
                        await self._receive()
                    except aiomqtt.MqttError as mqtt_err:
                        logger.warning("%s Connection to broker lost: %s", lp, mqtt_err)
                        self._connected = False
                        continue
                    logger.debug("%s Message stream closed", lp)
                    return

                if self.reconnect_attempts >= self.broker.max_reconnect_attempts:
                    logger.error(
                        "%s Giving up after %d reconnect attempts",
                        lp,
                        self.reconnect_attempts,
                        extra={"host": self.broker.host, "port": self.broker.port},
                    )
                    return
                self.reconnect_attempts += 1
                delay = self.reconnect_delay(self.reconnect_attempts)
                logger.info(
                    "%s Reconnecting in %.1f seconds (attempt %d/%d)...",
                    lp,
                    delay,
                    self.reconnect_attempts,
                    self.broker.max_reconnect_attempts,
                )
                await asyncio.sleep(delay)
                _ = await self.connect()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("%s MQTT start() EXCEPTION", lp)

    async def disconnect(self) -> None:
        lp = f"{self.lp}disconnect:"
        try:
            if self.client is not None and self._connected:
                logger.debug("%s Disconnecting from broker...", lp)
                await self.client.__aexit__(None, None, None)
                logger.info("%s Disconnected from MQTT broker", lp)
        except aiomqtt.MqttError as ce:
            logger.warning("%s MQTT disconnect failed: %s", lp, ce)
        finally:
            self._connected = False
