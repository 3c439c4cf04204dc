from mqtt_matter_bridge.mqtt.client import MQTTClient

__all__ = ["MQTTClient"]
