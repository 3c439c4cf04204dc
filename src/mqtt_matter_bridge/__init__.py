"""MQTT to Matter bridge.

Keeps MQTT topic-addressed devices and their Matter-style attribute graph
endpoints in sync in both directions.
"""

__version__ = "0.1.0"
