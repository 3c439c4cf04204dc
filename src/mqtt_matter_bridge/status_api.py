"""Read-only HTTP introspection of the running bridge."""

from __future__ import annotations

import asyncio
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from mqtt_matter_bridge.const import BRIDGE_STATUS_API_HOST, BRIDGE_STATUS_API_PORT, BRIDGE_VERSION
from mqtt_matter_bridge.devices import create_default_registry
from mqtt_matter_bridge.logging_abstraction import get_logger
from mqtt_matter_bridge.structs import GlobalObject

logger = get_logger(__name__)
g = GlobalObject()

app = FastAPI(title="MQTT Matter bridge", version=BRIDGE_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health() -> dict[str, Any]:
    if g.bridge is None:
        return {"status": "starting", "version": BRIDGE_VERSION, "bridge": None}
    return {"status": "ok" if g.bridge.running else "stopped", "version": BRIDGE_VERSION, "bridge": g.bridge.status()}


@app.get("/api/device-types")
async def device_types() -> dict[str, Any]:
    """Registered type names and the descriptor each resolves to."""
    registry = g.bridge.registry if g.bridge is not None else create_default_registry()
    return {
        "types": registry.list_registered_types(),
        "descriptors": [descriptor.describe() for descriptor in registry.descriptors()],
    }


@app.get("/api/devices")
async def list_devices() -> dict[str, Any]:
    devices = g.bridge.devices if g.bridge is not None else []
    return {"devices": [device.status() for device in devices]}


@app.get("/api/devices/{endpoint_id}")
async def get_device(endpoint_id: str) -> dict[str, Any]:
    device = g.bridge.get_device(endpoint_id) if g.bridge is not None else None
    if device is None:
        raise HTTPException(status_code=404, detail=f"No device with endpoint ID {endpoint_id}")
    return device.status()


class StatusServer:
    """Singleton class managing the status API server lifecycle."""

    lp = "StatusServer:"
    running: bool = False
    start_task: asyncio.Task[None] | None = None
    _instance: StatusServer | None = None

    def __new__(cls, *_args: object, **_kwargs: object) -> StatusServer:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, host: str = BRIDGE_STATUS_API_HOST, port: int = BRIDGE_STATUS_API_PORT) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.uvi_server = uvicorn.Server(
            config=uvicorn.Config(
                app,
                host=host,
                port=port,
                log_config={
                    "version": 1,
                    "disable_existing_loggers": False,
                },
                log_level="info",
            )
        )

    async def start(self) -> None:
        lp = f"{self.lp}start:"
        logger.info("%s Starting status API on %s:%s", lp, self.host, self.port)
        self.running = True
        try:
            await self.uvi_server.serve()
        except asyncio.CancelledError:
            logger.info("%s Status API stopped", lp)
            raise
        except Exception:
            logger.exception("%s Error running status API", lp)
        finally:
            self.running = False

    async def stop(self) -> None:
        lp = f"{self.lp}stop:"
        logger.info("%s Stopping status API...", lp)
        self.uvi_server.should_exit = True
        if self.start_task and not self.start_task.done():
            try:
                _ = await asyncio.wait_for(asyncio.shield(self.start_task), timeout=5)
            except TimeoutError:
                logger.warning("%s Status API did not exit in time, cancelling", lp)
                _ = self.start_task.cancel()
        self.running = False
