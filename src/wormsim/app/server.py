from __future__ import annotations

import argparse
import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from ..sim.core.config import (
    TUNABLE_FLAGS,
    TUNABLE_LIMITS,
    ConfigError,
    SimulationConfig,
    apply_tunables,
    load_app_config,
    tunables,
)
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_MAX_QUEUED_SNAPSHOTS = 240


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.world.setup(config.viewport_width, config.viewport_height)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=_MAX_QUEUED_SNAPSHOTS)
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True
        logger.info("Simulation running")

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation paused at tick %d", self.tick)

    async def toggle(self) -> bool:
        if self.running:
            await self.stop()
        else:
            await self.start()
        return self.running

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def refresh(self, overrides: Mapping[str, Any] | None = None) -> None:
        async with self._lock:
            self.world.refresh(**dict(overrides or {}))
            self.config = self.world.config
        await self._broadcast_snapshot()

    async def update_params(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = set(values) - set(TUNABLE_LIMITS) - set(TUNABLE_FLAGS)
        if unknown:
            raise ConfigError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        async with self._lock:
            config = apply_tunables(self.world.config, values)
            self.world.configure(config)
            self.config = config
        logger.info("Parameters updated: %s", tunables(self.config))
        return tunables(self.config)

    async def resize(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ConfigError(f"Viewport must be positive, got {width}x{height}")
        async with self._lock:
            self.world.resize(width, height)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._lock:
                self.world.step(self.tick)
                self.tick += 1
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        payload = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "worms": snapshot.worms,
                "viewport": asdict(snapshot.viewport),
                "metadata": asdict(snapshot.metadata),
                "commands": snapshot.commands,
            },
        }
        return QueuedSnapshot(tick=snapshot.tick, payload=json.dumps(payload))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)
            logger.info("Dropped disconnected client")


app = FastAPI(title="Worm Simulation")
controller = SimulationController(SimulationConfig())
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.world.metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": len(controller.world.worms),
            "params": tunables(controller.config),
            "metrics": asdict(metrics) if metrics is not None else None,
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    controller.running = True
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    controller.running = False
    return JSONResponse({"running": False})


@app.post("/api/control/toggle")
async def toggle_simulation() -> JSONResponse:
    running = await controller.toggle()
    return JSONResponse({"running": running})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/refresh")
async def refresh_simulation(payload: dict | None = None) -> JSONResponse:
    try:
        await controller.refresh(payload or {})
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return JSONResponse({"tick": controller.tick, "params": tunables(controller.config)})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/params")
async def set_params(payload: dict) -> JSONResponse:
    try:
        params = await controller.update_params(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return JSONResponse(params)


@app.post("/api/viewport")
async def set_viewport(payload: dict) -> JSONResponse:
    try:
        width = float(payload["width"])
        height = float(payload["height"])
        await controller.resize(width, height)
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return JSONResponse({"width": width, "height": height})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    logger.info("Client connected (%d total)", len(controller.clients))
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict) and payload.get("type") == "ack":
                tick = payload.get("tick")
                if isinstance(tick, int):
                    await controller.acknowledge(tick)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)
        logger.info("Client disconnected (%d remaining)", len(controller.clients))


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the worm simulation over HTTP/WebSocket")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.config:
        global controller
        app_config = load_app_config(args.config)
        controller = SimulationController(app_config.simulation, broadcast_interval=app_config.broadcast_interval)
        logger.info("Loaded config from %s", args.config)

    import uvicorn

    uvicorn.run(app, host=args.host, port=args.port)


__all__ = ["app", "controller", "main"]


if __name__ == "__main__":
    main()
