from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from typing import Any, AsyncIterator, Dict, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from ..logging_config import configure_logging
from ..sim.core.config import ConfigError, SimulationConfig, apply_config_updates, tunables
from ..sim.core.world import Clock, World

logger = logging.getLogger(__name__)

MAX_QUEUED_SNAPSHOTS = 256


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, clock: Clock | None = None):
        self.config = config
        self.world = World(config) if clock is None else World(config, clock=clock)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque(maxlen=MAX_QUEUED_SNAPSHOTS)
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True
        logger.info("Simulation started at tick %d", self.tick)

    async def stop(self) -> None:
        self.running = False
        logger.info("Simulation stopped at tick %d", self.tick)

    async def shutdown(self) -> None:
        self.running = False
        task = self._broadcast_task
        self._broadcast_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        logger.info(
            "Simulation reset: %d herbivores, %d food",
            self.config.herbivore_amount,
            self.config.food_amount,
        )
        await self._broadcast_snapshot()

    async def update_config(self, values: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            return apply_config_updates(self.config, values)

    async def select(self, x: float, y: float) -> Dict[str, Any] | None:
        async with self._lock:
            agent = self.world.select_at(x, y)
            if agent is None:
                return None
            return asdict(self.world.agent_stats(agent))

    async def deselect(self) -> None:
        async with self._lock:
            self.world.deselect()

    async def selected_stats(self) -> Dict[str, Any] | None:
        async with self._lock:
            stats = self.world.agent_stats()
        return None if stats is None else asdict(stats)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(1.0 / self.config.frames_per_second)
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
                "herbivores": snapshot.herbivores,
                "food": snapshot.food,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
                "selected_id": snapshot.selected_id,
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
        async with self._lock:
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


controller = SimulationController(SimulationConfig())


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    await controller.start()
    yield
    await controller.shutdown()


app = FastAPI(title="Pasture Simulation", lifespan=_lifespan)


@app.get("/api/status")
async def status() -> JSONResponse:
    snapshot = controller.world.snapshot(controller.tick)
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "population": snapshot.metrics.population,
            "metrics": asdict(snapshot.metrics),
        }
    )


@app.get("/api/config")
async def get_config() -> JSONResponse:
    return JSONResponse(tunables(controller.config))


@app.post("/api/config")
async def update_config(payload: dict) -> JSONResponse:
    try:
        values = await controller.update_config(payload)
    except ConfigError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    return JSONResponse(values)


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    try:
        values = await controller.update_config({"simulation_speed": payload.get("multiplier", 1.0)})
    except ConfigError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    return JSONResponse({"multiplier": values["simulation_speed"]})


@app.post("/api/select")
async def select_agent(payload: dict) -> JSONResponse:
    try:
        x = float(payload["x"])
        y = float(payload["y"])
    except (KeyError, TypeError, ValueError):
        return JSONResponse({"error": "x and y are required numbers"}, status_code=400)
    return JSONResponse({"selected": await controller.select(x, y)})


@app.post("/api/deselect")
async def deselect_agent() -> JSONResponse:
    await controller.deselect()
    return JSONResponse({"selected": None})


@app.get("/api/selected")
async def selected_agent() -> JSONResponse:
    return JSONResponse({"selected": await controller.selected_stats()})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
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


__all__ = ["app", "controller"]
