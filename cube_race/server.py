"""FastAPI application exposing the cube race over websockets."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterable, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from starlette.websockets import WebSocketState

from .game.constants import RaceConfig
from .game.maps import MapCatalog
from .game.models import Accepted, MapValidationError, RaceSnapshot, RaceStatus, RejectReason
from .game.state import RaceState

logger = logging.getLogger(__name__)


def snapshot_message(kind: str, snapshot: RaceSnapshot) -> Dict[str, object]:
    message: Dict[str, object] = {"type": kind}
    message.update(snapshot.serialise())
    return message


class RaceServer:
    """Owns the race state, the websocket connections and the timers.

    Every mutation of ``race`` happens while holding ``lock``; messages are
    sent after it is released.
    """

    def __init__(self, config: RaceConfig, catalog: MapCatalog):
        self.config = config
        self.catalog = catalog
        self.race = RaceState(catalog.current(), config)
        self.lock = asyncio.Lock()
        self.map_lock = asyncio.Lock()
        self.connections: Dict[str, WebSocket] = {}
        self.loop_task: Optional[asyncio.Task] = None
        self.reset_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        if not self.loop_task or self.loop_task.done():
            self.loop_task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        self._cancel_reset()
        if self.loop_task:
            self.loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self.loop_task
            self.loop_task = None

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.tick_seconds)
            await self.tick()

    async def tick(self) -> None:
        async with self.lock:
            result = self.race.tick_once()
            if result.reset_generation is not None:
                self._schedule_reset(result.reset_generation)
        await self.broadcast(snapshot_message("state", result.snapshot))

    # ------------------------------------------------------------------
    # Delayed reset after a win
    # ------------------------------------------------------------------
    def _schedule_reset(self, generation: int) -> None:
        self._cancel_reset()
        self.reset_task = asyncio.create_task(self._reset_after_delay(generation))

    def _cancel_reset(self) -> None:
        if self.reset_task and not self.reset_task.done():
            self.reset_task.cancel()
        self.reset_task = None

    async def _reset_after_delay(self, generation: int) -> None:
        await asyncio.sleep(self.config.reset_delay_seconds)
        async with self.lock:
            if not self.race.apply_scheduled_reset(generation):
                return
            snapshot = self.race.snapshot()
        await self.broadcast(snapshot_message("reset", snapshot))

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    async def connect(self, websocket: WebSocket) -> str:
        async with self.lock:
            player = self.race.add_player()
            self.connections[player.id] = websocket
            snapshot = self.race.snapshot()
        message = snapshot_message("init", snapshot)
        message.update({"player_id": player.id, "team_id": player.team_id})
        await websocket.send_json(message)
        return player.id

    async def disconnect(self, player_id: str) -> None:
        websocket = self.connections.pop(player_id, None)
        async with self.lock:
            self.race.remove_player(player_id)
        if websocket and websocket.client_state == WebSocketState.CONNECTED:
            with contextlib.suppress(RuntimeError):
                await websocket.close()

    async def handle_message(self, player_id: str, message: object) -> None:
        if not isinstance(message, dict):
            return
        msg_type = str(message.get("type", "")).lower()
        if msg_type == "command":
            await self._handle_command(player_id, message.get("direction", message.get("cmd")))
        elif msg_type == "start_race":
            await self._handle_start(player_id)
        elif msg_type == "next_map":
            await self._handle_next_map(player_id)
        else:
            logger.debug("Ignoring %r message from %s", msg_type, player_id)

    async def _handle_command(self, player_id: str, direction: object) -> None:
        async with self.lock:
            if player_id not in self.race.players:
                return
            result = self.race.submit_command(player_id, direction)
            teammates = self.race.teammates(player_id) if isinstance(result, Accepted) else []

        if isinstance(result, Accepted):
            await self.send_to(
                teammates,
                {"type": "command_echo", "from": player_id, "direction": result.direction.value},
            )
        elif result.reason is RejectReason.RACE_NOT_RUNNING:
            await self.send_to([player_id], {"type": "race_not_started"})
        elif result.reason is RejectReason.ON_COOLDOWN:
            await self.send_to([player_id], {"type": "rate_limited", "cooldown_ms": result.remaining_ms})

    async def _handle_start(self, player_id: str) -> None:
        async with self.lock:
            if not self.race.start_race():
                return
            self._cancel_reset()
            snapshot = self.race.snapshot()
        logger.info("Race start requested by %s", player_id)
        await self.broadcast(snapshot_message("race_started", snapshot))

    async def _handle_next_map(self, player_id: str) -> None:
        # Map files are read off the event loop. map_lock keeps catalog moves
        # in request order without holding the state lock during the read.
        async with self.map_lock:
            try:
                definition = await asyncio.to_thread(self.catalog.advance)
            except (MapValidationError, OSError):
                logger.exception("Could not load the next map; keeping %s", self.race.map.name)
                return
            async with self.lock:
                self.race.change_map(definition)
                self._cancel_reset()
                snapshot = self.race.snapshot()
        logger.info("Map change requested by %s", player_id)
        await self.broadcast(snapshot_message("map_changed", snapshot))

    # ------------------------------------------------------------------
    # Outbound messages
    # ------------------------------------------------------------------
    async def broadcast(self, message: Dict[str, object]) -> None:
        """Send a JSON message to all connected players."""

        await self.send_to(list(self.connections), message)

    async def send_to(self, player_ids: Iterable[str], message: Dict[str, object]) -> None:
        stale: list[str] = []
        for player_id in player_ids:
            websocket = self.connections.get(player_id)
            if websocket is None:
                continue
            try:
                await websocket.send_json(message)
            except (RuntimeError, WebSocketDisconnect):
                stale.append(player_id)
        for player_id in stale:
            logger.info("Dropping stale connection %s", player_id)
            await self.disconnect(player_id)


def create_app(config: Optional[RaceConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Maps are loaded here so a missing or invalid map fails at startup.
    """

    config = config or RaceConfig.from_env()
    config.validate()
    race_server = RaceServer(config, MapCatalog(config.map_dir, config.team_ids))

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await race_server.start()
        yield
        await race_server.stop()

    app = FastAPI(title="Cube Race", description="Two-team maze race", lifespan=lifespan)
    app.state.race_server = race_server

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        race = race_server.race
        return JSONResponse(
            {
                "status": "ok",
                "players": len(race.players),
                "race_started": race.status is RaceStatus.RUNNING,
                "map": race.map.name,
            }
        )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        player_id = await race_server.connect(websocket)
        try:
            while True:
                try:
                    message = await websocket.receive_json()
                except (ValueError, KeyError):
                    # KeyError: binary frame with no text payload
                    logger.debug("Invalid JSON from %s", player_id)
                    continue
                await race_server.handle_message(player_id, message)
        except WebSocketDisconnect:
            pass
        finally:
            await race_server.disconnect(player_id)

    return app


__all__ = ["RaceServer", "create_app", "snapshot_message"]
