"""Authoritative race state shared by every connected client."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

from .constants import TEAM_COLORS, RaceConfig
from .intake import CommandIntake
from .models import (
    MapDefinition,
    Player,
    RaceSnapshot,
    RaceStatus,
    Rejected,
    SubmitResult,
    Team,
    TickResult,
)
from .movement import apply_outcome, resolve_move
from .terrain import SimulationContext, Terrain

logger = logging.getLogger(__name__)


class RaceState:
    """Server-authoritative state for the two-team cube race.

    Not thread safe. Callers serialise access, the server does so with a
    single ``asyncio.Lock``.
    """

    def __init__(
        self,
        map_definition: MapDefinition,
        config: Optional[RaceConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or RaceConfig()
        self.config.validate()
        map_definition.validate(self.config.team_ids)
        self.clock = clock
        self.status: RaceStatus = RaceStatus.WAITING
        self.players: Dict[str, Player] = {}
        teams: Dict[str, Team] = {}
        for idx, team_id in enumerate(self.config.team_ids):
            teams[team_id] = Team(
                id=team_id,
                display_name=team_id.upper(),
                color=TEAM_COLORS[idx],
                cube=map_definition.starts[team_id],
            )
        self.context = SimulationContext(map=map_definition, teams=teams)
        self.context.reset_boulders()
        self.terrain = Terrain(self.context)
        self.intake = CommandIntake(teams, cooldown_seconds=self.config.cooldown_seconds)
        self._generation = 0

    @property
    def map(self) -> MapDefinition:
        return self.context.map

    @property
    def teams(self) -> Dict[str, Team]:
        return self.context.teams

    @property
    def generation(self) -> int:
        """Bumped by every start and map change; stale resets compare against it."""

        return self._generation

    # ------------------------------------------------------------------
    # Player management
    # ------------------------------------------------------------------
    def add_player(self, player_id: Optional[str] = None) -> Player:
        """Register a connection on the least populated team."""

        counts = self.team_counts()
        team_id = self.config.team_ids[0]
        for candidate in self.config.team_ids:
            if counts[candidate] < counts[team_id]:
                team_id = candidate
        player = Player(id=player_id or uuid.uuid4().hex, team_id=team_id)
        self.players[player.id] = player
        logger.info("Player %s joined team %s", player.id, team_id)
        return player

    def remove_player(self, player_id: str) -> None:
        if self.players.pop(player_id, None) is not None:
            logger.info("Player %s left", player_id)

    def team_counts(self) -> Dict[str, int]:
        counts = {team_id: 0 for team_id in self.config.team_ids}
        for player in self.players.values():
            if player.team_id in counts:
                counts[player.team_id] += 1
        return counts

    def teammates(self, player_id: str) -> List[str]:
        """Ids of every player on the same team, the given player included."""

        team_id = self.players[player_id].team_id
        return [pid for pid, player in self.players.items() if player.team_id == team_id]

    # ------------------------------------------------------------------
    # Command handling
    # ------------------------------------------------------------------
    def submit_command(self, player_id: str, direction: object) -> SubmitResult:
        player = self.players[player_id]
        result = self.intake.submit(player, direction, self.status, self.clock())
        if isinstance(result, Rejected):
            logger.debug("Rejected %r from %s: %s", direction, player_id, result.reason.value)
        return result

    # ------------------------------------------------------------------
    # Race lifecycle
    # ------------------------------------------------------------------
    def start_race(self) -> bool:
        """Reset the board and start racing. Returns ``False`` if already running."""

        if self.status is RaceStatus.RUNNING:
            return False
        self.reset_to_start()
        self.status = RaceStatus.RUNNING
        self._generation += 1
        logger.info("Race started on %s", self.map.name)
        return True

    def change_map(self, map_definition: MapDefinition) -> None:
        """Swap in a new map. Stops any running race."""

        map_definition.validate(self.config.team_ids)
        self.context.map = map_definition
        self.status = RaceStatus.WAITING
        self.reset_to_start()
        self._generation += 1
        logger.info("Map changed to %s", map_definition.name)

    def reset_to_start(self) -> None:
        """Put cubes on their start cells, clear queues and restore boulders."""

        for team in self.teams.values():
            team.cube = self.map.starts[team.id]
            team.command_queue.clear()
        self.context.reset_boulders()

    def apply_scheduled_reset(self, generation: int) -> bool:
        """Run a post-win reset unless a start or map change superseded it."""

        if generation != self._generation:
            logger.debug("Discarding stale reset for generation %d", generation)
            return False
        self.reset_to_start()
        return True

    # ------------------------------------------------------------------
    # Simulation loop
    # ------------------------------------------------------------------
    def tick_once(self) -> TickResult:
        """Advance the race by one tick.

        The returned snapshot is taken before a win stops the race, so it
        still reports the race as running alongside the winner.
        """

        result = TickResult()
        if self.status is not RaceStatus.RUNNING:
            result.snapshot = self.snapshot()
            return result

        for team in self.teams.values():
            if not team.command_queue:
                continue
            direction = team.command_queue.popleft()
            outcome = resolve_move(self.terrain, team.cube, direction)
            apply_outcome(self.context, team, outcome)
            result.moves[team.id] = outcome

        for team in self.teams.values():
            if team.cube == self.map.goal:
                result.winner = team.id
                break

        result.snapshot = self.snapshot(winner=result.winner)
        if result.winner is not None:
            self.status = RaceStatus.WAITING
            result.reset_generation = self._generation
            logger.info("Team %s reached the goal", result.winner)
        return result

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------
    def snapshot(self, winner: Optional[str] = None) -> RaceSnapshot:
        return RaceSnapshot(
            map=self.map,
            status=self.status,
            teams=[team.serialise() for team in self.teams.values()],
            boulders=[boulder.serialise() for boulder in self.context.boulders],
            team_counts=self.team_counts(),
            winner=winner,
        )


__all__ = ["RaceState"]
