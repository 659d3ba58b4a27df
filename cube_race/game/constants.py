"""Constants and configuration values for the cube race simulation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

Cell = Tuple[int, int]

TEAM_IDS: Tuple[str, ...] = ("red", "blue")
TEAM_COLORS: Tuple[str, ...] = ("#e74c3c", "#3498db")

TICK_SECONDS: float = 0.3
COMMAND_COOLDOWN_SECONDS: float = 1.0
RESET_DELAY_SECONDS: float = 3.0

DEFAULT_MAP_DIR: Path = Path(__file__).resolve().parent.parent / "maps"


class Direction(str, Enum):
    """Cardinal directions a cube can be commanded to move in."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def delta(self) -> Cell:
        return _DELTAS[self]

    @classmethod
    def parse(cls, value: object) -> Optional["Direction"]:
        """Return the matching direction or ``None`` for anything else."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


def step(cell: Cell, delta: Cell) -> Cell:
    """Offset *cell* by *delta*."""

    return (cell[0] + delta[0], cell[1] + delta[1])


@dataclass(frozen=True)
class RaceConfig:
    """Runtime configuration for a race server.

    Attributes
    ----------
    tick_seconds:
        Period of the tick loop. Each tick drains at most one queued
        command per team.
    cooldown_seconds:
        Minimum time between two accepted commands from the same player.
    reset_delay_seconds:
        Delay between a team reaching the goal and the board being put back
        to its start positions.
    map_dir:
        Directory holding the ``*.txt`` maps, cycled in file name order.
    """

    tick_seconds: float = TICK_SECONDS
    cooldown_seconds: float = COMMAND_COOLDOWN_SECONDS
    reset_delay_seconds: float = RESET_DELAY_SECONDS
    map_dir: Path = DEFAULT_MAP_DIR
    team_ids: Tuple[str, ...] = TEAM_IDS

    def validate(self) -> None:
        if self.tick_seconds <= 0:
            raise ValueError("Tick period must be positive")
        if self.cooldown_seconds < 0:
            raise ValueError("Cooldown cannot be negative")
        if self.reset_delay_seconds < 0:
            raise ValueError("Reset delay cannot be negative")
        if len(self.team_ids) != 2 or len(set(self.team_ids)) != 2:
            raise ValueError("Exactly two distinct teams are supported")

    @classmethod
    def from_env(cls) -> "RaceConfig":
        config = cls(
            tick_seconds=float(os.getenv("CUBE_RACE_TICK_SECONDS", TICK_SECONDS)),
            cooldown_seconds=float(os.getenv("CUBE_RACE_COOLDOWN_SECONDS", COMMAND_COOLDOWN_SECONDS)),
            reset_delay_seconds=float(os.getenv("CUBE_RACE_RESET_DELAY_SECONDS", RESET_DELAY_SECONDS)),
            map_dir=Path(os.getenv("CUBE_RACE_MAP_DIR", str(DEFAULT_MAP_DIR))),
        )
        config.validate()
        return config
