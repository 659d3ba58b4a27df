"""Data structures used by the cube race state."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from .constants import Cell, Direction


class MapValidationError(ValueError):
    """Raised when a map cannot be raced on."""


class RaceStatus(str, Enum):
    WAITING = "waiting"
    RUNNING = "running"


def serialise_cell(cell: Cell) -> Dict[str, int]:
    return {"x": cell[0], "y": cell[1]}


@dataclass(frozen=True)
class MapDefinition:
    """Static description of a maze. Replaced wholesale on a map change."""

    name: str
    width: int
    height: int
    walls: FrozenSet[Cell]
    ledges: FrozenSet[Cell]
    goal: Optional[Cell]
    starts: Mapping[str, Cell]
    initial_boulders: Tuple[Cell, ...] = ()

    def validate(self, team_ids: Iterable[str]) -> None:
        """Raise :class:`MapValidationError` if the map is not raceable."""

        if self.width <= 0 or self.height <= 0:
            raise MapValidationError(f"Map '{self.name}' has no playable area")
        for team_id in team_ids:
            start = self.starts.get(team_id)
            if start is None:
                raise MapValidationError(f"Map '{self.name}' missing start for team '{team_id}'")
            if start in self.walls:
                raise MapValidationError(f"Map '{self.name}' start for team '{team_id}' is a wall")
        if self.goal is None:
            raise MapValidationError(f"Map '{self.name}' missing goal 'G'")
        if self.goal in self.walls:
            raise MapValidationError(f"Map '{self.name}' goal is a wall")

    def serialise(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "width": self.width,
            "height": self.height,
            "walls": [serialise_cell(cell) for cell in sorted(self.walls)],
            "ledges": [serialise_cell(cell) for cell in sorted(self.ledges)],
            "hole": serialise_cell(self.goal) if self.goal else None,
            "starts": {team_id: serialise_cell(cell) for team_id, cell in self.starts.items()},
            "boulders": [serialise_cell(cell) for cell in self.initial_boulders],
        }


@dataclass
class Team:
    """One racing team and the cube it steers."""

    id: str
    display_name: str
    color: str
    cube: Cell
    command_queue: Deque[Direction] = field(default_factory=deque)

    def serialise(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.display_name,
            "color": self.color,
            "cube": serialise_cell(self.cube),
            "queue_length": len(self.command_queue),
        }


@dataclass
class Boulder:
    """Pushable obstacle. ``id`` is its index in the map's boulder order."""

    id: int
    position: Cell

    def serialise(self) -> Dict[str, int]:
        data = serialise_cell(self.position)
        data["id"] = self.id
        return data


@dataclass
class Player:
    """A connected client. Lives only as long as its connection."""

    id: str
    team_id: str
    last_command_at: Optional[float] = None


# ----------------------------------------------------------------------
# Movement outcomes
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class Unchanged:
    """The move had no legal effect."""


@dataclass(frozen=True)
class Moved:
    position: Cell


@dataclass(frozen=True)
class MovedWithPush:
    position: Cell
    boulder_id: int
    boulder_position: Cell


Outcome = Union[Unchanged, Moved, MovedWithPush]
UNCHANGED = Unchanged()


# ----------------------------------------------------------------------
# Command intake results
# ----------------------------------------------------------------------
class RejectReason(str, Enum):
    INVALID_DIRECTION = "invalid_direction"
    RACE_NOT_RUNNING = "race_not_started"
    ON_COOLDOWN = "rate_limited"


@dataclass(frozen=True)
class Accepted:
    team_id: str
    direction: Direction


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    remaining_ms: int = 0


SubmitResult = Union[Accepted, Rejected]


@dataclass
class TickResult:
    """What a single tick did. ``reset_generation`` is set when a race was won."""

    moves: Dict[str, Outcome] = field(default_factory=dict)
    winner: Optional[str] = None
    reset_generation: Optional[int] = None
    snapshot: Optional[RaceSnapshot] = None


@dataclass
class RaceSnapshot:
    """Serializable view of the complete race state."""

    map: MapDefinition
    status: RaceStatus
    teams: List[Dict[str, object]] = field(default_factory=list)
    boulders: List[Dict[str, int]] = field(default_factory=list)
    team_counts: Dict[str, int] = field(default_factory=dict)
    winner: Optional[str] = None

    def serialise(self) -> Dict[str, object]:
        return {
            "teams": {team["id"]: team for team in self.teams},
            "map": self.map.serialise(),
            "map_name": self.map.name,
            "boulders": self.boulders,
            "winner": self.winner,
            "status": self.status.value,
            "race_started": self.status is RaceStatus.RUNNING,
            "team_counts": self.team_counts,
        }
