"""Spatial queries against the maze and the pieces currently on it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import Cell
from .models import Boulder, MapDefinition, Team


@dataclass
class SimulationContext:
    """Mutable board state handed to terrain queries and the move resolver."""

    map: MapDefinition
    teams: Dict[str, Team]
    boulders: List[Boulder] = field(default_factory=list)

    def reset_boulders(self) -> None:
        self.boulders = [Boulder(id=idx, position=cell) for idx, cell in enumerate(self.map.initial_boulders)]


class Terrain:
    """Read-only view over a :class:`SimulationContext`.

    Wall and ledge lookups go through the map's frozensets. Boulder and cube
    lookups scan the live state on every call since both move each tick.
    """

    def __init__(self, context: SimulationContext):
        self.context = context

    def in_bounds(self, cell: Cell) -> bool:
        x, y = cell
        return 0 <= x < self.context.map.width and 0 <= y < self.context.map.height

    def is_wall(self, cell: Cell) -> bool:
        return cell in self.context.map.walls

    def is_ledge(self, cell: Cell) -> bool:
        return cell in self.context.map.ledges

    def boulder_at(self, cell: Cell) -> Optional[Boulder]:
        for boulder in self.context.boulders:
            if boulder.position == cell:
                return boulder
        return None

    def cube_at(self, cell: Cell, excluding: Optional[Cell] = None) -> bool:
        """Whether a cube sits on *cell*. A cube standing on *excluding* is ignored."""

        for team in self.context.teams.values():
            if excluding is not None and team.cube == excluding:
                continue
            if team.cube == cell:
                return True
        return False

    def is_clear_landing(self, cell: Cell, mover: Cell) -> bool:
        """A cell a boulder can be pushed into or a cube can drop onto."""

        return (
            self.in_bounds(cell)
            and not self.is_wall(cell)
            and not self.is_ledge(cell)
            and self.boulder_at(cell) is None
            and not self.cube_at(cell, excluding=mover)
        )
