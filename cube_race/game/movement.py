"""Resolution of a single directional cube move against the maze."""

from __future__ import annotations

import logging
from typing import Optional

from .constants import Cell, Direction, step
from .models import UNCHANGED, Moved, MovedWithPush, Outcome, Team
from .terrain import SimulationContext, Terrain

logger = logging.getLogger(__name__)


def resolve_move(terrain: Terrain, position: Cell, direction: Optional[Direction]) -> Outcome:
    """Work out where a cube at *position* ends up after moving *direction*.

    Boulders are checked before walls, ledges and cubes. Pushing a boulder
    and dropping off a ledge are all-or-nothing: if the far cell is blocked
    nothing moves. The board is not modified.
    """

    if direction is None:
        return UNCHANGED
    delta = direction.delta
    target = step(position, delta)
    if not terrain.in_bounds(target):
        return UNCHANGED

    boulder = terrain.boulder_at(target)
    if boulder is not None:
        push_target = step(target, delta)
        if not terrain.is_clear_landing(push_target, mover=position):
            return UNCHANGED
        return MovedWithPush(position=target, boulder_id=boulder.id, boulder_position=push_target)

    if terrain.is_wall(target):
        return UNCHANGED

    if terrain.is_ledge(target):
        # Ledges are only entered from above and are jumped over.
        if direction is not Direction.DOWN:
            return UNCHANGED
        landing = step(target, Direction.DOWN.delta)
        if not terrain.is_clear_landing(landing, mover=position):
            return UNCHANGED
        return Moved(position=landing)

    if terrain.cube_at(target, excluding=position):
        return UNCHANGED

    return Moved(position=target)


def apply_outcome(context: SimulationContext, team: Team, outcome: Outcome) -> None:
    """Commit a resolved move to the board."""

    if isinstance(outcome, MovedWithPush):
        context.boulders[outcome.boulder_id].position = outcome.boulder_position
        team.cube = outcome.position
        logger.debug("%s pushed boulder %d to %s", team.id, outcome.boulder_id, outcome.boulder_position)
    elif isinstance(outcome, Moved):
        team.cube = outcome.position
        logger.debug("%s moved to %s", team.id, outcome.position)
