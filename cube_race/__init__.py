"""Two-team cube race over a grid maze.

The simulation in :mod:`cube_race.game` is transport agnostic and can be
unit tested without a server; :mod:`cube_race.server` wires it to FastAPI
websockets.
"""

from .game.constants import RaceConfig
from .game.state import RaceState

__all__ = ["RaceConfig", "RaceState"]
