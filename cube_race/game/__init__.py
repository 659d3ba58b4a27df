"""Race simulation: maze terrain, move resolution and the tick loop state."""

from .maps import MapCatalog, MapCatalogError, load_map, parse_map
from .models import MapDefinition, MapValidationError, RaceStatus
from .movement import apply_outcome, resolve_move
from .state import RaceState
from .terrain import SimulationContext, Terrain

__all__ = [
    "MapCatalog",
    "MapCatalogError",
    "MapDefinition",
    "MapValidationError",
    "RaceState",
    "RaceStatus",
    "SimulationContext",
    "Terrain",
    "apply_outcome",
    "load_map",
    "parse_map",
    "resolve_move",
]
