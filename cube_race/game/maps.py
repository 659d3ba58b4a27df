"""Loading maze maps from their text representation.

A map is a rectangular grid with one character per cell::

    #########
    #R  O  B#
    #  ###  #
    #   V   #
    #   G   #
    #########

``#`` is a wall, ``V`` a ledge, ``O`` a boulder, ``R``/``B`` the red and blue
start cells and ``G`` the goal. Anything else is open floor.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from .constants import Cell, TEAM_IDS
from .models import MapDefinition

logger = logging.getLogger(__name__)

WALL = "#"
LEDGE = "V"
BOULDER = "O"
GOAL = "G"
START_SYMBOLS: Dict[str, str] = {"R": "red", "B": "blue"}


class MapCatalogError(RuntimeError):
    """Raised when no maps are available to race on."""


def parse_map(text: str, name: str = "untitled") -> MapDefinition:
    """Build a :class:`MapDefinition` from map text. Does not validate."""

    lines = [line.replace("\r", "") for line in text.split("\n")]
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()

    walls: Set[Cell] = set()
    ledges: Set[Cell] = set()
    starts: Dict[str, Cell] = {}
    boulders: List[Cell] = []
    goal: Optional[Cell] = None

    for y, line in enumerate(lines):
        for x, char in enumerate(line):
            if char == WALL:
                walls.add((x, y))
            elif char == LEDGE:
                ledges.add((x, y))
            elif char == BOULDER:
                boulders.append((x, y))
            elif char == GOAL:
                goal = (x, y)
            elif char in START_SYMBOLS:
                starts[START_SYMBOLS[char]] = (x, y)

    return MapDefinition(
        name=name,
        width=len(lines[0]),
        height=len(lines),
        walls=frozenset(walls),
        ledges=frozenset(ledges),
        goal=goal,
        starts=starts,
        initial_boulders=tuple(boulders),
    )


def load_map(path: Path, team_ids: Iterable[str] = TEAM_IDS) -> MapDefinition:
    """Read and validate a map file."""

    definition = parse_map(path.read_text(encoding="utf-8"), name=path.name)
    definition.validate(team_ids)
    return definition


class MapCatalog:
    """Sorted collection of map files that can be cycled through."""

    def __init__(self, directory: Path, team_ids: Iterable[str] = TEAM_IDS):
        self.directory = directory
        self.team_ids = tuple(team_ids)
        self.files: List[Path] = sorted(directory.glob("*.txt")) if directory.is_dir() else []
        if not self.files:
            raise MapCatalogError(f"No map files found in {directory}")
        self.index = 0

    def current(self) -> MapDefinition:
        return load_map(self.files[self.index], self.team_ids)

    def advance(self) -> MapDefinition:
        """Move to the next map file, wrapping around, and load it.

        The index only moves once the map has loaded successfully.
        """

        next_index = (self.index + 1) % len(self.files)
        definition = load_map(self.files[next_index], self.team_ids)
        self.index = next_index
        logger.info("Advanced to map %s", definition.name)
        return definition

    def __len__(self) -> int:
        return len(self.files)
