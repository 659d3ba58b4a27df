"""Tests for map parsing and the map catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

from cube_race.game.constants import DEFAULT_MAP_DIR, TEAM_IDS
from cube_race.game.maps import MapCatalog, MapCatalogError, load_map, parse_map
from cube_race.game.models import MapDefinition, MapValidationError

SAMPLE = "#####\r\n#R B#\r\n#VOG#\r\n#####\n"


def test_parse_map_reads_every_symbol() -> None:
    definition = parse_map(SAMPLE, name="sample")
    assert (definition.width, definition.height) == (5, 4)
    assert (0, 0) in definition.walls
    assert definition.ledges == frozenset({(1, 2)})
    assert definition.initial_boulders == ((2, 2),)
    assert definition.goal == (3, 2)
    assert definition.starts == {"red": (1, 1), "blue": (3, 1)}
    definition.validate(TEAM_IDS)


def test_missing_start_fails_validation() -> None:
    definition = parse_map("#####\n#R G#\n#####")
    with pytest.raises(MapValidationError, match="blue"):
        definition.validate(TEAM_IDS)


def test_missing_goal_fails_validation() -> None:
    definition = parse_map("#####\n#R B#\n#####")
    with pytest.raises(MapValidationError, match="goal"):
        definition.validate(TEAM_IDS)


def test_goal_on_a_wall_fails_validation() -> None:
    definition = MapDefinition(
        name="bad",
        width=3,
        height=1,
        walls=frozenset({(1, 0)}),
        ledges=frozenset(),
        goal=(1, 0),
        starts={"red": (0, 0), "blue": (2, 0)},
    )
    with pytest.raises(MapValidationError):
        definition.validate(TEAM_IDS)


def _write_maps(directory: Path) -> None:
    (directory / "b_second.txt").write_text("#####\n#B R#\n# G #\n#####\n")
    (directory / "a_first.txt").write_text("#####\n#R B#\n# G #\n#####\n")
    (directory / "notes.md").write_text("not a map")


def test_catalog_cycles_in_file_name_order(tmp_path: Path) -> None:
    _write_maps(tmp_path)
    catalog = MapCatalog(tmp_path)
    assert len(catalog) == 2
    assert catalog.current().name == "a_first.txt"
    assert catalog.advance().name == "b_second.txt"
    assert catalog.advance().name == "a_first.txt"


def test_catalog_keeps_position_when_next_map_is_invalid(tmp_path: Path) -> None:
    _write_maps(tmp_path)
    (tmp_path / "b_second.txt").write_text("#####\n#B R#\n#####\n")
    catalog = MapCatalog(tmp_path)
    with pytest.raises(MapValidationError):
        catalog.advance()
    assert catalog.index == 0


def test_empty_catalog_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(MapCatalogError):
        MapCatalog(tmp_path)


def test_bundled_maps_are_valid() -> None:
    files = sorted(DEFAULT_MAP_DIR.glob("*.txt"))
    assert files
    for path in files:
        load_map(path)
