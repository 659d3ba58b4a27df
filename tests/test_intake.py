"""Tests for command intake ordering and cooldowns."""

from __future__ import annotations

from cube_race.game.constants import Direction
from cube_race.game.intake import CommandIntake
from cube_race.game.models import Accepted, Player, RaceStatus, Rejected, RejectReason, Team


def _intake(cooldown: float = 1.0) -> CommandIntake:
    teams = {
        "red": Team(id="red", display_name="RED", color="#e74c3c", cube=(0, 0)),
        "blue": Team(id="blue", display_name="BLUE", color="#3498db", cube=(1, 0)),
    }
    return CommandIntake(teams, cooldown_seconds=cooldown)


def test_invalid_direction_is_checked_first() -> None:
    intake = _intake()
    player = Player(id="p1", team_id="red")
    result = intake.submit(player, "north", RaceStatus.WAITING, now=0.0)
    assert result == Rejected(RejectReason.INVALID_DIRECTION)
    assert player.last_command_at is None


def test_first_command_is_never_on_cooldown() -> None:
    intake = _intake(cooldown=5.0)
    player = Player(id="p1", team_id="blue")
    assert intake.submit(player, "left", RaceStatus.RUNNING, now=0.0) == Accepted("blue", Direction.LEFT)
    assert player.last_command_at == 0.0
    assert list(intake.teams["blue"].command_queue) == [Direction.LEFT]


def test_rejected_commands_do_not_restart_the_cooldown() -> None:
    intake = _intake(cooldown=1.0)
    player = Player(id="p1", team_id="red")
    intake.submit(player, Direction.UP, RaceStatus.RUNNING, now=10.0)
    rejected = intake.submit(player, Direction.UP, RaceStatus.RUNNING, now=10.75)
    assert rejected == Rejected(RejectReason.ON_COOLDOWN, remaining_ms=250)
    assert player.last_command_at == 10.0
    assert isinstance(intake.submit(player, Direction.UP, RaceStatus.RUNNING, now=11.0), Accepted)


def test_teammates_have_independent_cooldowns() -> None:
    intake = _intake()
    first = Player(id="p1", team_id="red")
    second = Player(id="p2", team_id="red")
    assert isinstance(intake.submit(first, "up", RaceStatus.RUNNING, now=0.0), Accepted)
    assert isinstance(intake.submit(second, "down", RaceStatus.RUNNING, now=0.1), Accepted)
    assert list(intake.teams["red"].command_queue) == [Direction.UP, Direction.DOWN]
