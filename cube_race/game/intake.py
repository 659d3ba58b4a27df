"""Per-player command intake with cooldown enforcement."""

from __future__ import annotations

import math
from typing import Dict

from .constants import COMMAND_COOLDOWN_SECONDS, Direction
from .models import Accepted, Player, RaceStatus, Rejected, RejectReason, SubmitResult, Team


class CommandIntake:
    """Validates directional commands and queues accepted ones on the team."""

    def __init__(self, teams: Dict[str, Team], cooldown_seconds: float = COMMAND_COOLDOWN_SECONDS):
        self.teams = teams
        self.cooldown_seconds = cooldown_seconds

    def submit(self, player: Player, direction: object, status: RaceStatus, now: float) -> SubmitResult:
        parsed = Direction.parse(direction)
        if parsed is None:
            return Rejected(RejectReason.INVALID_DIRECTION)
        if status is not RaceStatus.RUNNING:
            return Rejected(RejectReason.RACE_NOT_RUNNING)
        if player.last_command_at is not None:
            elapsed = now - player.last_command_at
            if elapsed < self.cooldown_seconds:
                remaining_ms = math.ceil((self.cooldown_seconds - elapsed) * 1000)
                return Rejected(RejectReason.ON_COOLDOWN, remaining_ms=remaining_ms)

        player.last_command_at = now
        self.teams[player.team_id].command_queue.append(parsed)
        return Accepted(team_id=player.team_id, direction=parsed)
