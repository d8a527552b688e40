"""Models for the public leaderboard."""

from __future__ import annotations

from pydantic import Field

from salo.models.common import ApiModel
from salo.models.events import Placement


class LeaderboardEvent(ApiModel):
    id: str = Field(alias="_id")
    event_name: str
    category: str | None = None
    placements: list[Placement] = Field(default_factory=list)
