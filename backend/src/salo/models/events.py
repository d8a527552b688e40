"""Models for events, solo registrations and placements."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field, field_validator

from salo.models.common import ApiModel
from salo.models.teams import Team


class EventCategory(str, Enum):
    TEAM_BATTLE = "team-battle"
    SINGLE_BATTLE = "single-battle"


class EventStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"


class Registration(ApiModel):
    email: str
    verified: bool = False
    registered_at: datetime | None = None
    score: int = 0
    is_winner: bool = False


class Placement(ApiModel):
    team_id: str | None = None
    team_name: str | None = None
    team_logo: str | None = None
    participant_email: str | None = None
    placement: int
    awarded_at: datetime | None = None

    @property
    def label(self) -> str:
        return self.team_name or self.participant_email or self.team_id or "?"


class Event(ApiModel):
    id: str = Field(alias="_id")
    event_name: str
    category: EventCategory
    start_date_time: datetime | None = None
    end_date_time: datetime | None = None
    description: str | None = None
    image: str | None = None
    status: EventStatus = EventStatus.NOT_STARTED
    referee: str | None = None

    # team-battle capacity
    number_of_teams: int | None = None
    participation_per_team: int | None = None
    # single-battle capacity
    total_spots: int | None = None

    registered_emails: list[Registration] = Field(default_factory=list)
    registered_teams: list[Team] | None = None
    placements: list[Placement] = Field(default_factory=list)
    created_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v):
        return v or EventStatus.NOT_STARTED

    @field_validator("registered_emails", "placements", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    @field_validator("registered_teams", mode="before")
    @classmethod
    def populated_teams_only(cls, v):
        # Unpopulated refs are bare ids; callers then match teams by registration
        if v and not all(isinstance(t, dict) for t in v):
            return None
        return v

    @property
    def is_team_battle(self) -> bool:
        return self.category == EventCategory.TEAM_BATTLE

    @property
    def category_label(self) -> str:
        return "Team Battle" if self.is_team_battle else "Single Battle"

    @property
    def status_label(self) -> str:
        return self.status.value.replace("_", " ").upper()
