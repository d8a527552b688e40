"""Models for derived analytics: participation counts and trend series."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

ParticipantKind = Literal["team", "solo"]
TrendSource = Literal["blended", "heuristic", "synthetic"]


class Participant(BaseModel):
    """One registrant, flattened from events and teams. Never persisted."""

    id: str
    email: str
    verified: bool
    kind: ParticipantKind
    event_name: str
    team_name: str | None = None
    team_id: str | None = None
    event_id: str | None = None
    registered_at: str | None = None


class ParticipantStats(BaseModel):
    total: int = 0
    verified: int = 0
    unverified: int = 0
    team: int = 0
    solo: int = 0
    pending: int = 0


class ParticipationSnapshot(BaseModel):
    total_events: int
    team_events: int
    single_events: int
    total_participants: int
    team_participants: int
    solo_participants: int
    verified_count: int
    unverified_count: int
    verification_rate: float
    is_estimated: bool = False
    estimated_fields: list[str] = Field(default_factory=list)

    @property
    def team_share(self) -> float:
        if self.total_participants == 0:
            return 0.0
        return 100.0 * self.team_participants / self.total_participants

    @property
    def solo_share(self) -> float:
        if self.total_participants == 0:
            return 0.0
        return 100.0 * self.solo_participants / self.total_participants


class TrendPoint(BaseModel):
    date: dt.date
    participants: int


class TrendSeries(BaseModel):
    points: list[TrendPoint]
    source: TrendSource

    @property
    def is_synthetic(self) -> bool:
        """True unless real event days contributed to the series."""
        return self.source != "blended"

    @property
    def max_value(self) -> int:
        return max((p.participants for p in self.points), default=1) or 1
