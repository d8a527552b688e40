"""Models for teams, their members and event registrations."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from salo.models.common import ApiModel, ref_id


class Member(ApiModel):
    email: str
    verified: bool = False


class EventRegistration(ApiModel):
    event_id: str
    registered_at: datetime | None = None

    @field_validator("event_id", mode="before")
    @classmethod
    def coerce_event_id(cls, v):
        return ref_id(v)


class Team(ApiModel):
    id: str = Field(alias="_id")
    team_name: str
    team_logo: str | None = None
    team_leader_email: str | None = None
    member_emails: list[Member] = Field(default_factory=list)
    event_registrations: list[EventRegistration] = Field(default_factory=list)
    event_id: str | None = None  # older single-event teams
    score: int = 0
    is_winner: bool = False
    created_at: datetime | None = None

    @field_validator("event_id", mode="before")
    @classmethod
    def coerce_event_id(cls, v):
        return ref_id(v)

    @field_validator("member_emails", "event_registrations", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []

    @property
    def has_registrations(self) -> bool:
        return len(self.event_registrations) > 0

    def registered_event_ids(self) -> set[str]:
        ids = {r.event_id for r in self.event_registrations}
        if self.event_id:
            ids.add(self.event_id)
        return ids

    def headcount(self) -> int:
        """Leader plus listed members."""
        return 1 + len(self.member_emails)
