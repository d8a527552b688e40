"""Lifecycle commands for live events: start / pause / end, placements, referees.

Commands never touch local state. Each one is a POST; on success the owning
view refetches the event list to observe the backend's new state.

    not_started --start--> in_progress --pause--> paused --start--> in_progress
                                        --end----> completed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal

from pydantic import BaseModel, EmailStr, ValidationError

from salo.api.gateway import Gateway
from salo.errors import FormError, SaloError, TransitionError
from salo.models.events import Event, EventCategory, EventStatus
from salo.models.teams import Team
from salo.notify import Notifier

logger = logging.getLogger(__name__)

Action = Literal["start", "pause", "end"]

TRANSITIONS: dict[str, frozenset[EventStatus]] = {
    "start": frozenset({EventStatus.NOT_STARTED, EventStatus.PAUSED}),
    "pause": frozenset({EventStatus.IN_PROGRESS}),
    "end": frozenset({EventStatus.IN_PROGRESS}),
}

_PAST_TENSE = {"start": "started", "pause": "paused", "end": "ended"}


def allowed_actions(status: EventStatus) -> list[str]:
    """Commands offered for an event in ``status`` (the buttons that render)."""
    return [action for action, sources in TRANSITIONS.items() if status in sources]


class _RefereeInput(BaseModel):
    email: EmailStr


# ======================================================================
# Live view model
# ======================================================================


@dataclass
class LiveEntrant:
    name: str
    score: int = 0
    is_winner: bool = False
    team_id: str | None = None
    logo: str | None = None


@dataclass
class LiveEvent:
    id: str
    event_name: str
    category: EventCategory
    status: EventStatus
    start_date_time: datetime | None
    end_date_time: datetime | None
    referee: str | None
    entrants: list[LiveEntrant] = field(default_factory=list)
    source: Event | None = None

    @property
    def has_participants(self) -> bool:
        return len(self.entrants) > 0

    @property
    def actions(self) -> list[str]:
        return allowed_actions(self.status)


def to_live_event(event: Event, teams: list[Team]) -> LiveEvent:
    """Join an event with its teams (team battle) or registrants (single battle)."""
    if event.is_team_battle:
        entrants = [
            LiveEntrant(
                name=t.team_name, score=t.score, is_winner=t.is_winner,
                team_id=t.id, logo=t.team_logo,
            )
            for t in teams
            if event.id in t.registered_event_ids()
        ]
    else:
        entrants = [
            LiveEntrant(name=r.email, score=r.score, is_winner=r.is_winner)
            for r in event.registered_emails
        ]
    return LiveEvent(
        id=event.id,
        event_name=event.event_name,
        category=event.category,
        status=event.status,
        start_date_time=event.start_date_time,
        end_date_time=event.end_date_time,
        referee=event.referee,
        entrants=entrants,
        source=event,
    )


def live_stats(events: list[LiveEvent]) -> dict[str, int]:
    return {
        "live_events": sum(1 for e in events if e.status == EventStatus.IN_PROGRESS),
        "active_participants": sum(len(e.entrants) for e in events),
        "total_matches": len(events),
        "referees_active": sum(1 for e in events if e.referee),
    }


def time_remaining(end: datetime | None, now: datetime | None = None) -> str:
    if end is None:
        return "-"
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    remaining = int((end - now).total_seconds())
    if remaining < 0:
        return "Event Ended"
    hours, rest = divmod(remaining, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes}m {seconds}s"


# ======================================================================
# Commands
# ======================================================================


class LiveEventController:
    """Sends lifecycle commands and triggers one refetch after each success."""

    def __init__(
        self,
        gateway: Gateway,
        refresh: Callable[[], None],
        notifier: Notifier,
    ) -> None:
        self.gw = gateway
        self.refresh = refresh
        self.notifier = notifier

    def _command(self, path: str, body: dict | None, ok: str, failed: str) -> None:
        try:
            self.gw.post(path, body)
        except SaloError as e:
            logger.error("%s: %s", failed, e.message)
            self.notifier.error(failed)
            raise
        self.notifier.success(ok)
        self.refresh()

    def control(self, event: Event | LiveEvent, action: Action) -> None:
        if action not in TRANSITIONS:
            raise ValueError(f"Unknown action: {action!r}")
        if event.status not in TRANSITIONS[action]:
            raise TransitionError(action, event.status.value)
        logger.info("Event %s: %s (was %s)", event.id, action, event.status.value)
        self._command(
            f"/events/{event.id}/{action}",
            None,
            f"Event {_PAST_TENSE[action]} successfully",
            f"Failed to {action} event",
        )

    def start(self, event: Event | LiveEvent) -> None:
        self.control(event, "start")

    def pause(self, event: Event | LiveEvent) -> None:
        self.control(event, "pause")

    def end(self, event: Event | LiveEvent) -> None:
        self.control(event, "end")

    def award_placement(
        self,
        event: Event,
        rank: int,
        team_id: str | None = None,
        participant_email: str | None = None,
    ) -> None:
        """POST /events/{id}/placement. Ties are allowed but reported."""
        errors: list[str] = []
        if not 1 <= rank <= 3:
            errors.append("Placement must be 1, 2 or 3")
        if (team_id is None) == (participant_email is None):
            errors.append("Choose exactly one team or participant")
        if errors:
            raise FormError(errors)

        if any(p.placement == rank for p in event.placements):
            logger.warning("Event %s already has a placement %d; recording a tie", event.id, rank)
            self.notifier.warning(f"Placement {rank} is already awarded for this event")

        body: dict = {"placement": rank}
        if team_id is not None:
            body["teamId"] = team_id
        else:
            body["participantEmail"] = participant_email
        self._command(
            f"/events/{event.id}/placement",
            body,
            "Placement updated successfully",
            "Failed to update placement",
        )

    def assign_referee(self, event: Event | LiveEvent, email: str) -> None:
        """POST /events/{id}/referee"""
        try:
            checked = _RefereeInput(email=email)
        except ValidationError:
            raise FormError(["Enter a valid referee email"]) from None
        self._command(
            f"/events/{event.id}/referee",
            {"email": str(checked.email)},
            "Referee assigned successfully",
            "Failed to assign referee",
        )
