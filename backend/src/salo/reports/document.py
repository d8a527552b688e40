"""Event summary report laid out as plain data, ready for a renderer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from salo.analytics.trend import event_participant_count
from salo.models.analytics import ParticipationSnapshot, TrendSeries
from salo.models.events import Event
from salo.models.teams import Team

TITLE = "Event Summary Report"
FOOTER = "SaloGames Event Report • Confidential • Internal Use Only"
EVENTS_PER_PAGE = 4


@dataclass
class Metric:
    label: str
    value: str


@dataclass
class EventBlock:
    event_id: str
    name: str
    category: str
    status: str
    starts: str
    ends: str
    capacity_label: str
    capacity: str
    registered_label: str
    registered: int
    participants: int
    referee: str | None = None
    description: str | None = None


@dataclass
class ReportDocument:
    title: str
    subtitle: str
    generated_at: datetime
    metrics: list[Metric]
    team_stats: dict[str, int]
    distribution: dict[str, float]
    trend: TrendSeries
    events: list[EventBlock]
    notes: list[str] = field(default_factory=list)
    estimated: bool = False
    footer: str = FOOTER

    def event_pages(self, per_page: int = EVENTS_PER_PAGE) -> list[list[EventBlock]]:
        """Event blocks split across pages; always at least one (maybe empty) page."""
        if not self.events:
            return [[]]
        return [self.events[i:i + per_page] for i in range(0, len(self.events), per_page)]

    @property
    def page_count(self) -> int:
        return 1 + len(self.event_pages())


def _fmt(dt: datetime | None) -> str:
    return dt.strftime("%b %d, %Y %H:%M") if dt else "-"


def _event_block(event: Event, teams: list[Team]) -> EventBlock:
    if event.is_team_battle:
        if event.registered_teams is not None:
            registered = len(event.registered_teams)
        else:
            registered = sum(1 for t in teams if event.id in t.registered_event_ids())
        capacity_label = "Teams / Players per Team"
        capacity = f"{event.number_of_teams or '-'} / {event.participation_per_team or '-'}"
        registered_label = "Teams Registered"
    else:
        registered = len(event.registered_emails)
        capacity_label = "Total Spots"
        capacity = str(event.total_spots or "-")
        registered_label = "Participants Registered"

    return EventBlock(
        event_id=event.id,
        name=event.event_name,
        category=event.category_label,
        status=event.status_label,
        starts=_fmt(event.start_date_time),
        ends=_fmt(event.end_date_time),
        capacity_label=capacity_label,
        capacity=capacity,
        registered_label=registered_label,
        registered=registered,
        participants=event_participant_count(event, teams),
        referee=event.referee,
        description=event.description,
    )


def build_event_summary(
    events: list[Event],
    teams: list[Team],
    snapshot: ParticipationSnapshot,
    trend: TrendSeries,
    generated_at: datetime | None = None,
) -> ReportDocument:
    """One metrics page plus one detail block per event."""
    generated_at = generated_at or datetime.now(timezone.utc)
    registered_teams = [t for t in teams if t.has_registrations]

    metrics = [
        Metric("Total Events", str(snapshot.total_events)),
        Metric("Team Events", str(snapshot.team_events)),
        Metric("Single Events", str(snapshot.single_events)),
        Metric("Total Teams", str(len(teams))),
        Metric("Total Participants", str(snapshot.total_participants)),
        Metric("Verification Rate", f"{snapshot.verification_rate:.1f}%"),
    ]

    notes: list[str] = []
    if snapshot.is_estimated:
        notes.append(
            "Estimated figures (no data yet): " + ", ".join(snapshot.estimated_fields)
        )
    if trend.is_synthetic:
        notes.append(f"Participation trend is synthetic ({trend.source}), not measured data")

    return ReportDocument(
        title=TITLE,
        subtitle=f"Generated on {generated_at:%B} {generated_at.day}, {generated_at.year}",
        generated_at=generated_at,
        metrics=metrics,
        team_stats={
            "teams_total": len(teams),
            "teams_registered": len(registered_teams),
            "team_participants": sum(t.headcount() for t in registered_teams),
        },
        distribution={
            "team": round(snapshot.team_share, 1),
            "solo": round(snapshot.solo_share, 1),
        },
        trend=trend,
        events=[_event_block(e, teams) for e in events],
        notes=notes,
        estimated=snapshot.is_estimated,
    )
