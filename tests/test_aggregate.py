import pytest

from salo.analytics.aggregate import (
    PLACEHOLDER_EVENTS,
    PLACEHOLDER_PARTICIPATION,
    aggregate,
    filter_participants,
    flatten_participants,
    participant_stats,
)
from salo.models.events import Event
from salo.models.teams import Team


@pytest.fixture
def events(solo_event, team_event):
    return [Event.model_validate(solo_event), Event.model_validate(team_event)]


@pytest.fixture
def teams(teams_payload):
    return [Team.model_validate(t) for t in teams_payload]


def test_single_battle_counts(solo_event):
    snap = aggregate([Event.model_validate(solo_event)], [])
    assert snap.total_events == 1
    assert snap.total_participants == 2
    assert snap.solo_participants == 2
    assert snap.team_participants == 0
    assert snap.verified_count == 1
    assert snap.verification_rate == 50.0
    assert not snap.is_estimated


def test_registered_teams_count_leader_and_members(events, teams):
    snap = aggregate(events, teams)
    # tm-2 has no registration, so only tm-1's leader and two members count
    assert snap.team_participants == 3
    assert snap.solo_participants == 2
    assert snap.total_participants == snap.team_participants + snap.solo_participants
    assert snap.verified_count + snap.unverified_count == snap.total_participants
    assert snap.team_events == 1 and snap.single_events == 1


def test_aggregate_is_deterministic(events, teams):
    assert aggregate(events, teams) == aggregate(events, teams)


def test_flatten_order_and_ids(events, teams):
    people = flatten_participants(events, teams)
    assert [p.id for p in people] == [
        "ev-solo-a@x.com",
        "ev-solo-b@x.com",
        "tm-1-leader",
        "tm-1-m1@x.com",
        "tm-1-m2@x.com",
    ]
    leader = people[2]
    assert leader.verified is True
    assert leader.kind == "team"
    assert leader.event_name == "Team Event"


def test_participant_stats(events, teams):
    stats = participant_stats(flatten_participants(events, teams))
    assert stats.total == 5
    assert stats.verified == 3
    assert stats.unverified == 2
    assert stats.pending == 2
    assert stats.team == 3 and stats.solo == 2


def test_participant_stats_empty():
    assert participant_stats([]).total == 0


@pytest.mark.parametrize(
    "search,status,kind,expected",
    [
        ("", "all", "all", 5),
        ("NIGHT OWLS", "all", "all", 3),
        ("fifa", "all", "all", 2),
        ("", "unverified", "all", 2),
        ("", "verified", "team", 2),
        ("", "all", "individual", 2),
        ("nobody", "all", "all", 0),
    ],
)
def test_filter_participants(events, teams, search, status, kind, expected):
    people = flatten_participants(events, teams)
    assert len(filter_participants(people, search, status, kind)) == expected


def test_filter_keeps_input_order(events, teams):
    people = flatten_participants(events, teams)
    picked = filter_participants(people, status="unverified")
    assert [p.email for p in picked] == ["b@x.com", "m2@x.com"]


def test_empty_dashboard_uses_flagged_placeholders():
    snap = aggregate([], [])
    assert snap.is_estimated
    assert snap.total_events == 3 and snap.team_events == 1 and snap.single_events == 2
    assert snap.total_participants == 25
    assert snap.verification_rate == 67.5
    assert snap.estimated_fields == list(PLACEHOLDER_EVENTS) + list(PLACEHOLDER_PARTICIPATION)
    # Real counts stay real
    assert snap.verified_count == 0 and snap.unverified_count == 0


def test_events_without_participants_estimate_participation_only(team_event):
    snap = aggregate([Event.model_validate(team_event)], [])
    assert snap.total_events == 1
    assert snap.total_participants == 25
    assert snap.estimated_fields == list(PLACEHOLDER_PARTICIPATION)


def test_placeholders_can_be_disabled():
    snap = aggregate([], [], placeholders=False)
    assert snap.total_events == 0
    assert snap.total_participants == 0
    assert not snap.is_estimated
