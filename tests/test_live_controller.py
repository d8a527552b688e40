from datetime import datetime, timedelta, timezone

import pytest

from conftest import fail, ok
from salo.errors import ApiError, FormError, TransitionError
from salo.live.controller import (
    LiveEventController,
    allowed_actions,
    live_stats,
    time_remaining,
    to_live_event,
)
from salo.models.events import Event, EventStatus
from salo.models.teams import Team


@pytest.fixture
def refreshes():
    return []


@pytest.fixture
def controller(gateway, notifier, refreshes):
    return LiveEventController(gateway, lambda: refreshes.append(1), notifier)


def _with_status(team_event, status):
    return Event.model_validate({**team_event, "status": status})


@pytest.mark.parametrize(
    "status,actions",
    [
        (EventStatus.NOT_STARTED, ["start"]),
        (EventStatus.IN_PROGRESS, ["pause", "end"]),
        (EventStatus.PAUSED, ["start"]),
        (EventStatus.COMPLETED, []),
    ],
)
def test_allowed_actions(status, actions):
    assert allowed_actions(status) == actions


def test_start_posts_then_refreshes_once(controller, http, team_event, refreshes, notifier):
    http.add("POST", "/events/ev-team/start", ok(None, "Event started"))
    controller.start(_with_status(team_event, "not_started"))
    assert http.count("POST") == 1
    assert refreshes == [1]
    assert notifier.messages == [("success", "Event started successfully")]


def test_resume_from_paused(controller, http, team_event, refreshes):
    http.add("POST", "/events/ev-team/start", ok(None))
    controller.start(_with_status(team_event, "paused"))
    assert refreshes == [1]


@pytest.mark.parametrize(
    "status,action",
    [("not_started", "pause"), ("not_started", "end"), ("paused", "end"), ("completed", "start")],
)
def test_illegal_transition_sends_nothing(controller, http, team_event, refreshes, status, action):
    with pytest.raises(TransitionError):
        controller.control(_with_status(team_event, status), action)
    assert http.calls == []
    assert refreshes == []


def test_server_rejection_keeps_state(controller, http, team_event, refreshes, notifier):
    http.add("POST", "/events/ev-team/pause", fail(400, "Event is not running"))
    with pytest.raises(ApiError):
        controller.pause(_with_status(team_event, "in_progress"))
    assert refreshes == []
    assert notifier.messages == [("error", "Failed to pause event")]


def test_award_placement_to_team(controller, http, team_event, refreshes):
    http.add("POST", "/events/ev-team/placement", ok(None))
    controller.award_placement(_with_status(team_event, "completed"), 1, team_id="tm-1")
    assert http.calls[0]["json"] == {"placement": 1, "teamId": "tm-1"}
    assert refreshes == [1]


def test_award_placement_to_participant(controller, http, solo_event):
    http.add("POST", "/events/ev-solo/placement", ok(None))
    controller.award_placement(Event.model_validate(solo_event), 3, participant_email="a@x.com")
    assert http.calls[0]["json"] == {"placement": 3, "participantEmail": "a@x.com"}


@pytest.mark.parametrize(
    "rank,team_id,email",
    [(0, "tm-1", None), (4, "tm-1", None), (1, None, None), (2, "tm-1", "a@x.com")],
)
def test_award_placement_validation(controller, http, team_event, rank, team_id, email):
    with pytest.raises(FormError):
        controller.award_placement(
            Event.model_validate(team_event), rank, team_id=team_id, participant_email=email
        )
    assert http.calls == []


def test_tied_placement_warns_but_is_sent(controller, http, team_event, notifier):
    event = Event.model_validate({**team_event, "placements": [{"teamId": "tm-1", "placement": 1}]})
    http.add("POST", "/events/ev-team/placement", ok(None))
    controller.award_placement(event, 1, team_id="tm-2")
    assert notifier.levels() == ["warning", "success"]
    assert http.count("POST") == 1


def test_assign_referee(controller, http, team_event, refreshes):
    http.add("POST", "/events/ev-team/referee", ok(None))
    controller.assign_referee(Event.model_validate(team_event), "judge@salo.gg")
    assert http.calls[0]["json"] == {"email": "judge@salo.gg"}
    assert refreshes == [1]


def test_assign_referee_rejects_bad_email(controller, http, team_event):
    with pytest.raises(FormError, match="valid referee email"):
        controller.assign_referee(Event.model_validate(team_event), "not-an-email")
    assert http.calls == []


def test_live_event_join_and_stats(team_event, solo_event, teams_payload):
    teams = [Team.model_validate(t) for t in teams_payload]
    live = [
        to_live_event(Event.model_validate(team_event), teams),
        to_live_event(Event.model_validate(solo_event), teams),
    ]
    assert [e.name for e in live[0].entrants] == ["Night Owls"]
    assert [e.name for e in live[1].entrants] == ["a@x.com", "b@x.com"]
    assert live[0].actions == ["pause", "end"]
    assert live_stats(live) == {
        "live_events": 1,
        "active_participants": 3,
        "total_matches": 2,
        "referees_active": 1,
    }


def test_time_remaining():
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    assert time_remaining(now + timedelta(hours=2, minutes=5, seconds=9), now) == "2h 5m 9s"
    assert time_remaining(now - timedelta(seconds=1), now) == "Event Ended"
    assert time_remaining(None, now) == "-"
