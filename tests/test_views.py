import time
from datetime import date

import numpy as np
import pytest
from requests.exceptions import ChunkedEncodingError, TooManyRedirects

from conftest import fail, offline, ok
from salo.views import AnalyticsView, EventsView, LiveEventsView, OffersView, ParticipantsView

OFFER = {
    "_id": "of-1", "title": "Weekend", "code": "WKND",
    "discountType": "percentage", "discountValue": 15, "isActive": True,
}


# ── Offers ──────────────────────────────────────────────────────────────


def test_toggle_sends_one_patch_then_refetches_once(gateway, http, notifier):
    http.add("GET", "/offer", ok([OFFER]), ok([{**OFFER, "isActive": False}]))
    http.add("PATCH", "/offer/of-1/toggle-active", ok(None))
    view = OffersView(gateway, notifier)
    assert view.refresh()

    assert view.toggle_active(view.find("of-1"))

    assert http.count("PATCH") == 1
    assert http.calls[1]["json"] == {"isActive": False}
    assert http.count("GET", "/offer") == 2
    assert view.offers[0].is_active is False
    assert ("success", "Offer status updated successfully!") in notifier.messages


def test_failed_toggle_does_not_refetch(gateway, http, notifier):
    http.add("GET", "/offer", ok([OFFER]))
    http.add("PATCH", "/offer/of-1/toggle-active", fail(500, "boom"))
    view = OffersView(gateway, notifier)
    view.refresh()

    assert not view.toggle_active(view.offers[0])

    assert http.count("GET", "/offer") == 1
    assert view.offers[0].is_active is True
    assert notifier.levels() == ["error"]


def test_offer_form_errors_send_nothing(gateway, http, notifier):
    view = OffersView(gateway, notifier)
    assert not view.save({"title": "Bad", "code": "BAD", "discount_value": 0})
    assert http.calls == []
    assert "greater than 0" in view.error


def test_offer_create(gateway, http, notifier):
    http.add("POST", "/offer", ok(None))
    http.add("GET", "/offer", ok([OFFER]))
    view = OffersView(gateway, notifier)
    assert view.save({"title": "Weekend", "code": "WKND", "discount_value": 15})
    assert http.calls[0]["json"]["discountValue"] == 15
    assert view.offers[0].id == "of-1"


# ── Error handling and stale data ───────────────────────────────────────


def test_failed_refresh_keeps_last_good_data(gateway, http, notifier):
    http.add("GET", "/offer", ok([OFFER]), fail(500, "Database unavailable"))
    view = OffersView(gateway, notifier)
    assert view.refresh()
    assert not view.refresh()

    assert [o.id for o in view.offers] == ["of-1"]
    assert view.error == "Database unavailable"
    assert not view.loading


def test_composite_view_shows_generic_error(gateway, http, notifier, solo_event):
    http.add("GET", "/events", ok([solo_event]))
    http.add("GET", "/teams", offline())
    view = ParticipantsView(gateway, notifier)
    assert not view.refresh()
    assert view.error == "Failed to fetch participants data"
    assert view.participants == []


def test_response_after_close_is_dropped(gateway, http, notifier):
    http.add("GET", "/offer", ok([OFFER]))
    view = OffersView(gateway, notifier)

    original = view._load

    def load_then_leave():
        data = original()
        view.close()
        return data

    view._load = load_then_leave
    assert not view.refresh()
    assert view.offers == []
    assert notifier.messages == []


def test_refresh_ends_loading_on_unexpected_transport_failure(gateway, http, notifier):
    http.add("GET", "/offer", ChunkedEncodingError("truncated"))
    view = OffersView(gateway, notifier)
    assert not view.refresh()
    assert not view.loading
    assert view.error.startswith("Request failed")
    assert notifier.levels() == ["error"]


def test_live_view_ends_loading_on_redirect_loop(gateway, http, notifier):
    http.add("GET", "/events", TooManyRedirects("loop"))
    http.add("GET", "/teams", TooManyRedirects("loop"))
    view = LiveEventsView(gateway, notifier)
    assert not view.refresh()
    assert not view.loading
    assert view.error == "Failed to fetch live events"


def test_live_view_keeps_polling_through_failures(gateway, http, notifier):
    http.add("GET", "/events", ChunkedEncodingError("truncated"))
    http.add("GET", "/teams", ChunkedEncodingError("truncated"))
    view = LiveEventsView(gateway, notifier)
    poller = view.watch(interval=0.05)
    try:
        deadline = time.monotonic() + 2
        while poller.ticks < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        assert poller.ticks >= 3
        assert poller.running
    finally:
        view.close()
    assert not view.loading
    assert view.error == "Failed to fetch live events"


def test_older_refresh_finishing_last_is_dropped(gateway, http, notifier):
    http.add("GET", "/offer", ok([OFFER]), ok([{**OFFER, "title": "Newer"}]))
    view = OffersView(gateway, notifier)

    original = view._load
    nested = []

    def load_then_refresh_again():
        data = original()
        if not nested:
            nested.append(view.refresh())
        return data

    view._load = load_then_refresh_again
    assert not view.refresh()
    assert nested == [True]
    assert [o.title for o in view.offers] == ["Newer"]
    assert not view.loading
    assert view.error is None


# ── Composite views ─────────────────────────────────────────────────────


def test_analytics_view(gateway, http, notifier, solo_event, team_event, teams_payload):
    http.add("GET", "/events", ok([solo_event, team_event]))
    http.add("GET", "/teams", ok(teams_payload))
    view = AnalyticsView(gateway, notifier, rng=np.random.default_rng(0), today=date(2026, 10, 18))

    assert view.refresh()

    assert view.snapshot.total_participants == 5
    assert len(view.trend.points) == 30
    assert view.trend.source == "blended"


def test_participants_view_filters(gateway, http, notifier, solo_event, team_event, teams_payload):
    http.add("GET", "/events", ok([solo_event, team_event]))
    http.add("GET", "/teams", ok(teams_payload))
    view = ParticipantsView(gateway, notifier)
    view.refresh()
    assert view.stats.total == 5
    assert [p.email for p in view.filtered(kind="individual")] == ["a@x.com", "b@x.com"]


def test_live_view_command_refetches(gateway, http, notifier, team_event, teams_payload):
    http.add("GET", "/events", ok([team_event]), ok([{**team_event, "status": "paused"}]))
    http.add("GET", "/teams", ok(teams_payload))
    http.add("POST", "/events/ev-team/pause", ok(None))
    view = LiveEventsView(gateway, notifier)
    view.refresh()

    view.controller.pause(view.find("ev-team"))

    assert view.find("ev-team").status.value == "paused"
    assert http.count("GET", "/events") == 2


def test_live_view_watch_and_close(gateway, http, notifier, team_event, teams_payload):
    http.add("GET", "/events", ok([team_event]))
    http.add("GET", "/teams", ok(teams_payload))
    view = LiveEventsView(gateway, notifier)
    poller = view.watch(interval=60)
    assert view.watch(interval=60) is poller
    view.close()
    assert not poller.running
    assert view.guard.closed


# ── Events ──────────────────────────────────────────────────────────────


EVENT_FORM = {
    "event_name": "Cup",
    "category": "single-battle",
    "start_date_time": "2026-11-01T18:00:00",
    "end_date_time": "2026-11-01T22:00:00",
    "description": "Friday cup",
    "image": "https://img.test/cup.png",
    "total_spots": 32,
}


def test_create_event(gateway, http, notifier):
    http.add("POST", "/events", ok(None))
    http.add("GET", "/events", ok([]))
    view = EventsView(gateway, notifier)
    assert view.create(EVENT_FORM)
    body = http.calls[0]["json"]
    assert body["eventName"] == "Cup"
    assert body["totalSpots"] == 32
    assert "numberOfTeams" not in body


@pytest.mark.parametrize(
    "override",
    [
        {"end_date_time": "2026-11-01T17:00:00"},
        {"category": "team-battle"},
        {"total_spots": 0},
        {"event_name": "   "},
    ],
)
def test_invalid_event_is_not_sent(gateway, http, notifier, override):
    view = EventsView(gateway, notifier)
    assert not view.create({**EVENT_FORM, **override})
    assert http.calls == []
    assert notifier.levels() == ["error"]


def test_delete_event_failure(gateway, http, notifier):
    http.add("DELETE", "/events/ev-1", fail(404, "Event not found"))
    view = EventsView(gateway, notifier)
    assert not view.delete("ev-1")
    assert view.error == "Event not found"
