"""Screen state for the admin dashboard: last good data, loading flag, error text.

Views are where errors stop. Fetchers and commands raise; a view catches
SaloError, keeps showing its last successful data, records a one-line
error and notifies. Every refresh takes a generation token so that a
response arriving after a newer refresh, or after ``close()``, is dropped.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Generic, TypeVar

import numpy as np

from salo.analytics.aggregate import (
    KindFilter,
    StatusFilter,
    aggregate,
    filter_participants,
    flatten_participants,
    participant_stats,
)
from salo.analytics.trend import synthesize_trend
from salo.api import fetchers
from salo.api.gateway import Gateway
from salo.config import get_settings
from salo.errors import FormError, SaloError
from salo.forms import EventForm, OfferForm, validate_form
from salo.live.controller import LiveEvent, LiveEventController, live_stats, to_live_event
from salo.live.polling import GenerationGuard, Poller
from salo.models.analytics import Participant, ParticipantStats, ParticipationSnapshot, TrendSeries
from salo.models.events import Event
from salo.models.offers import Offer
from salo.models.teams import Team
from salo.notify import Notifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class View(Generic[T]):
    """Base class: ``refresh()`` loads, then applies if still current."""

    failure_message = "Failed to load data"
    # Composite views report one generic error instead of the server's text
    composite = False

    def __init__(self, gateway: Gateway, notifier: Notifier | None = None) -> None:
        self.gw = gateway
        self.notifier = notifier or Notifier()
        self.guard = GenerationGuard()
        self.loading = False
        self.error: str | None = None
        self.loaded = False

    def _load(self) -> T:
        raise NotImplementedError

    def _apply(self, data: T) -> None:
        raise NotImplementedError

    def _error_text(self, exc: SaloError) -> str:
        if self.composite:
            return self.failure_message
        return exc.message or self.failure_message

    def refresh(self) -> bool:
        """Reload. Returns True if new data was applied."""
        token = self.guard.begin()
        self.loading = True
        try:
            data = self._load()
        except SaloError as e:
            logger.error("%s refresh failed: %s", type(self).__name__, e.message)
            if self.guard.is_current(token):
                self.loading = False
                self.error = self._error_text(e)
                self.notifier.error(self.error)
            return False

        if not self.guard.is_current(token):
            logger.debug("%s: discarding stale response (token %d)", type(self).__name__, token)
            return False
        self._apply(data)
        self.loading = False
        self.loaded = True
        self.error = None
        return True

    def close(self) -> None:
        """Stop accepting responses, e.g. when the screen is left."""
        self.guard.close()

    def _mutate(self, call, ok: str, failed: str) -> bool:
        """Run a write, then refetch once on success. Returns success."""
        try:
            call()
        except FormError as e:
            self.error = e.message
            self.notifier.error(e.message)
            return False
        except SaloError as e:
            logger.error("%s: %s", failed, e.message)
            self.error = e.message or failed
            self.notifier.error(self.error)
            return False
        self.error = None
        self.notifier.success(ok)
        self.refresh()
        return True


# ======================================================================
# Analytics
# ======================================================================


class AnalyticsView(View[tuple]):
    failure_message = "Failed to load analytics data"
    composite = True

    def __init__(
        self,
        gateway: Gateway,
        notifier: Notifier | None = None,
        rng: np.random.Generator | None = None,
        today: date | None = None,
    ) -> None:
        super().__init__(gateway, notifier)
        self.rng = rng
        self.today = today
        self.events: list[Event] = []
        self.teams: list[Team] = []
        self.snapshot: ParticipationSnapshot | None = None
        self.trend: TrendSeries | None = None

    def _load(self) -> tuple:
        events, teams = fetchers.fetch_events_and_teams(self.gw)
        snapshot = aggregate(events, teams)
        # The trend is driven by real counts, never by placeholder numbers
        real_total = snapshot.verified_count + snapshot.unverified_count
        trend = synthesize_trend(events, teams, real_total, today=self.today, rng=self.rng)
        return events, teams, snapshot, trend

    def _apply(self, data: tuple) -> None:
        self.events, self.teams, self.snapshot, self.trend = data


# ======================================================================
# Participants
# ======================================================================


class ParticipantsView(View[tuple]):
    failure_message = "Failed to fetch participants data"
    composite = True

    def __init__(self, gateway: Gateway, notifier: Notifier | None = None) -> None:
        super().__init__(gateway, notifier)
        self.participants: list[Participant] = []
        self.stats = ParticipantStats()

    def _load(self) -> tuple:
        events, teams = fetchers.fetch_events_and_teams(self.gw)
        participants = flatten_participants(events, teams)
        return participants, participant_stats(participants)

    def _apply(self, data: tuple) -> None:
        self.participants, self.stats = data

    def filtered(
        self,
        search: str = "",
        status: StatusFilter = "all",
        kind: KindFilter = "all",
    ) -> list[Participant]:
        return filter_participants(self.participants, search, status, kind)


# ======================================================================
# Live events
# ======================================================================


class LiveEventsView(View[list]):
    failure_message = "Failed to fetch live events"
    composite = True

    def __init__(self, gateway: Gateway, notifier: Notifier | None = None) -> None:
        super().__init__(gateway, notifier)
        self.live_events: list[LiveEvent] = []
        self.controller = LiveEventController(gateway, self.refresh, self.notifier)
        self._poller: Poller | None = None

    def _load(self) -> list:
        events, teams = fetchers.fetch_events_and_teams(self.gw)
        return [to_live_event(e, teams) for e in events]

    def _apply(self, data: list) -> None:
        self.live_events = data

    def find(self, event_id: str) -> LiveEvent | None:
        return next((e for e in self.live_events if e.id == event_id), None)

    def stats(self) -> dict[str, int]:
        return live_stats(self.live_events)

    def watch(self, interval: float | None = None) -> Poller:
        """Refresh now and then every ``interval`` seconds until ``close()``."""
        if self._poller is not None and self._poller.running:
            return self._poller
        interval = interval if interval is not None else get_settings().poll_interval_s
        self._poller = Poller(self.refresh, interval, name="live-events").start()
        return self._poller

    def close(self) -> None:
        if self._poller is not None:
            self._poller.stop()
        super().close()


# ======================================================================
# Events (CRUD)
# ======================================================================


class EventsView(View[list]):
    failure_message = "Failed to fetch events"

    def __init__(self, gateway: Gateway, notifier: Notifier | None = None) -> None:
        super().__init__(gateway, notifier)
        self.events: list[Event] = []

    def _load(self) -> list:
        return fetchers.fetch_events(self.gw)

    def _apply(self, data: list) -> None:
        self.events = data

    def create(self, data: dict[str, Any]) -> bool:
        def call() -> None:
            form = validate_form(EventForm, data)
            self.gw.post("/events", form.to_payload())

        return self._mutate(call, "Event created successfully", "Failed to create event")

    def update(self, event_id: str, data: dict[str, Any]) -> bool:
        def call() -> None:
            form = validate_form(EventForm, data)
            self.gw.put(f"/events/{event_id}", form.to_payload())

        return self._mutate(call, "Event updated successfully", "Failed to update event")

    def delete(self, event_id: str) -> bool:
        return self._mutate(
            lambda: self.gw.delete(f"/events/{event_id}"),
            "Event deleted successfully",
            "Failed to delete event",
        )


# ======================================================================
# Offers
# ======================================================================


class OffersView(View[list]):
    failure_message = "Failed to fetch offers."

    def __init__(self, gateway: Gateway, notifier: Notifier | None = None) -> None:
        super().__init__(gateway, notifier)
        self.offers: list[Offer] = []

    def _load(self) -> list:
        return fetchers.fetch_offers(self.gw)

    def _apply(self, data: list) -> None:
        self.offers = data

    def find(self, offer_id: str) -> Offer | None:
        return next((o for o in self.offers if o.id == offer_id), None)

    def toggle_active(self, offer: Offer) -> bool:
        """PATCH the flipped ``isActive``; refetch once if it succeeds."""
        return self._mutate(
            lambda: self.gw.patch(f"/offer/{offer.id}/toggle-active", {"isActive": not offer.is_active}),
            "Offer status updated successfully!",
            "Failed to toggle active status.",
        )

    def save(self, data: dict[str, Any], offer_id: str | None = None) -> bool:
        def call() -> None:
            form = validate_form(OfferForm, data)
            if offer_id:
                self.gw.put(f"/offer/{offer_id}", form.to_payload())
            else:
                self.gw.post("/offer", form.to_payload())

        ok = "Offer updated successfully." if offer_id else "Offer created successfully."
        return self._mutate(call, ok, "An unexpected error occurred.")

    def delete(self, offer_id: str) -> bool:
        return self._mutate(
            lambda: self.gw.delete(f"/offer/{offer_id}"),
            "Offer deleted successfully.",
            "Failed to delete offer.",
        )
