"""Per-resource read operations that unwrap the envelope into typed models.

Composite views fetch several resources at once through ``join_all``: the
calls run concurrently and the first failure fails the whole composite.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from salo.api.gateway import Gateway
from salo.models.envelope import unwrap_envelope
from salo.models.events import Event
from salo.models.leaderboard import LeaderboardEvent
from salo.models.offers import Offer
from salo.models.teams import Team

logger = logging.getLogger(__name__)

# Catalog resources shown as plain tables
COLLECTIONS: dict[str, str] = {
    "games": "/games",
    "packages": "/packages",
    "memberships": "/memberships",
    "bookings": "/bookings",
}


def fetch_events(gw: Gateway) -> list[Event]:
    """GET /events"""
    events = unwrap_envelope(gw.get("/events"), list[Event], "Failed to fetch events")
    logger.debug("Fetched %d events", len(events))
    return events


def fetch_event(gw: Gateway, event_id: str) -> Event:
    """GET /events/{id}"""
    return unwrap_envelope(gw.get(f"/events/{event_id}"), Event, "Failed to fetch event")


def fetch_teams(gw: Gateway) -> list[Team]:
    """GET /teams"""
    teams = unwrap_envelope(gw.get("/teams"), list[Team], "Failed to fetch teams")
    logger.debug("Fetched %d teams", len(teams))
    return teams


def fetch_event_teams(gw: Gateway, event_id: str) -> list[Team]:
    """GET /teams/{eventId}"""
    return unwrap_envelope(gw.get(f"/teams/{event_id}"), list[Team], "Failed to fetch teams")


def fetch_offers(gw: Gateway) -> list[Offer]:
    """GET /offer"""
    return unwrap_envelope(gw.get("/offer"), list[Offer], "Failed to fetch offers.")


def fetch_leaderboard(gw: Gateway) -> list[LeaderboardEvent]:
    """GET /events/leaderboard"""
    return unwrap_envelope(
        gw.get("/events/leaderboard"), list[LeaderboardEvent], "Failed to load leaderboard data"
    )


def fetch_collection(gw: Gateway, resource: str) -> list[dict[str, Any]]:
    """GET one of the catalog resources as raw dicts."""
    if resource not in COLLECTIONS:
        raise ValueError(f"Unknown resource: {resource!r}")
    return unwrap_envelope(gw.get(COLLECTIONS[resource]), list[dict], f"Failed to fetch {resource}")


def join_all(*calls: Callable[[], Any]) -> list[Any]:
    """Run calls concurrently; return results in order or raise the first failure."""
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = [pool.submit(c) for c in calls]
        return [f.result() for f in futures]


def fetch_events_and_teams(gw: Gateway) -> tuple[list[Event], list[Team]]:
    events, teams = join_all(lambda: fetch_events(gw), lambda: fetch_teams(gw))
    return events, teams
