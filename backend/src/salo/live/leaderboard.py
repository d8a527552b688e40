"""Leaderboard state, patched by ``leaderboard:update`` socket messages."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import socketio

from salo.config import get_settings
from salo.models.events import Placement
from salo.models.leaderboard import LeaderboardEvent

logger = logging.getLogger(__name__)

UPDATE_EVENT = "leaderboard:update"


class Leaderboard:
    """Events with their awarded placements, in arrival order."""

    def __init__(self, events: list[LeaderboardEvent] | None = None) -> None:
        self._lock = threading.Lock()
        self.events: list[LeaderboardEvent] = list(events or [])

    def apply_update(self, payload: dict[str, Any]) -> LeaderboardEvent:
        """Replace an event's placements, or append the event if it is new."""
        placements = [Placement.model_validate(p) for p in payload.get("placements") or []]
        event_id = payload["eventId"]
        with self._lock:
            for i, existing in enumerate(self.events):
                if existing.id == event_id:
                    updated = existing.model_copy(update={"placements": placements})
                    self.events[i] = updated
                    return updated
            added = LeaderboardEvent(
                id=event_id,
                event_name=payload.get("eventName", ""),
                category=payload.get("category"),
                placements=placements,
            )
            self.events.append(added)
            return added

    def filter(self, event_id: str = "all") -> list[LeaderboardEvent]:
        with self._lock:
            if event_id == "all":
                return list(self.events)
            return [e for e in self.events if e.id == event_id]

    def podium(self, event_id: str) -> dict[int, Placement | None]:
        """First, second and third place (first award wins a tied rank, other ranks are ignored)."""
        matches = self.filter(event_id)
        result: dict[int, Placement | None] = {1: None, 2: None, 3: None}
        if not matches:
            return result
        for p in sorted(matches[0].placements, key=lambda p: p.placement):
            if p.placement in result and result[p.placement] is None:
                result[p.placement] = p
        return result


class LeaderboardFeed:
    """Socket.IO subscription that patches a Leaderboard. No acknowledgements."""

    def __init__(
        self,
        leaderboard: Leaderboard,
        url: str | None = None,
        on_update: Callable[[LeaderboardEvent], None] | None = None,
        client: socketio.Client | None = None,
    ) -> None:
        self.leaderboard = leaderboard
        self.url = url or get_settings().socket_url
        self.on_update = on_update
        self.sio = client or socketio.Client(reconnection=True)
        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)
        self.sio.on(UPDATE_EVENT, self._on_leaderboard_update)

    def _on_connect(self) -> None:
        logger.info("Connected to leaderboard socket at %s", self.url)

    def _on_disconnect(self, *args: Any) -> None:
        logger.info("Disconnected from leaderboard socket")

    def _on_leaderboard_update(self, data: dict[str, Any]) -> None:
        try:
            event = self.leaderboard.apply_update(data)
        except (KeyError, ValueError) as e:
            logger.warning("Ignoring malformed leaderboard update: %s", e)
            return
        logger.debug("Leaderboard update for %s", event.id)
        if self.on_update is not None:
            self.on_update(event)

    def connect(self) -> None:
        self.sio.connect(self.url)

    def wait(self) -> None:
        self.sio.wait()

    def disconnect(self) -> None:
        self.sio.disconnect()
