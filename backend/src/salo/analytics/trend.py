"""Daily participation trend for the analytics dashboard and reports.

This is a presentation heuristic, not a measurement:
  1. A randomized baseline grows from ~70% of the participant total
  2. Real event days add a bump that decays linearly to the end of the window
  3. A flat series (every point <= 1) is replaced by a synthetic one

``TrendSeries.source`` records which of these produced the output, and
``is_synthetic`` stays True unless a real event day contributed.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta

import numpy as np

from salo.config import get_settings
from salo.models.analytics import TrendPoint, TrendSeries
from salo.models.events import Event, EventCategory
from salo.models.teams import Team

logger = logging.getLogger(__name__)

BASELINE_START = 0.7
CAP_TRIGGER = 1.3
CAP_RESET = 1.2
SPIKE_CHANCE = 0.2
SPIKE_SIZE = 0.05
EMPTY_BASELINE = 10
EVENT_BUMP_SHARE = 0.3
EVENT_BUMP_MIN = 5


def event_participant_count(event: Event, teams: list[Team]) -> int:
    """Headcount for one event: solo registrants, or leader + members per team."""
    if event.category == EventCategory.SINGLE_BATTLE:
        return len(event.registered_emails)
    if event.registered_teams is not None:
        squads = event.registered_teams
    else:
        squads = [t for t in teams if event.id in t.registered_event_ids()]
    return sum(t.headcount() for t in squads)


def _baseline(total: int, days: int, rng: np.random.Generator) -> np.ndarray:
    cumulative = float(math.floor(total * BASELINE_START)) if total > 0 else float(EMPTY_BASELINE)
    values = np.empty(days, dtype=np.int64)

    for index in range(days):
        if total > 0:
            day_factor = min(0.2, rng.random() * 0.1)
            trend_factor = index / days
            if rng.random() < SPIKE_CHANCE:
                change = math.floor(total * SPIKE_SIZE)
            else:
                change = math.floor(total * day_factor * trend_factor)
            cumulative += change
            if cumulative > total * CAP_TRIGGER:
                cumulative = total * CAP_RESET
        else:
            cumulative += int(rng.integers(0, 3)) + (2 if index > 20 else 1)
        values[index] = max(1, math.floor(cumulative))

    return values


def _overlay_events(
    values: np.ndarray,
    dates: list[date],
    events: list[Event],
    teams: list[Team],
) -> int:
    """Add event-day bumps in place. Returns how many events contributed."""
    days = len(values)
    index_of = {d: i for i, d in enumerate(dates)}
    contributed = 0

    for event in events:
        if event.start_date_time is None:
            continue
        idx = index_of.get(event.start_date_time.date())
        if idx is None:
            continue
        count = event_participant_count(event, teams)
        if count <= 0:
            continue

        bump = max(EVENT_BUMP_MIN, math.floor(count * EVENT_BUMP_SHARE))
        values[idx] += bump
        later = np.arange(idx + 1, days)
        values[idx + 1:] += np.floor(bump * (days - later) / days).astype(np.int64)
        contributed += 1
        logger.debug("Event %s on %s adds bump %d", event.id, dates[idx], bump)

    return contributed


def _synthetic(days: int, rng: np.random.Generator) -> np.ndarray:
    values = np.empty(days, dtype=np.int64)
    base = 5
    for index in range(days):
        if rng.random() > 0.7:
            base += int(rng.integers(1, 4))
        else:
            base += math.floor(rng.random() * 1.5)
        if index % 7 == 0:
            base += int(rng.integers(3, 8))
        values[index] = base
    return values


def synthesize_trend(
    events: list[Event],
    teams: list[Team],
    total_participants: int,
    days: int | None = None,
    today: date | None = None,
    rng: np.random.Generator | None = None,
) -> TrendSeries:
    """One point per day for the trailing ``days`` days, oldest first, ending today."""
    days = days or get_settings().trend_days
    today = today or date.today()
    rng = rng if rng is not None else np.random.default_rng()

    dates = [today - timedelta(days=days - 1 - i) for i in range(days)]
    values = _baseline(total_participants, days, rng)
    contributed = _overlay_events(values, dates, events, teams)
    source = "blended" if contributed else "heuristic"

    if bool(np.all(values <= 1)):
        logger.info("Trend is flat; substituting a synthetic series")
        values = _synthetic(days, rng)
        source = "synthetic"

    points = [TrendPoint(date=d, participants=int(v)) for d, v in zip(dates, values)]
    return TrendSeries(points=points, source=source)
