"""Cancellable polling and stale-response guarding for refreshing views."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from salo.errors import SaloError

logger = logging.getLogger(__name__)


class GenerationGuard:
    """Hands out a token per request; only the newest token is current.

    A response is applied only if ``is_current(token)``. Starting a newer
    request or closing the guard makes every older token stale, so overlapping
    or late responses are dropped instead of overwriting newer state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def is_current(self, token: int) -> bool:
        with self._lock:
            return not self._closed and token == self._generation

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._generation += 1

    @property
    def closed(self) -> bool:
        return self._closed


class Poller:
    """Calls ``fn`` immediately and then every ``interval`` seconds on a thread.

    ``stop()`` wakes the thread and returns without waiting a full interval.
    ``trigger()`` runs a refresh now and restarts the wait.
    """

    def __init__(self, fn: Callable[[], None], interval: float, name: str = "poller") -> None:
        self.fn = fn
        self.interval = interval
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self.ticks = 0

    def start(self) -> Poller:
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop.is_set():
            self.ticks += 1
            try:
                self.fn()
            except SaloError as e:
                # Views already hold the error; keep polling.
                logger.warning("Poll tick %d failed: %s", self.ticks, e.message)
            except Exception:
                logger.exception("Poll tick %d raised unexpectedly", self.ticks)
            self._wake.wait(self.interval)
            self._wake.clear()

    def trigger(self) -> None:
        self._wake.set()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        self._wake.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread.is_alive()
