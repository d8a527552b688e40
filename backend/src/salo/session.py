"""Local session storage for the bearer token and the signed-in user."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from salo.config import get_settings

logger = logging.getLogger(__name__)


class SessionStore:
    """JSON file holding ``{"token", "user", "saved_at"}``.

    The auth flow and the gateway's 401 handler are the only writers.
    Writes go to a temp file that replaces the original, so readers never
    see a half-written file.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path).expanduser() if path else get_settings().session_path
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt session file %s", self.path)
            return {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".session-")
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, default=str)
        os.replace(tmp, self.path)

    def get_token(self) -> str | None:
        return self._read().get("token")

    def user(self) -> dict[str, Any] | None:
        return self._read().get("user")

    def set_token(self, token: str, user: dict[str, Any] | None = None) -> None:
        with self._lock:
            self._write({
                "token": token,
                "user": user,
                "saved_at": datetime.now(timezone.utc).isoformat(),
            })

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
