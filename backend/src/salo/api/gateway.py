"""HTTP client for the SaloGames backend API."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from salo.config import get_settings
from salo.errors import (
    ApiError,
    EnvelopeError,
    NotFoundError,
    TransportError,
    UnauthorizedError,
)
from salo.session import SessionStore

logger = logging.getLogger(__name__)

_UNSET = object()


def _server_message(payload: Any, status: int) -> str:
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return f"HTTP {status}"


def _is_network_failure(exc: BaseException) -> bool:
    """Connection errors and timeouts are worth another GET; other failures are not."""
    return isinstance(exc, TransportError) and isinstance(exc.__cause__, (ConnectionError, Timeout))


class Gateway:
    """Thin wrapper over ``requests`` that every fetcher and command goes through.

    Attaches the stored bearer token, turns error statuses into typed
    exceptions, and handles 401 by clearing the token and calling
    ``on_unauthorized`` once per expired token.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session_store: SessionStore | None = None,
        http: requests.Session | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
    ) -> None:
        s = get_settings()
        self.base_url = (base_url or s.api_base_url).rstrip("/")
        self.store = session_store or SessionStore()
        self.http = http or requests.Session()
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout if timeout is not None else s.request_timeout_s
        self.retry_attempts = max(1, retry_attempts if retry_attempts is not None else s.http_retry_attempts)
        self._auth_lock = threading.Lock()
        self._handled_token: Any = _UNSET

    # ── Public verbs ─────────────────────────────────────────────────────

    def get(self, path: str, params: dict | None = None) -> Any:
        return self._json(self._send_with_retry("GET", path, params=params))

    def post(self, path: str, body: Any = None) -> Any:
        return self._json(self._send("POST", path, body=body))

    def put(self, path: str, body: Any = None) -> Any:
        return self._json(self._send("PUT", path, body=body))

    def patch(self, path: str, body: Any = None) -> Any:
        return self._json(self._send("PATCH", path, body=body))

    def delete(self, path: str) -> Any:
        return self._json(self._send("DELETE", path))

    def get_bytes(self, path: str, params: dict | None = None) -> tuple[bytes, str]:
        """GET a binary body. Returns ``(content, content_type)``."""
        resp = self._send_with_retry("GET", path, params=params)
        return resp.content, resp.headers.get("Content-Type", "")

    # ── Internals ────────────────────────────────────────────────────────

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send_with_retry(self, method: str, path: str, params: dict | None = None):
        """GETs are idempotent, so transport failures may be retried."""
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception(_is_network_failure),
            reraise=True,
        )
        return retrying(self._send, method, path, params=params)

    def _send(self, method: str, path: str, body: Any = None, params: dict | None = None):
        token = self.store.get_token()
        logger.debug("%s %s", method, path)
        try:
            resp = self.http.request(
                method,
                self._url(path),
                headers=self._headers(token),
                json=body,
                params=params,
                timeout=self.timeout,
            )
        except (ConnectionError, Timeout) as e:
            logger.error("%s %s failed: %s", method, path, e)
            raise TransportError(f"Network error: {e}", path=path) from e
        except RequestException as e:
            logger.error("%s %s failed: %s: %s", method, path, type(e).__name__, e)
            raise TransportError(f"Request failed: {e}", path=path) from e

        status = resp.status_code
        if 200 <= status < 300:
            return resp

        payload = self._error_payload(resp)
        if status == 401:
            self._handle_unauthorized(token)
            raise UnauthorizedError(
                _server_message(payload, status), status=status, path=path, payload=payload
            )
        if status == 404:
            logger.warning("Resource not found: %s %s", method, path)
            raise NotFoundError(
                _server_message(payload, status), status=status, path=path, payload=payload
            )
        raise ApiError(_server_message(payload, status), status=status, path=path, payload=payload)

    @staticmethod
    def _error_payload(resp) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    @staticmethod
    def _json(resp) -> Any:
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise EnvelopeError("Response body is not JSON") from e

    def _handle_unauthorized(self, used_token: str | None) -> None:
        """Clear the token and navigate to sign-in, once per expired token."""
        with self._auth_lock:
            if used_token == self._handled_token:
                return
            # Sent without a token after we already cleared one
            if used_token is None and self._handled_token is not _UNSET:
                return
            current = self.store.get_token()
            if current is not None and current != used_token:
                # Signed in again while this request was in flight
                logger.info("Ignoring 401 for a token that is no longer stored")
                return
            self._handled_token = used_token
            if used_token is not None and current == used_token:
                self.store.clear()
        logger.warning("Session expired or unauthorized; stored token cleared")
        if self.on_unauthorized is not None:
            self.on_unauthorized()
