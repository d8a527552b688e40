"""Sign-in: Firebase identity token -> backend session token.

Flow:
  1. Sign in against the Firebase Identity Toolkit REST API (or take an
     ID token obtained elsewhere)
  2. POST /users/auth/firebase to register/verify the user with the backend
  3. Admin sign-in only accepts manager/owner roles
  4. Store the token in local session storage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests.exceptions import RequestException

from salo.api.gateway import Gateway
from salo.config import get_settings
from salo.errors import ApiError, TransportError
from salo.session import SessionStore

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({"manager", "owner"})


@dataclass
class FirebaseIdentity:
    uid: str
    email: str
    id_token: str


def sign_in_with_password(
    email: str,
    password: str,
    http: requests.Session | None = None,
) -> FirebaseIdentity:
    """POST accounts:signInWithPassword on the Identity Toolkit API."""
    s = get_settings()
    if not s.firebase_api_key:
        raise ApiError("FIREBASE_API_KEY is not configured")

    url = f"{s.firebase_auth_url}/accounts:signInWithPassword"
    try:
        resp = (http or requests).post(
            url,
            params={"key": s.firebase_api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
            timeout=s.request_timeout_s,
        )
    except RequestException as e:
        raise TransportError(f"Network error: {e}", path=url) from e

    try:
        body = resp.json() if resp.content else {}
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    if resp.status_code != 200:
        error = body.get("error")
        reason = error.get("message") if isinstance(error, dict) else None
        logger.warning("Firebase sign-in failed for %s: %s", email, reason or f"HTTP {resp.status_code}")
        raise ApiError("Invalid admin credentials", status=resp.status_code, payload=body)

    try:
        return FirebaseIdentity(uid=body["localId"], email=body["email"], id_token=body["idToken"])
    except KeyError as e:
        raise ApiError(f"Unexpected sign-in response: missing {e}", payload=body) from None


def exchange_token(
    gw: Gateway,
    identity: FirebaseIdentity,
    admin_only: bool = True,
) -> dict[str, Any]:
    """Verify the identity with the backend and store the bearer token.

    Returns the backend's user record.
    """
    resp = gw.post(
        "/users/auth/firebase",
        {
            "firebaseUser": {"uid": identity.uid, "email": identity.email},
            "token": identity.id_token,
        },
    )
    user = (resp or {}).get("user") or {}
    if admin_only and user.get("role") not in ADMIN_ROLES:
        logger.warning("Rejected sign-in for %s with role %r", identity.email, user.get("role"))
        raise ApiError("Unauthorized access")

    token = (resp or {}).get("token") or identity.id_token
    gw.store.set_token(token, user)
    logger.info("Signed in as %s (%s)", user.get("email", identity.email), user.get("role"))
    return user


def fetch_profile(gw: Gateway) -> dict[str, Any]:
    """GET /users/profile"""
    resp = gw.get("/users/profile")
    if isinstance(resp, dict) and "data" in resp:
        return resp["data"] or {}
    return resp or {}


def logout(store: SessionStore) -> None:
    store.clear()
    logger.info("Signed out")
