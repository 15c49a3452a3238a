# backend/govcontract/services/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
import logging

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The auth provider's record of a signed-up user."""
    id: UUID
    email: str
    email_confirmed_at: datetime | None = None

    @property
    def email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        # GoTrue emits RFC3339 with a trailing Z
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class SupabaseAuthClient:
    """
    Thin client for the hosted auth provider's user endpoint.

    The session token is opaque to us: it is forwarded as a bearer token and
    the provider decides whether it is valid. Every failure mode (missing
    token, rejected token, network error, unexpected body) collapses to
    ``None``; there are no retries.
    """

    def __init__(self, base_url: str, anon_key: str | None, http_client: httpx.Client) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.http = http_client

    def get_user(self, token: str) -> Identity | None:
        headers = {"Authorization": f"Bearer {token}"}
        if self.anon_key:
            headers["apikey"] = self.anon_key

        try:
            resp = self.http.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Auth provider request failed: %s", e, extra={"step": "auth:get_user"})
            return None

        if resp.status_code != 200:
            logger.info(
                "Auth provider rejected session (status %s)",
                resp.status_code,
                extra={"step": "auth:get_user", "status_code": resp.status_code},
            )
            return None

        try:
            body = resp.json()
            return Identity(
                id=UUID(str(body["id"])),
                email=body.get("email") or "",
                email_confirmed_at=_parse_timestamp(body.get("email_confirmed_at")),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Malformed auth provider response: %s", e, extra={"step": "auth:get_user"})
            return None

    def close(self) -> None:
        self.http.close()


def extract_session_token(request: Request, cookie_name: str) -> str | None:
    """
    Session credentials travel in a cookie for browser requests; API clients
    may send the same token as ``Authorization: Bearer``.
    """
    token = request.cookies.get(cookie_name)
    if token and token.strip():
        return token.strip()

    auth_header = request.headers.get("authorization") or ""
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def resolve_identity(request: Request, auth: SupabaseAuthClient, cookie_name: str) -> Identity | None:
    token = extract_session_token(request, cookie_name)
    if not token:
        return None
    return auth.get_user(token)
