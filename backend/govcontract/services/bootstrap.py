# backend/govcontract/services/bootstrap.py
"""
Bootstrap gate for protected pages.

Every request to a protected area is classified from scratch:

    UNAUTHENTICATED -> no identity            -> redirect to login
    NEEDS_PROFILE   -> identity, no company   -> render the setup prompt
    READY           -> identity + company     -> render the app shell

Nothing is cached between requests; the state is derived from the identity,
profile and company rows each time.
"""
from __future__ import annotations

from dataclasses import dataclass
import enum
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.company import Company
from ..models.profile import Profile
from .accounts import lookup_account
from .auth import Identity

logger = logging.getLogger(__name__)


class GateState(str, enum.Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NEEDS_PROFILE = "NEEDS_PROFILE"
    READY = "READY"


@dataclass(frozen=True)
class GateResult:
    state: GateState
    identity: Identity | None = None
    profile: Profile | None = None
    company: Company | None = None


def evaluate_gate(identity: Identity | None, db: Session) -> GateResult:
    if identity is None:
        return GateResult(state=GateState.UNAUTHENTICATED)

    try:
        profile, company = lookup_account(db, identity.id)
    except SQLAlchemyError:
        # A broken lookup must not become an error page; send the user back to login.
        logger.exception(
            "Profile lookup failed during bootstrap",
            extra={"user_id": str(identity.id), "step": "bootstrap"},
        )
        return GateResult(state=GateState.UNAUTHENTICATED)

    if profile is None or company is None:
        return GateResult(state=GateState.NEEDS_PROFILE, identity=identity, profile=profile)

    return GateResult(
        state=GateState.READY,
        identity=identity,
        profile=profile,
        company=company,
    )
