# backend/govcontract/api/deps.py
"""
Request dependencies shared by the routers.

Every external client lives on ``app.state`` (built in the lifespan or
injected by tests); nothing here reaches for a module-level singleton.
"""
from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.db import get_db
from ..core.errors import Forbidden, Internal, NotFound, Unauthenticated
from ..models.profile import Role
from ..services.accounts import is_admin
from ..services.ai import ContractAI
from ..services.auth import Identity, SupabaseAuthClient, resolve_identity
from ..services.bootstrap import GateResult, GateState, evaluate_gate
from ..services.connectors import ConnectorRunner
from ..services.payments import PaymentService

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth(request: Request) -> SupabaseAuthClient:
    return request.app.state.auth


def get_ai(request: Request) -> ContractAI:
    ai = request.app.state.ai
    if ai is None:
        raise Internal("AI service is not configured")
    return ai


def get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def get_connectors(request: Request) -> ConnectorRunner:
    return request.app.state.connectors


def current_identity(request: Request) -> Identity | None:
    settings = get_app_settings(request)
    identity = resolve_identity(request, get_auth(request), settings.SESSION_COOKIE_NAME)
    if identity is not None:
        request.state.user_id = str(identity.id)
    return identity


def require_identity(identity: Identity | None = Depends(current_identity)) -> Identity:
    if identity is None:
        raise Unauthenticated()
    return identity


def current_gate(
    identity: Identity | None = Depends(current_identity),
    db: Session = Depends(get_db),
) -> GateResult:
    return evaluate_gate(identity, db)


def require_account(
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
) -> GateResult:
    """READY callers only: an identity with both a profile and a company."""
    gate = evaluate_gate(identity, db)
    if gate.state == GateState.UNAUTHENTICATED:
        raise Unauthenticated()
    if gate.state == GateState.NEEDS_PROFILE:
        raise NotFound("Profile not found")
    return gate


def require_owner(gate: GateResult = Depends(require_account)) -> GateResult:
    if gate.profile.role not in (Role.COMPANY_OWNER, Role.ADMIN):
        raise Forbidden("Only company owners can manage billing")
    return gate


def require_admin(
    request: Request,
    gate: GateResult = Depends(require_account),
) -> GateResult:
    settings = get_app_settings(request)
    if not is_admin(gate.profile, gate.identity, settings.admin_emails):
        logger.warning(
            "Admin action refused",
            extra={"user_id": str(gate.identity.id), "step": "require_admin"},
        )
        raise Forbidden("Admin access required")
    return gate
