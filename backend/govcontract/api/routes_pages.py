# backend/govcontract/api/routes_pages.py
"""
HTML entry points guarded by the bootstrap gate.

These routes never surface an error envelope: every outcome is a redirect
or a rendered page.
"""
from pathlib import Path
import logging

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import AppError
from ..models.profile import Role
from ..schemas.accounts import SetupProfileRequest
from ..services.accounts import setup_account
from ..services.bootstrap import GateResult, GateState
from .deps import current_gate, get_app_settings

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

router = APIRouter(tags=["pages"], include_in_schema=False)
logger = logging.getLogger(__name__)

ROLE_CHOICES = [
    (Role.COMPANY_OWNER.value, "Company owner"),
    (Role.TEAM_MEMBER.value, "Team member"),
]


def _login_redirect(request: Request) -> RedirectResponse:
    return RedirectResponse(get_app_settings(request).LOGIN_PATH, status_code=302)


def _render_setup_form(
    request: Request,
    gate: GateResult,
    *,
    error: str | None = None,
    values: dict | None = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "setup_form.html",
        {
            "email": gate.identity.email,
            "error": error,
            "values": values or {},
            "roles": ROLE_CHOICES,
        },
        status_code=status_code,
    )


@router.get("/dashboard")
def dashboard(request: Request, gate: GateResult = Depends(current_gate)):
    if gate.state == GateState.UNAUTHENTICATED:
        return _login_redirect(request)

    if gate.state == GateState.NEEDS_PROFILE:
        # Rendered in place; redirecting here would loop against /setup-profile
        return templates.TemplateResponse(
            request,
            "setup_prompt.html",
            {"email": gate.identity.email},
        )

    return templates.TemplateResponse(
        request,
        "shell.html",
        {"profile": gate.profile, "company": gate.company},
    )


@router.get("/setup-profile")
def setup_profile_form(request: Request, gate: GateResult = Depends(current_gate)):
    if gate.state == GateState.UNAUTHENTICATED:
        return _login_redirect(request)
    if gate.state == GateState.READY:
        return RedirectResponse("/dashboard", status_code=302)
    return _render_setup_form(request, gate)


@router.post("/setup-profile")
def submit_setup_profile(
    request: Request,
    full_name: str = Form("", alias="fullName"),
    company_name: str = Form("", alias="companyName"),
    role: str = Form(""),
    gate: GateResult = Depends(current_gate),
    db: Session = Depends(get_db),
):
    if gate.state == GateState.UNAUTHENTICATED:
        return _login_redirect(request)
    if gate.state == GateState.READY:
        return RedirectResponse("/dashboard", status_code=303)

    values = {"fullName": full_name, "companyName": company_name, "role": role}
    try:
        form = SetupProfileRequest.model_validate(values)
    except PydanticValidationError as e:
        first = e.errors()[0]
        return _render_setup_form(
            request, gate, error=first.get("msg", "Invalid input"), values=values, status_code=400
        )

    try:
        setup_account(db, gate.identity, form.full_name, form.company_name, form.role)
    except AppError as e:
        return _render_setup_form(
            request, gate, error=e.message, values=values, status_code=e.status_code
        )

    return RedirectResponse("/dashboard", status_code=303)
