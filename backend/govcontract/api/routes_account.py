# backend/govcontract/api/routes_account.py
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..schemas.accounts import (
    CompanyOut,
    IdentityOut,
    ProfileOut,
    SessionOut,
    SetupProfileRequest,
)
from ..schemas.common import envelope
from ..services.accounts import setup_account
from ..services.auth import Identity
from ..services.bootstrap import GateResult
from .deps import current_gate, require_identity

router = APIRouter(tags=["account"])
logger = logging.getLogger(__name__)


@router.get("/session")
def get_session(gate: GateResult = Depends(current_gate)):
    out = SessionOut(
        state=gate.state.value,
        identity=IdentityOut.model_validate(gate.identity) if gate.identity else None,
        profile=ProfileOut.model_validate(gate.profile) if gate.profile else None,
        company=CompanyOut.model_validate(gate.company) if gate.company else None,
    )
    return envelope(out.model_dump(mode="json"))


@router.post("/auth/setup-profile", status_code=201)
def setup_profile(
    payload: SetupProfileRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    profile, company = setup_account(
        db,
        identity,
        full_name=payload.full_name,
        company_name=payload.company_name,
        role=payload.role,
    )
    data = {
        "profile": ProfileOut.model_validate(profile).model_dump(mode="json"),
        "company": CompanyOut.model_validate(company).model_dump(mode="json"),
    }
    return JSONResponse(status_code=201, content=envelope(data))
