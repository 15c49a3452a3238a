# backend/govcontract/api/routes_applications.py
from datetime import datetime
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import Conflict, Forbidden, NotFound, ValidationError
from ..models.application import Application, ApplicationStatus
from ..models.opportunity import Opportunity
from ..schemas.applications import ApplicationCreate, ApplicationOut, ApplicationUpdate
from ..schemas.common import envelope, paginate
from ..services.bootstrap import GateResult
from .deps import require_account

router = APIRouter(prefix="/applications", tags=["applications"])
logger = logging.getLogger(__name__)

# Fields a submitted application still accepts
SUBMITTED_EDITABLE = {"status", "notes"}

# Statuses a submitted application may move to; it never returns to editing
SUBMITTED_TRANSITIONS = {
    ApplicationStatus.AWARDED,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
}


def _get_owned(db: Session, application_id: UUID, gate: GateResult) -> Application:
    application = (
        db.query(Application)
        .filter(
            Application.id == application_id,
            Application.company_id == gate.company.id,
        )
        .first()
    )
    if application is None:
        raise NotFound("Application not found")
    return application


def _out(application: Application) -> dict:
    return ApplicationOut.model_validate(application).model_dump(mode="json")


@router.get("")
def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: ApplicationStatus | None = None,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
):
    query = db.query(Application).filter(Application.company_id == gate.company.id)
    if status is not None:
        query = query.filter(Application.status == status)

    total = query.count()
    rows = (
        query.order_by(Application.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return envelope(
        {
            "applications": [_out(a) for a in rows],
            "pagination": paginate(page, limit, total).model_dump(),
        }
    )


@router.post("", status_code=201)
def create_application(
    payload: ApplicationCreate,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
):
    company = gate.company
    opportunity = db.get(Opportunity, payload.opportunity_id)
    if opportunity is None:
        raise NotFound("Opportunity not found")

    if opportunity.jurisdiction not in company.allowed_jurisdictions:
        raise Forbidden(
            f"Your subscription does not include {opportunity.jurisdiction} opportunities"
        )

    existing = (
        db.query(Application.id)
        .filter(
            Application.company_id == company.id,
            Application.opportunity_id == opportunity.id,
        )
        .first()
    )
    if existing:
        raise Conflict("Application already exists for this opportunity")

    now = datetime.utcnow()
    application = Application(
        company_id=company.id,
        opportunity_id=opportunity.id,
        created_by=gate.profile.id,
        status=ApplicationStatus.DRAFT,
        responses=payload.responses or {},
        documents=payload.documents or {},
        notes=payload.notes,
        created_at=now,
        updated_at=now,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Application already exists for this opportunity")
    db.refresh(application)

    logger.info(
        "Application created",
        extra={"company_id": str(company.id), "handler": "create_application"},
    )
    return JSONResponse(status_code=201, content=envelope(_out(application)))


@router.get("/{application_id}")
def get_application(
    application_id: UUID,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
):
    return envelope(_out(_get_owned(db, application_id, gate)))


@router.patch("/{application_id}")
def update_application(
    application_id: UUID,
    payload: ApplicationUpdate,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
):
    application = _get_owned(db, application_id, gate)
    changes = payload.model_dump(exclude_unset=True)

    if application.status == ApplicationStatus.SUBMITTED:
        locked = set(changes) - SUBMITTED_EDITABLE
        if locked:
            raise ValidationError(
                "Submitted applications only accept status and notes changes"
            )
        new_status = changes.get("status")
        if (
            new_status is not None
            and new_status != ApplicationStatus.SUBMITTED
            and new_status not in SUBMITTED_TRANSITIONS
        ):
            raise ValidationError(
                f"Submitted applications cannot move back to {new_status.value}"
            )

    new_status = changes.get("status")
    if new_status is not None and new_status != application.status:
        if new_status == ApplicationStatus.SUBMITTED:
            application.submitted_at = datetime.utcnow()
        application.status = new_status

    for field in ("responses", "documents", "notes"):
        if field in changes:
            setattr(application, field, changes[field])

    application.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(application)
    return envelope(_out(application))
