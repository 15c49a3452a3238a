# backend/govcontract/api/routes_opportunities.py
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import NotFound
from ..models.opportunity import Opportunity
from ..schemas.common import envelope, paginate
from ..schemas.opportunities import OpportunityImportRequest, OpportunityOut
from ..services.auth import Identity
from ..services.bootstrap import GateResult
from ..services.connectors import ConnectorRunner
from .deps import get_connectors, require_admin, require_identity

router = APIRouter(tags=["opportunities"])
logger = logging.getLogger(__name__)


def _out(opp: Opportunity) -> dict:
    return OpportunityOut.model_validate(opp).model_dump(mode="json")


@router.get("/opportunities")
def list_opportunities(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    keyword: str | None = None,
    jurisdiction: str | None = None,
    _: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    query = db.query(Opportunity)
    if keyword and keyword.strip():
        pattern = f"%{keyword.strip()}%"
        query = query.filter(
            or_(
                Opportunity.title.ilike(pattern),
                Opportunity.description.ilike(pattern),
                Opportunity.agency.ilike(pattern),
            )
        )
    if jurisdiction:
        query = query.filter(Opportunity.jurisdiction == jurisdiction)

    total = query.count()
    rows = (
        query.order_by(Opportunity.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return envelope(
        {
            "opportunities": [_out(o) for o in rows],
            "pagination": paginate(page, limit, total).model_dump(),
        }
    )


@router.get("/opportunities/search")
async def search_opportunities(
    keyword: str | None = None,
    limit: int = Query(25, ge=1, le=100),
    sources: str | None = Query(None, description="Comma separated connector names"),
    identity: Identity = Depends(require_identity),
    runner: ConnectorRunner = Depends(get_connectors),
):
    selected = [s.strip() for s in sources.split(",") if s.strip()] if sources else None
    result = await runner.search(keyword=keyword, limit=limit, sources=selected)
    logger.info(
        "Live opportunity search returned %d records",
        len(result["opportunities"]),
        extra={"user_id": str(identity.id), "handler": "search_opportunities"},
    )
    return envelope(result)


@router.get("/opportunities/{opportunity_id}")
def get_opportunity(
    opportunity_id: UUID,
    _: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    opp = db.get(Opportunity, opportunity_id)
    if opp is None:
        raise NotFound("Opportunity not found")
    return envelope(_out(opp))


@router.post("/admin/opportunities")
def import_opportunities(
    payload: OpportunityImportRequest,
    gate: GateResult = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Store normalised records (e.g. picked from a live search).

    Records are upserted by (source, external_id).
    """
    created = 0
    updated = 0
    batch: dict[tuple[str, str], Opportunity] = {}
    for record in payload.opportunities:
        key = (record.source, record.external_id)
        # Last record wins when a batch repeats a key
        opp = batch.get(key)
        if opp is None:
            opp = (
                db.query(Opportunity)
                .filter(
                    Opportunity.source == record.source,
                    Opportunity.external_id == record.external_id,
                )
                .first()
            )
            if opp is None:
                opp = Opportunity(source=record.source, external_id=record.external_id)
                db.add(opp)
                created += 1
            else:
                updated += 1
            batch[key] = opp

        opp.title = record.title
        opp.agency = record.agency
        opp.description = record.description
        opp.solicitation_number = record.solicitation_number
        opp.opportunity_type = record.type
        opp.naics_codes = record.naics_codes
        opp.set_aside = record.set_aside
        opp.jurisdiction = record.jurisdiction
        opp.submission_deadline = record.deadline
        opp.contract_value_min = record.award_floor
        opp.contract_value_max = record.award_ceiling
        opp.url = record.url
        opp.raw = record.raw

    db.commit()
    stored = list(batch.values())
    for opp in stored:
        db.refresh(opp)

    logger.info(
        "Imported opportunities (created=%d, updated=%d)",
        created,
        updated,
        extra={"user_id": str(gate.identity.id), "handler": "import_opportunities"},
    )
    return envelope(
        {
            "created": created,
            "updated": updated,
            "opportunities": [_out(o) for o in stored],
        }
    )
