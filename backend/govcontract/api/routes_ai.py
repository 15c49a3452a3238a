# backend/govcontract/api/routes_ai.py
from datetime import datetime
from uuid import UUID
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.errors import NotFound, Unauthenticated
from ..models.application import Application
from ..models.company import Company
from ..models.opportunity import Opportunity
from ..models.opportunity_match import OpportunityMatch
from ..schemas.ai import (
    AnalyzeDocumentRequest,
    ChatRequest,
    MatchOpportunitiesRequest,
    ScoreQualityRequest,
)
from ..schemas.common import envelope
from ..services.ai import ContractAI
from ..services.auth import Identity
from ..services.bootstrap import GateResult, GateState
from .deps import current_gate, get_ai, require_account, require_identity

router = APIRouter(prefix="/ai", tags=["ai"])
logger = logging.getLogger(__name__)


def company_context(company: Company | None) -> dict:
    if company is None:
        return {}
    return {
        "name": company.name,
        "industry": company.industry,
        "business_type": company.business_type,
        "company_size": company.company_size,
        "naics_codes": company.naics_codes or [],
        "certifications": company.certifications or [],
        "target_jurisdictions": company.allowed_jurisdictions,
    }


def opportunity_context(opp: Opportunity) -> dict:
    return {
        "id": str(opp.id),
        "title": opp.title,
        "agency": opp.agency,
        "description": opp.description,
        "solicitation_number": opp.solicitation_number,
        "naics_codes": opp.naics_codes or [],
        "set_aside": opp.set_aside,
        "jurisdiction": opp.jurisdiction,
        "submission_deadline": opp.submission_deadline,
        "contract_value_min": opp.contract_value_min,
        "contract_value_max": opp.contract_value_max,
    }


@router.post("/analyze-document")
def analyze_document(
    payload: AnalyzeDocumentRequest,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
    ai: ContractAI = Depends(get_ai),
):
    result = ai.analyze_document(db, payload.document_text, payload.document_url)
    logger.info(
        "Document analyzed",
        extra={"user_id": str(identity.id), "handler": "analyze_document"},
    )
    return envelope(result)


@router.post("/match-opportunities")
def match_opportunities(
    payload: MatchOpportunitiesRequest,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
    ai: ContractAI = Depends(get_ai),
):
    if not payload.opportunity_ids:
        return envelope({"matches": []})

    company = gate.company
    opportunities = (
        db.query(Opportunity)
        .filter(Opportunity.id.in_(payload.opportunity_ids))
        .all()
    )
    if not opportunities:
        raise NotFound("No opportunities found")

    matches = ai.find_opportunity_matches(
        db,
        company_context(company),
        [opportunity_context(o) for o in opportunities],
    )

    now = datetime.utcnow()
    rows: dict[UUID, OpportunityMatch] = {}
    for m in matches:
        # Session does not autoflush, so repeated ids must reuse the pending row
        row = rows.get(m.opportunity_id)
        if row is None:
            row = (
                db.query(OpportunityMatch)
                .filter(
                    OpportunityMatch.company_id == company.id,
                    OpportunityMatch.opportunity_id == m.opportunity_id,
                )
                .first()
            )
        if row is None:
            row = OpportunityMatch(company_id=company.id, opportunity_id=m.opportunity_id)
            db.add(row)
        rows[m.opportunity_id] = row
        row.match_score = m.match_score
        row.win_probability = m.win_probability
        row.reasoning = m.reasoning.model_dump()
        row.created_at = now
    db.commit()

    logger.info(
        "Stored %d opportunity matches",
        len(matches),
        extra={"company_id": str(company.id), "handler": "match_opportunities"},
    )
    return envelope({"matches": [m.model_dump(mode="json") for m in matches]})


@router.post("/score-quality")
def score_quality(
    payload: ScoreQualityRequest,
    gate: GateResult = Depends(require_account),
    db: Session = Depends(get_db),
    ai: ContractAI = Depends(get_ai),
):
    application = (
        db.query(Application)
        .filter(
            Application.id == payload.application_id,
            Application.company_id == gate.company.id,
        )
        .first()
    )
    if application is None:
        raise NotFound("Application not found")

    opportunity = db.get(Opportunity, application.opportunity_id)
    if opportunity is None:
        raise NotFound("Opportunity not found")

    result = ai.score_application_quality(
        db,
        {
            "status": application.status.value,
            "responses": application.responses or {},
            "documents": application.documents or {},
            "notes": application.notes,
        },
        opportunity_context(opportunity),
    )

    application.quality_score = result["overall_score"]
    application.updated_at = datetime.utcnow()
    db.commit()

    return envelope(result)


@router.post("/chat")
def chat(
    payload: ChatRequest,
    gate: GateResult = Depends(current_gate),
    ai: ContractAI = Depends(get_ai),
):
    # Chat is available before setup; the company context is simply empty then.
    if gate.state == GateState.UNAUTHENTICATED:
        raise Unauthenticated()

    reply = ai.chat(payload.message, payload.action, company_context(gate.company))
    return envelope({"reply": reply, "action": payload.action})
