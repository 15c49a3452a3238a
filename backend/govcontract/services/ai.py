# backend/govcontract/services/ai.py
from __future__ import annotations

from threading import BoundedSemaphore
from typing import Any, Dict, List, Optional
import json
import logging
import re

from openai import OpenAI, OpenAIError
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..core.errors import UpstreamError
from ..models.ai_cache import CacheTier
from ..schemas.ai import DocumentAnalysis, OpportunityMatchResult, QualityScore
from .ai_cache import cache_read, cache_write, make_cache_key
from .llm import limit_concurrency

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a government contracting expert. You answer with JSON when asked for JSON."

# Truncate very long solicitations rather than summarising them
MAX_PROMPT_DOCUMENT_CHARS = 60_000

CHAT_ACTION_PROMPTS: dict[str, str] = {
    "general": "",
    "analyze_opportunity": (
        "The user is asking you to analyze a government contracting opportunity. Cover fit "
        "with their company profile, competition level, win probability, required "
        "capabilities, proposal strategy and key compliance requirements."
    ),
    "proposal_help": (
        "The user needs help writing a proposal. Give concrete structure, win themes and "
        "section-level guidance."
    ),
    "compliance": (
        "The user has a compliance question. Cite the relevant FAR/DFARS parts where they apply "
        "and say when they should confirm with a contracting officer."
    ),
}

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

_match_list_adapter = TypeAdapter(List[OpportunityMatchResult])


def extract_json(text: str, *, expect: str = "object") -> Any:
    """
    Pull the first JSON object (or array) out of a model response.

    Models sometimes wrap JSON in prose or markdown fences; anything that
    still does not parse is an upstream failure, not something we repair.
    """
    pattern = _JSON_ARRAY if expect == "array" else _JSON_OBJECT
    match = pattern.search(text or "")
    if not match:
        raise UpstreamError(f"No JSON {expect} found in AI response")
    try:
        return json.loads(match.group())
    except json.JSONDecodeError as e:
        raise UpstreamError(f"AI response contained invalid JSON: {e}")


class ContractAI:
    """
    Prompts and response handling for the AI completion provider.

    Each public method makes at most one completion call. Structured results
    are cached in the ai_cache table; chat replies are not.
    """

    def __init__(self, client: OpenAI, model: str, max_concurrency: int = 4) -> None:
        self.client = client
        self.model = model
        self._semaphore = BoundedSemaphore(max(1, max_concurrency))

    # ------------------------------------------------------------------
    # Provider call
    # ------------------------------------------------------------------

    def _complete(
        self,
        kind: str,
        messages: List[Dict[str, str]],
        *,
        max_tokens: int,
        temperature: float = 0.2,
    ) -> str:
        try:
            with limit_concurrency(self._semaphore):
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
        except OpenAIError as e:
            logger.error("AI provider call failed: %s", e, extra={"step": f"ai:{kind}"})
            raise UpstreamError(f"AI provider call failed: {e}")

        content = response.choices[0].message.content if response.choices else None
        logger.info(
            "AI completion finished",
            extra={"step": f"ai:{kind}", "handler": kind},
        )
        return content or ""

    # ------------------------------------------------------------------
    # Document analysis
    # ------------------------------------------------------------------

    def analyze_document(
        self,
        db: Session,
        document_text: str,
        document_url: Optional[str] = None,
    ) -> dict:
        cache_key = make_cache_key("document_analysis", {"text": document_text})
        cached = cache_read(db, cache_key)
        if cached is not None:
            return cached

        excerpt = document_text[:MAX_PROMPT_DOCUMENT_CHARS]
        prompt = (
            "Analyze the following government procurement document (RFP, RFQ, solicitation, ...) "
            "and extract key information as a single JSON object.\n\n"
            f"Source URL: {document_url or 'n/a'}\n\n"
            f"Document text:\n{excerpt}\n\n"
            "Return the fields: title, agency, office, solicitation_number, submission_deadline, "
            "contract_value_min, contract_value_max, naics_codes, description, requirements "
            "(technical, experience, certifications, security_clearance, performance_period, "
            "place_of_performance), evaluation_criteria (technical_approach, past_performance, "
            "price, small_business, other), set_aside_type, keywords, opportunity_type "
            "(rfp | rfq | ib | solicitation | amendment | award), contact_info "
            "(contracting_officer, email, phone). Use null when information is not available."
        )
        text = self._complete(
            "analyze_document",
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=2000,
        )

        try:
            result = DocumentAnalysis.model_validate(extract_json(text)).model_dump()
        except PydanticValidationError as e:
            raise UpstreamError(f"AI document analysis had an unexpected shape: {e}")

        cache_write(db, cache_key, "document_analysis", result, tier=CacheTier.DAILY)
        return result

    # ------------------------------------------------------------------
    # Opportunity matching
    # ------------------------------------------------------------------

    def find_opportunity_matches(
        self,
        db: Session,
        company_profile: Dict[str, Any],
        opportunities: List[Dict[str, Any]],
    ) -> List[OpportunityMatchResult]:
        if not opportunities:
            return []

        cache_key = make_cache_key(
            "opportunity_match",
            {"company": company_profile, "opportunities": opportunities},
        )
        cached = cache_read(db, cache_key)
        if cached is not None:
            return _match_list_adapter.validate_python(cached)

        prompt = (
            "Match the company below against each government contract opportunity. For every "
            "opportunity return an object with opportunity_id (copied exactly), match_score "
            "(0-100), win_probability (0-100) and reasoning {strengths, weaknesses, "
            "recommendations, naics_match, size_qualification, past_performance_relevance, "
            "geographic_advantage}. Respond with a JSON array only.\n\n"
            f"Company profile: {json.dumps(company_profile, default=str)}\n\n"
            f"Opportunities: {json.dumps(opportunities, default=str)}"
        )
        text = self._complete(
            "match_opportunities",
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=2000,
        )

        try:
            matches = _match_list_adapter.validate_python(extract_json(text, expect="array"))
        except PydanticValidationError as e:
            raise UpstreamError(f"AI match results had an unexpected shape: {e}")

        # Drop anything the model invented; first answer wins for a repeated id
        requested = {str(o["id"]) for o in opportunities}
        unique: dict[str, OpportunityMatchResult] = {}
        for m in matches:
            key = str(m.opportunity_id)
            if key in requested and key not in unique:
                unique[key] = m
        matches = list(unique.values())

        cache_write(
            db,
            cache_key,
            "opportunity_match",
            [m.model_dump(mode="json") for m in matches],
            tier=CacheTier.HOURLY,
        )
        return matches

    # ------------------------------------------------------------------
    # Application quality scoring
    # ------------------------------------------------------------------

    def score_application_quality(
        self,
        db: Session,
        application: Dict[str, Any],
        opportunity: Dict[str, Any],
    ) -> dict:
        cache_key = make_cache_key(
            "quality_score",
            {"application": application, "opportunity": opportunity},
        )
        cached = cache_read(db, cache_key)
        if cached is not None:
            return cached

        prompt = (
            "Evaluate the quality of this government contract proposal against the opportunity "
            "requirements. Respond with a single JSON object: {overall_score, completeness_score, "
            "technical_score, compliance_score, competitiveness_score, recommendations, "
            "missing_requirements, improvement_suggestions}. Scores are 0-100.\n\n"
            f"Opportunity: {json.dumps(opportunity, default=str)}\n\n"
            f"Application: {json.dumps(application, default=str)}"
        )
        text = self._complete(
            "score_quality",
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=1500,
        )

        try:
            result = QualityScore.model_validate(extract_json(text)).model_dump()
        except PydanticValidationError as e:
            raise UpstreamError(f"AI quality score had an unexpected shape: {e}")

        cache_write(db, cache_key, "quality_score", result, tier=CacheTier.HOURLY)
        return result

    # ------------------------------------------------------------------
    # Assistant chat
    # ------------------------------------------------------------------

    def chat(self, message: str, action: str, company_context: Dict[str, Any]) -> str:
        system_prompt = (
            "You are GovContract AI, an assistant that helps businesses find, analyze and win "
            "government contracts and grants.\n\n"
            f"Company: {company_context.get('name') or 'Not specified'}\n"
            f"Industry: {company_context.get('industry') or 'Not specified'}\n"
            f"Business type: {company_context.get('business_type') or 'Not specified'}\n"
            f"NAICS codes: {', '.join(company_context.get('naics_codes') or []) or 'Not specified'}\n\n"
            "Be professional and actionable, stay specific to government contracting and "
            "suggest next steps."
        )
        extra = CHAT_ACTION_PROMPTS.get(action) or ""
        if extra:
            system_prompt += "\n\n" + extra

        reply = self._complete(
            "chat",
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": message},
            ],
            max_tokens=1000,
            temperature=0.5,
        )
        if not reply.strip():
            raise UpstreamError("AI provider returned an empty reply")
        return reply
