# backend/govcontract/schemas/ai.py
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_DOCUMENT_LEN = 200_000
MAX_MATCH_BATCH = 50
MAX_CHAT_MESSAGE_LEN = 4000


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class AnalyzeDocumentRequest(BaseModel):
    document_text: str = Field(alias="documentText")
    document_url: str | None = Field(default=None, alias="documentUrl")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("document_text")
    @classmethod
    def validate_document_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Document text is required")
        if len(v) > MAX_DOCUMENT_LEN:
            raise ValueError(f"Document text must be at most {MAX_DOCUMENT_LEN} characters")
        return v


class MatchOpportunitiesRequest(BaseModel):
    opportunity_ids: list[UUID] = Field(alias="opportunityIds")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("opportunity_ids")
    @classmethod
    def validate_batch(cls, v: list[UUID]) -> list[UUID]:
        if len(v) > MAX_MATCH_BATCH:
            raise ValueError(f"At most {MAX_MATCH_BATCH} opportunities can be matched at once")
        # keep order, drop duplicates
        return list(dict.fromkeys(v))


class ScoreQualityRequest(BaseModel):
    application_id: UUID = Field(alias="applicationId")

    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(BaseModel):
    message: str
    action: Literal["general", "analyze_opportunity", "proposal_help", "compliance"] = "general"

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message is required")
        if len(v) > MAX_CHAT_MESSAGE_LEN:
            raise ValueError(f"Message must be at most {MAX_CHAT_MESSAGE_LEN} characters")
        return v


# ---------------------------------------------------------------------------
# AI provider results
# ---------------------------------------------------------------------------

class DocumentRequirements(BaseModel):
    technical: list[str] = []
    experience: list[str] = []
    certifications: list[str] = []
    security_clearance: str | None = None
    performance_period: str | None = None
    place_of_performance: str | None = None


class EvaluationCriteria(BaseModel):
    technical_approach: float | None = None
    past_performance: float | None = None
    price: float | None = None
    small_business: float | None = None
    other: dict[str, float] | None = None


class ContactInfo(BaseModel):
    contracting_officer: str | None = None
    email: str | None = None
    phone: str | None = None


class DocumentAnalysis(BaseModel):
    title: str | None = None
    agency: str | None = None
    office: str | None = None
    solicitation_number: str | None = None
    submission_deadline: str | None = None
    contract_value_min: float | None = None
    contract_value_max: float | None = None
    naics_codes: list[str] = []
    description: str | None = None
    requirements: DocumentRequirements = DocumentRequirements()
    evaluation_criteria: EvaluationCriteria = EvaluationCriteria()
    set_aside_type: str | None = None
    keywords: list[str] = []
    opportunity_type: str | None = None  # rfp | rfq | ib | solicitation | amendment | award
    contact_info: ContactInfo | None = None

    @field_validator("naics_codes", mode="before")
    @classmethod
    def _naics_to_str(cls, v):
        if v is None:
            return []
        return [str(code) for code in v]

    @field_validator("keywords", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class MatchReasoning(BaseModel):
    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []
    naics_match: bool | None = None
    size_qualification: bool | None = None
    past_performance_relevance: float | None = None
    geographic_advantage: bool | None = None


class OpportunityMatchResult(BaseModel):
    opportunity_id: UUID
    match_score: float = Field(ge=0, le=100)
    win_probability: float = Field(ge=0, le=100)
    reasoning: MatchReasoning = MatchReasoning()


class QualityScore(BaseModel):
    overall_score: float = Field(ge=0, le=100)
    completeness_score: float | None = None
    technical_score: float | None = None
    compliance_score: float | None = None
    competitiveness_score: float | None = None
    recommendations: list[str] = []
    missing_requirements: list[str] = []
    improvement_suggestions: list[str] = []
