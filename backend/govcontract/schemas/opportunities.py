# backend/govcontract/schemas/opportunities.py
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_IMPORT_BATCH = 25


class OpportunityOut(BaseModel):
    id: UUID
    source: str
    external_id: str
    title: str
    agency: str | None = None
    description: str | None = None
    solicitation_number: str | None = None
    opportunity_type: str | None = None
    naics_codes: list[str] | None = None
    set_aside: str | None = None
    jurisdiction: str
    submission_deadline: str | None = None
    contract_value_min: float | None = None
    contract_value_max: float | None = None
    url: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OpportunityImport(BaseModel):
    """One normalised record, as returned by the live search endpoint."""
    source: str
    external_id: str
    title: str
    agency: str | None = None
    description: str | None = None
    solicitation_number: str | None = None
    type: str | None = None
    naics_codes: list[str] = []
    set_aside: str | None = None
    jurisdiction: str = "federal"
    deadline: str | None = None
    award_floor: float | None = None
    award_ceiling: float | None = None
    url: str | None = None
    raw: dict[str, Any] | None = None

    @field_validator("source", "external_id", "title")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class OpportunityImportRequest(BaseModel):
    opportunities: list[OpportunityImport] = Field(min_length=1, max_length=MAX_IMPORT_BATCH)
