# backend/govcontract/schemas/applications.py
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.application import ApplicationStatus


class ApplicationCreate(BaseModel):
    opportunity_id: UUID = Field(alias="opportunityId")
    responses: dict[str, Any] | None = None
    documents: dict[str, Any] | None = None
    notes: str | None = Field(default=None, max_length=10_000)

    model_config = ConfigDict(populate_by_name=True)


class ApplicationUpdate(BaseModel):
    status: ApplicationStatus | None = None
    responses: dict[str, Any] | None = None
    documents: dict[str, Any] | None = None
    notes: str | None = Field(default=None, max_length=10_000)

    model_config = ConfigDict(extra="forbid")


class ApplicationOut(BaseModel):
    id: UUID
    company_id: UUID
    opportunity_id: UUID
    status: ApplicationStatus
    responses: dict[str, Any] | None = None
    documents: dict[str, Any] | None = None
    notes: str | None = None
    quality_score: float | None = None
    submitted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
