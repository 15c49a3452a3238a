# backend/govcontract/schemas/accounts.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.profile import Role

MAX_NAME_LEN = 200


class SetupProfileRequest(BaseModel):
    """
    Body for the one-time setup action.

    Blank names are accepted here and rejected by the accounts service so the
    same rule applies to JSON and HTML form submissions.
    """
    full_name: str = Field(default="", alias="fullName")
    company_name: str = Field(default="", alias="companyName")
    role: Role = Role.COMPANY_OWNER

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("full_name", "company_name", mode="before")
    @classmethod
    def _none_to_blank(cls, v):
        return "" if v is None else v

    @field_validator("full_name", "company_name")
    @classmethod
    def validate_length(cls, v: str) -> str:
        if len(v) > MAX_NAME_LEN:
            raise ValueError(f"must be at most {MAX_NAME_LEN} characters")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def _blank_role_to_default(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return Role.COMPANY_OWNER
        return v


class IdentityOut(BaseModel):
    id: UUID
    email: str
    email_confirmed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileOut(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: Role
    company_id: UUID | None = None
    email_verified: bool
    onboarding_completed: bool

    model_config = ConfigDict(from_attributes=True)


class CompanyOut(BaseModel):
    id: UUID
    name: str
    slug: str
    industry: str | None = None
    business_type: str | None = None
    company_size: str | None = None
    is_active: bool
    naics_codes: list[str] | None = None
    certifications: list[str] | None = None
    allowed_jurisdictions: list[str]
    subscription_tier: str | None = None
    subscription_status: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SessionOut(BaseModel):
    state: str
    identity: IdentityOut | None = None
    profile: ProfileOut | None = None
    company: CompanyOut | None = None
