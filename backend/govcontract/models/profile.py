from sqlalchemy import Column, String, Boolean, Enum, DateTime, ForeignKey, Uuid
from datetime import datetime
import enum
from ..core.db import Base


class Role(str, enum.Enum):
    ADMIN = "admin"
    COMPANY_OWNER = "company_owner"
    TEAM_MEMBER = "team_member"


class Profile(Base):
    __tablename__ = "profiles"

    # Same value as the auth provider's user id; at most one profile per identity
    id = Column(Uuid(as_uuid=True), primary_key=True)
    email = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(Enum(Role), nullable=False, default=Role.COMPANY_OWNER)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), index=True, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    onboarding_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
