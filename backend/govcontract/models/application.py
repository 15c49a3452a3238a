from sqlalchemy import Column, String, Text, JSON, Enum, DateTime, Float, ForeignKey, UniqueConstraint, Uuid
from datetime import datetime
import uuid
import enum
from ..core.db import Base


class ApplicationStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    SUBMITTED = "submitted"
    AWARDED = "awarded"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("company_id", "opportunity_id", name="uq_applications_company_opportunity"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), index=True, nullable=False)
    opportunity_id = Column(Uuid(as_uuid=True), ForeignKey("opportunities.id"), nullable=False)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    status = Column(Enum(ApplicationStatus), nullable=False, default=ApplicationStatus.DRAFT)
    responses = Column(JSON, nullable=True)
    documents = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)
    quality_score = Column(Float, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
