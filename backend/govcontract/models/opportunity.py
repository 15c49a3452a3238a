from sqlalchemy import Column, String, Text, JSON, DateTime, Float, UniqueConstraint, Uuid
from datetime import datetime
import uuid
from ..core.db import Base


class Opportunity(Base):
    __tablename__ = "opportunities"
    __table_args__ = (
        UniqueConstraint("source", "external_id", name="uq_opportunities_source_external_id"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    source = Column(String, nullable=False)          # 'sam.gov', 'usaspending.gov', 'grants.gov', 'manual'
    external_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    agency = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    solicitation_number = Column(String, nullable=True)
    opportunity_type = Column(String, nullable=True)  # contract | grant | opportunity
    naics_codes = Column(JSON, nullable=True)
    set_aside = Column(String, nullable=True)
    jurisdiction = Column(String, nullable=False, default="federal")
    submission_deadline = Column(String, nullable=True)  # ISO date/time as reported upstream
    contract_value_min = Column(Float, nullable=True)
    contract_value_max = Column(Float, nullable=True)
    url = Column(String, nullable=True)
    raw = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
