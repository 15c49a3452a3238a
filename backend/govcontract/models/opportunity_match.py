from sqlalchemy import Column, Integer, Float, JSON, DateTime, ForeignKey, UniqueConstraint, Uuid
from datetime import datetime
from ..core.db import Base


class OpportunityMatch(Base):
    __tablename__ = "opportunity_matches"
    __table_args__ = (
        UniqueConstraint("company_id", "opportunity_id", name="uq_opportunity_matches_company_opportunity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Uuid(as_uuid=True), ForeignKey("companies.id"), index=True, nullable=False)
    opportunity_id = Column(Uuid(as_uuid=True), ForeignKey("opportunities.id"), nullable=False)
    match_score = Column(Float, nullable=False)
    win_probability = Column(Float, nullable=False)
    reasoning = Column(JSON, nullable=True)  # strengths, weaknesses, recommendations, ...
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
