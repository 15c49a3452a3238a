from sqlalchemy import Column, String, Boolean, JSON, DateTime, Uuid
from datetime import datetime
import uuid
from ..core.db import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    industry = Column(String, nullable=True)
    business_type = Column(String, nullable=True)
    company_size = Column(String, nullable=True)   # size bucket, e.g. "1-10 employees"
    is_active = Column(Boolean, nullable=False, default=True)

    naics_codes = Column(JSON, nullable=True)       # ["541511", ...]
    certifications = Column(JSON, nullable=True)    # socioeconomic categories: ["8a", "wosb", ...]
    target_jurisdictions = Column(JSON, nullable=True, default=lambda: ["federal"])

    # billing
    subscription_tier = Column(String, nullable=True)
    subscription_status = Column(String, nullable=True)
    stripe_customer_id = Column(String, index=True, nullable=True)
    stripe_subscription_id = Column(String, index=True, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def allowed_jurisdictions(self) -> list[str]:
        return list(self.target_jurisdictions or ["federal"])
