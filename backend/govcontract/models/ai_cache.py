from sqlalchemy import Column, String, Integer, JSON, DateTime
from datetime import datetime
from ..core.db import Base


class CacheTier:
    """TTL tiers for cached AI results."""
    REALTIME = "tier1_realtime"   # 5 minutes
    HOURLY = "tier2_hourly"       # 1 hour
    DAILY = "tier3_daily"         # 24 hours
    WEEKLY = "tier4_weekly"       # 7 days


class AICacheEntry(Base):
    __tablename__ = "ai_cache"

    cache_key = Column(String(128), primary_key=True)
    cache_type = Column(String(64), nullable=False)   # document_analysis, opportunity_match, quality_score
    data = Column(JSON, nullable=False)
    tier = Column(String(32), nullable=False, default=CacheTier.HOURLY)
    expires_at = Column(DateTime, index=True, nullable=False)
    hit_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
