# backend/govcontract/services/ai_cache.py
from __future__ import annotations

from datetime import datetime, timedelta
import hashlib
import json
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.ai_cache import AICacheEntry, CacheTier

logger = logging.getLogger(__name__)

TIER_TTLS: dict[str, timedelta] = {
    CacheTier.REALTIME: timedelta(minutes=5),
    CacheTier.HOURLY: timedelta(hours=1),
    CacheTier.DAILY: timedelta(hours=24),
    CacheTier.WEEKLY: timedelta(days=7),
}


def make_cache_key(cache_type: str, payload: Any) -> str:
    digest = hashlib.sha256(
        json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    ).hexdigest()
    return f"{cache_type}:{digest}"


def cache_read(db: Session, cache_key: str, now: datetime | None = None) -> Any | None:
    """
    Return cached data or None if missing/expired.

    Cache problems are never fatal: errors are logged and treated as a miss.
    """
    now = now or datetime.utcnow()
    try:
        entry = db.query(AICacheEntry).filter(AICacheEntry.cache_key == cache_key).first()
        if entry is None or entry.expires_at <= now:
            return None
        entry.hit_count = (entry.hit_count or 0) + 1
        db.commit()
        return entry.data
    except SQLAlchemyError:
        db.rollback()
        logger.warning("AI cache read failed; proceeding without cache", exc_info=True)
        return None


def cache_write(
    db: Session,
    cache_key: str,
    cache_type: str,
    data: Any,
    tier: str = CacheTier.HOURLY,
    now: datetime | None = None,
) -> None:
    now = now or datetime.utcnow()
    expires_at = now + TIER_TTLS.get(tier, TIER_TTLS[CacheTier.HOURLY])
    try:
        entry = db.get(AICacheEntry, cache_key)
        if entry is None:
            entry = AICacheEntry(cache_key=cache_key, cache_type=cache_type)
            db.add(entry)
        entry.data = data
        entry.tier = tier
        entry.expires_at = expires_at
        entry.hit_count = 0
        entry.created_at = now
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("AI cache write failed; proceeding without cache", exc_info=True)


def purge_expired(db: Session, retention_days: int, now: datetime | None = None) -> int:
    """
    Delete expired cache rows, and anything older than the retention window
    regardless of tier. Returns the number of deleted rows.
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=retention_days)
    deleted = (
        db.query(AICacheEntry)
        .filter((AICacheEntry.expires_at <= now) | (AICacheEntry.created_at < cutoff))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
