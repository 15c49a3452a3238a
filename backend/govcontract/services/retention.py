from __future__ import annotations

import logging

from celery.signals import worker_process_init, worker_process_shutdown

from ..core.celery_app import celery_app
from ..core.config import get_settings
from ..core.db import Database
from .ai_cache import purge_expired

logger = logging.getLogger(__name__)

_database: Database | None = None


@worker_process_init.connect
def _open_database(**_) -> None:
    global _database
    _database = Database(get_settings().DATABASE_URL)


@worker_process_shutdown.connect
def _close_database(**_) -> None:
    global _database
    if _database is not None:
        _database.dispose()
        _database = None


@celery_app.task(name="govcontract.services.retention.purge_ai_cache")
def purge_ai_cache() -> int:
    """
    Periodic task enforcing the AI cache retention policy.

    - Rows past their tier expiry are deleted.
    - Rows older than AI_CACHE_RETENTION_DAYS are deleted regardless of tier.
    """
    if _database is None:
        _open_database()

    settings = get_settings()
    db = _database.session()
    try:
        deleted = purge_expired(db, settings.AI_CACHE_RETENTION_DAYS)
        logger.info(
            "Purged expired AI cache entries",
            extra={"step": "retention", "deleted": deleted},
        )
        return deleted
    except Exception:
        db.rollback()
        logger.exception("Error during purge_ai_cache", extra={"step": "retention"})
        raise
    finally:
        db.close()
