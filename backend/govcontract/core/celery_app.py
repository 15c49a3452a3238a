from celery import Celery
from celery.schedules import crontab

from .config import get_settings
from .logging import configure_logging

settings = get_settings()
configure_logging(service="govcontract_worker")

celery_app = Celery(
    "govcontract",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    imports=("govcontract.services.retention",),
    beat_schedule={
        # Daily cleanup of expired AI cache rows
        "purge-ai-cache": {
            "task": "govcontract.services.retention.purge_ai_cache",
            "schedule": crontab(hour=3, minute=0),
        },
    },
)
