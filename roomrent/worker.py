from celery import Celery
from celery.schedules import crontab

from roomrent.core.config import settings

celery_app = Celery(
    "roomrent",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# ─── Scheduled tasks ──────────────────────────
celery_app.conf.beat_schedule = {
    "mark-overdue-bills-daily": {
        "task": "roomrent.services.maintenance.mark_overdue_bills",
        "schedule": crontab(hour=1, minute=0),
    },
    "expire-contracts-daily": {
        "task": "roomrent.services.maintenance.expire_contracts",
        "schedule": crontab(hour=1, minute=10),
    },
}

# autodiscover_tasks() only looks for a "tasks.py" file, which we don't use.
celery_app.conf.include = [
    "roomrent.services.maintenance",
]
