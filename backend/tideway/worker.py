"""Celery worker configuration.

Run worker: celery -A tideway.worker worker -l info -Q uploads,maintenance
Run beat: celery -A tideway.worker beat -l info
"""
from celery import Celery
from celery.schedules import crontab

from tideway.config import settings

celery_app = Celery(
    "tideway",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "tideway.tasks.uploads",
    ]
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task routing
    task_routes={
        "tideway.tasks.uploads.finalize_upload_task": {"queue": "uploads"},
        "tideway.tasks.uploads.recover_stalled_finalizations": {"queue": "maintenance"},
    },

    # Task execution settings
    task_acks_late=True,  # Acknowledge after task completes
    task_reject_on_worker_lost=True,

    # Worker settings
    worker_prefetch_multiplier=1,  # One task at a time per worker
    worker_concurrency=4,

    # Result settings
    result_expires=3600,  # Results expire after 1 hour

    # Beat schedule - periodic tasks
    beat_schedule={
        # Re-run finalizations abandoned by a crashed process
        "recover-stalled-finalizations": {
            "task": "tideway.tasks.uploads.recover_stalled_finalizations",
            "schedule": crontab(minute="*/10"),
            "options": {"queue": "maintenance"}
        },
    }
)
