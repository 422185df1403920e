"""
Celery application for scheduled ledger jobs.
"""

from celery import Celery
from celery.schedules import crontab

from hostel_ledger.config.settings import settings

celery_app = Celery(
    "hostel_ledger",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["hostel_ledger.tasks.fee_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

celery_app.conf.beat_schedule = {
    # 00:05 on the 1st of every month
    "generate-monthly-fees": {
        "task": "hostel_ledger.tasks.generate_monthly_fees",
        "schedule": crontab(
            minute=settings.FEE_GENERATION_CRON_MINUTE,
            hour=settings.FEE_GENERATION_CRON_HOUR,
            day_of_month=settings.FEE_GENERATION_CRON_DAY_OF_MONTH,
        ),
    },
}
