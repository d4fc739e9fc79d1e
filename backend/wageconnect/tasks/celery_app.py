"""Celery application configuration."""

from celery import Celery

from wageconnect.config import get_settings

settings = get_settings()

celery_app = Celery(
    "wageconnect",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "wageconnect.tasks.mail_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)
