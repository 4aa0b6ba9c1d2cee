"""Celery application configuration."""

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from gitextractor.config import get_settings
from gitextractor.logging_config import setup_logging

settings = get_settings()

celery_app = Celery(
    "gitextractor",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["gitextractor.tasks.ingest_repo"],
)

# Configuration
celery_app.conf.update(
    # Task execution
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,
    task_time_limit=settings.celery_task_time_limit,  # clones have no timeout of their own
    task_soft_time_limit=settings.celery_task_time_limit - 60,

    # Retry behavior
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
)


@celery_setup_logging.connect
def configure_worker_logging(**kwargs) -> None:
    setup_logging(settings.log_level)
