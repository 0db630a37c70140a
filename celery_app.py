"""Celery application for PortzApp background work (invitation mail today)."""

from celery import Celery

from src.config import settings

celery = Celery("portzapp")

celery.conf.update(
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_default_queue="default",
    # Task names are "<module>.<task>"; mail goes to its own queue
    task_routes={
        "invitation.*": {"queue": "notifications"},
    },
    # --- Reliability settings ---
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_track_started=True,
    result_expires=86400,  # 24 hours
    # --- Broker transport options (Redis reliability) ---
    broker_connection_retry_on_startup=True,
    broker_transport_options={
        "max_retries": 10,
        "interval_start": 0.2,
        "interval_step": 0.5,
        "interval_max": 5.0,
        "retry_on_timeout": True,
        # Must outlast the longest countdown so delayed retries are not redelivered early
        "visibility_timeout": settings.invitation_retry_delay_seconds * settings.invitation_max_attempts + 3600,
    },
)

celery.autodiscover_tasks(["src.modules.invitation"])
