"""Celery worker configuration."""

from celery import Celery

from creative_engine.config import settings
from creative_engine.logging import setup_logging

# Setup logging before anything else
setup_logging(service="worker")

# Create Celery app
celery_app = Celery(
    "creative_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Deferred approvals must survive a worker restart
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes max
    task_soft_time_limit=540,
    # Countdowns longer than the broker visibility timeout would be redelivered early
    broker_transport_options={"visibility_timeout": 3600 * 6},
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "approval.send_batch": {"queue": "approval"},
        "approval.record_decision": {"queue": "approval"},
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["creative_engine.jobs"])
