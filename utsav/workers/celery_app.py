"""
Celery application instance.

Configured with Redis broker and backend.
"""

from celery import Celery

from utsav.core.config import settings

celery_app = Celery(
    "utsav",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["utsav.workers.email_tasks"],
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Results
    result_expires=3600,
    # Retry policy
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Concurrency
    worker_prefetch_multiplier=1,
    # Routing
    task_default_queue="default",
    task_queues={
        "default": {},
        "email": {},
    },
    task_routes={
        "utsav.workers.email_tasks.*": {"queue": "email"},
    },
)
