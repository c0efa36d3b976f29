from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "marketplace",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.notification_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_ignore_result=True,
    task_routes={
        "notifications.*": {"queue": "notifications"},
    },
    # Notifications are best-effort; no retries
    task_acks_late=False,
    broker_connection_retry_on_startup=True,
)
