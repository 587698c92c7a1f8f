from celery import Celery

from cipherdrop.config import settings

celery_app = Celery(
    "cipherdrop",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["cipherdrop.cleanup"],
)

celery_app.conf.beat_schedule = {
    # Reap expired shared links and their files
    "cleanup-expired-shared-links": {
        "task": "cipherdrop.cleanup.cleanup_expired",
        "schedule": settings.CLEANUP_INTERVAL_SECONDS,
    },
}
