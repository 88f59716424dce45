from celery import Celery
from kombu import Queue

from wcag_audit.platform.config import settings

SCAN_QUEUE = "scan.audit"


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Only used when SCAN_DISPATCHER=celery; audits then run in a worker
    consuming the scan.audit queue:

        celery -A wcag_audit.platform.celery_app worker -Q scan.audit
    """
    celery_app = Celery(
        "wcag_audit",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
    )

    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        result_serializer=settings.CELERY_RESULT_SERIALIZER,
        accept_content=[settings.CELERY_ACCEPT_CONTENT],
        timezone="UTC",
        enable_utc=True,
        task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
        result_expires=3600,
        task_routes={
            "wcag_audit.scan.run_accessibility_scan": {"queue": SCAN_QUEUE},
        },
        task_queues=(
            Queue("default"),
            Queue(SCAN_QUEUE),
        ),
        task_default_queue="default",
        # One browser per worker process at a time
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
    )

    celery_app.autodiscover_tasks(["wcag_audit.features.scan.workers"])

    return celery_app


celery_app = create_celery_app()
