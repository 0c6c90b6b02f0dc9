"""
Celery application configuration.
Sets up Celery with Redis broker and result backend.
"""
import logging
from celery import Celery
from celery.signals import task_prerun, task_postrun, task_failure, worker_init
from chatgenius.config import settings
from chatgenius.utils.metrics import (
    jobs_processing,
    jobs_completed_total,
    jobs_failed_total
)
from chatgenius.utils.logging import configure_logging
from chatgenius.workers.metrics_server import start_metrics_server

logger = logging.getLogger(__name__)

# Create Celery app
celery_app = Celery(
    "chatgenius",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "chatgenius.tasks.ingest_message",
        "chatgenius.tasks.migrate"
    ]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=60 * 60,  # migrations walk every workspace
    task_soft_time_limit=55 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
    worker_concurrency=4,
)


@worker_init.connect
def worker_init_handler(sender=None, **kwargs):
    """Configure logging and expose metrics once the worker process starts."""
    configure_logging('chatgenius-worker', settings.log_level)
    try:
        start_metrics_server(port=settings.worker_metrics_port)
    except Exception as e:
        logger.warning(f"Failed to start metrics server: {e}")


# Celery signal handlers for metrics
@task_prerun.connect
def task_prerun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, **kwds):
    """Track task start."""
    job_type = task.name if task else "unknown"
    jobs_processing.labels(job_type=job_type).inc()


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, args=None, kwargs=None, retval=None, state=None, **kwds):
    """Track task completion."""
    job_type = task.name if task else "unknown"
    status = state if state else "unknown"

    jobs_processing.labels(job_type=job_type).dec()
    jobs_completed_total.labels(job_type=job_type, status=status).inc()


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, traceback=None, einfo=None, **kwds):
    """Track task failures."""
    job_type = sender.name if sender else "unknown"
    # task_postrun still fires after a failure and decrements the gauge
    jobs_failed_total.labels(job_type=job_type).inc()
