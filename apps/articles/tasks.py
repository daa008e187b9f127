"""
Celery tasks for scheduled publishing.
"""

import logging

from celery import shared_task
from celery.signals import worker_ready
from django.conf import settings

from .publishing import PublishingScheduler

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=None, ignore_result=False)
def publish_scheduled_articles(self, startup: bool = False):
    """
    Promote due scheduled articles. Runs every PUBLISHING_TICK_INTERVAL via beat.

    The startup run (``startup=True``) retries a failed tick up to
    PUBLISHING_STARTUP_RETRIES times, PUBLISHING_RETRY_DELAY seconds apart.
    A failed periodic run is only logged; the next beat picks up the work.
    """
    try:
        summary = PublishingScheduler().run_tick()
    except Exception as exc:
        if not startup:
            logger.error("Scheduled publishing tick failed, waiting for next interval: %s", exc)
            return {"error": str(exc), "promoted": 0}

        retries = getattr(settings, 'PUBLISHING_STARTUP_RETRIES', 3)
        attempt = self.request.retries + 1
        logger.error("Error in startup publishing attempt %s: %s", attempt, exc)
        if attempt >= retries:
            logger.error("Max retries reached, startup publishing run failed permanently")
            return {"error": str(exc), "promoted": 0}
        raise self.retry(exc=exc, countdown=getattr(settings, 'PUBLISHING_RETRY_DELAY', 3))

    if summary.promoted:
        logger.info("Published %s scheduled article(s)", summary.promoted)
    return summary.to_dict()


@worker_ready.connect
def run_publishing_on_startup(sender=None, **kwargs):
    """Kick off a publishing run as soon as a worker comes up."""
    if not getattr(settings, 'PUBLISHING_RUN_ON_STARTUP', True):
        return
    publish_scheduled_articles.apply_async(kwargs={'startup': True})
    logger.info("Queued startup publishing run")
