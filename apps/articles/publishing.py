"""
Scheduled publishing.

Finds approved articles whose scheduled publish time has passed and makes
them live. One pass is a "tick":

    scheduler = PublishingScheduler()
    summary = scheduler.run_tick()

Ticks can be driven by Celery beat (``apps.articles.tasks``) or by the
scheduler's own background thread (``start()`` / ``stop()``, used by the
``run_publisher`` management command). Either way each tick re-reads the due
articles, and a promoted article drops out of the next scan because it is no
longer ``published=False``.

Retry policy: only the startup tick is retried (``run_with_retry``). A
regular tick that fails is logged and the next interval runs as usual.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from django.conf import settings
from django.db import close_old_connections
from django.utils import timezone

from .repository import ArticleRepository
from .state_machine import ArticleStateMachine
from .timezones import TimeZoneConverter

logger = logging.getLogger(__name__)


@dataclass
class TickSummary:
    """Outcome of one scheduler tick."""
    promoted: int = 0
    skipped: int = 0
    errors: List[Any] = field(default_factory=list)
    conflicts: int = 0
    started_at: Optional[datetime] = None

    def to_dict(self):
        return {
            'promoted': self.promoted,
            'skipped': self.skipped,
            'errors': [str(article_id) for article_id in self.errors],
            'conflicts': self.conflicts,
            'started_at': self.started_at.isoformat() if self.started_at else None,
        }


class PublishingScheduler:
    """
    Promotes due scheduled articles to published.

    Constructed once per process; holds no global state. ``start()`` runs a
    single background thread, ``stop()`` asks it to exit between ticks and
    waits for an in-flight tick to finish.
    """

    def __init__(
        self,
        repository: Optional[ArticleRepository] = None,
        state_machine: Optional[ArticleStateMachine] = None,
        converter: Optional[TimeZoneConverter] = None,
        interval: Optional[float] = None,
        retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep=time.sleep,
    ):
        self.converter = converter or TimeZoneConverter()
        self.repository = repository or ArticleRepository()
        self.state_machine = state_machine or ArticleStateMachine(
            repository=self.repository,
            converter=self.converter,
        )
        self.interval = interval if interval is not None else getattr(settings, 'PUBLISHING_TICK_INTERVAL', 60)
        self.retries = retries if retries is not None else getattr(settings, 'PUBLISHING_STARTUP_RETRIES', 3)
        self.retry_delay = retry_delay if retry_delay is not None else getattr(settings, 'PUBLISHING_RETRY_DELAY', 3)
        self._sleep = sleep
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._tick_lock = threading.Lock()

    # Ticks

    def run_tick(self) -> TickSummary:
        """
        Promote every due article once.

        Per-article problems are recorded in the summary and never raised.
        Whole-tick failures (e.g. storage unavailable) propagate.
        """
        with self._tick_lock:
            now = self.converter.now()
            summary = TickSummary(started_at=now)

            logger.debug(
                f"Checking for scheduled articles to publish at {now.isoformat()} "
                f"({self.converter.format(now)})"
            )
            due_articles = self.repository.find_due_scheduled(now)

            if not due_articles:
                logger.debug("No scheduled articles to publish")
                return summary

            logger.info(f"Found {len(due_articles)} scheduled article(s) to publish at {self.converter.format(now)}")

            for article in due_articles:
                scheduled_at = article.scheduled_publish_at
                if not isinstance(scheduled_at, datetime) or timezone.is_naive(scheduled_at):
                    logger.warning(
                        f"Article ID {article.id} has an invalid scheduled_publish_at "
                        f"{scheduled_at!r}, skipping publish",
                        extra={'article_id': str(article.id)},
                    )
                    summary.skipped += 1
                    continue

                try:
                    if self.state_machine.finalize(article, now):
                        summary.promoted += 1
                    else:
                        logger.info(f"Article {article.id} changed before promotion, leaving it as is")
                        summary.conflicts += 1
                except Exception as exc:
                    logger.error(
                        f"Failed to publish scheduled article {article.id}: {exc}",
                        exc_info=True,
                        extra={'article_id': str(article.id)},
                    )
                    summary.errors.append(article.id)

            if summary.promoted:
                logger.info(f"Published {summary.promoted} scheduled article(s)")
            return summary

    def process_due_articles(self) -> TickSummary:
        """Entry point for callers that just want one pass."""
        return self.run_tick()

    def run_with_retry(self) -> Optional[TickSummary]:
        """
        Run a tick, retrying whole-tick failures.

        Makes up to ``retries`` attempts with ``retry_delay`` seconds between
        them. Returns the summary, or None after a permanent failure.
        """
        attempt = 0
        while attempt < self.retries:
            try:
                return self.run_tick()
            except Exception as exc:
                attempt += 1
                logger.error(f"Error in publishing attempt {attempt}: {exc}")
                if attempt >= self.retries:
                    logger.error("Max retries reached, publishing tick failed permanently")
                    return None
                logger.info(f"Retrying in {self.retry_delay} seconds...")
                if self._wait(self.retry_delay):
                    logger.info("Scheduler stopping, abandoning retries")
                    return None
        return None

    # Lifecycle

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the background loop: startup tick with retry, then every ``interval`` seconds."""
        if self.is_running:
            logger.warning("Publishing scheduler already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name='publishing-scheduler',
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Publishing scheduler started (interval {self.interval}s)")

    def stop(self, timeout: Optional[float] = None):
        """Stop between ticks. An in-flight tick is allowed to finish."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Publishing scheduler stopped")

    def _wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; True if a stop was requested meanwhile."""
        if self._sleep is time.sleep:
            return self._stop_event.wait(seconds)
        self._sleep(seconds)
        return self._stop_event.is_set()

    def _run_loop(self):
        try:
            summary = self.run_with_retry()
            if summary is not None:
                logger.info("Initial publishing run completed successfully")
            while not self._wait(self.interval):
                self._run_interval_tick()
        finally:
            close_old_connections()

    def _run_interval_tick(self):
        close_old_connections()
        try:
            self.run_tick()
        except Exception as exc:
            logger.error(f"Publishing tick failed, waiting for next interval: {exc}", exc_info=True)
