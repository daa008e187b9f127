"""
Tests for the scheduled publishing Celery tasks.
"""

from unittest.mock import patch

import pytest
from celery import current_app
from celery.exceptions import Retry
from django.conf import settings

from apps.articles.publishing import TickSummary
from apps.articles.tasks import publish_scheduled_articles, run_publishing_on_startup
from apps.core.exceptions import TransientRepositoryError
from config.celery import app as celery_app


class TestPublishScheduledArticles:

    @patch('apps.articles.tasks.PublishingScheduler')
    def test_returns_summary(self, scheduler_cls):
        scheduler_cls.return_value.run_tick.return_value = TickSummary(promoted=2)

        result = publish_scheduled_articles.apply().get()

        assert result['promoted'] == 2
        assert result['errors'] == []

    @patch('apps.articles.tasks.PublishingScheduler')
    def test_periodic_failure_not_retried(self, scheduler_cls):
        scheduler_cls.return_value.run_tick.side_effect = TransientRepositoryError('db down')

        result = publish_scheduled_articles.apply().get()

        assert result == {'error': 'db down', 'promoted': 0}
        assert scheduler_cls.return_value.run_tick.call_count == 1

    @patch('apps.articles.tasks.PublishingScheduler')
    def test_startup_success(self, scheduler_cls):
        scheduler_cls.return_value.run_tick.return_value = TickSummary(promoted=1)

        result = publish_scheduled_articles.apply(kwargs={'startup': True}).get()

        assert result['promoted'] == 1


@patch('apps.articles.tasks.PublishingScheduler')
class TestStartupRetry:
    """Retry decisions of the startup run, one attempt at a time."""

    @pytest.fixture
    def task(self):
        return current_app.tasks[publish_scheduled_articles.name]

    def _attempt(self, task, retries):
        task.push_request(retries=retries)
        try:
            return task.run(startup=True)
        finally:
            task.pop_request()

    def test_first_failure_schedules_retry(self, scheduler_cls, task, settings):
        settings.PUBLISHING_RETRY_DELAY = 3
        error = TransientRepositoryError('db down')
        scheduler_cls.return_value.run_tick.side_effect = error

        with patch.object(task, 'retry', side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                self._attempt(task, retries=0)

        retry.assert_called_once_with(exc=error, countdown=3)

    def test_second_failure_schedules_retry(self, scheduler_cls, task):
        scheduler_cls.return_value.run_tick.side_effect = TransientRepositoryError('db down')

        with patch.object(task, 'retry', side_effect=Retry()) as retry:
            with pytest.raises(Retry):
                self._attempt(task, retries=1)

        assert retry.call_count == 1

    def test_third_failure_gives_up(self, scheduler_cls, task):
        scheduler_cls.return_value.run_tick.side_effect = TransientRepositoryError('db down')

        with patch.object(task, 'retry') as retry:
            result = self._attempt(task, retries=2)

        assert result == {'error': 'db down', 'promoted': 0}
        retry.assert_not_called()

    def test_retry_budget_from_settings(self, scheduler_cls, task, settings):
        settings.PUBLISHING_STARTUP_RETRIES = 5
        scheduler_cls.return_value.run_tick.side_effect = TransientRepositoryError('db down')

        with patch.object(task, 'retry', side_effect=Retry()):
            with pytest.raises(Retry):
                self._attempt(task, retries=3)

    def test_recovers_on_retry(self, scheduler_cls, task):
        scheduler_cls.return_value.run_tick.return_value = TickSummary(promoted=1)

        with patch.object(task, 'retry') as retry:
            result = self._attempt(task, retries=1)

        assert result['promoted'] == 1
        retry.assert_not_called()


class TestStartupHook:

    @patch('apps.articles.tasks.publish_scheduled_articles.apply_async')
    def test_queues_startup_run(self, apply_async, settings):
        settings.PUBLISHING_RUN_ON_STARTUP = True

        run_publishing_on_startup()

        apply_async.assert_called_once_with(kwargs={'startup': True})

    @patch('apps.articles.tasks.publish_scheduled_articles.apply_async')
    def test_disabled(self, apply_async, settings):
        settings.PUBLISHING_RUN_ON_STARTUP = False

        run_publishing_on_startup()

        apply_async.assert_not_called()


def test_beat_schedule():
    entry = settings.CELERY_BEAT_SCHEDULE['publish-scheduled-articles']
    assert entry['task'] == 'apps.articles.tasks.publish_scheduled_articles'
    assert entry['schedule'] == settings.PUBLISHING_TICK_INTERVAL == 60


def test_publishing_task_routed_to_publishing_queue():
    route = celery_app.amqp.router.route({}, publish_scheduled_articles.name)
    assert getattr(route['queue'], 'name', route['queue']) == 'publishing'
