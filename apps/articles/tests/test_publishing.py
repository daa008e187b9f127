"""
Tests for the scheduled publishing engine.
"""

import time
from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from apps.articles.models import Article, Notification
from apps.articles.notifications import NotificationTrigger
from apps.articles.publishing import PublishingScheduler, TickSummary
from apps.articles.state_machine import ArticleStateMachine
from apps.core.exceptions import TransientRepositoryError

UTC = dt_timezone.utc


def _scheduled(machine, article, editor, when='2025-05-01T12:00:00 IST'):
    return machine.transition(article.id, 'published', editor, scheduled_at=when)


# ============================================================================
# Tick
# ============================================================================

@pytest.mark.django_db
class TestRunTick:

    def test_promotes_due_article(self, machine, scheduler, review_article, editor, author, emitter, clock,
                                  publication_invariant):
        """A scheduled article goes live on the first tick after its time."""
        _scheduled(machine, review_article, editor)
        emitter.sent.clear()

        clock.advance(minutes=31)  # 06:31 UTC, 12:01 IST
        summary = scheduler.run_tick()

        assert summary.promoted == 1
        assert summary.errors == []
        article = Article.objects.get(pk=review_article.pk)
        assert article.published is True
        assert article.status == 'published'
        assert article.published_at == clock.now
        assert article.scheduled_publish_at == datetime(2025, 5, 1, 6, 30, tzinfo=UTC)

        notices = emitter.of_type(Notification.TYPE_PUBLISHED)
        assert len(notices) == 1
        assert notices[0]['user_id'] == author.pk
        assert 'scheduled for May 1, 2025, 12:00 PM IST' in notices[0]['message']
        assert 'published at May 1, 2025, 12:01 PM IST' in notices[0]['message']
        publication_invariant()

    def test_not_yet_due_left_alone(self, machine, scheduler, review_article, editor, emitter, clock):
        _scheduled(machine, review_article, editor)
        emitter.sent.clear()

        clock.advance(minutes=29)
        summary = scheduler.run_tick()

        assert summary.promoted == 0
        assert Article.objects.get(pk=review_article.pk).published is False
        assert emitter.sent == []

    def test_due_exactly_now(self, machine, scheduler, review_article, editor, clock):
        _scheduled(machine, review_article, editor)

        clock.advance(minutes=30)

        assert scheduler.run_tick().promoted == 1

    def test_second_tick_does_not_promote_again(self, machine, scheduler, review_article, editor, emitter, clock):
        _scheduled(machine, review_article, editor)
        clock.advance(hours=1)
        scheduler.run_tick()
        first_published_at = Article.objects.get(pk=review_article.pk).published_at

        clock.advance(minutes=1)
        summary = scheduler.run_tick()

        assert summary.promoted == 0
        assert Article.objects.get(pk=review_article.pk).published_at == first_published_at
        assert len(emitter.of_type(Notification.TYPE_PUBLISHED)) == 1

    def test_promotes_in_schedule_order(self, machine, scheduler, make_article, editor, emitter, clock):
        later = make_article(status='review', title='Later')
        earlier = make_article(status='review', title='Earlier')
        _scheduled(machine, later, editor, when='2025-05-01T12:10:00')
        _scheduled(machine, earlier, editor, when='2025-05-01T11:45:00')
        emitter.sent.clear()

        clock.advance(hours=1)
        summary = scheduler.run_tick()

        assert summary.promoted == 2
        assert [n['article_id'] for n in emitter.sent] == [earlier.id, later.id]

    def test_unpublished_before_due_is_not_promoted(self, machine, scheduler, review_article, editor, clock):
        _scheduled(machine, review_article, editor)
        machine.transition(review_article.id, 'draft', editor)

        clock.advance(hours=1)

        assert scheduler.run_tick().promoted == 0
        assert Article.objects.get(pk=review_article.pk).status == 'draft'

    def test_notification_failure_does_not_break_tick(self, repository, converter, machine, review_article,
                                                      editor, clock):
        _scheduled(machine, review_article, editor)

        broken = MagicMock()
        broken.emit.side_effect = TimeoutError('notification backend timed out')
        quiet_machine = ArticleStateMachine(
            repository=repository,
            notifier=NotificationTrigger(emitter=broken, converter=converter),
            converter=converter,
        )
        scheduler = PublishingScheduler(
            repository=repository, state_machine=quiet_machine, converter=converter, retry_delay=0,
        )

        clock.advance(hours=1)
        summary = scheduler.run_tick()

        assert summary.promoted == 1
        assert summary.errors == []
        assert Article.objects.get(pk=review_article.pk).published is True

    def test_process_due_articles(self, machine, scheduler, review_article, editor, clock):
        _scheduled(machine, review_article, editor)
        clock.advance(hours=1)

        assert scheduler.process_due_articles().promoted == 1


class TestRunTickIsolation:
    """Per-article problems, using stand-in collaborators."""

    @pytest.fixture
    def now(self):
        return datetime(2025, 5, 1, 6, 0, tzinfo=UTC)

    def _scheduler(self, converter, articles, finalize):
        repository = MagicMock()
        repository.find_due_scheduled.return_value = articles
        machine = MagicMock()
        machine.finalize.side_effect = finalize
        return PublishingScheduler(
            repository=repository, state_machine=machine, converter=converter, retry_delay=0,
        ), machine

    def test_invalid_schedule_skipped(self, converter, now):
        bad = SimpleNamespace(id='bad', scheduled_publish_at=datetime(2025, 5, 1, 5, 0))
        missing = SimpleNamespace(id='missing', scheduled_publish_at=None)
        good = SimpleNamespace(id='good', scheduled_publish_at=now - timedelta(minutes=5))
        scheduler, machine = self._scheduler(converter, [bad, missing, good], lambda article, at: True)

        summary = scheduler.run_tick()

        assert summary.skipped == 2
        assert summary.promoted == 1
        machine.finalize.assert_called_once_with(good, now)

    def test_one_failure_does_not_stop_others(self, converter, now):
        first = SimpleNamespace(id='first', scheduled_publish_at=now - timedelta(minutes=2))
        second = SimpleNamespace(id='second', scheduled_publish_at=now - timedelta(minutes=1))

        def finalize(article, at):
            if article.id == 'first':
                raise RuntimeError('write failed')
            return True

        scheduler, _ = self._scheduler(converter, [first, second], finalize)

        summary = scheduler.run_tick()

        assert summary.errors == ['first']
        assert summary.promoted == 1

    def test_lost_race_counted_as_conflict(self, converter, now):
        article = SimpleNamespace(id='raced', scheduled_publish_at=now - timedelta(minutes=1))
        scheduler, _ = self._scheduler(converter, [article], lambda a, at: False)

        summary = scheduler.run_tick()

        assert summary.promoted == 0
        assert summary.conflicts == 1

    def test_storage_failure_propagates(self, converter):
        repository = MagicMock()
        repository.find_due_scheduled.side_effect = TransientRepositoryError('db down')
        scheduler = PublishingScheduler(repository=repository, state_machine=MagicMock(), converter=converter)

        with pytest.raises(TransientRepositoryError):
            scheduler.run_tick()

    def test_summary_to_dict(self, now):
        summary = TickSummary(promoted=2, skipped=1, errors=['x'], conflicts=1, started_at=now)

        assert summary.to_dict() == {
            'promoted': 2,
            'skipped': 1,
            'errors': ['x'],
            'conflicts': 1,
            'started_at': '2025-05-01T06:00:00+00:00',
        }


# ============================================================================
# Startup retry
# ============================================================================

class TestRunWithRetry:

    def _scheduler(self, converter, find_due, sleeps):
        repository = MagicMock()
        repository.find_due_scheduled.side_effect = find_due
        return PublishingScheduler(
            repository=repository,
            state_machine=MagicMock(),
            converter=converter,
            retries=3,
            retry_delay=3,
            sleep=sleeps.append,
        ), repository

    def test_gives_up_after_three_attempts(self, converter):
        sleeps = []
        scheduler, repository = self._scheduler(converter, TransientRepositoryError('db down'), sleeps)

        assert scheduler.run_with_retry() is None
        assert repository.find_due_scheduled.call_count == 3
        assert sleeps == [3, 3]

    def test_succeeds_on_second_attempt(self, converter):
        sleeps = []
        scheduler, repository = self._scheduler(converter, [TransientRepositoryError('db down'), []], sleeps)

        summary = scheduler.run_with_retry()

        assert isinstance(summary, TickSummary)
        assert summary.promoted == 0
        assert repository.find_due_scheduled.call_count == 2
        assert sleeps == [3]

    def test_stop_abandons_retries(self, converter):
        scheduler = None

        def sleep(seconds):
            scheduler._stop_event.set()

        repository = MagicMock()
        repository.find_due_scheduled.side_effect = TransientRepositoryError('db down')
        scheduler = PublishingScheduler(
            repository=repository, state_machine=MagicMock(), converter=converter,
            retries=3, retry_delay=3, sleep=sleep,
        )

        assert scheduler.run_with_retry() is None
        assert repository.find_due_scheduled.call_count == 1

    def test_defaults_from_settings(self, settings, converter):
        settings.PUBLISHING_TICK_INTERVAL = 15
        settings.PUBLISHING_STARTUP_RETRIES = 5
        settings.PUBLISHING_RETRY_DELAY = 1

        scheduler = PublishingScheduler(repository=MagicMock(), state_machine=MagicMock(), converter=converter)

        assert (scheduler.interval, scheduler.retries, scheduler.retry_delay) == (15, 5, 1)


# ============================================================================
# Background loop
# ============================================================================

class TestLifecycle:

    def _wait_for(self, predicate, timeout=5.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return False

    def test_start_runs_startup_then_interval_ticks(self, converter):
        repository = MagicMock()
        repository.find_due_scheduled.return_value = []
        scheduler = PublishingScheduler(
            repository=repository, state_machine=MagicMock(), converter=converter, interval=0.01, retry_delay=0,
        )

        scheduler.start()
        try:
            assert scheduler.is_running
            assert self._wait_for(lambda: repository.find_due_scheduled.call_count >= 3)
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.is_running

    def test_failed_interval_tick_keeps_loop_alive(self, converter):
        repository = MagicMock()
        calls = {'n': 0}

        def find_due(now):
            calls['n'] += 1
            if calls['n'] == 2:
                raise TransientRepositoryError('db down')
            return []

        repository.find_due_scheduled.side_effect = find_due
        scheduler = PublishingScheduler(
            repository=repository, state_machine=MagicMock(), converter=converter, interval=0.01, retry_delay=0,
        )

        scheduler.start()
        try:
            assert self._wait_for(lambda: repository.find_due_scheduled.call_count >= 3)
            assert scheduler.is_running
        finally:
            scheduler.stop(timeout=5)

    def test_start_twice_keeps_one_thread(self, converter):
        repository = MagicMock()
        repository.find_due_scheduled.return_value = []
        scheduler = PublishingScheduler(
            repository=repository, state_machine=MagicMock(), converter=converter, interval=10, retry_delay=0,
        )

        scheduler.start()
        try:
            thread = scheduler._thread
            scheduler.start()
            assert scheduler._thread is thread
        finally:
            scheduler.stop(timeout=5)

    def test_stop_without_start(self, converter):
        scheduler = PublishingScheduler(repository=MagicMock(), state_machine=MagicMock(), converter=converter)
        scheduler.stop()
        assert not scheduler.is_running
