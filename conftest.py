"""
Shared pytest fixtures for the publishing lifecycle.
"""

from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model

from apps.articles.models import Article
from apps.articles.notifications import NotificationTrigger
from apps.articles.publishing import PublishingScheduler
from apps.articles.repository import ArticleRepository
from apps.articles.state_machine import ArticleStateMachine
from apps.articles.timezones import TimeZoneConverter
from apps.core.models import AuthorProfile


# ============================================================================
# Clock & collaborators
# ============================================================================

class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingEmitter:
    """Notification emitter that keeps what it was given."""

    def __init__(self):
        self.sent = []

    def emit(self, user_id, type, title, message, article_ref, timeout=None):
        self.sent.append({
            'user_id': user_id,
            'type': type,
            'title': title,
            'message': message,
            'article_id': article_ref.id,
            'article_slug': article_ref.slug,
        })

    def of_type(self, type):
        return [item for item in self.sent if item['type'] == type]


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 5, 1, 6, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def converter(clock):
    return TimeZoneConverter(offset_minutes=330, label='IST', clock=clock)


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def notifier(emitter, converter):
    return NotificationTrigger(emitter=emitter, converter=converter)


@pytest.fixture
def repository():
    return ArticleRepository()


@pytest.fixture
def machine(repository, notifier, converter):
    return ArticleStateMachine(repository=repository, notifier=notifier, converter=converter)


@pytest.fixture
def scheduler(repository, machine, converter):
    return PublishingScheduler(
        repository=repository,
        state_machine=machine,
        converter=converter,
        interval=60,
        retries=3,
        retry_delay=0,
    )


# ============================================================================
# Users
# ============================================================================

def _make_user(username, role=AuthorProfile.ROLE_AUTHOR, can_publish=False):
    user = get_user_model().objects.create_user(
        username=username,
        email=f'{username}@example.com',
        password='password123',
    )
    profile = AuthorProfile.objects.get(user=user)
    profile.role = role
    profile.can_publish = can_publish
    profile.save()
    # Drop any cached reverse accessor so permission checks see the saved profile
    user = get_user_model().objects.get(pk=user.pk)
    return user


@pytest.fixture
def editor(db):
    """Admin who reviews and publishes."""
    return _make_user('editor', role=AuthorProfile.ROLE_ADMIN)


@pytest.fixture
def author(db):
    """Author without direct-publish rights."""
    return _make_user('author')


@pytest.fixture
def publisher_author(db):
    """Author allowed to publish own drafts directly."""
    return _make_user('publisher', can_publish=True)


@pytest.fixture
def other_author(db):
    return _make_user('other')


# ============================================================================
# Articles
# ============================================================================

@pytest.fixture
def make_article(db, author):
    counter = {'n': 0}

    def factory(status=Article.STATUS_DRAFT, owner=None, **fields):
        counter['n'] += 1
        return Article.objects.create(
            title=fields.pop('title', f"Test Article {counter['n']}"),
            slug=fields.pop('slug', f"test-article-{counter['n']}"),
            author=owner or author,
            status=status,
            **fields,
        )

    return factory


@pytest.fixture
def review_article(make_article):
    return make_article(status=Article.STATUS_REVIEW)


@pytest.fixture
def publication_invariant(db):
    """Check that published=True implies status=published for every stored article."""
    def check():
        broken = Article.objects.filter(published=True).exclude(status=Article.STATUS_PUBLISHED)
        assert not broken.exists(), list(broken.values('id', 'status', 'published'))
    return check
