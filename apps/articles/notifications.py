"""
Notifications fired by the publication lifecycle.

Emission is best effort: an emitter failure is logged as a
NotificationFailure and swallowed, so it can never fail or roll back the
transition or scheduler tick that triggered it.

The emitter backend is configured with ``ARTICLE_NOTIFICATION_EMITTER``
(dotted path). It must provide
``emit(user_id, type, title, message, article_ref, timeout=None)``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from apps.core.exceptions import NotificationFailure

from .models import Notification
from .timezones import TimeZoneConverter

logger = logging.getLogger(__name__)

DEFAULT_EMITTER = 'apps.articles.notifications.DatabaseNotificationEmitter'


@dataclass(frozen=True)
class ArticleRef:
    """What a notification points at."""
    id: Any
    title: str
    slug: str

    @classmethod
    def from_article(cls, article) -> 'ArticleRef':
        return cls(id=article.id, title=article.title, slug=article.slug)


class DatabaseNotificationEmitter:
    """
    Stores notifications as in-app Notification rows.

    ``timeout`` is accepted for interface compatibility and not applied: the
    write is a single local INSERT on the default connection, bounded by the
    database settings (``connect_timeout`` / sqlite ``timeout``) rather than a
    per-notification budget. Remote emitters should honour it.
    """

    def emit(self, user_id, type, title, message, article_ref, timeout=None):
        Notification.objects.create(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            article_id=article_ref.id if article_ref else None,
            article_slug=article_ref.slug if article_ref else '',
        )


def get_emitter():
    path = getattr(settings, 'ARTICLE_NOTIFICATION_EMITTER', DEFAULT_EMITTER)
    return import_string(path)()


class NotificationTrigger:
    """Builds lifecycle notifications and hands them to the emitter."""

    def __init__(self, emitter=None, converter: Optional[TimeZoneConverter] = None, timeout=None):
        self.emitter = emitter if emitter is not None else get_emitter()
        self.converter = converter or TimeZoneConverter()
        self.timeout = timeout if timeout is not None else getattr(settings, 'NOTIFICATION_TIMEOUT', None)

    def emit(self, user_id, type, title, message, article_ref) -> bool:
        """Fire one notification. Returns False if the emitter failed."""
        try:
            self.emitter.emit(user_id, type, title, message, article_ref, timeout=self.timeout)
        except Exception as exc:
            failure = NotificationFailure(f"Could not emit {type} notification to user {user_id}: {exc}")
            logger.error(
                failure.message,
                exc_info=True,
                extra={'article_id': str(getattr(article_ref, 'id', '')), 'notification_type': type},
            )
            return False

        logger.debug(f"Emitted {type} notification to user {user_id}")
        return True

    # Lifecycle notifications

    def article_approved(self, article) -> bool:
        return self.emit(
            article.author_id,
            Notification.TYPE_APPROVED,
            'Article Approved',
            f'Your article "{article.title}" has been approved and published.',
            ArticleRef.from_article(article),
        )

    def article_scheduled(self, article, scheduled_at) -> bool:
        return self.emit(
            article.author_id,
            Notification.TYPE_SCHEDULED,
            'Article Scheduled',
            f'Your article "{article.title}" has been approved and scheduled to publish on '
            f'{self.converter.format(scheduled_at)}.',
            ArticleRef.from_article(article),
        )

    def article_rejected(self, article, remarks: str = '') -> bool:
        message = f'Your article "{article.title}" requires revisions before it can be published.'
        if remarks:
            message = f'{message} Remarks: {remarks}'
        return self.emit(
            article.author_id,
            Notification.TYPE_REJECTED,
            'Article Needs Revision',
            message,
            ArticleRef.from_article(article),
        )

    def article_published(self, article, scheduled_at, published_at) -> bool:
        return self.emit(
            article.author_id,
            Notification.TYPE_PUBLISHED,
            'Article Published',
            f'Your article "{article.title}" scheduled for {self.converter.format(scheduled_at)} '
            f'was published at {self.converter.format(published_at)}.',
            ArticleRef.from_article(article),
        )
