"""
Article persistence used by the publication lifecycle.

All writes are single-row conditional updates: the UPDATE only applies if the
row still has the expected ``published`` (and optionally ``status``) value.
A concurrent writer that got there first makes the update match zero rows,
which callers treat as a no-op.
"""

import logging
from datetime import datetime
from functools import wraps
from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError
from django.utils import timezone

from apps.core.exceptions import TransientRepositoryError

from .models import Article

logger = logging.getLogger(__name__)


def _translate_db_errors(func):
    """Raise TransientRepositoryError for connection-level database failures."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (OperationalError, InterfaceError) as exc:
            logger.warning(f"Article storage unavailable in {func.__name__}: {exc}")
            raise TransientRepositoryError(str(exc)) from exc
    return wrapper


class ArticleRepository:
    """Django ORM backed article storage."""

    model = Article

    @_translate_db_errors
    def get_by_id(self, article_id) -> Optional[Article]:
        try:
            return self.model.objects.select_related('author').get(id=article_id)
        except (self.model.DoesNotExist, ValueError, ValidationError):
            return None

    @_translate_db_errors
    def find_due_scheduled(self, now: datetime) -> List[Article]:
        """Approved, not yet live articles whose scheduled time is <= now."""
        return list(
            self.model.objects.due(now)
            .select_related('author')
            .order_by('scheduled_publish_at')
        )

    @_translate_db_errors
    def conditional_update(
        self,
        article_id,
        expected_published: bool,
        fields: Dict[str, Any],
        expected_status: Optional[str] = None,
        expected_scheduled_publish_at: Optional[datetime] = None,
    ) -> bool:
        """
        Apply ``fields`` only if the row still matches the expected pre-state.

        Returns True if the row was updated.
        """
        queryset = self.model.objects.filter(id=article_id, published=expected_published)
        if expected_status is not None:
            queryset = queryset.filter(status=expected_status)
        if expected_scheduled_publish_at is not None:
            queryset = queryset.filter(scheduled_publish_at=expected_scheduled_publish_at)

        updated = queryset.update(updated_at=timezone.now(), **fields)
        if not updated:
            logger.info(
                f"Conditional update of article {article_id} matched no row",
                extra={'article_id': str(article_id), 'expected_published': expected_published},
            )
        return updated == 1
