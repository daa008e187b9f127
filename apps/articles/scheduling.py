"""
Scheduled publishing plans.

Turns an editor-supplied publish time into the exact field changes that put an
approved article on hold until that time.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from apps.core.exceptions import InvalidSchedule

from .models import Article
from .timezones import TimeZoneConverter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedUpdate:
    """Fields to write for a scheduled publish."""
    scheduled_publish_at: datetime
    status: str = Article.STATUS_PUBLISHED
    published: bool = False

    def as_fields(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'published': self.published,
            'scheduled_publish_at': self.scheduled_publish_at,
        }


class SchedulePlanner:

    def __init__(self, converter: Optional[TimeZoneConverter] = None):
        self.converter = converter or TimeZoneConverter()

    def plan(self, article, raw_instant, target_status: str) -> Optional[PlannedUpdate]:
        """
        Validate a requested publish time for ``article``.

        ``raw_instant`` is read as business time unless it carries an explicit
        offset. Returns None when there is nothing to schedule: no time given,
        or the target status is not ``published`` (schedules only apply to
        publishing and are ignored otherwise).

        Raises:
            InvalidSchedule: the time is not a valid date/time or is not in
                the future.
        """
        if raw_instant is None or (isinstance(raw_instant, str) and not raw_instant.strip()):
            return None

        if target_status != Article.STATUS_PUBLISHED:
            logger.info(
                f"Ignoring scheduled time for article {getattr(article, 'id', None)}: "
                f"target status is {target_status!r}, not published"
            )
            return None

        parsed = self.converter.parse(raw_instant)
        if parsed is None:
            raise InvalidSchedule(
                f"Invalid scheduled publish date format: {raw_instant!r}",
                field='scheduled_at',
            )

        try:
            scheduled_utc = self.converter.to_utc(parsed)
            # Must also be representable in business time for display
            self.converter.to_business_time(scheduled_utc)
        except (OverflowError, ValueError):
            raise InvalidSchedule(
                f"Scheduled publish date out of range: {raw_instant!r}",
                field='scheduled_at',
            )

        now = self.converter.now()
        if scheduled_utc <= now:
            raise InvalidSchedule(
                f"Scheduled publish time {self.converter.format(scheduled_utc)} is not in the future",
                field='scheduled_at',
                details={
                    'scheduled_at': scheduled_utc.isoformat(),
                    'now': now.isoformat(),
                },
            )

        logger.debug(
            f"Planned publish of article {getattr(article, 'id', None)} at "
            f"{scheduled_utc.isoformat()} ({self.converter.format(scheduled_utc)})"
        )
        return PlannedUpdate(scheduled_publish_at=scheduled_utc)
