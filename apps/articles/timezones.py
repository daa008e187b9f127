"""
Business timezone conversion.

Everything is persisted and compared in UTC. The business timezone (IST,
UTC+05:30, no DST) is only used to read editor input and to render times
for people.

Usage:
    converter = TimeZoneConverter()
    due_at = converter.to_utc(converter.parse("2030-01-01T12:00:00 IST"))
    converter.format(due_at)  # "January 1, 2030, 12:00 PM IST"
"""

import logging
import re
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Callable, Optional, Union

from django.conf import settings
from django.utils import dateformat, timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_OFFSET_MINUTES = 330
DEFAULT_LABEL = 'IST'
DISPLAY_FORMAT = 'F j, Y, g:i A'


class TimeZoneConverter:
    """Converts between UTC storage time and the fixed-offset business time."""

    def __init__(
        self,
        offset_minutes: Optional[int] = None,
        label: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if offset_minutes is None:
            offset_minutes = getattr(settings, 'BUSINESS_TIME_ZONE_OFFSET_MINUTES', DEFAULT_OFFSET_MINUTES)
        self.label = label or getattr(settings, 'BUSINESS_TIME_ZONE_LABEL', DEFAULT_LABEL)
        self.tz = dt_timezone(timedelta(minutes=offset_minutes), self.label)
        self._clock = clock or timezone.now
        self._label_suffix = re.compile(r'\s*' + re.escape(self.label) + r'\s*$', re.IGNORECASE)

    def now(self) -> datetime:
        """Current instant, aware, in UTC."""
        current = self._clock()
        if timezone.is_naive(current):
            current = current.replace(tzinfo=dt_timezone.utc)
        return current.astimezone(dt_timezone.utc)

    def to_business_time(self, instant: datetime) -> datetime:
        """UTC instant -> same instant expressed in business time. Naive input is UTC."""
        if timezone.is_naive(instant):
            instant = instant.replace(tzinfo=dt_timezone.utc)
        return instant.astimezone(self.tz)

    def to_utc(self, instant: datetime) -> datetime:
        """Business-time instant -> same instant in UTC. Naive input is business time."""
        if timezone.is_naive(instant):
            instant = instant.replace(tzinfo=self.tz)
        return instant.astimezone(dt_timezone.utc)

    def parse(self, raw: Union[str, datetime, None]) -> Optional[datetime]:
        """
        Read editor input as an aware datetime.

        Accepts datetimes and ISO-8601 strings, with an optional trailing
        timezone label ("2030-01-01T12:00:00 IST"). Input without an explicit
        offset is business time. Returns None when the input is not a valid
        date/time.
        """
        if raw is None:
            return None
        if isinstance(raw, datetime):
            value = raw
        elif isinstance(raw, str):
            text = self._label_suffix.sub('', raw.strip())
            if not text:
                return None
            try:
                value = parse_datetime(text)
            except ValueError:
                # Well formed but out of range, e.g. month 13
                value = None
            if value is None:
                logger.debug("Unparseable datetime input: %r", raw)
                return None
        else:
            return None

        if timezone.is_naive(value):
            value = value.replace(tzinfo=self.tz)
        return value

    def format(self, instant: Optional[datetime]) -> str:
        """Render for display, e.g. "May 2, 2025, 5:36 AM IST"."""
        if instant is None:
            return ''
        local = self.to_business_time(instant)
        return f"{dateformat.format(local, DISPLAY_FORMAT)} {self.label}"
