"""
Article Publication State Machine.

Manages the editorial lifecycle of an article:
- Clear state transitions with actor checks
- Immediate or scheduled publishing
- Guarded single-row writes (a concurrent writer wins, we no-op)
- Notifications to the author after each completed transition
- State history tracking

States:
    draft ⇄ review → published
      ↑________________↓ (unpublish)
    draft → published (admins, or authors with direct-publish rights)

A scheduled publish leaves the article at status=published, published=False
until the publishing scheduler calls ``finalize()``.

Usage:
    machine = ArticleStateMachine()
    machine.transition(article_id, 'published', admin_user, scheduled_at='2030-01-01T12:00:00 IST')
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from apps.core import permissions
from apps.core.exceptions import Forbidden, InvalidTransition, NotFound

from .notifications import NotificationTrigger
from .repository import ArticleRepository
from .scheduling import SchedulePlanner
from .timezones import TimeZoneConverter

logger = logging.getLogger(__name__)


class ArticleState(Enum):
    """Editorial states of an article."""
    DRAFT = 'draft'
    REVIEW = 'review'
    PUBLISHED = 'published'

    @classmethod
    def from_string(cls, value: str) -> 'ArticleState':
        """Convert string to ArticleState."""
        for state in cls:
            if state.value == value:
                return state
        raise ValueError(f"Unknown state: {value}")


# Define valid state transitions
VALID_TRANSITIONS: Dict[ArticleState, Set[ArticleState]] = {
    ArticleState.DRAFT: {ArticleState.REVIEW, ArticleState.PUBLISHED},
    ArticleState.REVIEW: {ArticleState.PUBLISHED, ArticleState.DRAFT},
    ArticleState.PUBLISHED: {ArticleState.DRAFT},  # Unpublish
}


@dataclass
class StateTransition:
    """Record of a state transition."""
    article_id: Any
    from_state: ArticleState
    to_state: ArticleState
    timestamp: datetime
    actor_id: Any = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ArticleStateMachine:
    """
    Applies editorial transitions to articles.

    Collaborators are injectable; by default the Django repository, the
    configured notification emitter and the business timezone are used.
    """

    def __init__(
        self,
        repository: Optional[ArticleRepository] = None,
        notifier: Optional[NotificationTrigger] = None,
        planner: Optional[SchedulePlanner] = None,
        converter: Optional[TimeZoneConverter] = None,
        max_history: int = 1000,
    ):
        self.converter = converter or TimeZoneConverter()
        self.repository = repository or ArticleRepository()
        self.notifier = notifier or NotificationTrigger(converter=self.converter)
        self.planner = planner or SchedulePlanner(self.converter)
        self._history = deque(maxlen=max_history)

    @property
    def history(self) -> List[StateTransition]:
        """Get transition history."""
        return list(self._history)

    @staticmethod
    def get_valid_transitions(state: ArticleState) -> Set[ArticleState]:
        """Get all valid next states from a state."""
        return VALID_TRANSITIONS.get(state, set()).copy()

    def can_transition(self, article, target: ArticleState, actor) -> bool:
        """Check whether ``actor`` may move ``article`` to ``target``."""
        current = ArticleState.from_string(article.status)
        if target not in VALID_TRANSITIONS.get(current, set()):
            return False
        return self._actor_allowed(article, current, target, actor)

    def transition(
        self,
        article_id,
        target_status,
        actor,
        remarks: Optional[str] = None,
        scheduled_at=None,
    ):
        """
        Move an article to ``target_status`` on behalf of ``actor``.

        Args:
            article_id: Article primary key
            target_status: 'draft', 'review' or 'published' (or ArticleState)
            actor: The user performing the change
            remarks: Review remarks, stored when an admin moves the article out of review
            scheduled_at: Optional future publish time (business time unless an
                offset is given). Only meaningful when publishing.

        Returns:
            The article as stored after the transition. If a concurrent writer
            changed the article first, nothing is written and the current
            stored article is returned.

        Raises:
            NotFound: article does not exist
            InvalidTransition: change not allowed from the current status
            Forbidden: actor lacks role or ownership
            InvalidSchedule: scheduled time unparseable or not in the future
        """
        target = self._coerce_state(target_status)

        article = self.repository.get_by_id(article_id)
        if article is None:
            raise NotFound(f"Article {article_id} not found")

        current = ArticleState.from_string(article.status)
        if target not in VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Invalid transition from {current.value} to {target.value}. "
                f"Valid targets: {sorted(s.value for s in self.get_valid_transitions(current))}",
                details={'from': current.value, 'to': target.value},
            )

        if not self._actor_allowed(article, current, target, actor):
            raise Forbidden(
                f"User {getattr(actor, 'pk', None)} may not move article {article.id} "
                f"from {current.value} to {target.value}"
            )

        plan = self.planner.plan(article, scheduled_at, target.value)

        now = self.converter.now()
        fields = self._build_fields(article, current, target, actor, remarks, plan, now)

        applied = self.repository.conditional_update(
            article.id,
            expected_published=article.published,
            fields=fields,
            expected_status=current.value,
        )

        if not applied:
            logger.warning(
                f"Article {article.id} changed concurrently; "
                f"{current.value} → {target.value} dropped"
            )
            self._record(article, current, target, actor, now, success=False, error='conflict')
            return self.repository.get_by_id(article.id) or article

        updated = self.repository.get_by_id(article.id) or article
        self._notify(updated, current, target, remarks, plan)
        self._record(
            article, current, target, actor, now,
            metadata={'scheduled_publish_at': plan.scheduled_publish_at.isoformat()} if plan else {},
        )

        logger.info(
            f"Article {article.id} transitioned: {current.value} → {target.value}"
            + (f" (scheduled for {self.converter.format(plan.scheduled_publish_at)})" if plan else ""),
            extra={'article_id': str(article.id)},
        )
        return updated

    def finalize(self, article, now: Optional[datetime] = None) -> bool:
        """
        Promote a pending scheduled article to live.

        The write only applies while the article is still approved, not live,
        and scheduled for the same instant that was read, so a concurrent
        unpublish or reschedule wins. Returns True if the article went live.
        """
        now = now or self.converter.now()
        scheduled_at = article.scheduled_publish_at

        applied = self.repository.conditional_update(
            article.id,
            expected_published=False,
            fields={'published': True, 'published_at': now},
            expected_status=ArticleState.PUBLISHED.value,
            expected_scheduled_publish_at=scheduled_at,
        )
        if not applied:
            return False

        article.published = True
        article.published_at = now
        self.notifier.article_published(article, scheduled_at, now)
        self._record(
            article, ArticleState.PUBLISHED, ArticleState.PUBLISHED, None, now,
            metadata={'promoted': True, 'scheduled_publish_at': scheduled_at.isoformat()},
        )
        logger.info(
            f"Published scheduled article: {article.title} (ID: {article.id}) "
            f"scheduled for {self.converter.format(scheduled_at)}, "
            f"published at {self.converter.format(now)}",
            extra={'article_id': str(article.id)},
        )
        return True

    # Internal helpers

    @staticmethod
    def _coerce_state(target_status) -> ArticleState:
        if isinstance(target_status, ArticleState):
            return target_status
        try:
            return ArticleState.from_string(target_status)
        except ValueError:
            raise InvalidTransition(f"Unknown status: {target_status!r}")

    @staticmethod
    def _actor_allowed(article, current: ArticleState, target: ArticleState, actor) -> bool:
        if permissions.is_admin(actor):
            return True
        if current == ArticleState.DRAFT and target == ArticleState.REVIEW:
            return permissions.is_owner(actor, article)
        if current == ArticleState.DRAFT and target == ArticleState.PUBLISHED:
            return permissions.can_direct_publish(actor, article)
        return False

    @staticmethod
    def _build_fields(article, current, target, actor, remarks, plan, now) -> Dict[str, Any]:
        fields: Dict[str, Any] = {'status': target.value}

        if target == ArticleState.PUBLISHED:
            if plan is not None:
                fields.update(plan.as_fields())
            else:
                fields.update({
                    'published': True,
                    'published_at': now,
                    'scheduled_publish_at': None,
                })
        elif current == ArticleState.PUBLISHED:
            # Unpublish; published_at stays as the record of the last publication
            fields.update({'published': False, 'scheduled_publish_at': None})

        if current == ArticleState.REVIEW:
            fields.update({
                'reviewed_by_id': getattr(actor, 'pk', None),
                'reviewed_at': now,
                'review_remarks': remarks or '',
            })
        return fields

    def _notify(self, article, current, target, remarks, plan):
        if target == ArticleState.PUBLISHED:
            if plan is not None:
                self.notifier.article_scheduled(article, plan.scheduled_publish_at)
            else:
                self.notifier.article_approved(article)
        elif current == ArticleState.REVIEW and target == ArticleState.DRAFT:
            self.notifier.article_rejected(article, remarks or '')

    def _record(self, article, current, target, actor, now, success=True, error=None, metadata=None):
        self._history.append(StateTransition(
            article_id=article.id,
            from_state=current,
            to_state=target,
            timestamp=now,
            actor_id=getattr(actor, 'pk', None),
            success=success,
            error=error,
            metadata=metadata or {},
        ))
