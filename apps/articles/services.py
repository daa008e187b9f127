"""
Publication services built on the state machine.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from apps.core.exceptions import PublishingException

from .state_machine import ArticleStateMachine

logger = logging.getLogger(__name__)


@dataclass
class BulkItemResult:
    article_id: Any
    success: bool
    status: Optional[str] = None
    published: Optional[bool] = None
    error_code: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BulkResult:
    results: List[BulkItemResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded

    def to_dict(self) -> Dict[str, Any]:
        return {
            'succeeded': self.succeeded,
            'failed': self.failed,
            'results': [
                {
                    'id': str(result.article_id),
                    'success': result.success,
                    'status': result.status,
                    'published': result.published,
                    'error_code': result.error_code,
                    'error': result.error,
                }
                for result in self.results
            ],
        }


def bulk_transition(
    article_ids: Iterable[Any],
    target_status: str,
    actor,
    remarks: Optional[str] = None,
    scheduled_at=None,
    machine: Optional[ArticleStateMachine] = None,
) -> BulkResult:
    """
    Apply the same transition to many articles.

    Each article goes through ``ArticleStateMachine.transition`` on its own, so
    permissions, schedule validation and notifications are exactly those of a
    single-article change. One article failing does not stop the rest.
    """
    machine = machine or ArticleStateMachine()
    outcome = BulkResult()

    for article_id in dict.fromkeys(article_ids):
        try:
            article = machine.transition(
                article_id,
                target_status,
                actor,
                remarks=remarks,
                scheduled_at=scheduled_at,
            )
        except PublishingException as exc:
            logger.info(f"Bulk transition skipped article {article_id}: {exc.message}")
            outcome.results.append(BulkItemResult(
                article_id=article_id,
                success=False,
                error_code=exc.error_code.value,
                error=exc.message,
            ))
            continue

        # A concurrent writer won the guarded update; nothing was changed
        applied = article.status == getattr(target_status, 'value', target_status)
        outcome.results.append(BulkItemResult(
            article_id=article_id,
            success=applied,
            status=article.status,
            error_code=None if applied else 'CONFLICT',
            published=article.published,
        ))

    logger.info(
        f"Bulk transition to {target_status}: {outcome.succeeded} succeeded, {outcome.failed} failed"
    )
    return outcome
