"""
Role checks for editorial actions.

Maps AuthorProfile.role / can_publish onto the questions the publication
lifecycle asks about an actor.

Roles:
- author: may submit own drafts for review; may publish own drafts directly
  when ``can_publish`` is set
- admin: may review, publish, schedule, reject and unpublish any article

Superusers are always treated as admins.
"""

import logging

logger = logging.getLogger(__name__)


def get_profile(user):
    """Return the user's AuthorProfile, or None if it does not exist."""
    if user is None:
        return None
    from apps.core.models import AuthorProfile

    try:
        return user.author_profile
    except AuthorProfile.DoesNotExist:
        logger.debug("User %s has no author profile", getattr(user, 'pk', None))
        return None
    except AttributeError:
        return None


def is_admin(user) -> bool:
    if user is None or not getattr(user, 'is_authenticated', False):
        return False
    if getattr(user, 'is_superuser', False):
        return True
    profile = get_profile(user)
    return bool(profile and profile.is_admin)


def is_owner(user, article) -> bool:
    if user is None or article is None:
        return False
    return getattr(user, 'pk', None) is not None and user.pk == article.author_id


def can_direct_publish(user, article) -> bool:
    """Admins, or the article's owner when their profile allows direct publishing."""
    if is_admin(user):
        return True
    if not is_owner(user, article):
        return False
    profile = get_profile(user)
    return bool(profile and profile.can_publish)
