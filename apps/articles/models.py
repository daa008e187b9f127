"""
Article models for the Inkwell publishing platform.
Manages articles through their publication lifecycle.
"""

from django.conf import settings
from django.db import models
from apps.core.models import BaseModel


class ArticleQuerySet(models.QuerySet):

    def live(self):
        """Articles visible to readers."""
        return self.filter(status=Article.STATUS_PUBLISHED, published=True)

    def pending_schedule(self):
        """Approved articles waiting for their scheduled publish time."""
        return self.filter(
            status=Article.STATUS_PUBLISHED,
            published=False,
            scheduled_publish_at__isnull=False,
        )

    def due(self, now):
        """Pending scheduled articles whose publish time has passed."""
        return self.pending_schedule().filter(scheduled_publish_at__lte=now)


class Article(BaseModel):
    """
    A blog article owned by an author.

    ``status`` is the editorial state. ``published`` is whether readers can
    see it: a scheduled article holds ``status='published'`` with
    ``published=False`` until its publish time passes.
    """

    STATUS_DRAFT = 'draft'
    STATUS_REVIEW = 'review'
    STATUS_PUBLISHED = 'published'

    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_REVIEW, 'In Review'),
        (STATUS_PUBLISHED, 'Published'),
    ]

    title = models.CharField(
        max_length=500,
        verbose_name='Title',
        help_text='Article title'
    )

    slug = models.SlugField(
        max_length=200,
        unique=True,
        verbose_name='Slug',
        help_text='URL slug'
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='articles',
        verbose_name='Author',
    )

    content = models.TextField(
        blank=True,
        verbose_name='Content',
    )

    excerpt = models.TextField(
        blank=True,
        verbose_name='Excerpt',
    )

    # Publication lifecycle
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_DRAFT,
        db_index=True,
        verbose_name='Status',
        help_text='Editorial status'
    )

    published = models.BooleanField(
        default=False,
        db_index=True,
        verbose_name='Published',
        help_text='Visible to readers'
    )

    scheduled_publish_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        verbose_name='Scheduled Publish At',
        help_text='UTC instant at which an approved article goes live'
    )

    published_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Published At',
        help_text='When the article actually went live'
    )

    # Review
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_articles',
        verbose_name='Reviewed By',
    )

    reviewed_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name='Reviewed At',
    )

    review_remarks = models.TextField(
        blank=True,
        default='',
        verbose_name='Review Remarks',
    )

    objects = ArticleQuerySet.as_manager()

    class Meta:
        db_table = 'articles'
        ordering = ['-created_at']
        verbose_name = 'Article'
        verbose_name_plural = 'Articles'
        indexes = [
            models.Index(
                fields=['status', 'published', 'scheduled_publish_at'],
                name='articles_due_schedule_idx',
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def is_live(self):
        return self.published and self.status == self.STATUS_PUBLISHED

    @property
    def is_scheduled(self):
        return (
            self.status == self.STATUS_PUBLISHED
            and not self.published
            and self.scheduled_publish_at is not None
        )


class Notification(BaseModel):
    """
    In-app notification for a user.

    Default sink for publication lifecycle notifications.
    """

    TYPE_APPROVED = 'article_approved'
    TYPE_SCHEDULED = 'article_scheduled'
    TYPE_REJECTED = 'article_rejected'
    TYPE_PUBLISHED = 'article_published'

    TYPE_CHOICES = [
        (TYPE_APPROVED, 'Article Approved'),
        (TYPE_SCHEDULED, 'Article Scheduled'),
        (TYPE_REJECTED, 'Article Rejected'),
        (TYPE_PUBLISHED, 'Article Published'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
        verbose_name='User',
    )

    type = models.CharField(
        max_length=40,
        choices=TYPE_CHOICES,
        db_index=True,
        verbose_name='Type',
    )

    title = models.CharField(
        max_length=255,
        verbose_name='Title',
    )

    message = models.TextField(
        verbose_name='Message',
    )

    article = models.ForeignKey(
        Article,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
        verbose_name='Article',
    )

    article_slug = models.CharField(
        max_length=200,
        blank=True,
        verbose_name='Article Slug',
    )

    read = models.BooleanField(
        default=False,
        verbose_name='Read',
    )

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        verbose_name = 'Notification'
        verbose_name_plural = 'Notifications'

    def __str__(self):
        return f"{self.type} -> {self.user_id}: {self.title}"
