"""
Admin interface for Article management.
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from apps.core.models import AuthorProfile

from .models import Article, Notification
from .publishing import PublishingScheduler
from .timezones import TimeZoneConverter


@admin.register(Article)
class ArticleAdmin(admin.ModelAdmin):
    """
    Admin interface for Article model.

    Lifecycle fields are read-only here; status changes go through the
    state machine so notifications and guards apply.
    """

    list_display = [
        'title_short',
        'author',
        'status',
        'publication_badge',
        'scheduled_display',
        'published_at',
    ]

    list_filter = [
        'status',
        'published',
        ('scheduled_publish_at', admin.DateFieldListFilter),
    ]

    search_fields = [
        'title',
        'slug',
        'content',
    ]

    readonly_fields = [
        'id',
        'status',
        'published',
        'scheduled_publish_at',
        'published_at',
        'reviewed_by',
        'reviewed_at',
        'review_remarks',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['author']

    fieldsets = (
        ('Basic Information', {
            'fields': (
                'title',
                'slug',
                'author',
                'excerpt',
                'content',
            )
        }),
        ('Publication', {
            'fields': (
                'status',
                'published',
                'scheduled_publish_at',
                'published_at',
            )
        }),
        ('Review', {
            'fields': (
                'reviewed_by',
                'reviewed_at',
                'review_remarks',
            )
        }),
        ('System Fields', {
            'fields': (
                'id',
                'created_at',
                'updated_at',
            ),
            'classes': ('collapse',),
        }),
    )

    actions = ['publish_due_now']

    def title_short(self, obj):
        """Display shortened title."""
        max_length = 60
        if len(obj.title) > max_length:
            return obj.title[:max_length] + '...'
        return obj.title
    title_short.short_description = 'Title'
    title_short.admin_order_field = 'title'

    def publication_badge(self, obj):
        """Live / scheduled / hidden."""
        if obj.is_live:
            color, label = 'green', 'LIVE'
        elif obj.is_scheduled:
            color, label = 'orange', 'SCHEDULED'
        else:
            color, label = 'gray', 'HIDDEN'
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 6px; '
            'border-radius: 3px; font-size: 11px; font-weight: bold;">{}</span>',
            color,
            label
        )
    publication_badge.short_description = 'Publication'

    def scheduled_display(self, obj):
        """Scheduled time in business time."""
        return TimeZoneConverter().format(obj.scheduled_publish_at) or '-'
    scheduled_display.short_description = 'Scheduled For'
    scheduled_display.admin_order_field = 'scheduled_publish_at'

    @admin.action(description='Run scheduled publishing now')
    def publish_due_now(self, request, queryset):
        summary = PublishingScheduler().run_tick()
        self.message_user(
            request,
            f"Published {summary.promoted} scheduled article(s); "
            f"{summary.skipped} skipped, {len(summary.errors)} failed.",
            messages.SUCCESS if not summary.errors else messages.WARNING,
        )


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):

    list_display = ['title', 'type', 'user', 'article_slug', 'read', 'created_at']
    list_filter = ['type', 'read']
    search_fields = ['title', 'message', 'article_slug']
    raw_id_fields = ['user', 'article']


@admin.register(AuthorProfile)
class AuthorProfileAdmin(admin.ModelAdmin):

    list_display = ['user', 'role', 'can_publish']
    list_filter = ['role', 'can_publish']
    raw_id_fields = ['user']
