"""
Core models for the Inkwell publishing platform.
Base classes and shared functionality.
"""

import uuid
from django.conf import settings
from django.db import models
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class BaseModel(models.Model):
    """
    Abstract base model with common fields for all Inkwell models.
    Provides UUID primary key and timestamp tracking.
    """
    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name='ID',
        help_text='Unique identifier (UUID)'
    )

    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        verbose_name='Created At',
        help_text='Timestamp when record was created'
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Updated At',
        help_text='Timestamp when record was last updated'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        """
        Default string representation.
        Should be overridden in child classes.
        """
        return f"{self.__class__.__name__} ({self.id})"


class AuthorProfile(BaseModel):
    """
    Publishing profile for a user.
    Linked 1:1 with Django User model.
    """

    ROLE_ADMIN = 'admin'
    ROLE_AUTHOR = 'author'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_AUTHOR, 'Author'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='author_profile',
        verbose_name='User',
        help_text='The associated Django user account'
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_AUTHOR,
        db_index=True,
        verbose_name='Role',
        help_text='User role determining editorial permissions'
    )

    can_publish = models.BooleanField(
        default=False,
        verbose_name='Can Publish',
        help_text='Author may publish own drafts without review'
    )

    bio = models.TextField(
        blank=True,
        verbose_name='Bio',
    )

    class Meta:
        db_table = 'author_profiles'
        verbose_name = 'Author Profile'
        verbose_name_plural = 'Author Profiles'

    def __str__(self):
        return f"{self.user.username} ({self.role})"

    @property
    def is_admin(self):
        """Check if user has admin role."""
        return self.role == self.ROLE_ADMIN

    @property
    def can_direct_publish(self):
        """Admins always publish directly; authors need the flag."""
        return self.is_admin or self.can_publish


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_author_profile(sender, instance, created, **kwargs):
    """Auto-create AuthorProfile when a new User is created."""
    if created:
        AuthorProfile.objects.get_or_create(user=instance)
