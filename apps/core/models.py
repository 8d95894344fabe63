# apps/core/models.py
"""
Abstract base models for common patterns.
Use these as base classes to ensure consistency across models.
"""
from django.db import models
from django.conf import settings
from django.utils import timezone


class TimeStampedModel(models.Model):
    """
    Abstract model providing automatic timestamp fields.
    Inherit from this for models that need created/updated tracking.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']


class UserStampedModel(TimeStampedModel):
    """
    Abstract model for rows owned by the user who created them.
    Querysets of owned rows are always scoped to created_by.
    """
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(app_label)s_%(class)s_created'
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']


class SoftDeleteQuerySet(models.QuerySet):

    def active(self):
        return self.filter(deleted_at__isnull=True)

    def archived(self):
        return self.filter(deleted_at__isnull=False)

    def soft_delete(self):
        return self.filter(deleted_at__isnull=True).update(deleted_at=timezone.now())


class SoftDeleteModel(models.Model):
    """
    Abstract model providing soft delete functionality.
    Objects are marked as deleted instead of being removed from database.
    """
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        """Soft delete the instance"""
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at'])

    def restore(self):
        """Restore a soft-deleted instance"""
        self.deleted_at = None
        self.save(update_fields=['deleted_at'])
