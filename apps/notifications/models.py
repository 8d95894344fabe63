# apps/notifications/models.py
from django.conf import settings
from django.db import models


class Notification(models.Model):
    """
    Message shown on the announcements page. A notification without user
    is global and visible to everyone.
    """
    TYPE_INFO = 'info'
    TYPE_MATERIAL_REQUEST = 'material_request'
    TYPE_STOCK_ORDER = 'stock_order'

    TYPE_CHOICES = [
        (TYPE_INFO, 'Information'),
        (TYPE_MATERIAL_REQUEST, 'Commande de matériel'),
        (TYPE_STOCK_ORDER, 'Réapprovisionnement'),
    ]

    STATUS_UNREAD = 'unread'
    STATUS_READ = 'read'
    STATUS_ARCHIVED = 'archived'

    STATUS_CHOICES = [
        (STATUS_UNREAD, 'Non lue'),
        (STATUS_READ, 'Lue'),
        (STATUS_ARCHIVED, 'Archivée'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications'
    )
    type = models.CharField(max_length=50, choices=TYPE_CHOICES, default=TYPE_INFO, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UNREAD, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'status', '-created_at']),
        ]

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def is_global(self):
        return self.user_id is None

    @property
    def is_read(self):
        return self.status != self.STATUS_UNREAD

    def mark_as_read(self):
        if self.status == self.STATUS_UNREAD:
            self.status = self.STATUS_READ
            self.save(update_fields=['status'])

    def archive(self):
        self.status = self.STATUS_ARCHIVED
        self.save(update_fields=['status'])

    def to_event(self):
        """Payload pushed on the SSE stream"""
        return {
            'id': self.pk,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'status': self.status,
            'data': self.data or {},
            'created_at': self.created_at.isoformat(),
        }
