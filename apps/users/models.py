import secrets
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class CustomUser(AbstractUser):
    phone_number = models.CharField(max_length=30, blank=True, null=True)

    def __str__(self):
        return self.get_full_name() or self.username


class MagicLink(models.Model):
    """
    One-time login code sent by e-mail and exchanged at /auth/callback/.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='magic_links'
    )
    code = models.CharField(max_length=64, unique=True, db_index=True)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Magic link for {self.user}"

    @classmethod
    def issue(cls, user):
        return cls.objects.create(
            user=user,
            code=secrets.token_urlsafe(32),
            expires_at=timezone.now() + timedelta(minutes=settings.MAGIC_LINK_TTL_MINUTES),
        )

    @property
    def is_usable(self):
        return self.used_at is None and self.expires_at > timezone.now()

    def consume(self):
        self.used_at = timezone.now()
        self.save(update_fields=['used_at'])
