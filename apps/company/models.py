# apps/company/models.py
from django.conf import settings
from django.db import models

from apps.core.models import TimeStampedModel


class CompanySettings(TimeStampedModel):
    """Letterhead printed on quotes and invoices, one row per user"""
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='company_settings'
    )
    name = models.CharField(max_length=255, blank=True)
    address = models.TextField(blank=True)
    siret = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    footer_text = models.TextField(blank=True)
    logo = models.FileField(upload_to='company-assets/', blank=True)

    class Meta:
        verbose_name_plural = 'company settings'

    def __str__(self):
        return self.name or f"Entreprise de {self.user}"
