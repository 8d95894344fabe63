from django.db import models

from apps.core.models import UserStampedModel


class Client(UserStampedModel):
    TYPE_PARTICULIER = 'particulier'
    TYPE_PROFESSIONNEL = 'professionnel'
    TYPE_CHOICES = [
        (TYPE_PARTICULIER, 'Particulier'),
        (TYPE_PROFESSIONNEL, 'Professionnel'),
    ]

    name = models.CharField(max_length=255, db_index=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_PARTICULIER)
    email = models.EmailField(blank=True)
    billing_email = models.EmailField(blank=True)
    phone_mobile = models.CharField(max_length=30, blank=True)
    phone_fixe = models.CharField(max_length=30, blank=True)
    address_line1 = models.CharField(max_length=255, blank=True)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=10, blank=True)
    siret = models.CharField(max_length=20, blank=True)
    iban = models.CharField(max_length=34, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def full_address(self):
        parts = [self.address_line1, self.address_line2, f"{self.zip_code} {self.city}".strip()]
        return ', '.join(p for p in parts if p)
