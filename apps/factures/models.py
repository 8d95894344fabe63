# apps/factures/models.py
"""
Invoices. Standard invoices, deposits (acomptes) and progress invoices
(situations) share one model; soft deleted invoices stay in the archive
until purged.
"""
from decimal import Decimal
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models.functions import Length
from django.utils import timezone

from apps.core.models import UserStampedModel, SoftDeleteModel


class Facture(UserStampedModel, SoftDeleteModel):
    STATUS_EN_ATTENTE = 'en_attente'
    STATUS_ENVOYEE = 'envoyee'
    STATUS_PAYEE = 'payee'
    STATUS_RETARD = 'retard'
    STATUS_CHOICES = [
        (STATUS_EN_ATTENTE, 'En attente'),
        (STATUS_ENVOYEE, 'Envoyée'),
        (STATUS_PAYEE, 'Payée'),
        (STATUS_RETARD, 'En retard'),
    ]
    UNPAID_STATUSES = (STATUS_EN_ATTENTE, STATUS_ENVOYEE)

    TYPE_STANDARD = 'standard'
    TYPE_ACOMPTE = 'acompte'
    TYPE_SITUATION = 'situation'
    TYPE_CHOICES = [
        (TYPE_STANDARD, 'Facture'),
        (TYPE_ACOMPTE, 'Acompte'),
        (TYPE_SITUATION, 'Situation'),
    ]

    chantier = models.ForeignKey(
        'chantiers.Chantier',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='factures'
    )
    devis = models.ForeignKey(
        'devis.Devis',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='factures'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_STANDARD)
    situation_index = models.PositiveIntegerField(null=True, blank=True)
    reference = models.CharField(max_length=50, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_EN_ATTENTE, db_index=True)
    date_emission = models.DateField(default=timezone.localdate)
    date_echeance = models.DateField(null=True, blank=True, db_index=True)
    total_ht = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_ttc = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'date_echeance']),
        ]

    def __str__(self):
        return self.reference

    def save(self, *args, **kwargs):
        if not self.reference:
            self.reference = self.generate_reference('F')
        super().save(*args, **kwargs)

    @staticmethod
    def generate_reference(prefix):
        """Sequential per prefix: F-000001, AC-000001, ..."""
        last = (
            Facture.objects.filter(reference__regex=rf'^{prefix}-[0-9]{{6,}}$')
            .order_by(Length('reference').desc(), '-reference')
            .values_list('reference', flat=True)
            .first()
        )
        number = int(last.rsplit('-', 1)[1]) + 1 if last else 1
        return f"{prefix}-{number:06d}"

    @property
    def edit_path(self):
        return f'/dashboard/factures/{self.pk}/edit'

    @property
    def is_paid(self):
        return self.status == self.STATUS_PAYEE

    @property
    def is_overdue(self):
        return (
            self.status in self.UNPAID_STATUSES
            and self.date_echeance is not None
            and self.date_echeance < timezone.localdate()
        )


class FactureItem(models.Model):
    facture = models.ForeignKey(Facture, on_delete=models.CASCADE, related_name='items')
    article = models.ForeignKey(
        'articles.Article',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='facture_items'
    )
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    unit = models.CharField(max_length=20, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tva = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('20.00'))
    # Share of the line billed by this invoice, used by situations
    progress_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('100.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.facture.reference} - {self.description[:40]}"

    @property
    def total_ht(self):
        return self.quantity * self.unit_price * self.progress_percentage / 100
