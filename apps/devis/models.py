# apps/devis/models.py
from decimal import Decimal
from django.db import models
from django.db.models.functions import Length
from django.utils import timezone

from apps.core.models import UserStampedModel

DEFAULT_NOTES = "Validité de l'offre : 30 jours.\nAcompte de 30% à la commande."


class Devis(UserStampedModel):
    """
    Quote attached to a job site.
    Totals are denormalized and recomputed on every save of the lines.
    """
    STATUS_BROUILLON = 'brouillon'
    STATUS_EN_ATTENTE = 'en_attente'
    STATUS_EN_ATTENTE_APPROBATION = 'en_attente_approbation'
    STATUS_VALIDE = 'valide'
    STATUS_SIGNE = 'signe'
    STATUS_APPROUVE = 'approuve'
    STATUS_REFUSE = 'refuse'
    STATUS_CHOICES = [
        (STATUS_BROUILLON, 'Brouillon'),
        (STATUS_EN_ATTENTE, 'En attente'),
        (STATUS_EN_ATTENTE_APPROBATION, "En attente d'approbation"),
        (STATUS_VALIDE, 'Validé'),
        (STATUS_SIGNE, 'Signé'),
        (STATUS_APPROUVE, 'Approuvé'),
        (STATUS_REFUSE, 'Refusé'),
    ]

    # A quote in one of these statuses has been accepted by the client
    ACCEPTED_STATUSES = (STATUS_EN_ATTENTE_APPROBATION, STATUS_SIGNE, STATUS_APPROUVE)
    # ... and these additionally count as a client choice being made
    CHOSEN_STATUSES = (STATUS_EN_ATTENTE,) + ACCEPTED_STATUSES

    chantier = models.ForeignKey(
        'chantiers.Chantier',
        on_delete=models.CASCADE,
        related_name='devis'
    )
    reference = models.CharField(max_length=20, unique=True, editable=False)
    name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_BROUILLON, db_index=True)
    notes = models.TextField(blank=True, default=DEFAULT_NOTES)
    total_ht = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_ttc = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        ordering = ['-created_at']
        verbose_name_plural = 'devis'

    def __str__(self):
        return f"{self.reference} - {self.name or self.chantier.name}"

    def save(self, *args, **kwargs):
        if not self.reference:
            self.reference = self.generate_reference()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_reference():
        """Sequential per year: D-2026-0001, D-2026-0002, ..., D-2026-10000"""
        prefix = f"D-{timezone.now().year}-"
        # Longer number first, 0-padding only sorts within one width
        last = (
            Devis.objects.filter(reference__regex=rf'^{prefix}[0-9]+$')
            .order_by(Length('reference').desc(), '-reference')
            .values_list('reference', flat=True)
            .first()
        )
        number = int(last.rsplit('-', 1)[1]) + 1 if last else 1
        return f"{prefix}{number:04d}"

    @property
    def edit_path(self):
        return f'/dashboard/devis/{self.pk}/edit'

    @property
    def is_draft(self):
        return self.status == self.STATUS_BROUILLON


class DevisItem(models.Model):
    TYPE_ITEM = 'item'
    TYPE_SECTION = 'section'
    TYPE_CHOICES = [
        (TYPE_ITEM, 'Ligne'),
        (TYPE_SECTION, 'Section'),
    ]

    devis = models.ForeignKey(Devis, on_delete=models.CASCADE, related_name='items')
    article = models.ForeignKey(
        'articles.Article',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='devis_items'
    )
    item_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=TYPE_ITEM)
    description = models.TextField(blank=True)
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    unit = models.CharField(max_length=20, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tva = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('20.00'))
    # Snapshot of the article components at insertion time
    details = models.JSONField(default=list, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.devis.reference} - {self.description[:40]}"

    @property
    def total_ht(self):
        return self.quantity * self.unit_price
