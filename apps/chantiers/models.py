from django.db import models

from apps.core.models import UserStampedModel


class Chantier(UserStampedModel):
    """
    Job site. Carries the workflow graph (apps.workflows), its quotes and invoices.
    """
    STATUS_ETUDE = 'etude'
    STATUS_EN_COURS = 'en_cours'
    STATUS_TERMINE = 'termine'
    STATUS_ANNULE = 'annule'
    STATUS_CHOICES = [
        (STATUS_ETUDE, 'En étude'),
        (STATUS_EN_COURS, 'En cours'),
        (STATUS_TERMINE, 'Terminé'),
        (STATUS_ANNULE, 'Annulé'),
    ]

    name = models.CharField(max_length=255, db_index=True)
    client = models.ForeignKey(
        'clients.Client',
        on_delete=models.CASCADE,
        related_name='chantiers'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ETUDE, db_index=True)
    address_line1 = models.CharField(max_length=255, blank=True)
    date_debut = models.DateField(null=True, blank=True)
    email_contact = models.EmailField(blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def page_path(self):
        return f'/dashboard/chantiers/{self.pk}'

    @property
    def contact_email(self):
        """Client e-mail first, then the job site contact"""
        return self.client.email or self.email_contact

    def workflow_progress(self):
        """
        Share of done workflow steps, the start step excluded.
        Returns (done, total, percent).
        """
        steps = self.nodes.exclude(action_type='play')
        total = steps.count()
        done = steps.filter(status='done').count()
        percent = round(done * 100 / total) if total else 0
        return done, total, percent
