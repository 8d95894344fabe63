# apps/workflows/models.py
"""
Per job site workflow graph: steps (nodes), links (edges), reusable
templates and an event log.
"""
from django.db import models

from apps.core.models import TimeStampedModel, UserStampedModel


class ChantierNode(TimeStampedModel):
    STATUS_PENDING = 'pending'
    STATUS_WAITING = 'waiting'
    STATUS_DONE = 'done'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'À faire'),
        (STATUS_WAITING, 'En attente'),
        (STATUS_DONE, 'Terminé'),
    ]

    ACTION_PLAY = 'play'
    ACTION_QUOTE = 'quote'
    ACTION_INVOICE = 'invoice'
    ACTION_CLIENT_CHOICE = 'client_choice'
    ACTION_MATERIAL_ORDER = 'material_order'
    ACTION_EMAIL = 'email'
    ACTION_CALENDAR = 'calendar'
    ACTION_CHOICES = [
        (ACTION_PLAY, 'Lancement'),
        (ACTION_QUOTE, 'Création devis'),
        (ACTION_INVOICE, 'Facturation'),
        (ACTION_CLIENT_CHOICE, 'Choix client'),
        (ACTION_MATERIAL_ORDER, 'Commande matériaux'),
        (ACTION_EMAIL, 'Email automatique'),
        (ACTION_CALENDAR, 'Rendez-vous'),
        ('setup', 'Mise en place'),
        ('site_visit', 'Visite technique'),
        ('cleaning', 'Nettoyage'),
        ('reception_report', 'PV de réception'),
        ('photo_report', 'Suivi photo'),
    ]

    chantier = models.ForeignKey('chantiers.Chantier', on_delete=models.CASCADE, related_name='nodes')
    type = models.CharField(max_length=20, default='step')
    action_type = models.CharField(max_length=30, choices=ACTION_CHOICES, db_index=True)
    label = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    position_x = models.FloatField(default=0)
    position_y = models.FloatField(default=0)
    data = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.label or self.action_type} ({self.status})"

    @property
    def is_done(self):
        return self.status == self.STATUS_DONE


class ChantierEdge(models.Model):
    chantier = models.ForeignKey('chantiers.Chantier', on_delete=models.CASCADE, related_name='edges')
    source = models.ForeignKey(ChantierNode, on_delete=models.CASCADE, related_name='outgoing')
    target = models.ForeignKey(ChantierNode, on_delete=models.CASCADE, related_name='incoming')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ('source', 'target')
        ordering = ['id']

    def __str__(self):
        return f"{self.source_id} -> {self.target_id}"


class ChantierTemplate(UserStampedModel):
    """
    Reusable graph. nodes/edges keep the template's own ids, which are
    remapped to fresh rows when the template is loaded on a job site.
    """
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    nodes = models.JSONField(default=list)
    edges = models.JSONField(default=list)
    is_public = models.BooleanField(default=False)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.name


class ChantierLog(models.Model):
    LEVEL_INFO = 'info'
    LEVEL_WARNING = 'warning'
    LEVEL_ERROR = 'error'
    LEVEL_CHOICES = [
        (LEVEL_INFO, 'Info'),
        (LEVEL_WARNING, 'Warning'),
        (LEVEL_ERROR, 'Error'),
    ]

    chantier = models.ForeignKey('chantiers.Chantier', on_delete=models.CASCADE, related_name='logs')
    level = models.CharField(max_length=10, choices=LEVEL_CHOICES, default=LEVEL_INFO)
    message = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"[{self.level.upper()}] {self.message}"
