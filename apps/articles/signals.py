# apps/articles/signals.py
"""
Realtime listener: stock updates re-run the workflow integrity check of
the job sites waiting on material.
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from apps.articles.models import Article
from apps.core.middleware import get_current_user

logger = logging.getLogger(__name__)

# Sent by StockService after an F() update, which bypasses post_save
stock_changed = Signal()


def _waiting_chantier_ids():
    from apps.workflows.models import ChantierNode

    return set(
        ChantierNode.objects
        .filter(action_type='material_order')
        .exclude(status='done')
        .values_list('chantier_id', flat=True)
    )


class PendingIntegrityChecks:
    """
    Job sites queued by one transaction, checked once it commits.

    The batch lives on the thread's database connection and is only reused
    while its on_commit callback is still registered, so a rolled back
    transaction drops its ids together with the callback.
    """

    def __init__(self, triggered_by=None):
        self.chantier_ids = set()
        self.triggered_by = triggered_by
        self.done = False

    def __call__(self):
        from apps.chantiers.models import Chantier
        from apps.workflows.engine import check_workflow_integrity
        from apps.core.cache import revalidate_path

        self.done = True
        chantier_ids, self.chantier_ids = self.chantier_ids, set()
        logger.info(
            "Stock change by %s, checking %d job site(s)",
            self.triggered_by or "system", len(chantier_ids)
        )
        for chantier in Chantier.objects.filter(pk__in=chantier_ids):
            try:
                check_workflow_integrity(chantier)
            except Exception:
                logger.exception("Integrity check failed for chantier %s", chantier.pk)
            revalidate_path(chantier.page_path)

    def is_registered(self, connection):
        return not self.done and any(entry[1] is self for entry in connection.run_on_commit)


def current_batch(using='default'):
    """Batch still waiting for the current transaction to commit, or None"""
    connection = transaction.get_connection(using)
    batch = getattr(connection, 'pending_integrity_checks', None)
    if batch is not None and batch.is_registered(connection):
        return batch
    return None


def schedule_integrity_checks(using='default'):
    """
    Queue one integrity check per waiting job site, run once the current
    transaction commits.
    """
    chantier_ids = _waiting_chantier_ids()
    if not chantier_ids:
        return

    batch = current_batch(using)
    if batch is not None:
        batch.chantier_ids.update(chantier_ids)
        return

    batch = PendingIntegrityChecks(triggered_by=get_current_user())
    batch.chantier_ids.update(chantier_ids)
    transaction.get_connection(using).pending_integrity_checks = batch
    # Runs immediately in autocommit mode
    transaction.on_commit(batch, using=using)


@receiver(post_save, sender=Article)
def article_saved(sender, instance, created, **kwargs):
    if created:
        return
    logger.debug("Article %s updated, stock=%s", instance.pk, instance.stock)
    schedule_integrity_checks(kwargs.get('using') or 'default')


@receiver(stock_changed, sender=Article)
def article_stock_changed(sender, instance, **kwargs):
    logger.debug("Article %s stock changed to %s", instance.pk, instance.stock)
    schedule_integrity_checks()
