# apps/devis/services.py
"""
Quote actions: draft creation, line editing and totals.
"""
import logging

from django.db import transaction
from django.db.models import Max, ProtectedError

from apps.core.business_rules import BusinessRules
from apps.core.cache import revalidate_paths
from apps.core.exceptions import ActionError, RelatedDataError, ResourceNotFoundError
from apps.devis.models import Devis, DevisItem, DEFAULT_NOTES

logger = logging.getLogger(__name__)

NEW_ITEM_PREFIX = 'new_'
ITEM_FIELDS = ('description', 'quantity', 'unit', 'unit_price', 'cost_price', 'tva', 'details', 'item_type')


class DevisService:

    @staticmethod
    def create_empty_devis(user, chantier):
        """
        Create a draft quote, then validate the job site's pending quote step.
        """
        from apps.workflows.services import WorkflowService

        try:
            devis = Devis.objects.create(
                chantier=chantier,
                status=Devis.STATUS_BROUILLON,
                notes=DEFAULT_NOTES,
                created_by=user,
            )
        except Exception as e:
            logger.error("Erreur création devis: %s", e)
            raise ActionError("Impossible de créer le devis")

        WorkflowService.validate_pending_quote_node(chantier)

        revalidate_paths([chantier.page_path, '/dashboard/devis'])
        return devis

    @staticmethod
    def add_line_from_article(devis, article):
        """Insert a line snapshotting the article's name, unit and prices"""
        position = devis.items.aggregate(last=Max('position'))['last']
        try:
            item = DevisItem.objects.create(
                devis=devis,
                article=article,
                description=article.name,
                unit=article.unit,
                unit_price=article.price_ht,
                cost_price=article.cost_ht,
                tva=article.tva or 20,
                quantity=1,
                details=article.components_snapshot(),
                position=0 if position is None else position + 1,
            )
        except Exception as e:
            logger.error("Erreur insertion ligne: %s", e)
            raise ActionError("Erreur insertion ligne")

        revalidate_paths([devis.edit_path])
        return item

    @staticmethod
    def save_devis(devis, items, devis_data=None):
        """
        Save the editor state of a quote.

        items whose id starts with "new_" are inserted, the others updated.
        Lines are written and totals recomputed before the metadata, so the
        workflow step triggered by a status change sees the final quote.
        """
        from apps.workflows.services import WorkflowService

        with transaction.atomic():
            existing = {str(item.pk): item for item in devis.items.all()}

            for position, data in enumerate(items):
                item_id = str(data.get('id', ''))
                if item_id.startswith(NEW_ITEM_PREFIX) or not item_id:
                    item = DevisItem(devis=devis)
                elif item_id in existing:
                    item = existing[item_id]
                else:
                    raise ResourceNotFoundError("Ligne introuvable")

                for field in ITEM_FIELDS:
                    if field in data:
                        setattr(item, field, data[field])
                item.article_id = data.get('article_id') or None
                item.position = position
                item.save()

            devis.total_ht, devis.total_ttc = BusinessRules.document_totals(devis.items.all())
            update_fields = ['total_ht', 'total_ttc', 'updated_at']

            if devis_data:
                for field in ('name', 'status', 'notes'):
                    if field in devis_data:
                        setattr(devis, field, devis_data[field])
                        update_fields.append(field)
            devis.save(update_fields=update_fields)

        if devis_data and devis_data.get('status') and devis_data['status'] != Devis.STATUS_BROUILLON:
            WorkflowService.validate_pending_quote_node(devis.chantier)

        revalidate_paths([devis.edit_path, '/dashboard/devis', devis.chantier.page_path])
        return devis

    @staticmethod
    def delete_devis_item(item):
        devis = item.devis
        item.delete()
        revalidate_paths([devis.edit_path])

    @staticmethod
    def delete_devis(devis):
        chantier_path = devis.chantier.page_path
        try:
            with transaction.atomic():
                devis.delete()
        except ProtectedError:
            logger.warning("Devis %s still referenced by invoices", devis.pk)
            raise RelatedDataError("Impossible de supprimer le devis")

        revalidate_paths(['/dashboard/devis', chantier_path])
