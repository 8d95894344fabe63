# apps/factures/services.py
"""
Invoice actions: drafts, conversion from quotes, deposits, progress
invoices, archive and e-mail delivery.
"""
import base64
import binascii
import logging
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.core.business_rules import BusinessRules, to_decimal
from apps.core.cache import revalidate_paths
from apps.core.exceptions import ActionError, ResourceNotFoundError
from apps.core.mailer import send_html_mail
from apps.devis.models import Devis, DevisItem
from apps.factures.models import Facture, FactureItem
from apps.factures.pdf import render_facture_pdf

logger = logging.getLogger(__name__)

FACTURE_PAGES = ('/dashboard/factures',)
NEW_ITEM_PREFIX = 'new_'
ITEM_FIELDS = ('description', 'quantity', 'unit', 'unit_price', 'tva', 'progress_percentage')


def _copy_lines(devis, facture, progress=Decimal('100')):
    """Invoice lines copied from the priced lines of a quote"""
    lines = [
        FactureItem(
            facture=facture,
            article_id=item.article_id,
            description=item.description,
            quantity=item.quantity,
            unit=item.unit,
            unit_price=item.unit_price,
            tva=item.tva,
            progress_percentage=progress,
            position=position,
        )
        for position, item in enumerate(devis.items.filter(item_type=DevisItem.TYPE_ITEM))
    ]
    return FactureItem.objects.bulk_create(lines)


def _format_percentage(percentage):
    return f"{to_decimal(percentage).normalize():f}"


class FactureService:

    @staticmethod
    def create_empty_facture(user, chantier):
        try:
            facture = Facture.objects.create(
                chantier=chantier,
                status=Facture.STATUS_EN_ATTENTE,
                date_echeance=timezone.localdate() + relativedelta(months=settings.FACTURE_PAYMENT_TERM_MONTHS),
                created_by=user,
            )
        except Exception as e:
            logger.error("Erreur création facture: %s", e)
            raise ActionError("Impossible de créer la facture")

        revalidate_paths([chantier.page_path, *FACTURE_PAGES])
        return facture

    @staticmethod
    def save_facture(facture, items, facture_data=None):
        """
        Save the editor state of an invoice: metadata, lines and totals.

        HT = Σ quantity × unit_price × progress / 100, TTC adds the VAT of
        each line. The job site workflow is re-evaluated afterwards so a
        paid invoice completes its invoice step.
        """
        from apps.workflows.engine import check_workflow_integrity

        with transaction.atomic():
            update_fields = ['total_ht', 'total_ttc', 'updated_at']
            if facture_data:
                for field in ('status', 'date_echeance'):
                    if field in facture_data:
                        setattr(facture, field, facture_data[field])
                        update_fields.append(field)

            existing = {str(item.pk): item for item in facture.items.all()}
            for position, data in enumerate(items):
                item_id = str(data.get('id', ''))
                if item_id.startswith(NEW_ITEM_PREFIX) or not item_id:
                    item = FactureItem(facture=facture)
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

            facture.total_ht, facture.total_ttc = BusinessRules.document_totals(
                facture.items.all(), with_progress=True
            )
            facture.save(update_fields=update_fields)

        if facture_data and facture.chantier_id:
            logger.info("Facture %s updated, running integrity check", facture.pk)
            check_workflow_integrity(facture.chantier)

        revalidate_paths([facture.edit_path, *FACTURE_PAGES])
        return facture

    @staticmethod
    def delete_facture_item(item):
        facture = item.facture
        item.delete()
        revalidate_paths([facture.edit_path])

    @staticmethod
    @transaction.atomic
    def convert_devis_to_facture(user, devis):
        """
        Invoice the whole quote. Returns (facture, created): an invoice
        already issued for this quote reference is returned as is.
        """
        reference = f"F-{devis.reference}"
        existing = Facture.objects.filter(reference=reference, created_by=user).first()
        if existing is not None:
            return existing, False

        facture = Facture.objects.create(
            chantier=devis.chantier,
            devis=devis,
            status=Facture.STATUS_EN_ATTENTE,
            reference=reference,
            created_by=user,
        )
        _copy_lines(devis, facture)
        facture.total_ht, facture.total_ttc = BusinessRules.document_totals(
            facture.items.all(), with_progress=True
        )
        facture.save(update_fields=['total_ht', 'total_ttc', 'updated_at'])

        devis.status = Devis.STATUS_EN_ATTENTE_APPROBATION
        devis.save(update_fields=['status', 'updated_at'])

        transaction.on_commit(lambda: FactureService._after_conversion(devis))
        return facture, True

    @staticmethod
    def _after_conversion(devis):
        from apps.workflows.engine import check_workflow_integrity

        check_workflow_integrity(devis.chantier)
        revalidate_paths(['/dashboard/devis', *FACTURE_PAGES, devis.chantier.page_path])

    @staticmethod
    @transaction.atomic
    def create_acompte(user, devis, percentage):
        """Deposit invoice of percentage % of the quote, as a single flat rate line"""
        percentage = to_decimal(percentage)
        if not Decimal('0') < percentage <= Decimal('100'):
            raise ActionError("Pourcentage invalide")

        amount_ht = BusinessRules.percentage_of(devis.total_ht, percentage)
        facture = Facture.objects.create(
            chantier=devis.chantier,
            devis=devis,
            type=Facture.TYPE_ACOMPTE,
            status=Facture.STATUS_EN_ATTENTE,
            reference=Facture.generate_reference('AC'),
            total_ht=amount_ht,
            total_ttc=BusinessRules.percentage_of(devis.total_ttc, percentage),
            created_by=user,
        )
        FactureItem.objects.create(
            facture=facture,
            description=f"Acompte de {_format_percentage(percentage)}% sur le devis {devis.reference}",
            quantity=1,
            unit='forfait',
            unit_price=amount_ht,
            tva=Decimal('20'),
            progress_percentage=Decimal('100'),
        )

        transaction.on_commit(lambda: revalidate_paths(FACTURE_PAGES))
        return facture

    @staticmethod
    @transaction.atomic
    def create_situation(user, devis):
        """Next progress invoice of the quote, lines copied at 0 % progress"""
        index = devis.factures.filter(type=Facture.TYPE_SITUATION).count() + 1
        facture = Facture.objects.create(
            chantier=devis.chantier,
            devis=devis,
            type=Facture.TYPE_SITUATION,
            situation_index=index,
            status=Facture.STATUS_EN_ATTENTE,
            reference=f"S{index}-{devis.reference}",
            created_by=user,
        )
        _copy_lines(devis, facture, progress=Decimal('0'))

        transaction.on_commit(lambda: revalidate_paths(FACTURE_PAGES))
        return facture

    # Archive

    @staticmethod
    def delete_facture(facture):
        facture.soft_delete()
        revalidate_paths(FACTURE_PAGES)

    @staticmethod
    def restore_facture(facture):
        facture.restore()
        revalidate_paths(FACTURE_PAGES)

    @staticmethod
    def delete_facture_permanently(facture):
        facture.delete()
        revalidate_paths(FACTURE_PAGES)

    @staticmethod
    def mark_overdue_factures():
        """Unpaid invoices past their due date move to 'retard'"""
        count = Facture.objects.active().filter(
            status__in=Facture.UNPAID_STATUSES,
            date_echeance__lt=timezone.localdate(),
        ).update(status=Facture.STATUS_RETARD)

        if count:
            logger.info("%s invoices marked overdue", count)
            revalidate_paths(FACTURE_PAGES)
        return count

    # Delivery

    @staticmethod
    def send_facture_email(facture, email, pdf_base64=None):
        """
        E-mail the invoice with its PDF attached. A base64 PDF rendered by
        the browser may be supplied, otherwise it is generated here.
        """
        if pdf_base64:
            encoded = pdf_base64.split(',', 1)[1] if pdf_base64.startswith('data:') else pdf_base64
            try:
                pdf = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError):
                raise ActionError("PDF invalide")
        else:
            pdf = render_facture_pdf(facture)
            if pdf is None:
                raise ActionError("Erreur génération PDF")

        due = f"{facture.date_echeance:%d/%m/%Y}" if facture.date_echeance else 'À réception'
        html = (
            "<h1>Bonjour,</h1>"
            f"<p>Veuillez trouver ci-joint votre facture <strong>{facture.reference}</strong> "
            f"datée du {facture.date_emission:%d/%m/%Y}.</p>"
            '<div style="background: #f4f4f4; padding: 20px; border-radius: 8px; margin: 20px 0;">'
            f'<p style="margin: 0; font-size: 18px;"><strong>Montant à régler : {facture.total_ttc:.2f} €</strong></p>'
            f'<p style="margin: 5px 0 0 0; color: #666;">Date d\'échéance : {due}</p>'
            "</div>"
            "<p>Merci de votre confiance.</p>"
            "<p>Cordialement,<br/>L'équipe Trame</p>"
        )
        result = send_html_mail(
            f"Votre facture {facture.reference} est disponible",
            html,
            [email],
            attachments=[(f"Facture-{facture.reference}.pdf", pdf, 'application/pdf')],
        )
        if not result.sent:
            raise ActionError("Erreur serveur lors de l'envoi")
        return {'success': True, 'simulated': result.simulated}
