# apps/factures/tests.py
"""
Factures app tests - invoices, deposits, progress invoices and archive
"""
import base64
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.articles.models import Article
from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.exceptions import ActionError
from apps.devis.models import Devis, DevisItem
from apps.factures.models import Facture, FactureItem
from apps.factures.services import FactureService
from apps.workflows.models import ChantierNode, ChantierEdge

User = get_user_model()


class FactureFixtureMixin:

    def create_fixtures(self):
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.client_row = Client.objects.create(name='Durand', email='durand@mail.test', created_by=self.user)
        self.chantier = Chantier.objects.create(name='Extension', client=self.client_row, created_by=self.user)
        self.devis = Devis.objects.create(
            chantier=self.chantier,
            status=Devis.STATUS_EN_ATTENTE,
            total_ht=Decimal('1000.00'),
            total_ttc=Decimal('1200.00'),
            created_by=self.user
        )
        DevisItem.objects.create(devis=self.devis, item_type=DevisItem.TYPE_SECTION, description='Gros oeuvre')
        DevisItem.objects.create(
            devis=self.devis, description='Parpaings', quantity=Decimal('10'),
            unit='m²', unit_price=Decimal('100.00'), tva=Decimal('20'), position=1
        )


class FactureModelTests(TestCase):
    """Test Facture model"""

    def test_sequential_reference(self):
        """Test references are numbered per prefix"""
        first = Facture.objects.create()
        second = Facture.objects.create()
        Facture.objects.create(reference='F-D-2026-0001')

        self.assertEqual(first.reference, 'F-000001')
        self.assertEqual(second.reference, 'F-000002')
        self.assertEqual(Facture.generate_reference('F'), 'F-000003')
        self.assertEqual(Facture.generate_reference('AC'), 'AC-000001')

    def test_reference_past_six_digits(self):
        """Test numbering keeps going after F-999999"""
        Facture.objects.create(reference='F-999999')
        Facture.objects.create(reference='F-000002')

        self.assertEqual(Facture.objects.create().reference, 'F-1000000')
        self.assertEqual(Facture.generate_reference('F'), 'F-1000001')

    def test_is_overdue(self):
        """Test only unpaid invoices past due are overdue"""
        yesterday = timezone.localdate() - timedelta(days=1)

        self.assertTrue(Facture(date_echeance=yesterday).is_overdue)
        self.assertFalse(Facture(date_echeance=yesterday, status=Facture.STATUS_PAYEE).is_overdue)
        self.assertFalse(Facture().is_overdue)

    def test_item_total_uses_progress(self):
        """Test a line bills its progress share"""
        item = FactureItem(quantity=Decimal('2'), unit_price=Decimal('150'), progress_percentage=Decimal('40'))

        self.assertEqual(item.total_ht, Decimal('120'))


class FactureServiceTests(FactureFixtureMixin, TestCase):
    """Test FactureService"""

    def setUp(self):
        cache.clear()
        self.create_fixtures()

    def test_save_facture_totals_with_progress(self):
        """Test totals apply progress and per line VAT"""
        facture = FactureService.create_empty_facture(self.user, self.chantier)

        FactureService.save_facture(facture, [
            {'id': 'new_1', 'description': 'Dalle', 'quantity': Decimal('2'), 'unit_price': Decimal('100'),
             'tva': Decimal('20'), 'progress_percentage': Decimal('50')},
            {'id': 'new_2', 'description': 'Main d\'oeuvre', 'quantity': Decimal('1'), 'unit_price': Decimal('50'),
             'tva': Decimal('10')},
        ])

        facture.refresh_from_db()
        self.assertEqual(facture.total_ht, Decimal('150.00'))
        self.assertEqual(facture.total_ttc, Decimal('175.00'))
        self.assertEqual(facture.items.count(), 2)

    def test_save_facture_updates_existing_lines(self):
        """Test existing lines are updated in place"""
        facture = FactureService.create_empty_facture(self.user, self.chantier)
        item = FactureItem.objects.create(facture=facture, description='Dalle', unit_price=Decimal('10'))

        FactureService.save_facture(facture, [
            {'id': str(item.pk), 'description': 'Dalle béton', 'quantity': Decimal('3'), 'unit_price': Decimal('10'),
             'tva': Decimal('0')},
        ])

        item.refresh_from_db()
        self.assertEqual(item.description, 'Dalle béton')
        self.assertEqual(FactureItem.objects.filter(facture=facture).count(), 1)

    def test_paid_invoice_completes_invoice_step(self):
        """Test paying an invoice validates the job site invoice step"""
        play = ChantierNode.objects.create(chantier=self.chantier, action_type='play', status='done')
        step = ChantierNode.objects.create(chantier=self.chantier, action_type='invoice', label='Facture Solde')
        ChantierEdge.objects.create(chantier=self.chantier, source=play, target=step)
        facture = FactureService.create_empty_facture(self.user, self.chantier)

        FactureService.save_facture(facture, [], {'status': Facture.STATUS_PAYEE})

        step.refresh_from_db()
        self.assertEqual(step.status, ChantierNode.STATUS_DONE)

    def test_convert_devis_to_facture(self):
        """Test converting a quote copies its priced lines once"""
        facture, created = FactureService.convert_devis_to_facture(self.user, self.devis)

        self.assertTrue(created)
        self.assertEqual(facture.reference, f'F-{self.devis.reference}')
        self.assertEqual(facture.items.count(), 1)
        self.assertEqual(facture.total_ht, Decimal('1000.00'))
        self.assertEqual(facture.total_ttc, Decimal('1200.00'))
        self.devis.refresh_from_db()
        self.assertEqual(self.devis.status, Devis.STATUS_EN_ATTENTE_APPROBATION)

        again, created = FactureService.convert_devis_to_facture(self.user, self.devis)
        self.assertFalse(created)
        self.assertEqual(again.pk, facture.pk)

    def test_create_acompte(self):
        """Test a 30% deposit on the quote"""
        facture = FactureService.create_acompte(self.user, self.devis, Decimal('30'))

        self.assertEqual(facture.type, Facture.TYPE_ACOMPTE)
        self.assertTrue(facture.reference.startswith('AC-'))
        self.assertEqual(facture.total_ht, Decimal('300.00'))
        self.assertEqual(facture.total_ttc, Decimal('360.00'))
        line = facture.items.get()
        self.assertEqual(line.description, f'Acompte de 30% sur le devis {self.devis.reference}')
        self.assertEqual(line.unit, 'forfait')
        self.assertEqual(line.tva, Decimal('20'))

    def test_create_acompte_invalid_percentage(self):
        """Test deposits must be within (0, 100]"""
        for percentage in (0, -5, 101):
            with self.assertRaises(ActionError):
                FactureService.create_acompte(self.user, self.devis, percentage)

    def test_create_situations(self):
        """Test progress invoices are numbered and start at 0 %"""
        first = FactureService.create_situation(self.user, self.devis)
        second = FactureService.create_situation(self.user, self.devis)

        self.assertEqual(first.situation_index, 1)
        self.assertEqual(second.reference, f'S2-{self.devis.reference}')
        self.assertEqual(second.total_ttc, Decimal('0.00'))
        self.assertEqual(
            list(second.items.values_list('progress_percentage', flat=True)),
            [Decimal('0.00')]
        )

    def test_mark_overdue_command(self):
        """Test the cron command moves unpaid late invoices to 'retard'"""
        yesterday = timezone.localdate() - timedelta(days=1)
        late = Facture.objects.create(chantier=self.chantier, date_echeance=yesterday)
        paid = Facture.objects.create(chantier=self.chantier, date_echeance=yesterday, status=Facture.STATUS_PAYEE)
        future = Facture.objects.create(chantier=self.chantier, date_echeance=yesterday + timedelta(days=10))

        call_command('mark_overdue_factures', verbosity=0)

        late.refresh_from_db()
        paid.refresh_from_db()
        future.refresh_from_db()
        self.assertEqual(late.status, Facture.STATUS_RETARD)
        self.assertEqual(paid.status, Facture.STATUS_PAYEE)
        self.assertEqual(future.status, Facture.STATUS_EN_ATTENTE)

    def test_send_facture_email_generates_pdf(self):
        """Test the invoice is e-mailed with a generated PDF"""
        facture, _ = FactureService.convert_devis_to_facture(self.user, self.devis)

        result = FactureService.send_facture_email(facture, 'durand@mail.test')

        self.assertEqual(result, {'success': True, 'simulated': False})
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, f'Votre facture {facture.reference} est disponible')
        filename, content, mimetype = message.attachments[0]
        self.assertEqual(filename, f'Facture-{facture.reference}.pdf')
        self.assertEqual(mimetype, 'application/pdf')
        self.assertTrue(content.startswith(b'%PDF'))

    def test_send_facture_email_with_supplied_pdf(self):
        """Test a PDF supplied as a data URL is attached as is"""
        facture = FactureService.create_empty_facture(self.user, self.chantier)
        pdf = b'%PDF-1.4 navigateur'
        data_url = 'data:application/pdf;base64,' + base64.b64encode(pdf).decode()

        FactureService.send_facture_email(facture, 'durand@mail.test', data_url)

        self.assertEqual(mail.outbox[0].attachments[0][1], pdf)


class FactureAPITests(FactureFixtureMixin, APITestCase):
    """Test Facture API endpoints"""

    def setUp(self):
        cache.clear()
        self.create_fixtures()
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_create_empty_facture(self):
        """Test creating an invoice returns its editor path"""
        response = self.client.post(reverse('factures-list'), {'chantier_id': self.chantier.pk}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        facture = Facture.objects.get(pk=response.data['facture_id'])
        self.assertEqual(response.data['redirect'], f'/dashboard/factures/{facture.pk}/edit')
        self.assertEqual(facture.status, Facture.STATUS_EN_ATTENTE)
        self.assertEqual(facture.date_echeance, timezone.localdate() + relativedelta(months=1))

    def test_archive_restore_and_purge(self):
        """Test soft delete, archive listing, restore and permanent delete"""
        facture = Facture.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.delete(reverse('factures-detail', args=[facture.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(reverse('factures-list')).data['count'], 0)
        self.assertEqual(self.client.get(reverse('factures-list'), {'archived': 'true'}).data['count'], 1)

        response = self.client.post(reverse('factures-restore', args=[facture.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        facture.refresh_from_db()
        self.assertFalse(facture.is_deleted)

        response = self.client.delete(reverse('factures-permanent', args=[facture.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Facture.objects.filter(pk=facture.pk).exists())

    def test_from_devis_endpoint(self):
        """Test converting twice answers 201 then 200 with the same invoice"""
        url = reverse('factures-from-devis')

        first = self.client.post(url, {'devis_id': self.devis.pk}, format='json')
        second = self.client.post(url, {'devis_id': self.devis.pk}, format='json')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['facture_id'], second.data['facture_id'])

    def test_acompte_invalid_percentage_endpoint(self):
        """Test the deposit percentage is validated"""
        response = self.client.post(
            reverse('factures-acompte'),
            {'devis_id': self.devis.pk, 'percentage': '150'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Pourcentage invalide'})

    def test_other_user_devis_rejected(self):
        """Test another user's quote cannot be invoiced"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        self.client.force_authenticate(user=other)

        response = self.client.post(reverse('factures-situation'), {'devis_id': self.devis.pk}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Facture.objects.exists())

    def test_save_endpoint(self):
        """Test saving lines returns the new totals"""
        facture = Facture.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.post(
            reverse('factures-save-facture', args=[facture.pk]),
            {
                'items': [{'id': 'new_1', 'description': 'Pose', 'quantity': '4', 'unit_price': '25', 'tva': '20'}],
                'facture': {'date_echeance': '2026-12-31'}
            },
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_ttc'], Decimal('120.00'))
        facture.refresh_from_db()
        self.assertEqual(str(facture.date_echeance), '2026-12-31')

    def test_save_with_foreign_article_rejected(self):
        """Test an invoice line cannot point to another user's article"""
        facture = Facture.objects.create(chantier=self.chantier, created_by=self.user)
        other = User.objects.create_user(username='voisin', password='testpass123')
        foreign = Article.objects.create(name='Tuile', stock=0, created_by=other)

        response = self.client.post(
            reverse('factures-save-facture', args=[facture.pk]),
            {'items': [{'id': 'new_1', 'description': 'Tuile', 'quantity': '7', 'article_id': foreign.pk}]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Article introuvable'})
        self.assertFalse(facture.items.exists())
