# apps/devis/tests.py
"""
Devis app tests - drafts, article lines, saving and workflow hooks
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.articles.models import Article, ArticleComposant
from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.cache import get_path_version
from apps.devis.models import Devis, DevisItem, DEFAULT_NOTES
from apps.devis.services import DevisService
from apps.factures.models import Facture
from apps.workflows.models import ChantierNode, ChantierEdge

User = get_user_model()


class DevisModelTests(TestCase):
    """Test Devis model"""

    def setUp(self):
        client_row = Client.objects.create(name='Petit')
        self.chantier = Chantier.objects.create(name='Toiture', client=client_row)

    def test_reference_sequence(self):
        """Test references are sequential within the year"""
        year = timezone.now().year
        first = Devis.objects.create(chantier=self.chantier)
        second = Devis.objects.create(chantier=self.chantier)

        self.assertEqual(first.reference, f'D-{year}-0001')
        self.assertEqual(second.reference, f'D-{year}-0002')

    def test_reference_past_four_digits(self):
        """Test numbering keeps going after 9999 quotes in a year"""
        year = timezone.now().year
        Devis.objects.create(chantier=self.chantier, reference=f'D-{year}-9999')
        Devis.objects.create(chantier=self.chantier, reference=f'D-{year}-0005')

        self.assertEqual(Devis.objects.create(chantier=self.chantier).reference, f'D-{year}-10000')
        self.assertEqual(Devis.generate_reference(), f'D-{year}-10001')

    def test_defaults(self):
        """Test a new quote is a draft with the default notes"""
        devis = Devis.objects.create(chantier=self.chantier)

        self.assertTrue(devis.is_draft)
        self.assertEqual(devis.notes, DEFAULT_NOTES)
        self.assertEqual(devis.edit_path, f'/dashboard/devis/{devis.pk}/edit')


class DevisServiceTests(TestCase):
    """Test DevisService"""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        client_row = Client.objects.create(name='Petit', created_by=self.user)
        self.chantier = Chantier.objects.create(name='Toiture', client=client_row, created_by=self.user)

    def build_quote_workflow(self, play_status):
        play = ChantierNode.objects.create(chantier=self.chantier, action_type='play', status=play_status)
        quote = ChantierNode.objects.create(chantier=self.chantier, action_type='quote', label='Devis')
        ChantierEdge.objects.create(chantier=self.chantier, source=play, target=quote)
        return quote

    def test_create_empty_devis_validates_quote_step(self):
        """Test creating a quote validates the pending quote step of a launched job site"""
        quote_step = self.build_quote_workflow('done')
        version = get_path_version(self.chantier.page_path)

        devis = DevisService.create_empty_devis(self.user, self.chantier)

        self.assertEqual(devis.status, Devis.STATUS_BROUILLON)
        quote_step.refresh_from_db()
        self.assertEqual(quote_step.status, ChantierNode.STATUS_DONE)
        self.assertGreater(get_path_version(self.chantier.page_path), version)

    def test_create_empty_devis_waits_for_launch(self):
        """Test the quote step stays pending until the job site is launched"""
        quote_step = self.build_quote_workflow('pending')

        DevisService.create_empty_devis(self.user, self.chantier)

        quote_step.refresh_from_db()
        self.assertEqual(quote_step.status, ChantierNode.STATUS_PENDING)

    def test_add_line_from_article(self):
        """Test an article line snapshots name, prices and components"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        article = Article.objects.create(
            name='Kit VMC', unit='u', price_ht=Decimal('249.00'), cost_ht=Decimal('180.00'),
            tva=Decimal('10.00'), created_by=self.user
        )
        gaine = Article.objects.create(name='Gaine 80', unit='m', created_by=self.user)
        ArticleComposant.objects.create(parent=article, child=gaine, quantity=Decimal('6'))

        first = DevisService.add_line_from_article(devis, article)
        second = DevisService.add_line_from_article(devis, gaine)

        self.assertEqual(first.description, 'Kit VMC')
        self.assertEqual(first.unit_price, Decimal('249.00'))
        self.assertEqual(first.cost_price, Decimal('180.00'))
        self.assertEqual(first.tva, Decimal('10.00'))
        self.assertEqual(first.quantity, 1)
        self.assertEqual(first.details, [{'article_id': gaine.pk, 'name': 'Gaine 80', 'quantity': 6.0, 'unit': 'm'}])
        self.assertEqual(second.position, first.position + 1)

    def test_save_devis_totals(self):
        """Test new lines are inserted and totals rounded to cents"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        existing = DevisItem.objects.create(devis=devis, description='Ancienne', unit_price=Decimal('1'))

        DevisService.save_devis(devis, [
            {'id': str(existing.pk), 'description': 'Dépose', 'quantity': Decimal('1'),
             'unit_price': Decimal('120'), 'tva': Decimal('10')},
            {'id': 'new_a', 'description': 'Tuiles', 'quantity': Decimal('3.5'),
             'unit_price': Decimal('10'), 'tva': Decimal('20')},
        ], {'name': 'Réfection toiture'})

        devis.refresh_from_db()
        self.assertEqual(devis.name, 'Réfection toiture')
        self.assertEqual(devis.items.count(), 2)
        self.assertEqual(devis.total_ht, Decimal('155.00'))
        self.assertEqual(devis.total_ttc, Decimal('174.00'))

    def test_save_devis_sent_status_validates_quote_step(self):
        """Test sending the quote validates the quote step"""
        quote_step = self.build_quote_workflow('done')
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)

        DevisService.save_devis(devis, [], {'status': Devis.STATUS_EN_ATTENTE})

        quote_step.refresh_from_db()
        self.assertEqual(quote_step.status, ChantierNode.STATUS_DONE)

    def test_delete_devis_protected_by_invoice(self):
        """Test a quote with invoices cannot be deleted"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        Facture.objects.create(chantier=self.chantier, devis=devis, created_by=self.user)

        client = APIClient()
        client.force_authenticate(user=self.user)
        response = client.delete(reverse('devis-detail', args=[devis.pk]))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {'error': 'Impossible de supprimer le devis'})
        self.assertTrue(Devis.objects.filter(pk=devis.pk).exists())


class DevisAPITests(APITestCase):
    """Test Devis API endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.client.force_authenticate(user=self.user)
        client_row = Client.objects.create(name='Petit', created_by=self.user)
        self.chantier = Chantier.objects.create(name='Toiture', client=client_row, created_by=self.user)

    def test_create_returns_redirect(self):
        """Test creating a draft returns the editor path"""
        response = self.client.post(reverse('devis-list'), {'chantier_id': self.chantier.pk}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['redirect'], f"/dashboard/devis/{response.data['devis_id']}/edit")

    def test_create_for_foreign_chantier(self):
        """Test a quote cannot be created on another user's job site"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        self.client.force_authenticate(user=other)

        response = self.client.post(reverse('devis-list'), {'chantier_id': self.chantier.pk}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Élément introuvable'})

    def test_save_and_delete_line(self):
        """Test saving lines then deleting one"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.post(
            reverse('devis-save-devis', args=[devis.pk]),
            {'items': [
                {'id': 'new_1', 'item_type': 'section', 'description': 'Charpente'},
                {'id': 'new_2', 'description': 'Chevrons', 'quantity': '12', 'unit_price': '8.5', 'tva': '20'},
            ]},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_ht'], Decimal('102.00'))

        item = devis.items.get(description='Chevrons')
        response = self.client.delete(reverse('devis-delete-item', args=[devis.pk, item.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(devis.items.count(), 1)

    def test_save_unknown_line(self):
        """Test saving a line id that does not belong to the quote"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.post(
            reverse('devis-save-devis', args=[devis.pk]),
            {'items': [{'id': '99999', 'description': 'X'}]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Ligne introuvable'})

    def test_add_article_endpoint(self):
        """Test adding an article line"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        article = Article.objects.create(name='Liteau', price_ht=Decimal('2.10'), created_by=self.user)

        response = self.client.post(
            reverse('devis-add-article', args=[devis.pk]),
            {'article_id': article.pk},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['description'], 'Liteau')

    def test_save_with_foreign_article_rejected(self):
        """Test a line cannot point to another user's article"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        other = User.objects.create_user(username='voisin', password='testpass123')
        foreign = Article.objects.create(name='Tuile', stock=0, created_by=other)

        response = self.client.post(
            reverse('devis-save-devis', args=[devis.pk]),
            {'items': [{'id': 'new_1', 'description': 'Tuile', 'quantity': '7', 'article_id': foreign.pk}]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Article introuvable'})
        self.assertFalse(devis.items.exists())

    def test_save_with_own_article(self):
        """Test a line keeps a link to the user's own article"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        article = Article.objects.create(name='Tuile', created_by=self.user)

        response = self.client.post(
            reverse('devis-save-devis', args=[devis.pk]),
            {'items': [{'id': 'new_1', 'description': 'Tuile', 'quantity': '7', 'article_id': article.pk}]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(devis.items.get().article_id, article.pk)
