# apps/dashboard/tests.py
"""
Dashboard app tests - page data, per path caching and revalidation
"""
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.cache import revalidate_path
from apps.devis.models import Devis
from apps.factures.models import Facture
from apps.notifications.models import Notification
from apps.workflows.models import ChantierNode, ChantierLog

User = get_user_model()


class DashboardPageTestCase(APITestCase):

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.sign_in(self.user)

        self.client_row = Client.objects.create(name='Lefèvre', email='client@mail.test', city='Lyon', created_by=self.user)
        self.chantier = Chantier.objects.create(
            name='Rénovation cuisine', client=self.client_row,
            status=Chantier.STATUS_EN_COURS, created_by=self.user
        )

    def sign_in(self, user):
        refresh = RefreshToken.for_user(user)
        self.client.cookies[settings.AUTH_COOKIE_ACCESS] = str(refresh.access_token)


class DashboardHomeTests(DashboardPageTestCase):
    """Test the home page figures"""

    def test_anonymous_is_redirected(self):
        """Test the dashboard pages need a session"""
        self.client.cookies.clear()

        response = self.client.get(reverse('dashboard-home'))

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/')

    def test_home_stats(self):
        """Test revenue, pending quotes and running job sites"""
        Facture.objects.create(
            chantier=self.chantier, status=Facture.STATUS_PAYEE,
            total_ttc=Decimal('1200.00'), created_by=self.user
        )
        Facture.objects.create(
            chantier=self.chantier, status=Facture.STATUS_ENVOYEE,
            total_ttc=Decimal('300.00'), created_by=self.user
        )
        archived = Facture.objects.create(
            chantier=self.chantier, status=Facture.STATUS_PAYEE,
            total_ttc=Decimal('999.00'), created_by=self.user
        )
        archived.soft_delete()
        Devis.objects.create(chantier=self.chantier, status=Devis.STATUS_EN_ATTENTE, created_by=self.user)
        Devis.objects.create(chantier=self.chantier, created_by=self.user)
        ChantierLog.objects.create(chantier=self.chantier, message='Étape « Devis » : pending → done')

        response = self.client.get(reverse('dashboard-home'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['stats']
        self.assertEqual(stats['revenue'], Decimal('1200.00'))
        self.assertEqual(stats['outstanding'], Decimal('300.00'))
        self.assertEqual(stats['devis'], {'total': 2, 'pending': 1})
        self.assertEqual(stats['chantiers']['running'], 1)
        self.assertEqual(response.data['recent_activity'][0]['chantier_name'], 'Rénovation cuisine')

    def test_other_users_data_is_excluded(self):
        """Test figures only count the user's own rows"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        Facture.objects.create(status=Facture.STATUS_PAYEE, total_ttc=Decimal('50.00'), created_by=other)

        response = self.client.get(reverse('dashboard-home'))

        self.assertEqual(response.data['stats']['revenue'], Decimal('0.00'))


class PageCacheTests(DashboardPageTestCase):
    """Test pages are served from cache until revalidated"""

    def test_cached_until_revalidated(self):
        """Test a direct database write is not visible before revalidation"""
        url = reverse('dashboard-clients')
        self.assertEqual(len(self.client.get(url).data['clients']), 1)

        Client.objects.create(name='Martin', created_by=self.user)
        self.assertEqual(len(self.client.get(url).data['clients']), 1)

        revalidate_path('/dashboard/clients')
        self.assertEqual(len(self.client.get(url).data['clients']), 2)

    def test_write_action_revalidates_page(self):
        """Test creating a client through the API refreshes the clients page"""
        url = reverse('dashboard-clients')
        self.client.get(url)

        response = self.client.post(reverse('clients-list'), {'name': 'Martin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.assertEqual(len(self.client.get(url).data['clients']), 2)

    def test_cache_is_per_user(self):
        """Test two users never share a cached page"""
        url = reverse('dashboard-clients')
        self.client.get(url)

        other = User.objects.create_user(username='voisin', password='testpass123')
        self.sign_in(other)

        self.assertEqual(self.client.get(url).data['clients'], [])

    def test_cache_is_per_query(self):
        """Test searches are cached separately"""
        Client.objects.create(name='Martin', city='Paris', created_by=self.user)
        url = reverse('dashboard-clients')

        self.assertEqual(len(self.client.get(url, {'q': 'lyon'}).data['clients']), 1)
        self.assertEqual(len(self.client.get(url).data['clients']), 2)


class ChantierPagesTests(DashboardPageTestCase):
    """Test the job site pages"""

    def test_detail_flags_workflow_quotes(self):
        """Test quotes linked to a quote step are flagged"""
        linked = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        free = Devis.objects.create(chantier=self.chantier, created_by=self.user)
        ChantierNode.objects.create(chantier=self.chantier, action_type='quote', data={'devis_id': linked.pk})

        response = self.client.get(reverse('dashboard-chantier-detail', args=[self.chantier.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        flags = {devis['id']: devis['is_workflow_linked'] for devis in response.data['devis']}
        self.assertEqual(flags, {linked.pk: True, free.pk: False})
        self.assertEqual(response.data['client']['name'], 'Lefèvre')
        self.assertEqual(response.data['chantier']['progress'], {'done': 0, 'total': 1, 'percent': 0})

    def test_detail_of_other_user(self):
        """Test another user's job site is not found"""
        other = User.objects.create_user(username='voisin', password='testpass123')
        self.sign_in(other)

        response = self.client.get(reverse('dashboard-chantier-detail', args=[self.chantier.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_suivi_is_live(self):
        """Test the workflow page always reads the current graph"""
        url = reverse('dashboard-chantier-suivi', args=[self.chantier.pk])
        self.assertEqual(self.client.get(url).data['nodes'], [])

        ChantierNode.objects.create(chantier=self.chantier, action_type='play')

        self.assertEqual(len(self.client.get(url).data['nodes']), 1)

    def test_chantiers_status_filter(self):
        """Test the job sites page filters on status"""
        Chantier.objects.create(name='Garage', client=self.client_row, created_by=self.user)

        response = self.client.get(reverse('dashboard-chantiers'), {'status': Chantier.STATUS_ETUDE})

        self.assertEqual([c['name'] for c in response.data['chantiers']], ['Garage'])
        self.assertEqual(len(response.data['clients']), 1)


class DocumentPagesTests(DashboardPageTestCase):
    """Test quote and invoice pages"""

    def test_factures_archived_filter(self):
        """Test archived invoices only show with ?archived=true"""
        active = Facture.objects.create(chantier=self.chantier, created_by=self.user)
        archived = Facture.objects.create(chantier=self.chantier, created_by=self.user)
        archived.soft_delete()

        response = self.client.get(reverse('dashboard-factures'))
        self.assertEqual([f['id'] for f in response.data['factures']], [active.pk])

        response = self.client.get(reverse('dashboard-factures'), {'archived': 'true'})
        self.assertEqual([f['id'] for f in response.data['factures']], [archived.pk])

    def test_devis_edit_page(self):
        """Test the quote editor gets the quote and the catalogue"""
        devis = Devis.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.get(reverse('dashboard-devis-edit', args=[devis.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['devis']['reference'], devis.reference)
        self.assertEqual(response.data['articles'], [])

    def test_facture_edit_page_without_company(self):
        """Test the invoice editor works before company settings exist"""
        facture = Facture.objects.create(chantier=self.chantier, created_by=self.user)

        response = self.client.get(reverse('dashboard-facture-edit', args=[facture.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['company'])


class BoardPagesTests(DashboardPageTestCase):
    """Test notifications, settings and kanban pages"""

    def test_annonces_hide_archived(self):
        """Test archived notifications are not listed"""
        Notification.objects.create(user=self.user, title='Stock', message='Manquant')
        Notification.objects.create(user=None, title='Maintenance', message='Ce soir')
        Notification.objects.create(
            user=self.user, title='Ancienne', message='...', status=Notification.STATUS_ARCHIVED
        )

        response = self.client.get(reverse('dashboard-annonces'))

        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['unread_count'], 2)

    def test_settings_page_empty(self):
        """Test the settings page before any company settings are saved"""
        response = self.client.get(reverse('dashboard-settings'))

        self.assertEqual(response.data, {'settings': None})

    def test_trello_columns(self):
        """Test board steps are grouped by status and start steps are hidden"""
        ChantierNode.objects.create(chantier=self.chantier, action_type='play', status='done')
        ChantierNode.objects.create(chantier=self.chantier, action_type='quote', status='done')
        ChantierNode.objects.create(chantier=self.chantier, action_type='material_order', status='waiting')

        response = self.client.get(reverse('dashboard-trello'))

        columns = response.data['columns']
        self.assertEqual(columns['pending'], [])
        self.assertEqual([c['action_type'] for c in columns['done']], ['quote'])
        self.assertEqual(columns['waiting'][0]['chantier_name'], 'Rénovation cuisine')
