# apps/clients/tests.py
"""
Clients app tests - Testing client models and API endpoints
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.cache import get_path_version
from apps.factures.models import Facture

User = get_user_model()


class ClientModelTests(TestCase):
    """Test Client model"""

    def test_create_client_minimal(self):
        """Test creating client with minimal required fields"""
        client = Client.objects.create(name='Dupont')

        self.assertEqual(client.name, 'Dupont')
        self.assertEqual(client.type, Client.TYPE_PARTICULIER)
        self.assertEqual(str(client), 'Dupont')

    def test_full_address(self):
        """Test full_address joins the non empty parts"""
        client = Client.objects.create(
            name='Martin',
            address_line1='12 rue des Lilas',
            zip_code='69003',
            city='Lyon'
        )

        self.assertEqual(client.full_address, '12 rue des Lilas, 69003 Lyon')


class ClientAPITests(APITestCase):
    """Test Client API endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', email='artisan@trame.test', password='testpass123')
        self.other = User.objects.create_user(username='autre', email='autre@trame.test', password='testpass123')
        self.client.force_authenticate(user=self.user)

        self.own_client = Client.objects.create(name='Dupont', email='dupont@mail.test', created_by=self.user)
        self.foreign_client = Client.objects.create(name='Durand', created_by=self.other)

    def test_list_only_own_clients(self):
        """Test a user only sees the clients they created"""
        response = self.client.get(reverse('clients-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [c['name'] for c in response.data['results']]
        self.assertEqual(names, ['Dupont'])

    def test_foreign_client_not_found(self):
        """Test another user's client is invisible"""
        response = self.client.get(reverse('clients-detail', args=[self.foreign_client.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Non trouvé'})

    def test_create_client(self):
        """Test creating a client stamps the owner and revalidates the list page"""
        version = get_path_version('/dashboard/clients')
        data = {
            'name': 'Bernard SARL',
            'type': 'professionnel',
            'email': 'contact@bernard.test',
            'siret': '123 456 789 00012',
            'iban': 'fr76 3000 6000 0112 3456 7890 189'
        }

        response = self.client.post(reverse('clients-list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        client = Client.objects.get(name='Bernard SARL')
        self.assertEqual(client.created_by, self.user)
        self.assertEqual(client.siret, '12345678900012')
        self.assertEqual(client.iban, 'FR7630006000011234567890189')
        self.assertGreater(get_path_version('/dashboard/clients'), version)

    def test_create_client_invalid_siret(self):
        """Test an invalid SIRET is rejected with an error message"""
        response = self.client.post(reverse('clients-list'), {'name': 'X', 'siret': '12AB'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_update_client_revalidates_related_pages(self):
        """Test updating a client revalidates clients, invoices and quotes pages"""
        versions = {p: get_path_version(p) for p in ('/dashboard/clients', '/dashboard/factures', '/dashboard/devis')}

        response = self.client.patch(
            reverse('clients-detail', args=[self.own_client.pk]),
            {'city': 'Nantes'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.own_client.refresh_from_db()
        self.assertEqual(self.own_client.city, 'Nantes')
        for path, version in versions.items():
            self.assertGreater(get_path_version(path), version)

    def test_delete_client_archives_invoices(self):
        """Test deleting a client soft deletes its invoices first"""
        chantier = Chantier.objects.create(name='Salle de bain', client=self.own_client, created_by=self.user)
        facture = Facture.objects.create(chantier=chantier, created_by=self.user)

        response = self.client.delete(reverse('clients-detail', args=[self.own_client.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['archived_factures'], 1)
        self.assertFalse(Client.objects.filter(pk=self.own_client.pk).exists())
        facture.refresh_from_db()
        self.assertTrue(facture.is_deleted)
        self.assertIsNone(facture.chantier)

    def test_import_clients(self):
        """Test bulk import of client rows"""
        data = {'clients': [{'name': 'Import 1'}, {'name': 'Import 2', 'city': 'Lille'}]}

        response = self.client.post(reverse('clients-import-clients'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(Client.objects.filter(created_by=self.user).count(), 3)

    def test_unauthenticated_access(self):
        """Test that unauthenticated users cannot access clients"""
        self.client.force_authenticate(user=None)

        response = self.client.get(reverse('clients-list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Non connecté'})
