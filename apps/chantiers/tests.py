# apps/chantiers/tests.py
"""
Chantiers app tests - job site creation, status changes and progress
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
from apps.workflows.models import ChantierNode

User = get_user_model()


class ChantierModelTests(TestCase):
    """Test Chantier model"""

    def setUp(self):
        self.client_row = Client.objects.create(name='Dupont', email='dupont@mail.test')
        self.chantier = Chantier.objects.create(
            name='Cuisine',
            client=self.client_row,
            email_contact='chantier@mail.test'
        )

    def test_defaults(self):
        """Test a new job site starts in study status"""
        self.assertEqual(self.chantier.status, Chantier.STATUS_ETUDE)
        self.assertIsNone(self.chantier.date_debut)
        self.assertEqual(self.chantier.page_path, f'/dashboard/chantiers/{self.chantier.pk}')

    def test_contact_email_prefers_client(self):
        """Test the client e-mail wins over the job site contact"""
        self.assertEqual(self.chantier.contact_email, 'dupont@mail.test')

        self.client_row.email = ''
        self.assertEqual(self.chantier.contact_email, 'chantier@mail.test')

    def test_workflow_progress_excludes_start_node(self):
        """Test progress counts done steps, start step excluded"""
        ChantierNode.objects.create(chantier=self.chantier, action_type='play', status='done')
        ChantierNode.objects.create(chantier=self.chantier, action_type='quote', status='done')
        ChantierNode.objects.create(chantier=self.chantier, action_type='invoice', status='pending')
        ChantierNode.objects.create(chantier=self.chantier, action_type='email', status='pending')

        done, total, percent = self.chantier.workflow_progress()

        self.assertEqual((done, total), (1, 3))
        self.assertEqual(percent, 33)

    def test_workflow_progress_without_nodes(self):
        """Test progress of a job site without workflow is zero"""
        self.assertEqual(self.chantier.workflow_progress(), (0, 0, 0))


class ChantierAPITests(APITestCase):
    """Test Chantier API endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', email='artisan@trame.test', password='testpass123')
        self.other = User.objects.create_user(username='autre', email='autre@trame.test', password='testpass123')
        self.client.force_authenticate(user=self.user)
        self.client_row = Client.objects.create(name='Dupont', created_by=self.user)

    def test_create_chantier(self):
        """Test creating a job site from the form fields"""
        version = get_path_version('/dashboard/chantiers')
        data = {
            'name': 'Rénovation salle de bain',
            'client_id': self.client_row.pk,
            'address': '3 place Bellecour',
            'date_debut': '2026-11-02',
        }

        response = self.client.post(reverse('chantiers-list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        chantier = Chantier.objects.get(name='Rénovation salle de bain')
        self.assertEqual(chantier.address_line1, '3 place Bellecour')
        self.assertEqual(chantier.status, Chantier.STATUS_ETUDE)
        self.assertEqual(chantier.created_by, self.user)
        self.assertGreater(get_path_version('/dashboard/chantiers'), version)

    def test_create_chantier_for_foreign_client(self):
        """Test a job site cannot be attached to another user's client"""
        foreign = Client.objects.create(name='Durand', created_by=self.other)

        response = self.client.post(
            reverse('chantiers-list'),
            {'name': 'X', 'client_id': foreign.pk},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Client introuvable'})

    def test_update_status(self):
        """Test the status action revalidates list and detail pages"""
        chantier = Chantier.objects.create(name='Toiture', client=self.client_row, created_by=self.user)
        detail_version = get_path_version(chantier.page_path)

        response = self.client.post(
            reverse('chantiers-update-status', args=[chantier.pk]),
            {'status': 'en_cours'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        chantier.refresh_from_db()
        self.assertEqual(chantier.status, Chantier.STATUS_EN_COURS)
        self.assertGreater(get_path_version(chantier.page_path), detail_version)

    def test_update_status_invalid(self):
        """Test an unknown status is rejected"""
        chantier = Chantier.objects.create(name='Toiture', client=self.client_row, created_by=self.user)

        response = self.client.post(
            reverse('chantiers-update-status', args=[chantier.pk]),
            {'status': 'perdu'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unauthenticated_access(self):
        """Test that unauthenticated users cannot list job sites"""
        self.client.force_authenticate(user=None)

        response = self.client.get(reverse('chantiers-list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
