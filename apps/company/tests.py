# apps/company/tests.py
"""
Company settings tests
"""
import shutil
import tempfile
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.company.models import CompanySettings
from apps.core.cache import get_path_version

User = get_user_model()

MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class CompanySettingsAPITests(APITestCase):
    """Test company settings endpoints"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.client.force_authenticate(user=self.user)
        self.url = reverse('company-settings')

    def test_get_without_settings(self):
        """Test a user without settings gets null"""
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['settings'])

    def test_save_is_an_upsert(self):
        """Test saving twice updates the same row"""
        version = get_path_version('/dashboard/settings')

        self.client.put(self.url, {'name': 'Martin BTP', 'siret': '12345678900011'}, format='json')
        response = self.client.put(self.url, {'name': 'Martin & Fils'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CompanySettings.objects.filter(user=self.user).count(), 1)
        company = CompanySettings.objects.get(user=self.user)
        self.assertEqual(company.name, 'Martin & Fils')
        self.assertEqual(company.siret, '12345678900011')
        self.assertGreater(get_path_version('/dashboard/settings'), version)

    def test_logo_upload(self):
        """Test uploading a logo stores it under the company assets"""
        logo = SimpleUploadedFile('logo.png', b'\x89PNG fake', content_type='image/png')

        response = self.client.put(self.url, {'name': 'Martin BTP', 'logo': logo}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        company = CompanySettings.objects.get(user=self.user)
        self.assertTrue(company.logo.name.startswith(f'company-assets/logo-{self.user.pk}-'))
        self.assertIsNotNone(response.data['settings']['logo_url'])

    def test_logo_upload_failure_keeps_settings(self):
        """Test a failing logo upload still saves the other fields"""
        logo = SimpleUploadedFile('logo.png', b'\x89PNG fake', content_type='image/png')

        with mock.patch('django.db.models.fields.files.FieldFile.save', side_effect=OSError('disque plein')):
            response = self.client.put(self.url, {'name': 'Martin BTP', 'logo': logo}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        company = CompanySettings.objects.get(user=self.user)
        self.assertEqual(company.name, 'Martin BTP')
        self.assertFalse(company.logo)

    def test_invalid_email(self):
        """Test an invalid e-mail is rejected"""
        response = self.client.put(self.url, {'email': 'pas-un-email'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Données invalides'})
