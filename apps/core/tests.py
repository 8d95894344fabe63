# apps/core/tests.py
"""
Core app tests - Testing page cache, exceptions, permissions and utilities
"""
import time
from decimal import Decimal
from types import SimpleNamespace
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.cache import cache
from django.db.models import ProtectedError
from django.test import TestCase, override_settings
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.test import APIRequestFactory, force_authenticate
from rest_framework.views import APIView

from apps.core.business_rules import BusinessRules, to_decimal
from apps.core.cache import (
    cache_page_by_path, get_path_version, normalize_path,
    revalidate_path, revalidate_paths, revalidations_since
)
from apps.core.exceptions import (
    ActionError, InsufficientStockError, RelatedDataError, ResourceNotFoundError,
    custom_exception_handler
)
from apps.core.mailer import send_html_mail
from apps.core.permissions import IsOwner, IsOwnerOrShared

User = get_user_model()


class PageCacheTests(TestCase):
    """Test path keyed page cache"""

    def setUp(self):
        cache.clear()
        self.factory = APIRequestFactory()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.calls = 0

        test_case = self

        class CountingView(APIView):
            @cache_page_by_path(timeout=60)
            def get(self, request):
                test_case.calls += 1
                return Response({'calls': test_case.calls})

        self.view = CountingView.as_view()

    def get(self, path='/dashboard/clients/', user=None):
        request = self.factory.get(path)
        force_authenticate(request, user=user or self.user)
        return self.view(request)

    def test_normalize_path(self):
        """Test trailing slashes do not make a different page"""
        self.assertEqual(normalize_path('/dashboard/clients/'), '/dashboard/clients')
        self.assertEqual(normalize_path('dashboard/clients'), '/dashboard/clients')

    def test_revalidate_bumps_version(self):
        """Test each revalidation bumps the path version"""
        before = get_path_version('/dashboard/devis')

        revalidate_path('/dashboard/devis/')

        self.assertEqual(get_path_version('/dashboard/devis'), before + 1)

    def test_revalidations_since(self):
        """Test recent revalidations are listed oldest first"""
        start = time.time() - 1
        revalidate_paths(['/dashboard/clients', '/dashboard/factures', '/dashboard/clients'])

        paths = [path for _, path in revalidations_since(start)]

        self.assertEqual(paths, ['/dashboard/clients', '/dashboard/factures'])
        self.assertEqual(revalidations_since(time.time() + 60), [])

    def test_page_served_from_cache(self):
        """Test the handler only runs again after revalidation"""
        self.assertEqual(self.get().data, {'calls': 1})
        self.assertEqual(self.get().data, {'calls': 1})

        revalidate_path('/dashboard/clients')

        self.assertEqual(self.get().data, {'calls': 2})

    def test_cache_key_includes_user_and_query(self):
        """Test users and query strings get their own entries"""
        other = User.objects.create_user(username='voisin', password='testpass123')

        self.get()
        self.get(user=other)
        self.get('/dashboard/clients/?q=lyon')

        self.assertEqual(self.calls, 3)


class ExceptionHandlerTests(TestCase):
    """Test custom_exception_handler"""

    class AmountSerializer(serializers.Serializer):
        amount = serializers.DecimalField(max_digits=10, decimal_places=2)
        note = serializers.CharField(required=False)

        def validate_note(self, value):
            raise serializers.ValidationError("Note refusée", code="rejected")

    def handle(self, exc):
        return custom_exception_handler(exc, {})

    def test_action_error(self):
        """Test action errors keep their French message"""
        response = self.handle(ActionError("Impossible de créer le chantier"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Impossible de créer le chantier'})

    def test_error_subclasses(self):
        """Test status codes and default messages of the error classes"""
        self.assertEqual(self.handle(ResourceNotFoundError("Ligne introuvable")).status_code, 404)
        self.assertEqual(self.handle(InsufficientStockError()).data, {'error': 'Stock insuffisant'})
        self.assertEqual(self.handle(RelatedDataError()).status_code, status.HTTP_409_CONFLICT)

    def test_protected_error_becomes_conflict(self):
        """Test a protected relation is reported as related data"""
        response = self.handle(ProtectedError("protected", set()))

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data, {'error': 'Impossible de supprimer : des données y sont encore liées.'})

    def test_builtin_validation_is_translated(self):
        """Test built-in validation codes become generic French messages"""
        serializer = self.AmountSerializer(data={'amount': 'abc'})

        with self.assertRaises(serializers.ValidationError) as ctx:
            serializer.is_valid(raise_exception=True)

        self.assertEqual(self.handle(ctx.exception).data, {'error': 'Données invalides'})

    def test_missing_field(self):
        """Test a missing field is reported as such"""
        serializer = self.AmountSerializer(data={})

        with self.assertRaises(serializers.ValidationError) as ctx:
            serializer.is_valid(raise_exception=True)

        self.assertEqual(self.handle(ctx.exception).data, {'error': 'Champ obligatoire manquant'})

    def test_custom_validation_message_passes_through(self):
        """Test messages raised with a custom code are shown as is"""
        serializer = self.AmountSerializer(data={'amount': '10', 'note': 'x'})

        with self.assertRaises(serializers.ValidationError) as ctx:
            serializer.is_valid(raise_exception=True)

        self.assertEqual(self.handle(ctx.exception).data, {'error': 'Note refusée'})


class PermissionTests(TestCase):
    """Test owner permission classes"""

    def setUp(self):
        self.owner = User.objects.create_user(username='artisan', password='testpass123')
        self.other = User.objects.create_user(username='voisin', password='testpass123')

    def request(self, user, method='GET'):
        class MockRequest:
            pass

        request = MockRequest()
        request.user = user
        request.method = method
        return request

    def test_is_owner_follows_owner_field(self):
        """Test ownership is resolved through owner_field"""
        class MockView:
            owner_field = 'chantier__created_by'

        node = SimpleNamespace(chantier=SimpleNamespace(created_by=self.owner))
        permission = IsOwner()

        self.assertTrue(permission.has_object_permission(self.request(self.owner), MockView(), node))
        self.assertFalse(permission.has_object_permission(self.request(self.other), MockView(), node))

    def test_is_owner_without_owner(self):
        """Test rows without owner belong to nobody"""
        class MockView:
            pass

        row = SimpleNamespace(created_by=None)

        self.assertFalse(IsOwner().has_object_permission(self.request(self.owner), MockView(), row))

    def test_shared_rows_are_read_only(self):
        """Test public rows can be read but not changed by others"""
        class MockView:
            pass

        template = SimpleNamespace(created_by=None, is_public=True)
        permission = IsOwnerOrShared()

        self.assertTrue(permission.has_object_permission(self.request(self.other), MockView(), template))
        self.assertFalse(permission.has_object_permission(self.request(self.other, 'DELETE'), MockView(), template))


class MailerTests(TestCase):
    """Test send_html_mail"""

    def test_sends_html_with_attachment(self):
        """Test the message carries the HTML part and attachments"""
        result = send_html_mail(
            'Facture F-000001', '<p>Bonjour</p>', ['client@mail.test', ''],
            attachments=[('Facture-F-000001.pdf', b'%PDF-1.4', 'application/pdf')]
        )

        self.assertTrue(result.sent)
        self.assertFalse(result.simulated)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['client@mail.test'])
        self.assertEqual(message.body, 'Bonjour')
        self.assertEqual(message.alternatives[0][1], 'text/html')
        self.assertEqual(message.attachments[0][0], 'Facture-F-000001.pdf')

    @override_settings(EMAIL_DELIVERY_ENABLED=False)
    def test_simulated_when_delivery_disabled(self):
        """Test nothing is sent when delivery is off"""
        result = send_html_mail('Test', '<p>x</p>', ['client@mail.test'])

        self.assertTrue(result.simulated)
        self.assertEqual(len(mail.outbox), 0)

    def test_backend_failure(self):
        """Test a backend error is reported, not raised"""
        with mock.patch('django.core.mail.EmailMultiAlternatives.send', side_effect=OSError('smtp down')):
            result = send_html_mail('Test', '<p>x</p>', ['client@mail.test'])

        self.assertFalse(result.sent)
        self.assertEqual(result.error, 'smtp down')


class BusinessRulesTests(TestCase):
    """Test document totals"""

    def test_to_decimal(self):
        """Test missing and non numeric amounts count as zero"""
        self.assertEqual(to_decimal(None), Decimal('0'))
        self.assertEqual(to_decimal('abc'), Decimal('0'))
        self.assertEqual(to_decimal('12.5'), Decimal('12.5'))

    def test_document_totals(self):
        """Test HT and TTC with per line VAT, rounded to cents"""
        items = [
            SimpleNamespace(quantity=Decimal('3'), unit_price=Decimal('33.333'), tva=Decimal('20')),
            SimpleNamespace(quantity=Decimal('1'), unit_price=Decimal('10'), tva=Decimal('5.5')),
        ]

        self.assertEqual(BusinessRules.document_totals(items), (Decimal('110.00'), Decimal('130.55')))

    def test_document_totals_with_progress(self):
        """Test invoice lines bill their progress share"""
        items = [
            SimpleNamespace(quantity=Decimal('2'), unit_price=Decimal('100'), tva=Decimal('20'),
                            progress_percentage=Decimal('25')),
        ]

        self.assertEqual(
            BusinessRules.document_totals(items, with_progress=True),
            (Decimal('50.00'), Decimal('60.00'))
        )

    def test_percentage_of(self):
        self.assertEqual(BusinessRules.percentage_of(Decimal('1234.56'), 30), Decimal('370.37'))
