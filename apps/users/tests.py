# apps/users/tests.py
"""
Users app tests - session cookies, login, magic links and the session gate
"""
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase, APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.users.models import MagicLink

User = get_user_model()


class MagicLinkModelTests(TestCase):
    """Test MagicLink model"""

    def setUp(self):
        self.user = User.objects.create_user(
            username='artisan',
            email='artisan@trame.test',
            password='testpass123'
        )

    def test_issue_creates_usable_link(self):
        """A freshly issued link is usable and carries a random code"""
        link = MagicLink.issue(self.user)

        self.assertTrue(link.is_usable)
        self.assertGreater(len(link.code), 20)
        self.assertNotEqual(link.code, MagicLink.issue(self.user).code)

    def test_consumed_link_is_not_usable(self):
        """A link can only be used once"""
        link = MagicLink.issue(self.user)
        link.consume()

        self.assertFalse(link.is_usable)

    def test_expired_link_is_not_usable(self):
        """Expired links are rejected"""
        link = MagicLink.issue(self.user)
        link.expires_at = timezone.now() - timedelta(minutes=1)

        self.assertFalse(link.is_usable)


class LoginTests(APITestCase):
    """Test password login and sign-out"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='artisan',
            email='artisan@trame.test',
            password='testpass123'
        )

    def test_login_sets_session_cookies(self):
        """Valid credentials set both JWT cookies"""
        response = self.client.post(reverse('auth-login'), {
            'email': 'artisan@trame.test',
            'password': 'testpass123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['redirect'], '/dashboard/')
        self.assertIn(settings.AUTH_COOKIE_ACCESS, response.cookies)
        self.assertIn(settings.AUTH_COOKIE_REFRESH, response.cookies)
        self.assertTrue(response.cookies[settings.AUTH_COOKIE_ACCESS]['httponly'])

    def test_login_with_wrong_password(self):
        """Invalid credentials: JSON clients get the error, form posts are redirected"""
        credentials = {'email': 'artisan@trame.test', 'password': 'wrong'}

        response = self.client.post(reverse('auth-login'), credentials, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Identifiants invalides'})

        response = self.client.post(reverse('auth-login'), credentials, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/?error=auth_failed')
        self.assertNotIn(settings.AUTH_COOKIE_ACCESS, response.cookies)

    def test_form_login_redirects_to_dashboard(self):
        """A form post with valid credentials is redirected with the cookies set"""
        response = self.client.post(reverse('auth-login'), {
            'email': 'artisan@trame.test',
            'password': 'testpass123',
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/dashboard/')
        self.assertIn(settings.AUTH_COOKIE_ACCESS, response.cookies)
        self.assertIn(settings.AUTH_COOKIE_REFRESH, response.cookies)

    def test_signout_clears_cookies_and_redirects(self):
        """Sign-out answers 302 to / and expires the cookies"""
        response = self.client.post(reverse('auth-signout'))

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/')
        self.assertEqual(response.cookies[settings.AUTH_COOKIE_ACCESS].value, '')
        self.assertEqual(response.cookies[settings.AUTH_COOKIE_REFRESH].value, '')


class MagicLinkFlowTests(APITestCase):
    """Test magic link request and the /auth/callback/ exchange"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='artisan',
            email='artisan@trame.test',
            password='testpass123'
        )

    def test_request_sends_link_by_email(self):
        """Requesting a link e-mails a callback URL"""
        response = self.client.post(reverse('auth-magic-link'), {'email': 'artisan@trame.test'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        link = MagicLink.objects.get(user=self.user)
        self.assertIn(f'/auth/callback/?code={link.code}', mail.outbox[0].alternatives[0][0])

    def test_request_for_unknown_email_still_succeeds(self):
        """Unknown e-mails get the same answer and no mail"""
        response = self.client.post(reverse('auth-magic-link'), {'email': 'nobody@trame.test'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)

    def test_callback_without_code(self):
        """Missing code redirects with no_code"""
        response = self.client.get(reverse('auth-callback'))

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/?error=no_code')

    def test_callback_with_invalid_code(self):
        """Unknown code redirects with auth_failed"""
        response = self.client.get(reverse('auth-callback'), {'code': 'nope'})

        self.assertEqual(response['Location'], '/?error=auth_failed')

    def test_callback_with_valid_code(self):
        """Valid code opens a session and redirects to the dashboard"""
        link = MagicLink.issue(self.user)

        response = self.client.get(reverse('auth-callback'), {'code': link.code})

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/dashboard/')
        self.assertIn(settings.AUTH_COOKIE_ACCESS, response.cookies)
        link.refresh_from_db()
        self.assertIsNotNone(link.used_at)

    def test_callback_code_is_single_use(self):
        """The same code cannot be exchanged twice"""
        link = MagicLink.issue(self.user)
        self.client.get(reverse('auth-callback'), {'code': link.code})

        response = self.client.get(reverse('auth-callback'), {'code': link.code})

        self.assertEqual(response['Location'], '/?error=auth_failed')


class SessionGateTests(APITestCase):
    """Test the session gate middleware"""

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            username='artisan',
            email='artisan@trame.test',
            password='testpass123'
        )

    def test_dashboard_without_session_redirects_home(self):
        """Anonymous visitors of /dashboard are sent to /"""
        response = self.client.get('/dashboard/')

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/')

    def test_home_with_session_redirects_to_dashboard(self):
        """Signed-in visitors of / are sent to /dashboard/"""
        refresh = RefreshToken.for_user(self.user)
        self.client.cookies[settings.AUTH_COOKIE_ACCESS] = str(refresh.access_token)

        response = self.client.get('/')

        self.assertEqual(response.status_code, status.HTTP_302_FOUND)
        self.assertEqual(response['Location'], '/dashboard/')

    def test_home_without_session_shows_login(self):
        """Anonymous visitors of / get the login page data with the error code"""
        response = self.client.get('/', {'error': 'auth_failed'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page'], 'login')
        self.assertEqual(response.data['error'], 'auth_failed')

    def test_expired_access_is_refreshed_from_refresh_cookie(self):
        """Only a refresh cookie: a new access cookie is minted and the page served"""
        refresh = RefreshToken.for_user(self.user)
        self.client.cookies[settings.AUTH_COOKIE_REFRESH] = str(refresh)

        response = self.client.get('/dashboard/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(settings.AUTH_COOKIE_ACCESS, response.cookies)

    def test_invalid_refresh_cookie_redirects(self):
        """A garbage refresh cookie is treated as no session"""
        self.client.cookies[settings.AUTH_COOKIE_REFRESH] = 'garbage'

        response = self.client.get('/dashboard/')

        self.assertEqual(response['Location'], '/')

    def test_api_without_session_is_rejected(self):
        """API actions without a session answer 401 Non connecté"""
        response = self.client.get('/api/clients/')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {'error': 'Non connecté'})

    def test_djoser_me_endpoint_with_cookie(self):
        """The cookie session authenticates the djoser endpoints too"""
        refresh = RefreshToken.for_user(self.user)
        self.client.cookies[settings.AUTH_COOKIE_ACCESS] = str(refresh.access_token)

        response = self.client.get('/api/auth/users/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'artisan@trame.test')
