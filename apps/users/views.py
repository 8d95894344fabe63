# apps/users/views.py
"""
Session views: login page data, password login, magic link, callback and sign-out.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.shortcuts import redirect
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.core.mailer import send_html_mail
from .authentication import issue_tokens, set_auth_cookies, clear_auth_cookies
from .models import MagicLink
from .serializers import LoginSerializer, MagicLinkRequestSerializer

logger = logging.getLogger(__name__)

User = get_user_model()

FORM_CONTENT_TYPES = ('application/x-www-form-urlencoded', 'multipart/form-data')


def _is_form_post(request):
    return (request.content_type or '').startswith(FORM_CONTENT_TYPES)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def landing(request):
    """Login page data; signed-in users never get here (session gate redirects them)."""
    return Response({
        'page': 'login',
        'error': request.query_params.get('error'),
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def login(request):
    """
    Email + password login, sets the session cookies.

    HTML form posts are redirected (/dashboard/ or /?error=auth_failed),
    JSON clients get {"success": true} or {"error": ...}.
    """
    serializer = LoginSerializer(data=request.data)
    if _is_form_post(request):
        if not serializer.is_valid():
            logger.warning("Login failed for %s", request.data.get('email'))
            return redirect('/?error=auth_failed')
        response = redirect('/dashboard/')
    else:
        serializer.is_valid(raise_exception=True)
        response = Response({'success': True, 'redirect': '/dashboard/'})

    user = serializer.validated_data['user']
    access, refresh = issue_tokens(user)
    set_auth_cookies(response, access, refresh)
    logger.info("User %s signed in", user.pk)
    return response


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def request_magic_link(request):
    """
    E-mail a one-time sign-in link.
    Always answers success so the endpoint does not reveal which e-mails exist.
    """
    serializer = MagicLinkRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    user = User.objects.filter(email__iexact=serializer.validated_data['email'], is_active=True).first()
    if user is not None:
        link = MagicLink.issue(user)
        url = f"{settings.SITE_URL.rstrip('/')}/auth/callback/?code={link.code}"
        send_html_mail(
            subject="Votre lien de connexion Trame",
            html=(
                "<h1>Connexion</h1>"
                f"<p><a href=\"{url}\">Se connecter à Trame</a></p>"
                f"<p>Ce lien expire dans {settings.MAGIC_LINK_TTL_MINUTES} minutes.</p>"
            ),
            recipients=[user.email],
        )
    return Response({'success': True})


def auth_callback(request):
    """Exchange a magic-link code for a cookie session."""
    code = request.GET.get('code')
    if not code:
        logger.error("Callback: no code provided")
        return redirect('/?error=no_code')

    if not settings.SIMPLE_JWT.get('SIGNING_KEY'):
        logger.error("Callback: JWT signing key is not configured")
        return redirect('/?error=config_error')

    link = MagicLink.objects.select_related('user').filter(code=code).first()
    if link is None or not link.is_usable or not link.user.is_active:
        logger.error("Callback: code exchange failed")
        return redirect('/?error=auth_failed')

    link.consume()
    access, refresh = issue_tokens(link.user)
    response = redirect('/dashboard/')
    set_auth_cookies(response, access, refresh)
    logger.info("User %s signed in with a magic link", link.user.pk)
    return response


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def signout(request):
    response = redirect('/')
    response.status_code = status.HTTP_302_FOUND
    return clear_auth_cookies(response)
