# apps/users/authentication.py
"""
JWT session carried in HTTP-only cookies.

The access token lives in AUTH_COOKIE_ACCESS, the refresh token in
AUTH_COOKIE_REFRESH. An expired access token is re-minted from the refresh
token by the session gate middleware before the view runs.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import RefreshToken

logger = logging.getLogger(__name__)


class CookieJWTAuthentication(JWTAuthentication):
    """
    Reads the access token from the Authorization header when present,
    otherwise from the session cookie.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            return super().authenticate(request)

        raw_token = request.COOKIES.get(settings.AUTH_COOKIE_ACCESS)
        if not raw_token:
            return None

        validated_token = self.get_validated_token(raw_token)
        return self.get_user(validated_token), validated_token


def issue_tokens(user):
    """Return an (access, refresh) pair of encoded tokens for the user."""
    refresh = RefreshToken.for_user(user)
    return str(refresh.access_token), str(refresh)


def set_auth_cookies(response, access, refresh=None):
    options = {
        'httponly': True,
        'secure': settings.AUTH_COOKIE_SECURE,
        'samesite': settings.AUTH_COOKIE_SAMESITE,
        'path': '/',
    }
    response.set_cookie(
        settings.AUTH_COOKIE_ACCESS,
        access,
        max_age=int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
        **options
    )
    if refresh is not None:
        response.set_cookie(
            settings.AUTH_COOKIE_REFRESH,
            refresh,
            max_age=int(settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME'].total_seconds()),
            **options
        )
    return response


def clear_auth_cookies(response):
    response.delete_cookie(settings.AUTH_COOKIE_ACCESS, path='/')
    response.delete_cookie(settings.AUTH_COOKIE_REFRESH, path='/')
    return response


def resolve_session(request):
    """
    Identify the user behind the request cookies.

    Returns (user, new_access_token). new_access_token is set when the
    access cookie was missing or expired and a fresh one was minted from
    the refresh cookie; the caller must send it back to the browser.
    """
    authenticator = CookieJWTAuthentication()

    header = authenticator.get_header(request)
    raw_access = request.COOKIES.get(settings.AUTH_COOKIE_ACCESS)
    if header is not None:
        raw_access = authenticator.get_raw_token(header)
        if isinstance(raw_access, bytes):
            raw_access = raw_access.decode()

    if raw_access:
        try:
            token = authenticator.get_validated_token(raw_access)
            return authenticator.get_user(token), None
        except (InvalidToken, TokenError):
            pass
        except AuthenticationFailed as e:
            # Unknown or deactivated user behind a valid token
            logger.info("Session rejected: %s", e)
            return None, None

    raw_refresh = request.COOKIES.get(settings.AUTH_COOKIE_REFRESH)
    if not raw_refresh:
        return None, None

    try:
        refresh = RefreshToken(raw_refresh)
        user_id = refresh[settings.SIMPLE_JWT['USER_ID_CLAIM']]
        user = get_user_model().objects.get(
            **{settings.SIMPLE_JWT['USER_ID_FIELD']: user_id},
            is_active=True
        )
    except (TokenError, KeyError, get_user_model().DoesNotExist):
        return None, None

    return user, str(refresh.access_token)
