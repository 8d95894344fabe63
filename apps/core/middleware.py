# apps/core/middleware.py
"""
Request middlewares: session gate and current user tracking
"""
import threading

from django.conf import settings
from django.shortcuts import redirect

_thread_locals = threading.local()


def get_current_user():
    """Get current user from thread local storage"""
    return getattr(_thread_locals, 'user', None)


def set_current_user(user):
    """Set current user in thread local storage"""
    _thread_locals.user = user


class SessionGateMiddleware:
    """
    Refreshes the cookie session and protects the dashboard pages.

    - an expired access cookie is re-minted from the refresh cookie and
      sent back with the response
    - /dashboard/** without a session redirects to /
    - / with a session redirects to /dashboard/
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        from apps.users.authentication import resolve_session, set_auth_cookies

        path = request.path
        if path.startswith(settings.SESSION_GATE_EXEMPT_PREFIXES):
            request.session_user = None
            return self.get_response(request)

        user, new_access = resolve_session(request)
        request.session_user = user
        if new_access:
            # Downstream authentication reads the refreshed token
            request.COOKIES[settings.AUTH_COOKIE_ACCESS] = new_access

        if path.startswith('/dashboard') and user is None:
            return redirect('/')
        if path == '/' and user is not None:
            return redirect('/dashboard/')

        response = self.get_response(request)

        if new_access:
            set_auth_cookies(response, new_access)
        return response


class CurrentUserMiddleware:
    """
    Stores the session user in thread local storage
    so signal handlers can attribute the work they do.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, 'session_user', None)
        if user is None and hasattr(request, 'user') and request.user.is_authenticated:
            user = request.user
        set_current_user(user)

        try:
            return self.get_response(request)
        finally:
            set_current_user(None)
