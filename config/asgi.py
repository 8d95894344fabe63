# config/asgi.py
import logging
import os
from urllib.parse import parse_qs

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', f"config.settings.{os.environ.get('DJANGO_ENV', 'development')}")

# Initialize Django ASGI application early to ensure the AppRegistry
# is populated before importing code that may import ORM models.
django_asgi_app = get_asgi_application()

from channels.db import database_sync_to_async  # noqa: E402
from django.contrib.auth.models import AnonymousUser  # noqa: E402
from django.http import HttpRequest, parse_cookie  # noqa: E402

logger = logging.getLogger(__name__)

SSE_PATH = '/api/notifications/stream/'


def build_request(scope):
    """Django request object from an ASGI scope, enough for the SSE view"""
    request = HttpRequest()
    request.method = scope['method']
    request.path = scope.get('path', '')
    request.META = {'REQUEST_METHOD': scope['method']}

    for header_name, header_value in scope.get('headers', []):
        header_name = header_name.decode('latin1')
        header_value = header_value.decode('latin1')
        meta_key = f"HTTP_{header_name.upper().replace('-', '_')}"
        request.META[meta_key] = header_value

    request.COOKIES = parse_cookie(request.META.get('HTTP_COOKIE', ''))

    # EventSource cannot set headers: ?token= stands in for Authorization
    query_string = scope.get('query_string', b'').decode('latin1')
    token = parse_qs(query_string).get('token', [''])[0]
    if token and not request.META.get('HTTP_AUTHORIZATION'):
        request.META['HTTP_AUTHORIZATION'] = f'Bearer {token}'
    return request


@database_sync_to_async
def get_user(request):
    """Session user from the Authorization header or the access cookie"""
    from apps.users.authentication import resolve_session

    user, _ = resolve_session(request)
    return user or AnonymousUser()


async def send_json(send, status, body):
    await send({
        'type': 'http.response.start',
        'status': status,
        'headers': [
            [b'content-type', b'application/json'],
            [b'cache-control', b'no-cache'],
        ],
    })
    await send({
        'type': 'http.response.body',
        'body': body,
        'more_body': False,
    })


async def stream_notifications(scope, receive, send):
    from apps.notifications.sse_views import notification_stream

    request = build_request(scope)
    request.user = await get_user(request)

    if not request.user.is_authenticated:
        await send_json(send, 401, '{"error": "Non connecté"}'.encode())
        return

    response = await notification_stream(request)

    await send({
        'type': 'http.response.start',
        'status': response.status_code,
        'headers': [
            [key.encode(), value.encode()]
            for key, value in response.items()
        ],
    })

    if not response.streaming:
        await send({'type': 'http.response.body', 'body': response.content, 'more_body': False})
        return

    # Stream the response
    async for chunk in response.streaming_content:
        await send({
            'type': 'http.response.body',
            'body': chunk.encode() if isinstance(chunk, str) else chunk,
            'more_body': True,
        })

    await send({'type': 'http.response.body', 'body': b'', 'more_body': False})


async def application(scope, receive, send):
    """
    Main ASGI application: the SSE endpoint is served here, everything
    else goes to Django
    """
    if scope['type'] == 'http' and scope.get('path', '') == SSE_PATH:
        try:
            await stream_notifications(scope, receive, send)
        except Exception as e:
            logger.error("Error in SSE handling: %s", e)
            await send_json(send, 500, '{"error": "Erreur serveur"}'.encode())
        return

    # For all other requests, use Django ASGI app
    await django_asgi_app(scope, receive, send)
