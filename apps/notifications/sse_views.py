# apps/notifications/sse_views.py
"""
Server-sent events stream: new notifications and page refresh events.
"""
import json
import asyncio
import logging
import re
import time

from asgiref.sync import sync_to_async
from django.apps import apps
from django.http import JsonResponse, StreamingHttpResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from apps.core.cache import revalidations_since
from apps.notifications.models import Notification
from apps.notifications.services import NotificationService

logger = logging.getLogger(__name__)

POLL_INTERVAL = 2

# Dictionary to track active connections
active_connections = {}

# Pages of a single owned row, other dashboard paths are shared page names
OWNED_PAGES = (
    (re.compile(r'^/dashboard/chantiers/(\d+)'), 'chantiers.Chantier'),
    (re.compile(r'^/dashboard/devis/(\d+)'), 'devis.Devis'),
    (re.compile(r'^/dashboard/factures/(\d+)'), 'factures.Facture'),
)


def sse_event(event, **payload):
    return f"data: {json.dumps({'event': event, **payload})}\n\n"


@sync_to_async
def get_unread_notifications(user):
    """Unread notifications sent on connect, oldest first"""
    notifications = NotificationService.get_notifications(user).filter(
        status=Notification.STATUS_UNREAD
    ).order_by('created_at', 'id')
    return [notification.to_event() for notification in notifications]


@sync_to_async
def get_new_notifications(user, last_check_time):
    """Notifications created after last check time"""
    notifications = NotificationService.get_notifications(user).filter(
        created_at__gt=last_check_time
    ).exclude(status=Notification.STATUS_ARCHIVED).order_by('created_at', 'id')
    return [notification.to_event() for notification in notifications]


def visible_paths(user, paths):
    """Drop the pages of rows owned by other users"""
    visible = []
    for path in paths:
        for pattern, model_label in OWNED_PAGES:
            match = pattern.match(path)
            if match:
                model = apps.get_model(model_label)
                if model.objects.filter(pk=int(match.group(1)), created_by=user).exists():
                    visible.append(path)
                break
        else:
            visible.append(path)
    return visible


@sync_to_async
def get_refreshed_paths(user, last_refresh):
    """Latest revalidation timestamp and the paths the user may see since last_refresh"""
    refreshed = revalidations_since(last_refresh)
    if not refreshed:
        return last_refresh, []
    paths = list(dict.fromkeys(path for _, path in refreshed))
    return refreshed[-1][0], visible_paths(user, paths)


@require_GET
async def notification_stream(request):
    """SSE endpoint - sends unread notifications then polls for notifications and stale pages"""
    user = request.user
    if not user.is_authenticated:
        return JsonResponse({'error': 'Non connecté'}, status=401)

    logger.info("New SSE connection: user %s", user.pk)

    async def event_stream():
        connection_id = f"{user.pk}_{timezone.now().timestamp()}"
        active_connections[connection_id] = True

        try:
            yield sse_event('connected', message='Connected to notification stream', user_id=user.pk)

            for notification_data in await get_unread_notifications(user):
                yield sse_event('notification', data=notification_data)

            last_check_time = timezone.now()
            last_refresh = time.time()

            while active_connections.get(connection_id, False):
                for notification_data in await get_new_notifications(user, last_check_time):
                    yield sse_event('notification', data=notification_data)
                last_check_time = timezone.now()

                last_refresh, paths = await get_refreshed_paths(user, last_refresh)
                if paths:
                    yield sse_event('refresh', paths=paths)

                yield sse_event('ping', timestamp=int(timezone.now().timestamp()))
                await asyncio.sleep(POLL_INTERVAL)

        except GeneratorExit:
            logger.info("SSE client disconnected: user %s", user.pk)
            raise
        except Exception as e:
            logger.error("Fatal error in event stream for user %s: %s", user.pk, e)
        finally:
            active_connections.pop(connection_id, None)

    response = StreamingHttpResponse(
        event_stream(),
        content_type='text/event-stream'
    )
    response['Cache-Control'] = 'no-cache, no-transform'
    response['X-Accel-Buffering'] = 'no'
    return response
