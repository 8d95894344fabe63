# apps/core/cache.py
"""
Path keyed page-data cache.

Dashboard pages cache their payload per path. Every write action calls
revalidate_path() for the pages it makes stale: the path version is bumped
so the next read rebuilds the payload, and the revalidation is recorded so
open SSE streams can tell browsers to refresh.
"""
import functools
import logging
import time

from django.conf import settings
from django.core.cache import cache
from rest_framework.response import Response

logger = logging.getLogger(__name__)

VERSION_KEY = 'page-version:{path}'
DATA_KEY = 'page-data:{path}:{version}:{user}:{query}'
RECENT_KEY = 'page-revalidations'
RECENT_LIMIT = 200


def normalize_path(path):
    """'/dashboard/clients/' and '/dashboard/clients' are the same page"""
    path = '/' + path.strip('/')
    return path


def get_path_version(path):
    return cache.get_or_set(VERSION_KEY.format(path=normalize_path(path)), 1, None)


def revalidate_path(path):
    """Invalidate the cached data of one page path."""
    path = normalize_path(path)
    key = VERSION_KEY.format(path=path)
    try:
        cache.incr(key)
    except ValueError:
        cache.set(key, 2, None)

    recent = cache.get(RECENT_KEY) or []
    recent.append((time.time(), path))
    cache.set(RECENT_KEY, recent[-RECENT_LIMIT:], None)
    logger.debug("Revalidated %s", path)


def revalidate_paths(paths):
    for path in dict.fromkeys(paths):
        revalidate_path(path)


def revalidations_since(timestamp):
    """Paths revalidated after the given epoch timestamp, oldest first."""
    return [
        (stamp, path)
        for stamp, path in cache.get(RECENT_KEY) or []
        if stamp > timestamp
    ]


def cache_page_by_path(timeout=None):
    """
    Cache the Response data of a DRF view handler under its request path.

    The cache entry is keyed by path version, user and query string, so a
    revalidate_path() call for the path makes every variant stale.
    """
    def decorator(handler):
        @functools.wraps(handler)
        def wrapper(view, request, *args, **kwargs):
            path = normalize_path(request.path)
            key = DATA_KEY.format(
                path=path,
                version=get_path_version(path),
                user=getattr(request.user, 'pk', None),
                query=request.META.get('QUERY_STRING', ''),
            )
            cached = cache.get(key)
            if cached is not None:
                return Response(cached)

            response = handler(view, request, *args, **kwargs)
            if response.status_code == 200:
                cache.set(
                    key,
                    response.data,
                    timeout if timeout is not None else settings.PAGE_CACHE_TIMEOUT,
                )
            return response
        return wrapper
    return decorator
