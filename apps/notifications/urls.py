# apps/notifications/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from apps.notifications.views import NotificationViewSet
from apps.notifications.sse_views import notification_stream

router = DefaultRouter()
router.register(r'notifications', NotificationViewSet, basename='notifications')

urlpatterns = [
    path('notifications/stream/', notification_stream, name='notification-stream'),
    path('', include(router.urls)),
]
