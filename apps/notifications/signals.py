# apps/notifications/signals.py
import django.dispatch

# Sent with instance=<Notification> once a notification is stored
notification_created = django.dispatch.Signal()
