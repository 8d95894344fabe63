# apps/notifications/services.py
"""
Service layer for creating and managing notifications
"""
import logging

from django.db import DatabaseError, transaction
from django.db.models import Q

from apps.core.cache import revalidate_path, revalidate_paths
from apps.core.exceptions import ActionError, ResourceNotFoundError
from apps.notifications.models import Notification
from apps.notifications.signals import notification_created

logger = logging.getLogger(__name__)

ANNONCES_PAGE = '/dashboard/annonces'


class NotificationService:
    """
    Centralized service for creating notifications
    """

    @staticmethod
    def get_notifications(user):
        """The user's notifications and the global ones, newest first"""
        return Notification.objects.filter(
            Q(user=user) | Q(user__isnull=True)
        ).order_by('-created_at', '-id')

    @staticmethod
    def get_unread_count(user):
        return NotificationService.get_notifications(user).filter(
            status=Notification.STATUS_UNREAD
        ).count()

    @staticmethod
    def mark_as_read(notification):
        notification.mark_as_read()
        revalidate_path(ANNONCES_PAGE)
        return notification

    @staticmethod
    def create_notification(user, type, title, message, data=None):
        """
        Store a notification for the user (None for a global one) and
        announce it to the open SSE streams.
        """
        notification = Notification.objects.create(
            user=user,
            type=type,
            title=title,
            message=message,
            data=data or {},
        )
        logger.info("Notification %s created (%s) for user %s", notification.pk, type, user.pk if user else 'all')

        notification_created.send(sender=Notification, instance=notification)
        revalidate_path(ANNONCES_PAGE)
        return notification

    @staticmethod
    def confirm_order(notification, article_id, quantity, user=None):
        """
        Confirm a restocking request: the ordered quantity is added to the
        article stock and the notification is archived.
        """
        from apps.articles.models import Article
        from apps.articles.services import StockService

        articles = Article.objects.all()
        if user is not None:
            articles = articles.filter(created_by=user)
        article = articles.filter(pk=article_id).first()
        if article is None:
            raise ResourceNotFoundError("Article introuvable")

        try:
            with transaction.atomic():
                article = StockService.adjust_stock(article, quantity, 'add')
                notification.archive()
        except DatabaseError as e:
            logger.error("Confirm order error (notification %s): %s", notification.pk, e)
            raise ActionError("Erreur mise à jour stock")

        revalidate_paths([ANNONCES_PAGE, '/dashboard/articles'])
        return article
