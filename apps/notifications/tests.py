# apps/notifications/tests.py
"""
Notifications app tests - announcements, order confirmation and counters
"""
from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.articles.models import Article
from apps.chantiers.models import Chantier
from apps.clients.models import Client
from apps.core.cache import get_path_version, revalidate_path
from apps.core.exceptions import ResourceNotFoundError
from apps.devis.models import Devis
from apps.notifications.models import Notification
from apps.notifications.services import NotificationService
from apps.notifications.signals import notification_created
from apps.notifications.sse_views import get_refreshed_paths, visible_paths
from apps.workflows.models import ChantierNode, ChantierEdge

User = get_user_model()


class NotificationServiceTests(TestCase):
    """Test NotificationService"""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.other = User.objects.create_user(username='voisin', password='testpass123')

    def test_get_notifications_own_and_global(self):
        """Test a user sees own and global notifications, newest first"""
        own = Notification.objects.create(user=self.user, title='Perso')
        shared = Notification.objects.create(user=None, title='Pour tous')
        Notification.objects.create(user=self.other, title='Autre')

        notifications = list(NotificationService.get_notifications(self.user))

        self.assertEqual(notifications, [shared, own])

    def test_create_notification_sends_signal(self):
        """Test creation announces the notification and revalidates the page"""
        received = []

        def receiver(sender, instance, **kwargs):
            received.append(instance)

        notification_created.connect(receiver)
        self.addCleanup(notification_created.disconnect, receiver)
        version = get_path_version('/dashboard/annonces')

        notification = NotificationService.create_notification(
            user=self.user,
            type=Notification.TYPE_MATERIAL_REQUEST,
            title='Commande Requise : Fournitures',
            message='Stock insuffisant',
            data={'node_id': 1},
        )

        self.assertEqual(received, [notification])
        self.assertEqual(notification.status, Notification.STATUS_UNREAD)
        self.assertGreater(get_path_version('/dashboard/annonces'), version)

    def test_confirm_order(self):
        """Test confirming an order adds stock and archives the notification"""
        article = Article.objects.create(name='Plaque BA13', stock=2, created_by=self.user)
        notification = Notification.objects.create(user=self.user, title='Réassort')
        version = get_path_version('/dashboard/articles')

        NotificationService.confirm_order(notification, article.pk, 8, user=self.user)

        article.refresh_from_db()
        notification.refresh_from_db()
        self.assertEqual(article.stock, 10)
        self.assertEqual(notification.status, Notification.STATUS_ARCHIVED)
        self.assertGreater(get_path_version('/dashboard/articles'), version)

    def test_confirm_order_unknown_article(self):
        """Test confirming an order for a missing article fails"""
        notification = Notification.objects.create(user=self.user, title='Réassort')

        with self.assertRaises(ResourceNotFoundError) as ctx:
            NotificationService.confirm_order(notification, 9999, 1, user=self.user)

        self.assertEqual(ctx.exception.detail['error'], 'Article introuvable')
        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_UNREAD)


class NotificationAPITests(APITestCase):
    """Test Notification API endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.other = User.objects.create_user(username='voisin', password='testpass123')
        self.client.force_authenticate(user=self.user)

    def test_list_and_count(self):
        """Test listing and counting unread notifications"""
        Notification.objects.create(user=self.user, title='Perso')
        Notification.objects.create(user=None, title='Pour tous', status=Notification.STATUS_READ)
        Notification.objects.create(user=self.other, title='Autre')

        response = self.client.get(reverse('notifications-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(reverse('notifications-count'))
        self.assertEqual(response.data['count'], 1)

    def test_mark_as_read(self):
        """Test marking a notification as read"""
        notification = Notification.objects.create(user=self.user, title='Perso')

        response = self.client.post(reverse('notifications-read', args=[notification.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_READ)

    def test_other_user_notification_not_found(self):
        """Test another user's notification is hidden"""
        notification = Notification.objects.create(user=self.other, title='Autre')

        response = self.client.post(reverse('notifications-read', args=[notification.pk]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Non trouvé'})

    def test_confirm_order_endpoint(self):
        """Test the confirm-order action"""
        article = Article.objects.create(name='Rail 48', stock=0, created_by=self.user)
        notification = Notification.objects.create(user=self.user, title='Réassort')

        response = self.client.post(
            reverse('notifications-confirm-order', args=[notification.pk]),
            {'article_id': article.pk, 'quantity': 5},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 5)

    def test_confirm_order_unknown_article_endpoint(self):
        """Test the confirm-order action with another user's article"""
        article = Article.objects.create(name='Rail 48', created_by=self.other)
        notification = Notification.objects.create(user=self.user, title='Réassort')

        response = self.client.post(
            reverse('notifications-confirm-order', args=[notification.pk]),
            {'article_id': article.pk, 'quantity': 5},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Article introuvable'})

    def test_confirm_material_order(self):
        """Test confirming a workflow material order flags the step"""
        client_row = Client.objects.create(name='Martin', created_by=self.user)
        chantier = Chantier.objects.create(name='Salle de bain', client=client_row, created_by=self.user)
        play = ChantierNode.objects.create(chantier=chantier, action_type='play', status='done')
        node = ChantierNode.objects.create(
            chantier=chantier, action_type='material_order', status='waiting',
            data={'notification_sent': True}
        )
        ChantierEdge.objects.create(chantier=chantier, source=play, target=node)
        notification = Notification.objects.create(
            user=self.user,
            type=Notification.TYPE_MATERIAL_REQUEST,
            title='Commande Requise',
            data={'chantier_id': chantier.pk, 'node_id': node.pk}
        )

        response = self.client.post(reverse('notifications-confirm-material', args=[notification.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        node.refresh_from_db()
        notification.refresh_from_db()
        self.assertTrue(node.data['order_confirmed'])
        self.assertEqual(notification.status, Notification.STATUS_ARCHIVED)

    def test_requires_authentication(self):
        """Test anonymous access is rejected"""
        self.client.force_authenticate(user=None)

        response = self.client.get(reverse('notifications-list'))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class RefreshEventTests(TestCase):
    """Test the page refresh paths sent on the notification stream"""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(username='artisan', password='testpass123')
        self.other = User.objects.create_user(username='voisin', password='testpass123')
        client_row = Client.objects.create(name='Durand', created_by=self.user)
        self.own = Chantier.objects.create(name='Extension', client=client_row, created_by=self.user)
        other_client = Client.objects.create(name='Martin', created_by=self.other)
        self.foreign = Chantier.objects.create(name='Garage', client=other_client, created_by=self.other)
        self.foreign_devis = Devis.objects.create(chantier=self.foreign, created_by=self.other)

    def test_visible_paths_hide_other_users_rows(self):
        """Test row pages of other users are dropped, shared pages kept"""
        paths = [
            self.own.page_path,
            self.foreign.page_path,
            self.foreign_devis.edit_path,
            '/dashboard/trello',
        ]

        self.assertEqual(visible_paths(self.user, paths), [self.own.page_path, '/dashboard/trello'])
        self.assertEqual(
            visible_paths(self.other, paths),
            [self.foreign.page_path, self.foreign_devis.edit_path, '/dashboard/trello']
        )

    def test_refreshed_paths_advance_past_hidden_pages(self):
        """Test hidden revalidations still move the stream cursor forward"""
        cache.clear()
        revalidate_path(self.foreign.page_path)

        stamp, paths = async_to_sync(get_refreshed_paths)(self.user, 0)

        self.assertGreater(stamp, 0)
        self.assertEqual(paths, [])
        self.assertEqual(async_to_sync(get_refreshed_paths)(self.user, stamp), (stamp, []))
