# apps/notifications/views.py
"""
ViewSet for managing notifications
"""
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ResourceNotFoundError
from apps.core.mixins import StandardFilterMixin
from apps.core.pagination import StaticPagination
from apps.notifications.models import Notification
from apps.notifications.serializers import NotificationSerializer, ConfirmOrderSerializer
from apps.notifications.services import NotificationService


class NotificationViewSet(StandardFilterMixin, viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for the announcements page

    Endpoints:
        - GET /api/notifications/ - List own and global notifications
        - GET /api/notifications/{id}/ - Retrieve notification
        - POST /api/notifications/{id}/read/ - Mark as read
        - POST /api/notifications/{id}/confirm-order/ - Restock an article and archive
        - POST /api/notifications/{id}/confirm-material/ - Confirm a workflow material order
        - GET /api/notifications/count/ - Unread count
    """
    serializer_class = NotificationSerializer
    pagination_class = StaticPagination

    filterset_fields = ['type', 'status']
    search_fields = ['title', 'message']
    ordering_fields = ['created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Notification.objects.none()
        return NotificationService.get_notifications(self.request.user)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = NotificationService.mark_as_read(self.get_object())
        return Response({'success': True, 'notification': self.get_serializer(notification).data})

    @action(detail=True, methods=['post'], url_path='confirm-order')
    def confirm_order(self, request, pk=None):
        serializer = ConfirmOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = NotificationService.confirm_order(
            self.get_object(),
            serializer.validated_data['article_id'],
            serializer.validated_data['quantity'],
            user=request.user,
        )
        return Response({'success': True, 'stock': article.stock})

    @action(detail=True, methods=['post'], url_path='confirm-material')
    def confirm_material(self, request, pk=None):
        from apps.workflows.models import ChantierNode
        from apps.workflows.services import WorkflowService

        notification = self.get_object()
        node = ChantierNode.objects.filter(
            pk=(notification.data or {}).get('node_id'),
            chantier__created_by=request.user,
        ).select_related('chantier').first()
        if node is None:
            raise ResourceNotFoundError("Étape introuvable")

        result = WorkflowService.confirm_material_order(node, notification)
        return Response({'success': True, 'result': result})

    @action(detail=False, methods=['get'])
    def count(self, request):
        return Response({
            'count': NotificationService.get_unread_count(request.user),
            'user_id': request.user.id
        })
