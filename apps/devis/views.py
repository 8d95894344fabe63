from django_filters import rest_framework as filters
from rest_framework import viewsets, status, filters as drf_filters
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ResourceNotFoundError
from apps.core.mixins import OwnedQuerysetMixin
from apps.core.pagination import StaticPagination
from .models import Devis
from .serializers import (
    DevisSerializer, DevisListSerializer, DevisCreateSerializer,
    AddArticleLineSerializer, DevisSaveSerializer, DevisItemSerializer
)
from .services import DevisService


class DevisFilter(filters.FilterSet):
    chantier = filters.NumberFilter(field_name='chantier_id')
    client = filters.NumberFilter(field_name='chantier__client_id')

    class Meta:
        model = Devis
        fields = ['status', 'chantier', 'client']


class DevisViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/devis/ - List quotes
        - POST /api/devis/ - Create an empty draft for a job site
        - GET /api/devis/{id}/ - Quote with its lines
        - DELETE /api/devis/{id}/ - Delete quote
        - POST /api/devis/{id}/add-article/ - Add a line from an article
        - POST /api/devis/{id}/save/ - Save lines and metadata
        - DELETE /api/devis/{id}/items/{item_id}/ - Delete a line
    """
    queryset = Devis.objects.select_related('chantier__client').prefetch_related('items')
    serializer_class = DevisSerializer
    http_method_names = ['get', 'post', 'delete', 'head', 'options']
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    filterset_class = DevisFilter
    pagination_class = StaticPagination
    search_fields = ['reference', 'name', 'chantier__name', 'chantier__client__name']
    ordering_fields = ['created_at', 'reference', 'total_ttc']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return DevisListSerializer
        return DevisSerializer

    def create(self, request, *args, **kwargs):
        serializer = DevisCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        devis = DevisService.create_empty_devis(request.user, serializer.validated_data['chantier'])
        return Response(
            {'success': True, 'devis_id': devis.pk, 'redirect': devis.edit_path},
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, *args, **kwargs):
        DevisService.delete_devis(self.get_object())
        return Response({'success': True})

    @action(detail=True, methods=['post'], url_path='add-article')
    def add_article(self, request, pk=None):
        devis = self.get_object()
        serializer = AddArticleLineSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        item = DevisService.add_line_from_article(devis, serializer.validated_data['article'])
        return Response({'success': True, 'item': DevisItemSerializer(item).data})

    @action(detail=True, methods=['post'], url_path='save')
    def save_devis(self, request, pk=None):
        devis = self.get_object()
        serializer = DevisSaveSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        devis = DevisService.save_devis(
            devis,
            serializer.validated_data['items'],
            serializer.validated_data.get('devis')
        )
        return Response({'success': True, 'total_ht': devis.total_ht, 'total_ttc': devis.total_ttc})

    @action(detail=True, methods=['delete'], url_path=r'items/(?P<item_id>\d+)')
    def delete_item(self, request, pk=None, item_id=None):
        devis = self.get_object()
        item = devis.items.filter(pk=item_id).first()
        if item is None:
            raise ResourceNotFoundError("Ligne introuvable")
        DevisService.delete_devis_item(item)
        return Response({'success': True})
