from django_filters import rest_framework as filters
from rest_framework import viewsets, status, filters as drf_filters
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ResourceNotFoundError
from apps.core.mixins import OwnedQuerysetMixin
from apps.core.pagination import StaticPagination
from .models import Facture
from .serializers import (
    FactureSerializer, FactureListSerializer, FactureCreateSerializer, FromDevisSerializer,
    AcompteSerializer, FactureSaveSerializer, SendFactureEmailSerializer
)
from .services import FactureService


class FactureFilter(filters.FilterSet):
    chantier = filters.NumberFilter(field_name='chantier_id')
    client = filters.NumberFilter(field_name='chantier__client_id')
    archived = filters.BooleanFilter(field_name='deleted_at', lookup_expr='isnull', exclude=True)

    class Meta:
        model = Facture
        fields = ['status', 'type', 'chantier', 'client', 'devis']


class FactureViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/factures/ - List active invoices (?archived=true for the archive)
        - POST /api/factures/ - Create an empty invoice for a job site
        - GET /api/factures/{id}/ - Invoice with its lines
        - DELETE /api/factures/{id}/ - Archive (soft delete)
        - POST /api/factures/{id}/restore/ - Restore from the archive
        - DELETE /api/factures/{id}/permanent/ - Delete permanently
        - POST /api/factures/{id}/save/ - Save lines and metadata
        - DELETE /api/factures/{id}/items/{item_id}/ - Delete a line
        - POST /api/factures/{id}/send-email/ - E-mail the PDF
        - POST /api/factures/from-devis/ - Invoice a whole quote
        - POST /api/factures/acompte/ - Deposit invoice from a quote
        - POST /api/factures/situation/ - Progress invoice from a quote
    """
    queryset = Facture.objects.select_related('chantier__client', 'devis').prefetch_related('items')
    serializer_class = FactureSerializer
    http_method_names = ['get', 'post', 'delete', 'head', 'options']
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    filterset_class = FactureFilter
    pagination_class = StaticPagination
    search_fields = ['reference', 'chantier__name', 'chantier__client__name']
    ordering_fields = ['created_at', 'reference', 'date_echeance', 'total_ttc']
    ordering = ['-created_at']

    def get_serializer_class(self):
        if self.action == 'list':
            return FactureListSerializer
        return FactureSerializer

    def filter_queryset(self, queryset):
        queryset = super().filter_queryset(queryset)
        if self.action == 'list' and 'archived' not in self.request.query_params:
            queryset = queryset.active()
        return queryset

    def create(self, request, *args, **kwargs):
        serializer = FactureCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        facture = FactureService.create_empty_facture(request.user, serializer.validated_data['chantier'])
        return Response(
            {'success': True, 'facture_id': facture.pk, 'redirect': facture.edit_path},
            status=status.HTTP_201_CREATED
        )

    def destroy(self, request, *args, **kwargs):
        FactureService.delete_facture(self.get_object())
        return Response({'success': True})

    @action(detail=True, methods=['post'])
    def restore(self, request, pk=None):
        FactureService.restore_facture(self.get_object())
        return Response({'success': True})

    @action(detail=True, methods=['delete'])
    def permanent(self, request, pk=None):
        FactureService.delete_facture_permanently(self.get_object())
        return Response({'success': True})

    @action(detail=True, methods=['post'], url_path='save')
    def save_facture(self, request, pk=None):
        facture = self.get_object()
        serializer = FactureSaveSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        facture = FactureService.save_facture(
            facture,
            serializer.validated_data['items'],
            serializer.validated_data.get('facture')
        )
        return Response({'success': True, 'total_ht': facture.total_ht, 'total_ttc': facture.total_ttc})

    @action(detail=True, methods=['delete'], url_path=r'items/(?P<item_id>\d+)')
    def delete_item(self, request, pk=None, item_id=None):
        facture = self.get_object()
        item = facture.items.filter(pk=item_id).first()
        if item is None:
            raise ResourceNotFoundError("Ligne introuvable")
        FactureService.delete_facture_item(item)
        return Response({'success': True})

    @action(detail=True, methods=['post'], url_path='send-email')
    def send_email(self, request, pk=None):
        facture = self.get_object()
        serializer = SendFactureEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = FactureService.send_facture_email(
            facture,
            serializer.validated_data['email'],
            serializer.validated_data.get('pdf_base64')
        )
        return Response(result)

    @action(detail=False, methods=['post'], url_path='from-devis')
    def from_devis(self, request):
        serializer = FromDevisSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        facture, created = FactureService.convert_devis_to_facture(
            request.user, serializer.validated_data['devis']
        )
        return Response(
            {'success': True, 'facture_id': facture.pk, 'redirect': facture.edit_path},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @action(detail=False, methods=['post'])
    def acompte(self, request):
        serializer = AcompteSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        facture = FactureService.create_acompte(
            request.user,
            serializer.validated_data['devis'],
            serializer.validated_data['percentage']
        )
        return Response(
            {'success': True, 'facture_id': facture.pk, 'redirect': facture.edit_path},
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['post'])
    def situation(self, request):
        serializer = FromDevisSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        facture = FactureService.create_situation(request.user, serializer.validated_data['devis'])
        return Response(
            {'success': True, 'facture_id': facture.pk, 'redirect': facture.edit_path},
            status=status.HTTP_201_CREATED
        )
