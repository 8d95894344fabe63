from django_filters import rest_framework as filters
from rest_framework import viewsets, status, filters as drf_filters
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.mixins import OwnedQuerysetMixin, RevalidateMixin
from apps.core.pagination import StaticPagination
from .models import Chantier
from .serializers import ChantierSerializer, ChantierCreateSerializer, ChantierStatusSerializer
from .services import ChantierService


class ChantierFilter(filters.FilterSet):
    client = filters.NumberFilter(field_name='client_id')
    date_debut_after = filters.DateFilter(field_name='date_debut', lookup_expr='gte')

    class Meta:
        model = Chantier
        fields = ['status', 'client']


class ChantierViewSet(OwnedQuerysetMixin, RevalidateMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/chantiers/ - List job sites
        - POST /api/chantiers/ - Create job site
        - PATCH /api/chantiers/{id}/ - Update job site
        - DELETE /api/chantiers/{id}/ - Delete job site with its quotes and workflow
        - POST /api/chantiers/{id}/status/ - Change status
    """
    queryset = Chantier.objects.select_related('client')
    serializer_class = ChantierSerializer
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    filterset_class = ChantierFilter
    pagination_class = StaticPagination
    search_fields = ['name', 'client__name', 'address_line1']
    ordering_fields = ['name', 'date_debut', 'created_at']
    ordering = ['-created_at']
    stale_paths = ('/dashboard/chantiers',)

    def get_revalidate_paths(self, instance=None):
        paths = super().get_revalidate_paths(instance)
        if instance is not None:
            paths.append(instance.page_path)
        return paths

    def create(self, request, *args, **kwargs):
        serializer = ChantierCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        chantier = ChantierService.create_chantier(request.user, serializer.validated_data)
        return Response(
            {'success': True, 'chantier': self.get_serializer(chantier).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        serializer = ChantierStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        chantier = ChantierService.update_chantier_status(self.get_object(), serializer.validated_data['status'])
        return Response({'success': True, 'status': chantier.status})
