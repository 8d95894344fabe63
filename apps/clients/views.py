from django_filters import rest_framework as filters
from rest_framework import viewsets, status, filters as drf_filters
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.mixins import OwnedQuerysetMixin
from apps.core.pagination import StaticPagination
from .models import Client
from .serializers import ClientSerializer, ClientImportSerializer
from .services import ClientService


class ClientFilter(filters.FilterSet):
    city = filters.CharFilter(field_name='city', lookup_expr='icontains')
    zip_code = filters.CharFilter(field_name='zip_code', lookup_expr='startswith')

    class Meta:
        model = Client
        fields = ['type', 'city', 'zip_code']


class ClientViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/clients/ - List clients
        - POST /api/clients/ - Create client
        - PUT/PATCH /api/clients/{id}/ - Update client
        - DELETE /api/clients/{id}/ - Delete client (archives its invoices)
        - POST /api/clients/import/ - Bulk import
    """
    queryset = Client.objects.all()
    serializer_class = ClientSerializer
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    filterset_class = ClientFilter
    pagination_class = StaticPagination
    search_fields = ['name', 'email', 'city', 'zip_code', 'phone_mobile']
    ordering_fields = ['name', 'created_at']
    ordering = ['-created_at']

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = ClientService.create_client(request.user, serializer.validated_data)
        return Response(
            {'success': True, 'client': self.get_serializer(client).data},
            status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        client = self.get_object()
        serializer = self.get_serializer(client, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        client = ClientService.update_client(client, serializer.validated_data)
        return Response({'success': True, 'client': self.get_serializer(client).data})

    def destroy(self, request, *args, **kwargs):
        archived = ClientService.delete_client(self.get_object())
        return Response({'success': True, 'archived_factures': archived})

    @action(detail=False, methods=['post'], url_path='import')
    def import_clients(self, request):
        serializer = ClientImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        clients = ClientService.import_clients(request.user, serializer.validated_data['clients'])
        return Response({'success': True, 'count': len(clients)}, status=status.HTTP_201_CREATED)
