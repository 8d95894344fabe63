from django_filters import rest_framework as filters
from rest_framework import viewsets, status, filters as drf_filters
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import ResourceNotFoundError
from apps.core.mixins import OwnedQuerysetMixin, RevalidateMixin
from apps.core.pagination import StaticPagination
from .models import Article
from .serializers import (
    ArticleSerializer, ArticleImportSerializer, ArticleComposantSerializer, StockAdjustSerializer
)
from .services import ArticleService, StockService, ARTICLE_PAGES


class ArticleFilter(filters.FilterSet):
    category = filters.CharFilter(field_name='category', lookup_expr='iexact')
    out_of_stock = filters.BooleanFilter(method='filter_out_of_stock')

    class Meta:
        model = Article
        fields = ['category', 'unit']

    def filter_out_of_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock=0)
        return queryset.filter(stock__gt=0)


class ArticleViewSet(OwnedQuerysetMixin, RevalidateMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/articles/ - List articles
        - POST /api/articles/ - Create article
        - PUT/PATCH/DELETE /api/articles/{id}/
        - POST /api/articles/import/ - Bulk import
        - POST /api/articles/{id}/stock/ - Add or subtract stock
        - POST /api/articles/{id}/composants/ - Add or update a component
        - DELETE /api/articles/{id}/composants/{composant_id}/ - Remove a component
    """
    queryset = Article.objects.prefetch_related('composants__child')
    serializer_class = ArticleSerializer
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    filterset_class = ArticleFilter
    pagination_class = StaticPagination
    search_fields = ['name', 'category']
    ordering_fields = ['name', 'category', 'stock', 'price_ht']
    ordering = ['name']
    stale_paths = ARTICLE_PAGES

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = ArticleService.create_article(request.user, serializer.validated_data)
        return Response(
            {'success': True, 'article': self.get_serializer(article).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['post'], url_path='import')
    def import_articles(self, request):
        serializer = ArticleImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        articles = ArticleService.import_articles(request.user, serializer.validated_data['articles'])
        return Response({'success': True, 'count': len(articles)}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='stock')
    def adjust_stock(self, request, pk=None):
        serializer = StockAdjustSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        article = StockService.adjust_stock(
            self.get_object(),
            serializer.validated_data['quantity'],
            serializer.validated_data['operation']
        )
        return Response({'success': True, 'stock': article.stock})

    @action(detail=True, methods=['post'], url_path='composants')
    def add_composant(self, request, pk=None):
        parent = self.get_object()
        serializer = ArticleComposantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        child = serializer.validated_data['child']
        if child.created_by_id != request.user.pk:
            raise ResourceNotFoundError("Article introuvable")
        composant = ArticleService.set_composant(parent, child, serializer.validated_data['quantity'])
        return Response({'success': True, 'composant': ArticleComposantSerializer(composant).data})

    @action(detail=True, methods=['delete'], url_path=r'composants/(?P<composant_id>\d+)')
    def remove_composant(self, request, pk=None, composant_id=None):
        ArticleService.remove_composant(self.get_object(), composant_id)
        return Response({'success': True})
