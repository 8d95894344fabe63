# apps/dashboard/views.py
"""
Dashboard page data.

One GET endpoint per dashboard page. Responses are cached per path with
cache_page_by_path(); every write action revalidates the pages it makes
stale, so a cached page is served until the data behind it changes.
- Aggregations run in the database, one query per block
- Lists use select_related / prefetch_related to avoid N+1 queries
"""
from decimal import Decimal

from django.db.models import Count, Sum, Q
from django.shortcuts import get_object_or_404
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.articles.models import Article
from apps.articles.serializers import ArticleSerializer
from apps.chantiers.models import Chantier
from apps.chantiers.serializers import ChantierSerializer
from apps.clients.models import Client
from apps.clients.serializers import ClientSerializer
from apps.company.serializers import CompanySettingsSerializer
from apps.company.services import CompanyService
from apps.core.cache import cache_page_by_path
from apps.devis.models import Devis
from apps.devis.serializers import DevisSerializer, DevisListSerializer
from apps.factures.models import Facture
from apps.factures.serializers import FactureSerializer, FactureListSerializer
from apps.notifications.models import Notification
from apps.notifications.serializers import NotificationSerializer
from apps.notifications.services import NotificationService
from apps.workflows.models import ChantierNode, ChantierLog
from apps.workflows.serializers import ChantierNodeSerializer, ChantierEdgeSerializer, ChantierLogSerializer
from apps.workflows.services import WorkflowService

RECENT_ACTIVITY_LIMIT = 10

# Steps shown on the kanban board
BOARD_ACTION_TYPES = (
    'quote', 'invoice', 'setup', 'site_visit', 'client_choice',
    'cleaning', 'material_order', 'reception_report', 'photo_report',
)


def _search(queryset, request, *fields):
    """?q= filter over the given fields, case insensitive"""
    term = request.query_params.get('q', '').strip()
    if not term:
        return queryset
    condition = Q()
    for field in fields:
        condition |= Q(**{f'{field}__icontains': term})
    return queryset.filter(condition)


class DashboardHomeView(APIView):
    """
    Home page: key figures and recent workflow activity
    """

    @cache_page_by_path()
    def get(self, request):
        user = request.user

        facture_stats = Facture.objects.active().filter(created_by=user).aggregate(
            revenue=Sum('total_ttc', filter=Q(status=Facture.STATUS_PAYEE)),
            outstanding=Sum('total_ttc', filter=Q(status__in=Facture.UNPAID_STATUSES)),
            overdue=Count('id', filter=Q(status=Facture.STATUS_RETARD)),
        )
        devis_stats = Devis.objects.filter(created_by=user).aggregate(
            total=Count('id'),
            pending=Count('id', filter=Q(status__in=[
                Devis.STATUS_EN_ATTENTE, Devis.STATUS_EN_ATTENTE_APPROBATION
            ])),
        )
        chantier_stats = Chantier.objects.filter(created_by=user).aggregate(
            total=Count('id'),
            running=Count('id', filter=Q(status=Chantier.STATUS_EN_COURS)),
            studying=Count('id', filter=Q(status=Chantier.STATUS_ETUDE)),
        )

        activity = (
            ChantierLog.objects
            .filter(chantier__created_by=user)
            .select_related('chantier')[:RECENT_ACTIVITY_LIMIT]
        )

        return Response({
            'user': {'id': user.pk, 'display_name': user.first_name or user.username},
            'stats': {
                'revenue': facture_stats['revenue'] or Decimal('0.00'),
                'outstanding': facture_stats['outstanding'] or Decimal('0.00'),
                'overdue_factures': facture_stats['overdue'],
                'devis': devis_stats,
                'chantiers': chantier_stats,
                'unread_notifications': NotificationService.get_unread_count(user),
            },
            'recent_activity': [
                {
                    'chantier_id': log.chantier_id,
                    'chantier_name': log.chantier.name,
                    'level': log.level,
                    'message': log.message,
                    'created_at': log.created_at,
                }
                for log in activity
            ],
        })


class ClientsPageView(APIView):

    @cache_page_by_path()
    def get(self, request):
        clients = _search(
            Client.objects.filter(created_by=request.user), request,
            'name', 'email', 'city'
        )
        return Response({'clients': ClientSerializer(clients, many=True).data})


class ChantiersPageView(APIView):

    @cache_page_by_path()
    def get(self, request):
        chantiers = _search(
            Chantier.objects.filter(created_by=request.user).select_related('client'),
            request, 'name', 'client__name'
        )
        status_filter = request.query_params.get('status')
        if status_filter:
            chantiers = chantiers.filter(status=status_filter)

        clients = Client.objects.filter(created_by=request.user).values('id', 'name')
        return Response({
            'chantiers': ChantierSerializer(chantiers, many=True).data,
            'clients': list(clients),
        })


class ChantierDetailPageView(APIView):
    """
    Job site page: client, quotes, invoices and workflow progress.
    Quotes driven by a workflow quote step are flagged.
    """

    @cache_page_by_path()
    def get(self, request, pk):
        chantier = get_object_or_404(
            Chantier.objects.select_related('client'), pk=pk, created_by=request.user
        )

        linked_ids = {
            str(data.get('devis_id'))
            for data in chantier.nodes.filter(action_type=ChantierNode.ACTION_QUOTE).values_list('data', flat=True)
            if data and data.get('devis_id')
        }
        devis_list = DevisListSerializer(chantier.devis.order_by('-created_at'), many=True).data
        for devis in devis_list:
            devis['is_workflow_linked'] = str(devis['id']) in linked_ids

        factures = chantier.factures.active().select_related('devis').order_by('-created_at')

        return Response({
            'chantier': ChantierSerializer(chantier).data,
            'client': ClientSerializer(chantier.client).data,
            'devis': devis_list,
            'factures': FactureListSerializer(factures, many=True).data,
        })


class ChantierSuiviPageView(APIView):
    """
    Interactive workflow page. Not cached: the graph editor reads it
    right after every node move.
    """

    def get(self, request, pk):
        chantier = get_object_or_404(Chantier, pk=pk, created_by=request.user)
        done, total, percent = chantier.workflow_progress()
        return Response({
            'chantier': {'id': chantier.pk, 'name': chantier.name, 'status': chantier.status},
            'nodes': ChantierNodeSerializer(chantier.nodes.all(), many=True).data,
            'edges': ChantierEdgeSerializer(chantier.edges.all(), many=True).data,
            'logs': ChantierLogSerializer(WorkflowService.get_logs(chantier), many=True).data,
            'progress': {'done': done, 'total': total, 'percent': percent},
        })


class DevisPageView(APIView):

    @cache_page_by_path()
    def get(self, request):
        devis = _search(
            Devis.objects.filter(created_by=request.user).select_related('chantier__client'),
            request, 'reference', 'name', 'chantier__name', 'chantier__client__name'
        )
        return Response({'devis': DevisListSerializer(devis, many=True).data})


class DevisEditPageView(APIView):
    """Quote editor: the quote with its lines and the article catalogue"""

    @cache_page_by_path()
    def get(self, request, pk):
        devis = get_object_or_404(
            Devis.objects.select_related('chantier__client').prefetch_related('items'),
            pk=pk, created_by=request.user
        )
        articles = Article.objects.filter(created_by=request.user).prefetch_related('composants__child')
        return Response({
            'devis': DevisSerializer(devis).data,
            'articles': ArticleSerializer(articles, many=True).data,
        })


class FacturesPageView(APIView):
    """Invoices list; ?archived=true lists the archived ones"""

    @cache_page_by_path()
    def get(self, request):
        queryset = Facture.objects.filter(created_by=request.user).select_related('chantier__client', 'devis')
        if request.query_params.get('archived') in ('1', 'true', 'True'):
            queryset = queryset.archived()
        else:
            queryset = queryset.active()
        factures = _search(queryset, request, 'reference', 'chantier__name', 'chantier__client__name')
        return Response({'factures': FactureListSerializer(factures, many=True).data})


class FactureEditPageView(APIView):

    @cache_page_by_path()
    def get(self, request, pk):
        facture = get_object_or_404(
            Facture.objects.select_related('chantier__client', 'devis').prefetch_related('items'),
            pk=pk, created_by=request.user
        )
        company = CompanyService.get_company_settings(request.user)
        return Response({
            'facture': FactureSerializer(facture).data,
            'company': CompanySettingsSerializer(company, context={'request': request}).data if company else None,
        })


class ArticlesPageView(APIView):

    @cache_page_by_path()
    def get(self, request):
        articles = _search(
            Article.objects.filter(created_by=request.user).prefetch_related('composants__child'),
            request, 'name', 'category'
        )
        return Response({'articles': ArticleSerializer(articles, many=True).data})


class AnnoncesPageView(APIView):
    """Notifications page: everything not archived, newest first"""

    @cache_page_by_path()
    def get(self, request):
        notifications = NotificationService.get_notifications(request.user).exclude(
            status=Notification.STATUS_ARCHIVED
        )
        return Response({
            'notifications': NotificationSerializer(notifications, many=True).data,
            'unread_count': NotificationService.get_unread_count(request.user),
        })


class SettingsPageView(APIView):

    @cache_page_by_path()
    def get(self, request):
        company = CompanyService.get_company_settings(request.user)
        return Response({
            'settings': CompanySettingsSerializer(company, context={'request': request}).data if company else None,
        })


class TrelloPageView(APIView):
    """
    Kanban board of the workflow steps of every job site, one column
    per step status
    """

    @cache_page_by_path()
    def get(self, request):
        nodes = (
            ChantierNode.objects
            .filter(chantier__created_by=request.user, action_type__in=BOARD_ACTION_TYPES)
            .select_related('chantier')
            .order_by('-created_at')
        )
        columns = {status: [] for status, _ in ChantierNode.STATUS_CHOICES}
        for node in nodes:
            card = ChantierNodeSerializer(node).data
            card['chantier_name'] = node.chantier.name
            columns[node.status].append(card)
        return Response({'columns': columns})
