from django_filters import rest_framework as filters
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.chantiers.models import Chantier
from apps.core.mixins import OwnedQuerysetMixin
from apps.core.permissions import IsOwnerOrShared
from .models import ChantierNode, ChantierEdge
from .serializers import (
    ChantierNodeSerializer, ChantierEdgeSerializer, ChantierLogSerializer, ChantierTemplateSerializer,
    NodeCreateSerializer, NodeUpdateSerializer, NodeStatusSerializer, EdgeCreateSerializer,
    TemplateSaveSerializer, SnapshotTemplateSerializer, LoadTemplateSerializer, LogCreateSerializer
)
from .services import WorkflowService


class NodeViewSet(OwnedQuerysetMixin, viewsets.ModelViewSet):
    """
    Endpoints:
        - GET /api/workflow-nodes/?chantier=<id> - Steps of a job site
        - POST /api/workflow-nodes/ - Add a step
        - PATCH /api/workflow-nodes/{id}/ - Rename, move or set data
        - DELETE /api/workflow-nodes/{id}/ - Delete a step and its links
        - POST /api/workflow-nodes/{id}/status/ - Move to pending/waiting/done
    """
    queryset = ChantierNode.objects.select_related('chantier')
    serializer_class = ChantierNodeSerializer
    owner_field = 'chantier__created_by'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    filter_backends = [filters.DjangoFilterBackend]
    filterset_fields = ['chantier', 'status', 'action_type']

    def create(self, request, *args, **kwargs):
        serializer = NodeCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        node = WorkflowService.add_node(**serializer.validated_data)
        return Response({'success': True, 'node': self.get_serializer(node).data}, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        serializer = NodeUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        node = WorkflowService.update_node(self.get_object(), **serializer.validated_data)
        return Response({'success': True, 'node': self.get_serializer(node).data})

    def destroy(self, request, *args, **kwargs):
        WorkflowService.delete_node(self.get_object())
        return Response({'success': True})

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        node = self.get_object()
        serializer = NodeStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        automation = WorkflowService.set_node_status(node, serializer.validated_data['status'])
        return Response({
            'success': True,
            'node': self.get_serializer(node).data,
            'automation': automation
        })


class EdgeViewSet(OwnedQuerysetMixin,
                  mixins.ListModelMixin,
                  mixins.CreateModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    """
    Endpoints:
        - GET /api/workflow-edges/?chantier=<id>
        - POST /api/workflow-edges/ - Link two steps
        - DELETE /api/workflow-edges/{id}/
    """
    queryset = ChantierEdge.objects.all()
    serializer_class = ChantierEdgeSerializer
    owner_field = 'chantier__created_by'
    filter_backends = [filters.DjangoFilterBackend]
    filterset_fields = ['chantier']

    def create(self, request, *args, **kwargs):
        serializer = EdgeCreateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        edge = WorkflowService.create_edge(
            serializer.validated_data['source'],
            serializer.validated_data['target']
        )
        return Response({'success': True, 'edge': self.get_serializer(edge).data}, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        WorkflowService.delete_edge(self.get_object())
        return Response({'success': True})


class TemplateViewSet(mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      mixins.CreateModelMixin,
                      mixins.DestroyModelMixin,
                      viewsets.GenericViewSet):
    """
    Endpoints:
        - GET /api/workflow-templates/ - Public templates and the user's own
        - POST /api/workflow-templates/ - Save a template
        - DELETE /api/workflow-templates/{id}/ - Delete an own template
        - POST /api/workflow-templates/seed/ - Install the public templates
    """
    serializer_class = ChantierTemplateSerializer
    permission_classes = [IsAuthenticated, IsOwnerOrShared]
    owner_field = 'created_by'

    def get_queryset(self):
        return WorkflowService.get_templates(self.request.user)

    def create(self, request, *args, **kwargs):
        serializer = TemplateSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        template = WorkflowService.save_template(request.user, **serializer.validated_data)
        return Response(
            {'success': True, 'template': self.get_serializer(template).data},
            status=status.HTTP_201_CREATED
        )

    @action(detail=False, methods=['post'])
    def seed(self, request):
        return Response({'success': True, 'results': WorkflowService.seed_templates()})


class ChantierWorkflowViewSet(OwnedQuerysetMixin, viewsets.GenericViewSet):
    """
    Workflow of one job site.

    Endpoints:
        - GET /api/workflows/{chantier_id}/graph/ - Steps and links
        - POST /api/workflows/{chantier_id}/check/ - Recompute step statuses
        - GET/POST /api/workflows/{chantier_id}/logs/ - Last 50 log lines / append one
        - POST /api/workflows/{chantier_id}/load-template/ - Replace the graph by a template
        - POST /api/workflows/{chantier_id}/save-template/ - Save the graph as a template
    """
    queryset = Chantier.objects.all()

    @action(detail=True, methods=['get'])
    def graph(self, request, pk=None):
        chantier = self.get_object()
        done, total, percent = chantier.workflow_progress()
        return Response({
            'nodes': ChantierNodeSerializer(chantier.nodes.all(), many=True).data,
            'edges': ChantierEdgeSerializer(chantier.edges.all(), many=True).data,
            'progress': {'done': done, 'total': total, 'percent': percent},
        })

    @action(detail=True, methods=['post'])
    def check(self, request, pk=None):
        return Response(WorkflowService.check_integrity(self.get_object()))

    @action(detail=True, methods=['get', 'post'])
    def logs(self, request, pk=None):
        chantier = self.get_object()
        if request.method == 'POST':
            serializer = LogCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            log = WorkflowService.add_log(
                chantier,
                serializer.validated_data['message'],
                serializer.validated_data['level']
            )
            return Response({'success': True, 'log': ChantierLogSerializer(log).data}, status=status.HTTP_201_CREATED)
        return Response(ChantierLogSerializer(WorkflowService.get_logs(chantier), many=True).data)

    @action(detail=True, methods=['post'], url_path='load-template')
    def load_template(self, request, pk=None):
        chantier = self.get_object()
        serializer = LoadTemplateSerializer(data=request.data, context={'request': request})
        serializer.is_valid(raise_exception=True)
        nodes, edges = WorkflowService.load_template(chantier, serializer.validated_data['template'])
        return Response({'success': True, 'nodes': nodes, 'edges': edges})

    @action(detail=True, methods=['post'], url_path='save-template')
    def save_template(self, request, pk=None):
        chantier = self.get_object()
        serializer = SnapshotTemplateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        nodes, edges = WorkflowService.snapshot_graph(chantier)
        template = WorkflowService.save_template(
            request.user,
            serializer.validated_data['name'],
            serializer.validated_data['description'],
            nodes,
            edges
        )
        return Response(
            {'success': True, 'template': ChantierTemplateSerializer(template).data},
            status=status.HTTP_201_CREATED
        )
