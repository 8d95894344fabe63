from rest_framework.routers import DefaultRouter
from .views import NodeViewSet, EdgeViewSet, TemplateViewSet, ChantierWorkflowViewSet

router = DefaultRouter()
router.register(r'workflow-nodes', NodeViewSet, basename='workflow-nodes')
router.register(r'workflow-edges', EdgeViewSet, basename='workflow-edges')
router.register(r'workflow-templates', TemplateViewSet, basename='workflow-templates')
router.register(r'workflows', ChantierWorkflowViewSet, basename='workflows')

urlpatterns = router.urls
