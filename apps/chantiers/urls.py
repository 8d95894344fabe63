from rest_framework.routers import DefaultRouter
from .views import ChantierViewSet

router = DefaultRouter()
router.register(r'chantiers', ChantierViewSet, basename='chantiers')

urlpatterns = router.urls
