"""
URL configuration.

/           login page data (session gate redirects signed-in users)
/auth/      cookie session: login, magic link, callback, sign-out
/dashboard/ cached page data
/api/       REST actions
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path, include, re_path
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from apps.users.views import landing

schema_view = get_schema_view(openapi.Info(
        title="Trame API",
        default_version='v1',
        description="Clients, job sites, quotes, invoices, stock and workflows",
    ),
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    # Swagger documentation
    re_path(r'^swagger(?P<format>\.json|\.yaml)$',
            schema_view.without_ui(cache_timeout=0),
            name='schema-json'),
    re_path(r'^swagger/$',
            schema_view.with_ui('swagger', cache_timeout=0),
            name='schema-swagger-ui'),
    re_path(r'^redoc/$',
            schema_view.with_ui('redoc', cache_timeout=0),
            name='schema-redoc'),

    path('', landing, name='landing'),
    path('auth/', include('apps.users.urls')),
    path('dashboard/', include('apps.dashboard.urls')),

    # Account endpoints (djoser)
    re_path(r'^api/auth/', include('djoser.urls')),
    re_path(r'^api/auth/', include('djoser.urls.jwt')),

    # Admin
    path('admin/', admin.site.urls),

    # API endpoints
    path('api/', include('apps.clients.urls')),
    path('api/', include('apps.chantiers.urls')),
    path('api/', include('apps.articles.urls')),
    path('api/', include('apps.devis.urls')),
    path('api/', include('apps.factures.urls')),
    path('api/', include('apps.notifications.urls')),
    path('api/', include('apps.company.urls')),
    path('api/', include('apps.workflows.urls')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
